"""
Per-run log collection for the model_creator package.

A RunLog is created by the top-level orchestration call and passed explicitly
to every component it invokes, so one synchronization run produces one
self-contained record of what happened. Each entry is also forwarded to the
stdlib logger ``model_creator.<component>`` so console output and the
structured record never diverge.

Usage:
    run_log = RunLog()
    run_log.info("parser", "Found 12 blocks", file="Config_PGEL.h")

    with run_log.timer("gen_code", "GenCode.bat"):
        subprocess.run(...)

    print(run_log.summary())
"""

import time
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

_LOGGER_ROOT = "model_creator"


@dataclass
class LogEntry:
    """One structured log record."""
    timestamp: float
    level: int
    component: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.level)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "level": self.level_name,
            "component": self.component,
            "message": self.message,
            "details": self.details,
        }


class RunLog:
    """
    Log collector scoped to a single synchronization run.

    Tracks:
        - Every message with its component and structured details
        - Per-level counts
        - Durations of timed operations
    """

    def __init__(self, run_name: str = "run"):
        self.run_name = run_name
        self._entries: List[LogEntry] = []
        self._start_time = time.time()

    # --- Recording ---

    def log(self, level: int, component: str, message: str, **details) -> LogEntry:
        """Record an entry and forward it to the component's stdlib logger."""
        entry = LogEntry(
            timestamp=time.time(),
            level=level,
            component=component,
            message=message,
            details=details,
        )
        self._entries.append(entry)
        logging.getLogger(f"{_LOGGER_ROOT}.{component}").log(level, message)
        return entry

    def debug(self, component: str, message: str, **details) -> LogEntry:
        return self.log(logging.DEBUG, component, message, **details)

    def info(self, component: str, message: str, **details) -> LogEntry:
        return self.log(logging.INFO, component, message, **details)

    def warning(self, component: str, message: str, **details) -> LogEntry:
        return self.log(logging.WARNING, component, message, **details)

    def error(self, component: str, message: str, **details) -> LogEntry:
        return self.log(logging.ERROR, component, message, **details)

    @contextmanager
    def timer(self, component: str, operation: str):
        """
        Context manager that records how long an operation took.

        Usage:
            with run_log.timer("gen_code", "GenCode.bat"):
                run_script()
        """
        start = time.time()
        success = True
        try:
            yield
        except Exception:
            success = False
            raise
        finally:
            duration_ms = (time.time() - start) * 1000
            self.debug(
                component,
                f"{operation} finished in {duration_ms:.1f} ms",
                operation=operation,
                duration_ms=round(duration_ms, 1),
                success=success,
            )

    # --- Queries ---

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def entries_for(self, component: str, min_level: int = logging.NOTSET) -> List[LogEntry]:
        """Return the entries recorded by *component* at or above *min_level*."""
        return [
            e for e in self._entries
            if e.component == component and e.level >= min_level
        ]

    def summary(self) -> Dict[str, Any]:
        """Counts per level plus run duration."""
        counts: Dict[str, int] = {}
        for entry in self._entries:
            counts[entry.level_name] = counts.get(entry.level_name, 0) + 1
        return {
            "run": self.run_name,
            "duration_seconds": round(time.time() - self._start_time, 3),
            "entries": len(self._entries),
            "levels": counts,
        }

    def to_dicts(self, min_level: Optional[int] = None) -> List[Dict[str, Any]]:
        threshold = logging.NOTSET if min_level is None else min_level
        return [e.to_dict() for e in self._entries if e.level >= threshold]
