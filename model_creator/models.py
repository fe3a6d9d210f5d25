"""
Structured data models for the model_creator package.

Defines typed objects for the artifacts derived during one synchronization
run (blocks, alignment profiles, field updates) and for the inputs and
per-file outcomes of that run. None of them are persisted; the only persisted
state is the text of the edited files.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


_BLOCK_NAME_RE = re.compile(r"^[A-Z_][A-Z0-9_]*$")
_FAN_NAME_RE = re.compile(r"^[A-Z0-9_]+$")
_SOFTWARE_VERSION_RE = re.compile(r"^0x[0-9a-fA-F]{8}$")
_EEPROM_VERSION_RE = re.compile(r"^[0-9a-zA-Z]+$")


# --- Enums ---

class StepStatus(str, Enum):
    """Outcome of one per-file step."""
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


# --- Parsed Artifacts ---

@dataclass
class ConditionalBlock:
    """One ``#if``/``#elif`` guarded span of a document."""
    name: str
    raw_text: str
    start_line: int
    end_line: int

    @property
    def lines(self) -> List[str]:
        return self.raw_text.split("\n")

    def contains_line(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line


@dataclass
class AlignmentProfile:
    """Column and indentation convention of the ``#define`` lines in a block."""
    value_column: int
    indentation: str = ""


@dataclass
class FanModel:
    """One ``#define MOTOR2_<NAME> <value>`` entry of the fan model table."""
    name: str          # full macro name, e.g. MOTOR2_FAN_A
    value: int
    line: int

    @property
    def short_name(self) -> str:
        return self.name[len("MOTOR2_"):] if self.name.startswith("MOTOR2_") else self.name


@dataclass
class FieldUpdates:
    """
    Values for the optional and mandatory macros rewritten in a new block.
    ``None`` or an empty string means "not supplied".
    """
    eeprom_macro: Optional[str] = None
    software_version: Optional[str] = None
    custom_code_name: Optional[str] = None


@dataclass
class MotorTypes:
    """Motor type identifiers for the shared customization file."""
    motor1: Optional[str] = None   # compressor
    motor2: Optional[str] = None   # fan

    def __post_init__(self):
        """Normalize blank values to None."""
        self.motor1 = (self.motor1 or "").strip() or None
        self.motor2 = (self.motor2 or "").strip() or None

    @property
    def is_empty(self) -> bool:
        return self.motor1 is None and self.motor2 is None


# --- Request Models ---

@dataclass
class NewModelRequest:
    """
    Already-collected inputs for creating a new model block.
    The interactive layer that gathers them is outside this package.
    """
    config_path: str
    reference_name: str
    new_name: str
    eeprom_version: str
    software_version: Optional[str] = None
    custom_code_name: Optional[str] = None
    motor_types: MotorTypes = field(default_factory=MotorTypes)
    run_gen_code: bool = True
    dry_run: bool = False

    def __post_init__(self):
        """Normalize optional strings."""
        self.new_name = (self.new_name or "").strip()
        self.eeprom_version = (self.eeprom_version or "").strip()
        self.software_version = (self.software_version or "").strip() or None
        self.custom_code_name = self.custom_code_name or None

    def validate(self, code_name_max_length: int = 30) -> List[str]:
        """
        Validate request fields and return a list of error messages.
        Returns empty list if valid.
        """
        errors = []

        if not self.config_path:
            errors.append("config_path is required")

        if not self.reference_name:
            errors.append("reference_name is required")

        if not self.new_name:
            errors.append("new_name is required")
        elif not _BLOCK_NAME_RE.match(self.new_name):
            errors.append(
                f"new_name '{self.new_name}' may only contain uppercase letters, digits "
                f"and underscores, and must start with a letter or underscore"
            )
        elif self.new_name == self.reference_name:
            errors.append("new_name must differ from reference_name")

        if not self.eeprom_version:
            errors.append("eeprom_version is required")
        elif not _EEPROM_VERSION_RE.match(self.eeprom_version):
            errors.append(f"eeprom_version '{self.eeprom_version}' may only contain letters and digits")

        if self.software_version and not _SOFTWARE_VERSION_RE.match(self.software_version):
            errors.append(f"software_version '{self.software_version}' must look like 0x19035B01")

        if self.custom_code_name and len(self.custom_code_name) > code_name_max_length:
            errors.append(f"custom_code_name is longer than {code_name_max_length} characters")

        return errors


@dataclass
class FanParameters:
    """Electrical parameters of a new fan motor, as measured."""
    poles: int
    rs: float
    ld: float
    lq: float
    ke: float


@dataclass
class NewFanRequest:
    """Already-collected inputs for creating a new fan model."""
    custom_header_path: str
    reference_name: str            # without the MOTOR2_ prefix
    new_name: str
    parameters: FanParameters
    dry_run: bool = False

    def validate(self) -> List[str]:
        errors = []
        if not self.custom_header_path:
            errors.append("custom_header_path is required")
        if not self.reference_name:
            errors.append("reference_name is required")
        if not self.new_name:
            errors.append("new_name is required")
        elif not _FAN_NAME_RE.match(self.new_name):
            errors.append(f"new_name '{self.new_name}' may only contain uppercase letters, digits and underscores")
        if self.parameters.poles <= 0:
            errors.append(f"poles must be positive, got {self.parameters.poles}")
        return errors


# --- Outcome Models ---

@dataclass
class StepOutcome:
    """Typed result of one per-file step."""
    step: str
    status: StepStatus
    file_path: str = ""
    reason: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def applied(cls, step: str, file_path: str = "", reason: str = "", **details) -> "StepOutcome":
        return cls(step=step, status=StepStatus.APPLIED, file_path=file_path, reason=reason, details=details)

    @classmethod
    def skipped(cls, step: str, file_path: str = "", reason: str = "", **details) -> "StepOutcome":
        return cls(step=step, status=StepStatus.SKIPPED, file_path=file_path, reason=reason, details=details)

    @classmethod
    def failed(cls, step: str, file_path: str = "", reason: str = "", **details) -> "StepOutcome":
        return cls(step=step, status=StepStatus.FAILED, file_path=file_path, reason=reason, details=details)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step,
            "status": self.status.value,
            "file": self.file_path,
            "reason": self.reason,
            "details": self.details,
        }


@dataclass
class SyncReport:
    """Aggregated outcomes of one synchronization run."""
    outcomes: List[StepOutcome] = field(default_factory=list)
    identifiers: Dict[str, str] = field(default_factory=dict)
    log_entries: List[Dict[str, Any]] = field(default_factory=list)
    dry_run: bool = False

    def add(self, outcome: StepOutcome) -> StepOutcome:
        self.outcomes.append(outcome)
        return outcome

    def outcome_for(self, step: str) -> Optional[StepOutcome]:
        """Return the outcome recorded for *step*, if any."""
        for outcome in self.outcomes:
            if outcome.step == step:
                return outcome
        return None

    @property
    def has_failures(self) -> bool:
        return any(o.status == StepStatus.FAILED for o in self.outcomes)

    def counts(self) -> Dict[str, int]:
        result = {status.value: 0 for status in StepStatus}
        for outcome in self.outcomes:
            result[outcome.status.value] += 1
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dry_run": self.dry_run,
            "identifiers": dict(self.identifiers),
            "counts": self.counts(),
            "outcomes": [o.to_dict() for o in self.outcomes],
            "log": list(self.log_entries),
        }
