"""
Base interface for per-file editing steps.

A multi-file edit is not atomic: files are changed one after another and a
failure part-way leaves earlier files edited. Each step therefore reports a
typed StepOutcome instead of raising, and the orchestrator aggregates them.

Subclasses implement apply(); run() wraps it with the outcome policy:
    CollaboratorFileMissingError, AlreadyPresentError -> SKIPPED
    any other ModelCreatorError, OSError              -> FAILED
"""

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Union

from model_creator.document import SourceDocument
from model_creator.exceptions import (
    AlreadyPresentError,
    CollaboratorFileMissingError,
    ModelCreatorError,
)
from model_creator.models import StepOutcome
from model_creator.run_log import RunLog


def resolve_relative(base_dir: Union[str, Path], relpath: str) -> Path:
    """Join and normalize without following symlinks."""
    return Path(os.path.normpath(os.path.join(str(base_dir), relpath)))


class BaseFileStep(ABC):
    """
    One file edited as part of a larger operation.

    Subclasses set ``name`` (step identifier in reports) and ``role``
    (human-readable file description) and implement apply().
    """

    name: str = "step"
    role: str = "file"

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------
    @abstractmethod
    def target_path(self, ctx: Any) -> Path:
        """Absolute path of the file this step edits."""
        ...

    @abstractmethod
    def apply(self, ctx: Any) -> StepOutcome:
        """Perform the edit and return an APPLIED or SKIPPED outcome."""
        ...

    # ------------------------------------------------------------------
    # Helpers available to all subclasses
    # ------------------------------------------------------------------
    def load(self, ctx: Any, default_eol: str = None) -> SourceDocument:
        path = self.target_path(ctx)
        if not path.is_file():
            raise CollaboratorFileMissingError(self.role, str(path))
        return SourceDocument.load(
            path,
            encoding=ctx.config.encoding,
            default_eol=default_eol or ctx.config.default_eol,
        )

    def commit(self, ctx: Any, document: SourceDocument, reason: str, **details) -> StepOutcome:
        """Save *document* unless this is a dry run, and report APPLIED."""
        if ctx.dry_run:
            ctx.run_log.info(self.name, f"[dry run] would update {document.path.name}: {reason}", **details)
            return StepOutcome.applied(self.name, str(document.path), f"dry run: {reason}", **details)
        document.save()
        ctx.run_log.info(self.name, f"Updated {document.path.name}: {reason}", **details)
        return StepOutcome.applied(self.name, str(document.path), reason, **details)

    def run(self, ctx: Any) -> StepOutcome:
        """apply() with per-file error isolation."""
        run_log: RunLog = ctx.run_log
        path = ""
        try:
            path = str(self.target_path(ctx))
            return self.apply(ctx)
        except (CollaboratorFileMissingError, AlreadyPresentError) as exc:
            run_log.warning(self.name, f"Skipping {self.role}: {exc}", **exc.details)
            return StepOutcome.skipped(self.name, path, str(exc), error_type=type(exc).__name__)
        except ModelCreatorError as exc:
            run_log.error(self.name, f"Failed to update {self.role}: {exc}", **exc.details)
            return StepOutcome.failed(self.name, path, str(exc), error_type=type(exc).__name__)
        except OSError as exc:
            run_log.error(self.name, f"I/O error on {self.role}: {exc}", file=path)
            return StepOutcome.failed(self.name, path, str(exc), error_type=type(exc).__name__)
