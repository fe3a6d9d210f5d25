"""
Fan model propagation.

A new fan motor is cloned from an existing one:

    FocFans/<NEW>.h          copy of the reference fan header with new
                             electrical parameters and include guard
    Custom.h                 #define MOTOR2_<NEW> <max+1> in the fan table
    customerInterface2.c     #elif (MOTOR2_TYPE == MOTOR2_<NEW>) / #include
    focfanName_Table.h       #elif (MOTOR2_TYPE == MOTOR2_<NEW>) / FAN_NAME

The header and the Custom.h entry are required; the two driver files are
optional collaborators reported per file.
"""

import math
import re
from abc import abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from model_creator.alignment import format_define, value_column_of
from model_creator.config import DEFAULT_CONFIG, ModelCreatorConfig
from model_creator.custom_header import list_fan_models
from model_creator.document import SourceDocument, split_lines
from model_creator.exceptions import (
    AlreadyPresentError,
    ExtractionError,
    ModelCreatorError,
    NoInsertionPointError,
    ParseError,
    ReferenceBlockNotFoundError,
    ValidationError,
)
from model_creator.models import (
    AlignmentProfile,
    FanModel,
    FanParameters,
    NewFanRequest,
    StepOutcome,
    SyncReport,
)
from model_creator.run_log import RunLog
from model_creator.steps import BaseFileStep, resolve_relative

_FAN_INCLUDE_RE = re.compile(r'#include\s*"FocFans/([^"]+)"')
_FAN_DEFINE_RE = re.compile(r"^\s*#define\s+MOTOR2_")
_GUARD_IFNDEF_RE = re.compile(r"#ifndef\s+_*[A-Z0-9_]+_H_*")
_GUARD_DEFINE_RE = re.compile(r"#define\s+_*[A-Z0-9_]+_H_*")

HEADER_STEP = "fan_header"
TABLE_STEP = "fan_table"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fan_file_stem(fan_name: str, config: ModelCreatorConfig = DEFAULT_CONFIG) -> str:
    """``FAN_X_DEBUG`` -> ``FAN_X``; debug variants share the release header."""
    if fan_name.endswith(config.fan_debug_suffix):
        return fan_name[:-len(config.fan_debug_suffix)]
    return fan_name


def render_fan_header(reference_text: str, parameters: FanParameters, new_stem: str) -> str:
    """
    Copy of a fan header with the motor parameters and include guard replaced.

    Rs is scaled by 1.1/2, Ld and Lq halved, matching how the driver expects
    phase values.
    """
    replacements = (
        (r"Motor2_i32PolePairs\s*=\s*[^;]+;", f"Motor2_i32PolePairs  = {parameters.poles};"),
        (r"Motor2_f32Rs\s*=\s*[^;]+;", f"Motor2_f32Rs         = {1.1 * parameters.rs / 2:.2f};"),
        (r"Motor2_f32Ld\s*=\s*[^;]+;", f"Motor2_f32Ld\t\t    = {round_half_up(parameters.ld / 2)};"),
        (r"Motor2_f32Lq\s*=\s*[^;]+;", f"Motor2_f32Lq\t\t    = {round_half_up(parameters.lq / 2)};"),
        (r"Motor2_f32Ke\s*=\s*[^;]+;", f"Motor2_f32Ke         = {parameters.ke:.1f};"),
    )
    text = reference_text
    for pattern, replacement in replacements:
        text = re.sub(pattern, lambda _m, r=replacement: r, text, count=1)

    guard = f"__{new_stem.upper()}_H__"
    text = _GUARD_IFNDEF_RE.sub(lambda _m: f"#ifndef {guard}", text, count=1)
    text = _GUARD_DEFINE_RE.sub(lambda _m: f"#define {guard}", text, count=1)
    return text


def find_fan_header(interface_lines: List[str], fan_macro: str) -> Optional[str]:
    """
    Header file of *fan_macro*: the ``#include "FocFans/..."`` on the line
    following the one that mentions the macro.
    """
    word = re.compile(rf"\b{re.escape(fan_macro)}\b")
    for i, line in enumerate(interface_lines[:-1]):
        if word.search(line):
            m = _FAN_INCLUDE_RE.search(interface_lines[i + 1])
            if m:
                return m.group(1)
    return None


def find_table_insertion(lines: List[str], anchor_pattern: str) -> int:
    """
    Index of the last ``#define MOTOR2_`` line above the fan table anchor,
    or -1 when there is no anchor or no define above it.
    """
    anchor = re.compile(anchor_pattern)
    anchor_index = next((i for i, line in enumerate(lines) if anchor.search(line)), -1)
    if anchor_index == -1:
        return -1
    last = -1
    for i in range(anchor_index):
        if _FAN_DEFINE_RE.match(lines[i]):
            last = i
    return last


@dataclass
class FanContext:
    custom_header_path: Path
    reference: FanModel
    new_name: str
    config: ModelCreatorConfig
    run_log: RunLog
    dry_run: bool = False

    @property
    def driver_dir(self) -> Path:
        return resolve_relative(self.custom_header_path.parent, self.config.fan_driver_relpath)

    @property
    def fans_dir(self) -> Path:
        return self.driver_dir / self.config.fan_headers_dirname

    @property
    def new_macro(self) -> str:
        return f"MOTOR2_{self.new_name.upper()}"

    @property
    def new_stem(self) -> str:
        return fan_file_stem(self.new_name, self.config)


# ──────────────────────────────────────────────────────────────────────────────
# Driver-side collaborators
# ──────────────────────────────────────────────────────────────────────────────

class _ElseBeforeErrorStep(BaseFileStep):
    """Insert an arm before the ``#else`` that precedes a sentinel ``#error``."""

    filename_attr = ""
    sentinel_attr = ""

    def target_path(self, ctx: FanContext) -> Path:
        return ctx.driver_dir / getattr(ctx.config, self.filename_attr)

    @abstractmethod
    def render_arm(self, ctx: FanContext) -> str:
        """The ``#elif`` guard and its one body line."""
        ...

    def apply(self, ctx: FanContext) -> StepOutcome:
        document = self.load(ctx)
        if document.contains_word(ctx.new_macro):
            raise AlreadyPresentError(ctx.new_macro, str(document.path))

        sentinel = getattr(ctx.config, self.sentinel_attr)
        lines = document.lines
        error_index = next((i for i, line in enumerate(lines) if sentinel in line), -1)
        if error_index < 1 or not lines[error_index - 1].strip().startswith("#else"):
            raise NoInsertionPointError(str(document.path))

        document.insert_block(error_index - 1, self.render_arm(ctx))
        return self.commit(ctx, document, f"added {ctx.new_macro}", line=error_index - 1)


class CustomerInterfaceStep(_ElseBeforeErrorStep):
    name = "customer_interface"
    role = "customer interface source"
    filename_attr = "customer_interface_filename"
    sentinel_attr = "motor_type_error_directive"

    def render_arm(self, ctx: FanContext) -> str:
        return (f"#elif (MOTOR2_TYPE == {ctx.new_macro})\n"
                f'#include "{ctx.config.fan_headers_dirname}/{ctx.new_stem}.h"')


class FanNameTableStep(_ElseBeforeErrorStep):
    name = "fan_name_table"
    role = "fan name table"
    filename_attr = "fan_name_table_filename"
    sentinel_attr = "fan_name_error_directive"

    def render_arm(self, ctx: FanContext) -> str:
        return (f"#elif (MOTOR2_TYPE == {ctx.new_macro})\n"
                f'#define FAN_NAME "{ctx.new_stem}"')


FAN_COLLABORATOR_STEPS = (CustomerInterfaceStep, FanNameTableStep)


# ──────────────────────────────────────────────────────────────────────────────
# Orchestration
# ──────────────────────────────────────────────────────────────────────────────

@dataclass
class PreparedFan:
    context: FanContext
    custom_header: SourceDocument
    table_line: int
    table_entry: str
    header_path: Path
    header_text: str
    header_eol: str


class FanCreator:
    """
    Creates a new fan model from an existing one.

    Usage:
        report = FanCreator().create_fan(NewFanRequest(...))
    """

    def __init__(self, config: Optional[ModelCreatorConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def list_fans(self, custom_header_path: str) -> List[FanModel]:
        document = SourceDocument.load(custom_header_path, encoding=self.config.encoding)
        return list_fan_models(document.lines, self.config.fan_group_gap)

    def prepare(self, request: NewFanRequest, run_log: RunLog) -> PreparedFan:
        errors = request.validate()
        if errors:
            raise ValidationError("request", "; ".join(errors))

        path = Path(request.custom_header_path)
        if not path.is_file():
            raise ValidationError("custom_header_path", f"'{path}' does not exist")

        custom_header = SourceDocument.load(path, encoding=self.config.encoding,
                                            default_eol=self.config.default_eol)
        lines = custom_header.lines
        fans = list_fan_models(lines, self.config.fan_group_gap)
        if not fans:
            raise ParseError(str(path), "no fan model table found")
        run_log.info("fan_creator", f"Found {len(fans)} fan models in {path.name}")

        reference_macro = f"MOTOR2_{request.reference_name.upper()}"
        reference = next((f for f in fans if f.name == reference_macro), None)
        if reference is None:
            raise ReferenceBlockNotFoundError(reference_macro, str(path))

        ctx = FanContext(
            custom_header_path=path,
            reference=reference,
            new_name=request.new_name,
            config=self.config,
            run_log=run_log,
            dry_run=request.dry_run,
        )
        if any(f.name == ctx.new_macro for f in fans):
            raise AlreadyPresentError(ctx.new_macro, str(path))

        # New header file
        interface_path = ctx.driver_dir / self.config.customer_interface_filename
        if not interface_path.is_file():
            raise ExtractionError(f"header file of {reference_macro}", str(interface_path))
        interface = SourceDocument.load(interface_path, encoding=self.config.encoding)
        reference_file = find_fan_header(interface.lines, reference_macro)
        if not reference_file:
            raise ExtractionError(f"header file of {reference_macro}", str(interface_path))

        reference_header = ctx.fans_dir / reference_file
        if not reference_header.is_file():
            raise ExtractionError(f"reference fan header {reference_file}", str(ctx.fans_dir))
        header_path = ctx.fans_dir / f"{ctx.new_stem}.h"
        if header_path.exists():
            raise AlreadyPresentError(header_path.name, str(ctx.fans_dir))

        reference_doc = SourceDocument.load(reference_header, encoding=self.config.encoding)
        header_text = render_fan_header(reference_doc.text, request.parameters, ctx.new_stem)

        # Custom.h table entry
        last = find_table_insertion(lines, self.config.fan_anchor_pattern)
        if last == -1:
            raise ParseError(str(path), "no MOTOR2_ define above the fan table anchor")
        column = value_column_of(lines[last], self.config.tab_width)
        profile = AlignmentProfile(value_column=column or self.config.default_value_column)
        next_value = max(f.value for f in fans) + 1
        table_entry = format_define(ctx.new_macro, str(next_value), profile, self.config.tab_width)

        return PreparedFan(
            context=ctx,
            custom_header=custom_header,
            table_line=last + 1,
            table_entry=table_entry,
            header_path=header_path,
            header_text=header_text,
            header_eol=reference_doc.eol,
        )

    def create_fan(self, request: NewFanRequest, run_log: Optional[RunLog] = None) -> SyncReport:
        """
        Raises:
            ModelCreatorError: any failure before the first write.
        """
        run_log = run_log or RunLog(run_name=f"new-fan {request.new_name}")
        report = SyncReport(dry_run=request.dry_run)

        with run_log.timer("fan_creator", "create_fan"):
            try:
                prepared = self.prepare(request, run_log)
            except ModelCreatorError as e:
                run_log.error("fan_creator", f"Aborted before any write: {e}", **e.details)
                raise

            ctx = prepared.context
            report.identifiers = {
                "reference": ctx.reference.name,
                "new_macro": ctx.new_macro,
                "header_file": prepared.header_path.name,
                "table_entry": prepared.table_entry.strip(),
            }

            report.add(self._write_header(prepared))
            report.add(self._write_table_entry(prepared))
            for step_cls in FAN_COLLABORATOR_STEPS:
                report.add(step_cls().run(ctx))

        report.log_entries = run_log.to_dicts()
        return report

    def _write_header(self, prepared: PreparedFan) -> StepOutcome:
        ctx = prepared.context
        path = prepared.header_path
        if ctx.dry_run:
            return StepOutcome.applied(HEADER_STEP, str(path), f"dry run: would create {path.name}")
        document = SourceDocument(path, prepared.header_text, eol=prepared.header_eol,
                                  encoding=self.config.encoding)
        document.save()
        ctx.run_log.info("fan_creator", f"Created {path.name}", lines=len(split_lines(prepared.header_text)))
        return StepOutcome.applied(HEADER_STEP, str(path), f"created {path.name}")

    def _write_table_entry(self, prepared: PreparedFan) -> StepOutcome:
        ctx = prepared.context
        document = prepared.custom_header
        document.insert_block(prepared.table_line, prepared.table_entry)
        if ctx.dry_run:
            return StepOutcome.applied(TABLE_STEP, str(document.path),
                                       f"dry run: would add {ctx.new_macro}", line=prepared.table_line)
        document.save()
        ctx.run_log.info("fan_creator", f"Added '{prepared.table_entry.strip()}' to {document.path.name}")
        return StepOutcome.applied(TABLE_STEP, str(document.path), f"added {ctx.new_macro}",
                                   line=prepared.table_line)
