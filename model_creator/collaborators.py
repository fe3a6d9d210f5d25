"""
Collaborator steps of a new-model run.

After the primary Config_*.h file has its new arm, three secondary files are
brought in line, each one optional:

    CustomHeaderStep   Custom.h      new arm with aligned MOTOR1/MOTOR2_TYPE lines
    BuildScriptStep    GenCode.bat   bin2c command for the new EEPROM data file
    ParameterFileStep  SystemPara.c  ``#elif <EEPROM macro>`` / ``#include`` pair

All three derive what they write from the identifiers computed for the
primary file (carried in SyncContext).
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from model_creator.block_parser import find_block, parse_blocks
from model_creator.config import ModelCreatorConfig
from model_creator.custom_header import motor_catalogue, render_motor_arm, unknown_motor_types
from model_creator.document import SourceDocument
from model_creator.exceptions import AlreadyPresentError, NoInsertionPointError, ParseError
from model_creator.insertion import insert_after_block
from model_creator.models import ConditionalBlock, MotorTypes, StepOutcome
from model_creator.naming import eeprom_family_prefix, find_eeprom_macro, macro_to_filename
from model_creator.run_log import RunLog
from model_creator.steps import BaseFileStep, resolve_relative

_ELSE_RE = re.compile(r"^#\s*else\b")


@dataclass
class SyncContext:
    """Identifiers computed from the primary file, shared by every step."""
    config_path: Path
    reference: ConditionalBlock
    new_name: str
    eeprom_macro: str
    board_model: str
    customer: str
    prefix: str
    motor_types: MotorTypes
    config: ModelCreatorConfig
    run_log: RunLog
    dry_run: bool = False

    @property
    def work_dir(self) -> Path:
        return self.config_path.parent

    @property
    def eeprom_filename(self) -> str:
        return macro_to_filename(self.eeprom_macro, self.config)


# ──────────────────────────────────────────────────────────────────────────────
# Custom.h
# ──────────────────────────────────────────────────────────────────────────────

class CustomHeaderStep(BaseFileStep):
    """Add a motor-type arm for the new model after the reference model's arm."""

    name = "custom_header"
    role = "shared customization header"

    def target_path(self, ctx: SyncContext) -> Path:
        return resolve_relative(ctx.work_dir, ctx.config.custom_header_relpath)

    def apply(self, ctx: SyncContext) -> StepOutcome:
        path = self.target_path(ctx)
        if ctx.motor_types.is_empty:
            ctx.run_log.info(self.name, "No motor types supplied; Custom.h left unchanged")
            return StepOutcome.skipped(self.name, str(path), "no motor types supplied")

        document = self.load(ctx)
        blocks = parse_blocks(document.text, run_log=ctx.run_log, source=path.name)
        if not blocks:
            raise ParseError(str(path))

        if find_block(blocks, ctx.new_name):
            raise AlreadyPresentError(ctx.new_name, str(path))

        for value in unknown_motor_types(motor_catalogue(document.text, ctx.config), ctx.motor_types):
            ctx.run_log.warning(self.name, f"Motor type {value} is not defined in {path.name}", motor_type=value)

        reference = find_block(blocks, ctx.reference.name)
        if reference is None:
            ctx.run_log.info(self.name, f"Reference model {ctx.reference.name} has no arm in Custom.h")
            return StepOutcome.skipped(self.name, str(path), f"reference block '{ctx.reference.name}' not present")

        arm = render_motor_arm(document.lines, reference, ctx.new_name, ctx.motor_types,
                               config=ctx.config, run_log=ctx.run_log)
        line = insert_after_block(document, reference, arm, run_log=ctx.run_log)
        return self.commit(ctx, document, f"added arm {ctx.new_name}", line=line)


# ──────────────────────────────────────────────────────────────────────────────
# GenCode.bat
# ──────────────────────────────────────────────────────────────────────────────

class BuildScriptStep(BaseFileStep):
    """Append the bin2c command that turns the new EEPROM binary into a header."""

    name = "build_script"
    role = "build script"

    def target_path(self, ctx: SyncContext) -> Path:
        return resolve_relative(ctx.work_dir, ctx.config.build_script_relpath)

    def command_for(self, ctx: SyncContext) -> str:
        return ctx.config.build_command_template.format(name=ctx.eeprom_filename)

    def apply(self, ctx: SyncContext) -> StepOutcome:
        document = self.load(ctx, default_eol=ctx.config.build_script_default_eol)
        command = self.command_for(ctx)

        if any(line.strip() == command for line in document.lines):
            raise AlreadyPresentError(command, str(document.path))

        document.append_line(command)
        return self.commit(ctx, document, f"appended '{command}'", command=command)


# ──────────────────────────────────────────────────────────────────────────────
# SystemPara.c
# ──────────────────────────────────────────────────────────────────────────────

class ParameterFileStep(BaseFileStep):
    """Register the new EEPROM macro next to the reference model's entry."""

    name = "parameter_file"
    role = "parameter file"

    def target_path(self, ctx: SyncContext) -> Path:
        return resolve_relative(ctx.work_dir, ctx.config.parameter_file_relpath)

    def render_arm(self, ctx: SyncContext) -> str:
        include = ctx.config.parameter_include_template.format(
            prefix=ctx.prefix.upper(),
            filename=ctx.eeprom_filename,
        )
        return f"#elif  {ctx.eeprom_macro}\n{include}"

    def find_anchor(self, ctx: SyncContext, document: SourceDocument) -> Optional[ConditionalBlock]:
        """
        The arm to insert after: the reference model's own EEPROM arm, else
        the last arm of the same board family.
        """
        blocks = parse_blocks(document.text, run_log=ctx.run_log, source=document.path.name)

        reference_macro = find_eeprom_macro(ctx.reference.raw_text)
        if reference_macro:
            anchor = find_block(blocks, reference_macro)
            if anchor is not None:
                ctx.run_log.debug(self.name, f"Anchored on reference macro {reference_macro}")
                return anchor
            ctx.run_log.debug(self.name, f"Reference macro {reference_macro} has no arm here")

        family = eeprom_family_prefix(ctx.board_model, ctx.customer, ctx.config)
        candidates = [b for b in blocks if b.name.startswith(family)]
        if candidates:
            ctx.run_log.debug(self.name, f"Anchored on {candidates[-1].name} (family {family})")
            return candidates[-1]
        return None

    def fallback_line(self, document: SourceDocument) -> int:
        """Before the first ``#else``, moved up over one blank line."""
        lines = document.lines
        for i, line in enumerate(lines):
            if _ELSE_RE.match(line.strip()):
                if i > 0 and lines[i - 1].strip() == "":
                    return i - 1
                return i
        raise NoInsertionPointError(str(document.path))

    def apply(self, ctx: SyncContext) -> StepOutcome:
        document = self.load(ctx)
        if document.contains_word(ctx.eeprom_macro):
            raise AlreadyPresentError(ctx.eeprom_macro, str(document.path))

        arm = self.render_arm(ctx)
        anchor = self.find_anchor(ctx, document)
        if anchor is not None:
            line = insert_after_block(document, anchor, arm, run_log=ctx.run_log)
        else:
            line = self.fallback_line(document)
            ctx.run_log.warning(self.name, f"No related arm found; inserting before #else at line {line}")
            document.insert_block(line, arm)

        return self.commit(ctx, document, f"registered {ctx.eeprom_macro}", line=line,
                           anchor=anchor.name if anchor else None)


COLLABORATOR_STEPS = (CustomHeaderStep, BuildScriptStep, ParameterFileStep)
