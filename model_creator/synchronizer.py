"""
Cross-File Synchronizer: the top-level new-model operation.

    ModelSynchronizer.create_model(request)
        1. prepare      validate input, parse Config_X.h, derive identifiers,
                        synthesize the new arm, locate its insertion point
                        (any failure here aborts before a single write)
        2. primary      insert the new arm into Config_X.h
        3. collaborators Custom.h, GenCode.bat, SystemPara.c (each optional)
        4. gen_code     run GenCode.bat on the EEPROM binary

Steps 2-4 are not transactional: a failure part-way leaves earlier files
edited. Every step reports a StepOutcome collected in a SyncReport.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from model_creator.block_parser import block_at_line, find_block, parse_blocks
from model_creator.collaborators import COLLABORATOR_STEPS, BuildScriptStep, SyncContext
from model_creator.config import DEFAULT_CONFIG, ModelCreatorConfig
from model_creator.custom_header import motor_catalogue
from model_creator.document import SourceDocument
from model_creator.exceptions import (
    InvalidConfigFileError,
    ModelCreatorError,
    ParseError,
    ReferenceBlockNotFoundError,
    ValidationError,
)
from model_creator.gen_code import GenCodeStep
from model_creator.insertion import find_insertion_point
from model_creator.models import (
    ConditionalBlock,
    FieldUpdates,
    NewModelRequest,
    StepOutcome,
    SyncReport,
)
from model_creator.naming import (
    common_prefix,
    customer_from_filename,
    extract_board_model,
    filter_by_board_model,
    generate_eeprom_macro,
    require_board_model,
)
from model_creator.run_log import RunLog
from model_creator.steps import resolve_relative
from model_creator.synthesizer import synthesize

logger = logging.getLogger(__name__)

PRIMARY_STEP = "primary_config"


@dataclass
class PreparedModel:
    """Everything computed from the primary file before it is written."""
    document: SourceDocument
    context: SyncContext
    new_block_text: str
    insert_line: int


class ModelSynchronizer:
    """
    Creates a new model arm in a Config_X.h file and propagates it to the
    collaborator files.

    Usage:
        sync = ModelSynchronizer()
        report = sync.create_model(NewModelRequest(...))
        if report.has_failures: ...
    """

    def __init__(self, config: Optional[ModelCreatorConfig] = None):
        self.config = config or DEFAULT_CONFIG
        for warning in self.config.validate():
            logger.warning(f"Config: {warning}")

    # ------------------------------------------------------------------
    # Primary file checks
    # ------------------------------------------------------------------
    def check_config_path(self, config_path: str) -> Path:
        """
        Raises:
            InvalidConfigFileError: name is not Config_*.h.
            ValidationError: file does not exist.
        """
        path = Path(config_path)
        name = path.name.lower()
        if not (name.startswith(self.config.config_file_prefix.lower())
                and name.endswith(self.config.config_file_suffix.lower())):
            raise InvalidConfigFileError(str(path), self.config.config_file_prefix,
                                         self.config.config_file_suffix)
        if not path.is_file():
            raise ValidationError("config_path", f"'{path}' does not exist")
        return path

    def load_blocks(self, path: Path, run_log: Optional[RunLog] = None):
        document = SourceDocument.load(path, encoding=self.config.encoding,
                                       default_eol=self.config.default_eol)
        blocks = parse_blocks(document.text, run_log=run_log, source=path.name)
        if not blocks:
            raise ParseError(str(path))
        return document, blocks

    def describe_file(self, config_path: str, line: Optional[int] = None) -> Dict[str, Any]:
        """
        Parsed view of a Config_X.h file for choosing a reference block.

        When *line* is given, the block containing it determines the board
        model and the candidate list is narrowed to blocks of that board.
        """
        path = self.check_config_path(config_path)
        _, blocks = self.load_blocks(path)

        current: Optional[ConditionalBlock] = None
        board_model = None
        if line is not None:
            current = block_at_line(blocks, line)
            if current is not None:
                board_model = extract_board_model(current.name)

        candidates = filter_by_board_model(blocks, board_model)

        # Catalogue of MOTOR1/MOTOR2 choices, empty when Custom.h is absent
        custom_header = resolve_relative(path.parent, self.config.custom_header_relpath)
        motor_types = {"compressor": [], "fan": []}
        if custom_header.is_file():
            document = SourceDocument.load(custom_header, encoding=self.config.encoding)
            motor_types = motor_catalogue(document.text, self.config)

        return {
            "file": str(path),
            "customer": customer_from_filename(str(path), self.config),
            "prefix": common_prefix(blocks),
            "blocks": blocks,
            "current_block": current.name if current else None,
            "board_model": board_model.upper() if board_model else None,
            "candidates": [b.name for b in candidates],
            "custom_header": str(custom_header),
            "motor_types": motor_types,
        }

    # ------------------------------------------------------------------
    # Phase 1: everything that can fail before a write
    # ------------------------------------------------------------------
    def prepare(self, request: NewModelRequest, run_log: RunLog) -> PreparedModel:
        errors = request.validate(self.config.code_name_max_length)
        if errors:
            raise ValidationError("request", "; ".join(errors))

        path = self.check_config_path(request.config_path)
        document, blocks = self.load_blocks(path, run_log)
        run_log.info("synchronizer", f"Parsed {len(blocks)} blocks from {path.name}")

        reference = find_block(blocks, request.reference_name)
        if reference is None:
            raise ReferenceBlockNotFoundError(request.reference_name, str(path))
        if find_block(blocks, request.new_name) is not None:
            raise ValidationError("new_name", f"'{request.new_name}' already exists in {path.name}")

        board_model = require_board_model(reference.name, run_log=run_log).upper()
        prefix = common_prefix(blocks)
        customer = customer_from_filename(str(path), self.config)
        eeprom_macro = generate_eeprom_macro(board_model, customer, request.eeprom_version,
                                             config=self.config, run_log=run_log)

        updates = FieldUpdates(
            eeprom_macro=eeprom_macro,
            software_version=request.software_version,
            custom_code_name=request.custom_code_name,
        )
        new_block_text = synthesize(reference, request.new_name, updates,
                                    config=self.config, run_log=run_log)
        insert_line = find_insertion_point(document, reference.end_line, reference.start_line,
                                           run_log=run_log)

        context = SyncContext(
            config_path=path,
            reference=reference,
            new_name=request.new_name,
            eeprom_macro=eeprom_macro,
            board_model=board_model,
            customer=customer,
            prefix=prefix,
            motor_types=request.motor_types,
            config=self.config,
            run_log=run_log,
            dry_run=request.dry_run,
        )
        return PreparedModel(document, context, new_block_text, insert_line)

    # ------------------------------------------------------------------
    # Phase 2: writes
    # ------------------------------------------------------------------
    def apply_primary(self, prepared: PreparedModel) -> StepOutcome:
        ctx = prepared.context
        document = prepared.document
        document.insert_block(prepared.insert_line, prepared.new_block_text)

        if ctx.dry_run:
            ctx.run_log.info("synchronizer", f"[dry run] would add {ctx.new_name} to {document.path.name}")
            return StepOutcome.applied(PRIMARY_STEP, str(document.path), f"dry run: added arm {ctx.new_name}",
                                       line=prepared.insert_line)

        document.save()
        ctx.run_log.info("synchronizer", f"Added {ctx.new_name} to {document.path.name} "
                                         f"at line {prepared.insert_line + 1}")
        return StepOutcome.applied(PRIMARY_STEP, str(document.path), f"added arm {ctx.new_name}",
                                   line=prepared.insert_line)

    def create_model(self, request: NewModelRequest, run_log: Optional[RunLog] = None) -> SyncReport:
        """
        Run the whole new-model operation.

        Raises:
            ModelCreatorError: any failure while preparing the primary file;
                nothing has been written in that case.
        """
        run_log = run_log or RunLog(run_name=f"new-model {request.new_name}")
        report = SyncReport(dry_run=request.dry_run)

        with run_log.timer("synchronizer", "create_model"):
            try:
                prepared = self.prepare(request, run_log)
            except ModelCreatorError as e:
                run_log.error("synchronizer", f"Aborted before any write: {e}", **e.details)
                raise

            ctx = prepared.context
            report.identifiers = self._identifiers(ctx)
            report.add(self.apply_primary(prepared))

            for step_cls in COLLABORATOR_STEPS:
                report.add(step_cls().run(ctx))

            if request.run_gen_code:
                report.add(GenCodeStep().run(ctx))
            else:
                report.add(StepOutcome.skipped(GenCodeStep.name, reason="disabled by request"))

        counts = report.counts()
        run_log.info("synchronizer", f"Done: {counts['applied']} applied, {counts['skipped']} skipped, "
                                     f"{counts['failed']} failed", **counts)
        report.log_entries = run_log.to_dicts()
        return report

    def _identifiers(self, ctx: SyncContext) -> Dict[str, str]:
        return {
            "reference": ctx.reference.name,
            "new_name": ctx.new_name,
            "board_model": ctx.board_model,
            "customer": ctx.customer,
            "prefix": ctx.prefix,
            "eeprom_macro": ctx.eeprom_macro,
            "eeprom_filename": ctx.eeprom_filename,
            "build_command": BuildScriptStep().command_for(ctx),
        }
