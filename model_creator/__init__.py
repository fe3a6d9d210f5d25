"""
model_creator - keeps families of preprocessor-guarded model configurations in sync.

Derives a new ``#if``/``#elif`` model arm from an existing reference arm and
propagates it, consistently named, to every file that has to know about it.

Architecture:
    ┌─────────────────────────────────────────────────┐
    │        ModelSynchronizer / FanCreator           │  ← Public API
    │  (validation, orchestration, SyncReport)        │
    ├─────────────────────────────────────────────────┤
    │     Collaborator steps / GenCodeStep            │  ← Per-file edits
    │  (Custom.h, GenCode.bat, SystemPara.c, script)  │
    ├─────────────────────────────────────────────────┤
    │   Synthesizer · Alignment · Insertion planner   │  ← Block generation
    │  (clone + rewrite, value columns, positions)    │
    ├─────────────────────────────────────────────────┤
    │          Block parser · Naming extractor        │  ← Structural facts
    │  (conditional arms, board models, EEPROM names) │
    ├─────────────────────────────────────────────────┤
    │               SourceDocument                    │  ← Byte-faithful I/O
    │  (line endings, line-indexed insertion)         │
    └─────────────────────────────────────────────────┘

Supporting modules:
    config.py       - ModelCreatorConfig dataclass
    exceptions.py   - Custom exception hierarchy
    models.py       - Structured request/outcome models
    run_log.py      - Per-run log collector
    cli.py          - model-creator command line
"""

# --- Core Public API ---
from model_creator.synchronizer import ModelSynchronizer
from model_creator.fan_creator import FanCreator

# --- Configuration ---
from model_creator.config import ModelCreatorConfig, DEFAULT_CONFIG

# --- Models ---
from model_creator.models import (
    AlignmentProfile,
    ConditionalBlock,
    FanModel,
    FanParameters,
    FieldUpdates,
    MotorTypes,
    NewFanRequest,
    NewModelRequest,
    StepOutcome,
    StepStatus,
    SyncReport,
)

# --- Exceptions ---
from model_creator.exceptions import (
    ModelCreatorError,
    ValidationError,
    InvalidConfigFileError,
    ParseError,
    ReferenceBlockNotFoundError,
    ExtractionError,
    MissingRequiredFieldError,
    NoInsertionPointError,
    CollaboratorFileMissingError,
    AlreadyPresentError,
    GenScriptError,
)

# --- Building Blocks ---
from model_creator.block_parser import parse_blocks, find_block
from model_creator.naming import (
    BOARD_MODEL_PATTERNS,
    extract_board_model,
    common_prefix,
    generate_eeprom_macro,
    macro_to_filename,
)
from model_creator.alignment import compute_alignment, format_define
from model_creator.synthesizer import synthesize
from model_creator.insertion import find_insertion_point
from model_creator.document import SourceDocument
from model_creator.run_log import RunLog

__version__ = "1.0.0"

__all__ = [
    # Core
    "ModelSynchronizer",
    "FanCreator",
    # Config
    "ModelCreatorConfig",
    "DEFAULT_CONFIG",
    # Models
    "AlignmentProfile",
    "ConditionalBlock",
    "FanModel",
    "FanParameters",
    "FieldUpdates",
    "MotorTypes",
    "NewFanRequest",
    "NewModelRequest",
    "StepOutcome",
    "StepStatus",
    "SyncReport",
    # Exceptions
    "ModelCreatorError",
    "ValidationError",
    "InvalidConfigFileError",
    "ParseError",
    "ReferenceBlockNotFoundError",
    "ExtractionError",
    "MissingRequiredFieldError",
    "NoInsertionPointError",
    "CollaboratorFileMissingError",
    "AlreadyPresentError",
    "GenScriptError",
    # Building blocks
    "parse_blocks",
    "find_block",
    "BOARD_MODEL_PATTERNS",
    "extract_board_model",
    "common_prefix",
    "generate_eeprom_macro",
    "macro_to_filename",
    "compute_alignment",
    "format_define",
    "synthesize",
    "find_insertion_point",
    "SourceDocument",
    "RunLog",
]
