"""
Naming Extractor: derives board-model tokens, prefixes and the EEPROM macro
name that correlates one model across the primary config file, the build
script and the parameter file.

Board-model extraction is an ordered contract. Tokens can be substrings of
each other (``KFW35C_7_AC`` contains ``KFW35C_7``), so patterns are tried
from most specific to least specific and the first match wins.
"""

import re
from pathlib import Path
from typing import List, NamedTuple, Optional, Pattern, Sequence, Tuple

from model_creator.config import DEFAULT_CONFIG, ModelCreatorConfig
from model_creator.exceptions import ExtractionError, MissingRequiredFieldError
from model_creator.models import ConditionalBlock
from model_creator.run_log import RunLog


class BoardModelPattern(NamedTuple):
    name: str
    pattern: Pattern


# Priority order is part of the public contract
BOARD_MODEL_PATTERNS: Tuple[BoardModelPattern, ...] = (
    BoardModelPattern("kfw_ac_dc", re.compile(r"(KFW\d+C_\d+_(?:AC|DC))", re.IGNORECASE)),
    BoardModelPattern("kfw_caf", re.compile(r"(KFW\d+CAF)", re.IGNORECASE)),
    BoardModelPattern("kfw_base", re.compile(r"(KFW\d+C_\d+)", re.IGNORECASE)),
)

_EEPROM_TOKEN_RE = re.compile(r"EEPROMDATA_[A-Za-z0-9_]+")
_ALPHA_SEGMENT_RE = re.compile(r"^[A-Z]+$")


def extract_board_model(name: str,
                        patterns: Sequence[BoardModelPattern] = BOARD_MODEL_PATTERNS,
                        run_log: Optional[RunLog] = None) -> Optional[str]:
    """
    Return the first board-model token found in *name*, trying *patterns*
    in order, or None. The match is returned as written; callers uppercase.
    """
    for entry in patterns:
        match = entry.pattern.search(name)
        if match and match.group(1):
            if run_log is not None:
                run_log.debug("naming", f"Board model '{match.group(1)}' from '{name}' ({entry.name})",
                              pattern=entry.name)
            return match.group(1)

    if run_log is not None:
        run_log.warning("naming", f"No board model pattern matched '{name}'")
    return None


def common_prefix(blocks: Sequence[ConditionalBlock]) -> Optional[str]:
    """First ``_`` segment of the first block's name (the whole name if it has none)."""
    if not blocks:
        return None
    parts = blocks[0].name.split("_")
    return parts[0] if len(parts) > 1 else blocks[0].name


def customer_from_filename(file_path: str,
                           config: ModelCreatorConfig = DEFAULT_CONFIG) -> str:
    """
    ``Config_pgel.h`` -> ``PGEL``.

    Raises:
        ExtractionError: if the file name carries no customer token.
    """
    base = Path(file_path).name
    if base.lower().endswith(config.config_file_suffix.lower()):
        base = base[:-len(config.config_file_suffix)]

    prefix = config.config_file_prefix
    customer = ""
    if base.lower().startswith(prefix.lower()):
        customer = base[len(prefix):].upper()

    if not customer:
        raise ExtractionError("customer name", file_path)
    return customer


def simplify_board_model(board_model: str,
                         config: ModelCreatorConfig = DEFAULT_CONFIG) -> str:
    """``KFW72C_3_DC`` -> ``72C_3``."""
    simplified = board_model.upper()
    prefix = config.board_model_prefix.upper()
    if simplified.startswith(prefix):
        simplified = simplified[len(prefix):]
    for suffix in config.board_model_suffixes:
        if simplified.endswith(f"_{suffix}"):
            simplified = simplified[:-(len(suffix) + 1)]
            break
    return simplified.strip("_")


def generate_eeprom_macro(board_model: Optional[str], customer: Optional[str],
                          eeprom_version: Optional[str],
                          config: ModelCreatorConfig = DEFAULT_CONFIG,
                          run_log: Optional[RunLog] = None) -> str:
    """
    Build ``EEPROMDATA_<CUSTOMER>_<SIMPLIFIED_BOARD_MODEL>_<VERSION>``.

    Raises:
        MissingRequiredFieldError: if any input is absent.
    """
    for field_name, value in (("board_model", board_model),
                              ("customer", customer),
                              ("eeprom_version", eeprom_version)):
        if not value:
            raise MissingRequiredFieldError(field_name)

    simplified = simplify_board_model(board_model, config)
    macro = f"{config.eeprom_macro_prefix}{customer.upper()}_{simplified}_{eeprom_version.upper()}"
    if run_log is not None:
        run_log.debug("naming", f"EEPROM macro: board model '{board_model.upper()}' -> '{simplified}' -> {macro}",
                      macro=macro)
    return macro


def macro_to_filename(macro: str, config: ModelCreatorConfig = DEFAULT_CONFIG) -> str:
    """
    ``EEPROMDATA_PGEL_72C_4_1981`` -> ``eepromdata_pgel_72C_4_1981``.
    Only purely alphabetic segments are lower-cased.
    """
    base = macro
    if base.startswith(config.eeprom_macro_prefix):
        base = base[len(config.eeprom_macro_prefix):]
    parts = [p.lower() if _ALPHA_SEGMENT_RE.match(p) else p for p in base.split("_")]
    return f"{config.filename_prefix}{'_'.join(parts)}"


def find_eeprom_macro(text: str) -> Optional[str]:
    """The first ``EEPROMDATA_*`` token in *text* (typically a block's raw text)."""
    match = _EEPROM_TOKEN_RE.search(text)
    return match.group(0) if match else None


def eeprom_family_prefix(board_model: str, customer: str,
                         config: ModelCreatorConfig = DEFAULT_CONFIG) -> str:
    """Version-less macro prefix shared by every EEPROM macro of one board."""
    return f"{config.eeprom_macro_prefix}{customer.upper()}_{simplify_board_model(board_model, config)}_"


def filter_by_board_model(blocks: Sequence[ConditionalBlock],
                          board_model: Optional[str]) -> List[ConditionalBlock]:
    """
    Blocks whose name contains *board_model* (case-insensitive). Falls back
    to all blocks when there is no token or nothing matches.
    """
    if not board_model:
        return list(blocks)
    token = board_model.upper()
    matches = [b for b in blocks if token in b.name.upper()]
    return matches or list(blocks)


def require_board_model(name: str, run_log: Optional[RunLog] = None) -> str:
    """extract_board_model() that raises ExtractionError instead of returning None."""
    board_model = extract_board_model(name, run_log=run_log)
    if not board_model:
        raise ExtractionError("board model", name)
    return board_model
