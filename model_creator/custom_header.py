"""
Knowledge about the shared customization header (Custom.h).

Custom.h carries three things model_creator cares about:
    - per-model ``#if``/``#elif`` arms selecting MOTOR1_TYPE / MOTOR2_TYPE
    - the catalogue of compressor (``COMP_*``) and fan (``MOTOR2_*FAN*``) types
    - the numbered fan model table (``#define MOTOR2_<NAME> <n>``)
"""

import re
from typing import Dict, List, Optional, Sequence

from model_creator.alignment import compute_alignment, format_define
from model_creator.config import DEFAULT_CONFIG, ModelCreatorConfig
from model_creator.models import ConditionalBlock, FanModel, MotorTypes
from model_creator.run_log import RunLog

_FAN_TABLE_RE = re.compile(r"#define\s+(MOTOR2_[A-Z0-9_]+)\s+([0-9]+)")
_INDENT_RE = re.compile(r"^(\s*)")

MOTOR_KINDS = ("compressor", "fan")


def list_motor_types(text: str, kind: str,
                     config: ModelCreatorConfig = DEFAULT_CONFIG) -> List[str]:
    """
    Names of the compressor or fan types defined in *text*, de-duplicated in
    first-seen order.
    """
    if kind == "compressor":
        patterns = config.compressor_define_patterns
    elif kind == "fan":
        patterns = config.fan_define_patterns
    else:
        raise ValueError(f"Unknown motor kind '{kind}'. Valid: {MOTOR_KINDS}")

    compiled = [re.compile(p) for p in patterns]
    seen: List[str] = []
    for line in text.splitlines():
        for pattern in compiled:
            m = pattern.match(line)
            if m and m.group(1) not in seen:
                seen.append(m.group(1))
    return seen


def motor_catalogue(text: str, config: ModelCreatorConfig = DEFAULT_CONFIG) -> Dict[str, List[str]]:
    """``{"compressor": [...], "fan": [...]}`` for the MOTOR1/MOTOR2 choices."""
    return {kind: list_motor_types(text, kind, config) for kind in MOTOR_KINDS}


def unknown_motor_types(catalogue: Dict[str, List[str]], motor_types: MotorTypes) -> List[str]:
    """
    Supplied motor types missing from a non-empty catalogue section.
    An empty section means the header defines no catalogue to check against.
    """
    unknown = []
    for kind, value in zip(MOTOR_KINDS, (motor_types.motor1, motor_types.motor2)):
        known = catalogue.get(kind, [])
        if value and known and value not in known:
            unknown.append(value)
    return unknown


def list_fan_models(lines: Sequence[str], max_gap: int = 10) -> List[FanModel]:
    """
    The contiguous fan model table. Collection stops at the first match that
    is more than *max_gap* lines after the previous one, since later
    MOTOR2_ defines belong to other sections of the header.
    """
    models: List[FanModel] = []
    last_line = -1
    for i, line in enumerate(lines):
        m = _FAN_TABLE_RE.search(line)
        if not m:
            continue
        if last_line != -1 and (i - last_line) > max_gap:
            break
        models.append(FanModel(name=m.group(1), value=int(m.group(2)), line=i))
        last_line = i
    return models


def render_motor_arm(document_lines: Sequence[str], reference: ConditionalBlock,
                     new_name: str, motor_types: MotorTypes,
                     config: ModelCreatorConfig = DEFAULT_CONFIG,
                     run_log: Optional[RunLog] = None) -> Optional[str]:
    """
    Minimal new arm for Custom.h: the ``#elif`` guard plus one aligned
    ``#define`` per supplied motor type. None when no motor type is supplied.
    """
    if motor_types.is_empty:
        return None

    profile = compute_alignment(document_lines, reference.start_line, reference.end_line,
                                config=config, run_log=run_log)
    header_indent = _INDENT_RE.match(document_lines[reference.start_line]).group(1)

    lines = [f"{header_indent}#elif {new_name}"]
    for field_name, value in zip(config.motor_field_names, (motor_types.motor1, motor_types.motor2)):
        if value:
            lines.append(format_define(field_name, value, profile, config.tab_width))
    return "\n".join(lines)
