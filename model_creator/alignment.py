"""
Alignment Analyzer: measures where the values of ``#define`` lines start in a
reference block so generated lines line up with their siblings.

Columns are visual: tabs are expanded to ``tab_width`` stops before measuring.
"""

import re
from typing import Optional, Sequence

from model_creator.config import DEFAULT_CONFIG, ModelCreatorConfig
from model_creator.models import AlignmentProfile
from model_creator.run_log import RunLog

_DEFINE_PREFIX_RE = re.compile(r"^(\s*)#define\s+[A-Z0-9_]+\s+")
_ANY_DEFINE_PREFIX_RE = re.compile(r"^(\s*)#define\s+[A-Za-z0-9_]+\s+")
_INDENT_RE = re.compile(r"^(\s*)")


def visual_length(text: str, tab_width: int = 4) -> int:
    return len(text.expandtabs(tab_width))


def value_column_of(line: str, tab_width: int = 4) -> Optional[int]:
    """Visual column at which the value of a ``#define NAME VALUE`` line starts."""
    m = _ANY_DEFINE_PREFIX_RE.match(line)
    if not m:
        return None
    return visual_length(m.group(0), tab_width)


def compute_alignment(document_lines: Sequence[str], block_start: int, block_end: int,
                      config: ModelCreatorConfig = DEFAULT_CONFIG,
                      run_log: Optional[RunLog] = None) -> AlignmentProfile:
    """
    Compute the AlignmentProfile of the block spanning *block_start*..*block_end*.

    The value column is the widest ``#define NAME<ws>`` prefix in the block
    body, but never narrower than a motor-type field definition would need,
    so a block that so far defined only one motor type still aligns both.
    """
    indentation = None
    widest = 0
    last = min(block_end, len(document_lines) - 1)

    for i in range(block_start + 1, last + 1):
        m = _DEFINE_PREFIX_RE.match(document_lines[i])
        if not m:
            continue
        if indentation is None:
            indentation = m.group(1)
        widest = max(widest, visual_length(m.group(0), config.tab_width))

    if indentation is None:
        header = document_lines[block_start] if block_start < len(document_lines) else ""
        header_indent = _INDENT_RE.match(header).group(1)
        profile = AlignmentProfile(
            value_column=config.default_value_column,
            indentation=header_indent + config.indent_unit,
        )
        if run_log is not None:
            run_log.debug("alignment", f"No #define in lines {block_start}-{block_end}; using defaults",
                          value_column=profile.value_column)
        return profile

    floor = max(
        visual_length(f"{indentation}#define {name} ", config.tab_width)
        for name in config.motor_field_names
    )
    profile = AlignmentProfile(value_column=max(widest, floor), indentation=indentation)
    if run_log is not None:
        run_log.debug("alignment", f"Value column {profile.value_column} for lines {block_start}-{block_end}",
                      value_column=profile.value_column, indentation=indentation)
    return profile


def format_define(name: str, value: str, profile: AlignmentProfile, tab_width: int = 4) -> str:
    """Render ``#define NAME VALUE`` with VALUE starting at the profile's column."""
    prefix = f"{profile.indentation}#define {name}"
    padding = max(1, profile.value_column - visual_length(prefix, tab_width))
    return f"{prefix}{' ' * padding}{value}"
