"""
Block Parser: extracts top-level ``#if``/``#elif`` arms from C preprocessor text.

This is a single-pass line scanner, not a preprocessor. An arm is opened by a
line of the form ``#if NAME`` or ``#elif NAME`` where NAME is an uppercase
identifier, and closed by the next ``#elif``, ``#else`` or ``#endif`` at the
same nesting level. Conditionals nested inside an arm are opaque text: they
belong to the arm's raw text and are never reported as blocks themselves.
"""

import re
from typing import List, Optional, Sequence

from model_creator.document import split_lines
from model_creator.models import ConditionalBlock
from model_creator.run_log import RunLog

# An arm we report: uppercase identifier condition only
_ARM_RE = re.compile(r"^#\s*(if|elif)\s+([A-Z0-9_]+)")

# Any conditional directive, used for nesting and boundaries
_DIRECTIVE_RE = re.compile(r"^#\s*(ifdef|ifndef|if|elif|else|endif)\b")

_OPENERS = ("if", "ifdef", "ifndef")


def directive_of(line: str) -> Optional[str]:
    """Return the conditional directive keyword of *line*, or None."""
    m = _DIRECTIVE_RE.match(line.strip())
    return m.group(1) if m else None


def is_arm_boundary(line: str) -> bool:
    """True for lines starting with ``#elif``, ``#else`` or ``#endif``."""
    return directive_of(line) in ("elif", "else", "endif")


def _last_content_line(lines: Sequence[str], start: int, candidate: int) -> int:
    """Walk *candidate* back over blank lines, never past *start*."""
    while candidate > start and lines[candidate].strip() == "":
        candidate -= 1
    return candidate


def _find_arm_end(lines: Sequence[str], start: int) -> int:
    depth = 0
    for j in range(start + 1, len(lines)):
        keyword = directive_of(lines[j])
        if keyword is None:
            continue
        if keyword in _OPENERS:
            depth += 1
        elif keyword == "endif" and depth > 0:
            depth -= 1
        elif depth == 0:
            return _last_content_line(lines, start, j - 1)
    return _last_content_line(lines, start, len(lines) - 1)


def parse_lines(lines: Sequence[str]) -> List[ConditionalBlock]:
    blocks: List[ConditionalBlock] = []
    i = 0
    while i < len(lines):
        m = _ARM_RE.match(lines[i].strip())
        if not m:
            i += 1
            continue

        start = i
        end = _find_arm_end(lines, start)
        blocks.append(ConditionalBlock(
            name=m.group(2),
            raw_text="\n".join(lines[start:end + 1]),
            start_line=start,
            end_line=end,
        ))
        i = end + 1
    return blocks


def parse_blocks(text: str, run_log: Optional[RunLog] = None,
                 source: str = "") -> List[ConditionalBlock]:
    """
    Parse *text* into an ordered list of non-overlapping ConditionalBlocks.

    An empty result is not an error here; callers that expect blocks raise
    ParseError themselves.
    """
    blocks = parse_lines(split_lines(text))
    if run_log is not None:
        run_log.debug(
            "parser",
            f"Parsed {len(blocks)} conditional block(s) from {source or '<text>'}",
            source=source,
            names=[b.name for b in blocks],
        )
    return blocks


def find_block(blocks: Sequence[ConditionalBlock], name: str) -> Optional[ConditionalBlock]:
    """First block whose name equals *name*."""
    for block in blocks:
        if block.name == name:
            return block
    return None


def block_at_line(blocks: Sequence[ConditionalBlock], line: int) -> Optional[ConditionalBlock]:
    """The block whose line range contains *line* (e.g. an editor cursor)."""
    for block in blocks:
        if block.contains_line(line):
            return block
    return None
