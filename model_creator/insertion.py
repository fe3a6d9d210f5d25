"""
Insertion Planner: finds where a new arm goes and splices it into a document.

A new block is inserted immediately before the directive that closes the
reference arm (``#elif``, ``#else`` or ``#endif``), so it becomes the next arm
of the same conditional chain.
"""

import re
from typing import Optional, Sequence

from model_creator.block_parser import is_arm_boundary
from model_creator.document import SourceDocument
from model_creator.exceptions import NoInsertionPointError
from model_creator.models import ConditionalBlock
from model_creator.run_log import RunLog

_ENDIF_RE = re.compile(r"^#\s*endif\b")


def find_insertion_line(lines: Sequence[str], after_line: int,
                        block_start: Optional[int] = None) -> int:
    """
    Line index to insert before, or -1.

    Scans forward from ``after_line + 1`` for the next ``#elif``/``#else``/``#endif``.
    If there is none (truncated file), falls back to the last ``#endif`` of
    the document that is not part of the reference block
    (``block_start``..``after_line``).
    """
    for i in range(after_line + 1, len(lines)):
        if is_arm_boundary(lines[i]):
            return i

    first_excluded = after_line if block_start is None else block_start
    for i in range(len(lines) - 1, -1, -1):
        if first_excluded <= i <= after_line:
            continue
        if _ENDIF_RE.match(lines[i].strip()):
            return i
    return -1


def find_insertion_point(document: SourceDocument, after_line: int,
                         block_start: Optional[int] = None,
                         run_log: Optional[RunLog] = None) -> int:
    """
    Like find_insertion_line() but for a document, raising on failure.

    Raises:
        NoInsertionPointError: malformed or truncated document.
    """
    index = find_insertion_line(document.lines, after_line, block_start)
    if index == -1:
        raise NoInsertionPointError(str(document.path), after_line)
    if run_log is not None:
        run_log.debug("insertion", f"Insertion point in {document.path.name}: line {index}",
                      file=str(document.path), after_line=after_line, line=index)
    return index


def insert_after_block(document: SourceDocument, block: ConditionalBlock, block_text: str,
                       run_log: Optional[RunLog] = None) -> int:
    """
    Insert *block_text* as the arm following *block*. Returns the line index
    the new text starts at.
    """
    index = find_insertion_point(document, block.end_line, block.start_line, run_log=run_log)
    document.insert_block(index, block_text)
    return index
