"""
Line-oriented access to the source files edited by model_creator.

A SourceDocument keeps the exact text of a file and edits it by inserting
whole lines, so every byte outside an insertion survives unchanged: the
file's line-terminator convention (CRLF or LF) is detected once and reused
for inserted text, and bytes that do not decode under the configured
encoding are carried through with ``surrogateescape``.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

CRLF = "\r\n"
LF = "\n"

_LINE_SPLIT_RE = re.compile(r"\r?\n")
_KEEPENDS_SPLIT_RE = re.compile(r"(?<=\n)")


def detect_line_ending(text: str, default: str = LF) -> str:
    """Return the terminator of the first line, or *default* if there is none."""
    idx = text.find("\n")
    if idx == -1:
        return default
    if idx > 0 and text[idx - 1] == "\r":
        return CRLF
    return LF


def split_lines(text: str) -> List[str]:
    """Split on CRLF or LF. A trailing terminator yields a final empty line."""
    return _LINE_SPLIT_RE.split(text)


class SourceDocument:
    """
    Text of one file plus the minimal editing operations model_creator needs.

    Usage::

        doc = SourceDocument.load("Config_PGEL.h")
        doc.insert_block(42, "#elif NEW_MODEL\\n#define X 1")
        doc.save()
    """

    def __init__(self, path: Union[str, Path], text: str,
                 eol: Optional[str] = None, encoding: str = "utf-8"):
        self.path = Path(path)
        self.text = text
        self.eol = eol or detect_line_ending(text)
        self.encoding = encoding
        self.modified = False

    # ─── Loading / Saving ────────────────────────────────────────────────

    @classmethod
    def load(cls, path: Union[str, Path], encoding: str = "utf-8",
             default_eol: str = LF) -> "SourceDocument":
        path = Path(path)
        raw = path.read_bytes()
        text = raw.decode(encoding, errors="surrogateescape")
        eol = detect_line_ending(text, default_eol)
        logger.debug("Loaded %s (%d bytes, eol=%r)", path, len(raw), eol)
        return cls(path, text, eol=eol, encoding=encoding)

    def save(self) -> None:
        self.path.write_bytes(self.text.encode(self.encoding, errors="surrogateescape"))
        self.modified = False
        logger.debug("Saved %s", self.path)

    # ─── Line Access ─────────────────────────────────────────────────────

    @property
    def lines(self) -> List[str]:
        return split_lines(self.text)

    def contains_word(self, token: str) -> bool:
        """Whole-word search for *token* anywhere in the document."""
        return re.search(rf"\b{re.escape(token)}\b", self.text) is not None

    # ─── Editing ─────────────────────────────────────────────────────────

    def to_native(self, block_text: str) -> str:
        """Re-terminate every line of *block_text* with this document's eol."""
        return self.eol.join(split_lines(block_text))

    def insert_block(self, line_index: int, block_text: str) -> None:
        """
        Insert *block_text* followed by one line terminator so that it starts
        at column 0 of *line_index*. Indices past the end append.
        """
        pieces = _KEEPENDS_SPLIT_RE.split(self.text)
        content = self.to_native(block_text) + self.eol

        if line_index >= len(pieces) or (line_index == len(pieces) - 1 and pieces[-1] == ""):
            self.append_line(block_text)
            return

        line_index = max(0, line_index)
        self.text = "".join(pieces[:line_index]) + content + "".join(pieces[line_index:])
        self.modified = True

    def append_line(self, line_text: str) -> None:
        """
        Append *line_text* as the new last line. The document keeps whether it
        ended with a terminator.
        """
        content = self.to_native(line_text)
        if self.text == "":
            self.text = content
        elif self.text.endswith("\n"):
            self.text = self.text + content + self.eol
        else:
            self.text = self.text + self.eol + content
        self.modified = True
