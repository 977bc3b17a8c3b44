#!/usr/bin/env python3
"""
TOPOFORGE CORE MODELS
-------------------
Defines the fundamental data structures used across the generator.
A manifest is handled as an immutable Document of lines; every edit
produces a new Document so block ranges can be recomputed after each step.

Author: TopoForge Team
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class Document:
    """
    An ordered, immutable sequence of manifest lines.

    Line terminators are stripped from `lines` and restored by `to_text()`
    using the detected convention, so unedited lines survive byte-for-byte.
    """
    lines: Tuple[str, ...] = ()
    newline: str = "\n"
    trailing_newline: bool = True

    @classmethod
    def from_text(cls, text: str) -> "Document":
        if not text:
            return cls(lines=(), trailing_newline=False)
        newline = "\r\n" if "\r\n" in text else "\n"
        parts = text.split(newline)
        trailing = parts[-1] == ""
        if trailing:
            parts.pop()
        return cls(lines=tuple(parts), newline=newline, trailing_newline=trailing)

    def to_text(self) -> str:
        body = self.newline.join(self.lines)
        if self.lines and self.trailing_newline:
            body += self.newline
        return body

    def replace_lines(self, start: int, end: int, new_lines: Sequence[str]) -> "Document":
        """Returns a copy with lines [start, end) swapped for `new_lines`."""
        if not 0 <= start <= end <= len(self.lines):
            raise IndexError(f"Invalid line range [{start}, {end}) for {len(self.lines)} lines")
        merged = self.lines[:start] + tuple(new_lines) + self.lines[end:]
        return Document(lines=merged, newline=self.newline, trailing_newline=self.trailing_newline)

    def insert_after(self, index: int, new_lines: Sequence[str]) -> "Document":
        return self.replace_lines(index + 1, index + 1, new_lines)

    def __len__(self) -> int:
        return len(self.lines)


class LineKind(Enum):
    BLANK = "blank"
    COMMENT = "comment"
    SEQUENCE_ITEM = "sequence_item"
    KEY = "key"
    SCALAR = "scalar"


@dataclass(frozen=True)
class LineShard:
    """
    The classification of a single manifest line.

    `key` is set for KEY lines and for sequence items of the form
    `- name: value`; it is None otherwise.
    """
    line_no: int               # 0-based index within the Document
    indent: int                # Leading whitespace width (tabs count as 2)
    kind: LineKind
    key: Optional[str] = None
    value: Optional[str] = None
    raw_line: str = ""


@dataclass(frozen=True)
class BlockRange:
    """Half-open line range [start, end) of one structural element."""
    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start


class Outcome(str, Enum):
    UNCHANGED = "UNCHANGED"
    MODIFIED = "MODIFIED"


@dataclass(frozen=True)
class GenerationResult:
    """
    Outcome of one generation run. An UNCHANGED result carries the input
    document as-is; callers skip the backup and the write in that case.
    """
    outcome: Outcome
    document: Document
    device_count: int
    workers_added: Tuple[str, ...] = ()
    dependencies: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def modified(self) -> bool:
        return self.outcome is Outcome.MODIFIED
