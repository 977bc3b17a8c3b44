#!/usr/bin/env python3
"""
TOPOFORGE SETTINGS - Key Upsert
-------------------------------
Find-or-append for flat `key = value` (TOML) and `KEY=value` (dotenv)
settings files. Running it twice with the same value changes nothing.

TOML keys can be scoped to a `[section]` table so a missing key is added
to that table rather than to whichever table happens to come last.
"""

import re
from typing import Any, Optional, Tuple

from topoforge.core.models import Document

SECTION_HEADER = re.compile(r"^\s*\[\[?\s*([^\]]+?)\s*\]\]?\s*(?:#.*)?$")


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def section_span(doc: Document, section: str) -> Optional[Tuple[int, int]]:
    """Lines [header, next header) of the first `[section]` table, or None."""
    start = None
    for index, line in enumerate(doc.lines):
        match = SECTION_HEADER.match(line)
        if not match:
            continue
        if start is not None:
            return start, index
        if match.group(1) == section:
            start = index
    return (start, len(doc)) if start is not None else None


def _append(doc: Document, new_lines) -> Document:
    if not doc.lines:
        return Document(lines=tuple(new_lines), trailing_newline=True)
    return doc.replace_lines(len(doc), len(doc), new_lines)


def upsert_setting(doc: Document, key: str, value: Any, separator: str = " = ",
                   section: Optional[str] = None) -> Document:
    """
    Replaces the first line assigning `key`, or adds one.

    Without `section` the whole file is searched and a new line goes at the
    end. With `section` only that table is searched; a new line goes after
    its last non-blank line, and a missing table is appended to the file.
    Surrounding whitespace of the separator is ignored when matching, so
    `key=1` and `key = 1` are both recognised.
    """
    pattern = re.compile(rf"^\s*{re.escape(key)}\s*{re.escape(separator.strip())}")
    new_line = f"{key}{separator}{_format_value(value)}"

    if section is None:
        start, end = 0, len(doc)
    else:
        span = section_span(doc, section)
        if span is None:
            header = [f"[{section}]", new_line]
            return _append(doc, ([""] + header) if doc.lines else header)
        start, end = span[0] + 1, span[1]

    for index in range(start, end):
        if pattern.match(doc.lines[index]):
            if doc.lines[index] == new_line:
                return doc
            return doc.replace_lines(index, index + 1, [new_line])

    if section is None:
        return _append(doc, [new_line])

    insert_at = end
    while insert_at > start and not doc.lines[insert_at - 1].strip():
        insert_at -= 1
    return doc.replace_lines(insert_at, insert_at, [new_line])
