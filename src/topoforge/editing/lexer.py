#!/usr/bin/env python3
"""
TOPOFORGE LEXER - Line Classifier
-------------------------------
Decomposes manifest lines into LineShard models so the locator can reason
about block boundaries without inline pattern checks.

Only the block-style subset of YAML is understood: mappings and sequences
with consistent indentation. Flow collections are treated as plain values.

Author: TopoForge Team
"""

import re
from typing import List, Optional

from topoforge.core.models import Document, LineKind, LineShard


class LineClassifier:
    """
    Tags each line as blank, comment, sequence item, key or scalar.
    Tracks block scalars (|, >) so their content is never mistaken for keys.
    """

    # Group 1: Key (plain, merge '<<', or quoted), Group 2: Value
    KEY_PATTERN = re.compile(r'^(<<|[\w.\-/]+|"[^"]*"|\'[^\']*\')\s*:(?:\s+(.*))?$')
    BLOCK_SCALAR = re.compile(r'[|>][-+]?\d*$')

    def __init__(self):
        self.in_block = False
        self.block_indent = 0

    def _measure(self, line: str):
        expanded = line.replace('\t', '  ')
        content = expanded.lstrip(' ')
        return len(expanded) - len(content), content.rstrip()

    def _split_key(self, content: str):
        match = self.KEY_PATTERN.match(content)
        if not match:
            return None, None
        key, value = match.groups()
        return key.strip('"\''), (value.strip() if value else None)

    def classify(self, line_no: int, line: str) -> LineShard:
        indent, content = self._measure(line)

        if not content:
            return LineShard(line_no, 0, LineKind.BLANK, raw_line=line)

        # Content of a literal/folded scalar stays opaque until it dedents
        if self.in_block:
            if indent > self.block_indent:
                return LineShard(line_no, indent, LineKind.SCALAR, value=content, raw_line=line)
            self.in_block = False

        if content.startswith('#'):
            return LineShard(line_no, indent, LineKind.COMMENT, raw_line=line)

        if content == '-' or content.startswith('- '):
            item = content[1:].strip()
            key, value = self._split_key(item)
            self._track_block(indent, value if key else item)
            return LineShard(line_no, indent, LineKind.SEQUENCE_ITEM,
                             key=key, value=value if key else (item or None), raw_line=line)

        key, value = self._split_key(content)
        if key is not None:
            self._track_block(indent, value)
            return LineShard(line_no, indent, LineKind.KEY, key=key, value=value, raw_line=line)

        return LineShard(line_no, indent, LineKind.SCALAR, value=content, raw_line=line)

    def _track_block(self, indent: int, value: Optional[str]):
        if value and self.BLOCK_SCALAR.match(value):
            self.in_block = True
            self.block_indent = indent

    def shard(self, doc: Document) -> List[LineShard]:
        """Classifies every line of the document. Resets block state first."""
        self.in_block = False
        self.block_indent = 0
        return [self.classify(i, line) for i, line in enumerate(doc.lines)]
