#!/usr/bin/env python3
"""
TOPOFORGE LOCATOR - The Surveyor
------------------------------
Finds the line range of a structural element, either by a literal anchor
substring or by a key name, using indentation-based boundary detection.

Ranges are computed fresh on every call. Edits shift line numbers, so a
range must never be reused after the document it came from was changed.

Author: TopoForge Team
"""

import logging
from typing import List, Optional

from topoforge.core.errors import AnchorNotFoundError, KeyNotFoundError
from topoforge.core.models import BlockRange, Document, LineKind, LineShard
from topoforge.editing.lexer import LineClassifier

logger = logging.getLogger("topoforge.locator")


class BlockLocator:
    """
    Resolves anchors and keys to absolute line indexes.

    The boundary rules assume the constrained subset the generator works on:
    block-style YAML with consistent indentation. Flow-style sequences and
    mixed indentation widths are not supported.
    """

    def __init__(self, classifier: Optional[LineClassifier] = None):
        self.classifier = classifier or LineClassifier()

    def find_anchor(self, doc: Document, anchor: str) -> int:
        """Index of the first line containing `anchor`. First match wins."""
        for index, line in enumerate(doc.lines):
            if anchor in line:
                logger.debug(f"Anchor '{anchor}' found at line {index + 1}")
                return index
        raise AnchorNotFoundError(anchor)

    def find_key_block(self, doc: Document, key: str, indent: Optional[int] = None,
                       within: Optional[BlockRange] = None) -> BlockRange:
        """
        Returns the range of `key:` and everything nested under it.

        Args:
            key: The mapping key to look for (without the colon).
            indent: Required indentation of the key line; None accepts any.
            within: Restricts the search to this span. The returned range is
                still absolute and never extends past the span.
        """
        shards = self.classifier.shard(doc)
        span = within or BlockRange(0, len(shards))

        start = self._find_key_line(shards, span, key, indent)
        if start is None:
            raise KeyNotFoundError(key, indent)

        end = self._scan_block_end(shards, start, span.end)
        logger.debug(f"Block '{key}' spans lines {start + 1}-{end}")
        return BlockRange(start, end)

    def _find_key_line(self, shards: List[LineShard], span: BlockRange,
                       key: str, indent: Optional[int]) -> Optional[int]:
        for shard in shards[span.start:span.end]:
            if shard.kind is not LineKind.KEY or shard.key != key:
                continue
            if indent is None or shard.indent == indent:
                return shard.line_no
        return None

    def _scan_block_end(self, shards: List[LineShard], start: int, limit: int) -> int:
        depth = shards[start].indent
        end = start + 1
        while end < limit:
            if self.terminates(shards[end], depth):
                break
            end += 1

        # Retreat past trailing blanks and comments: they belong to whatever follows
        while end > start + 1 and shards[end - 1].kind in (LineKind.BLANK, LineKind.COMMENT):
            end -= 1
        return end

    @staticmethod
    def terminates(shard: LineShard, depth: int) -> bool:
        """True when `shard` starts a new element at `depth` or shallower."""
        if shard.kind in (LineKind.BLANK, LineKind.COMMENT):
            return False
        if shard.kind is LineKind.SEQUENCE_ITEM:
            # Compact style places '- item' at the key's own indentation
            return shard.indent < depth
        return shard.indent <= depth
