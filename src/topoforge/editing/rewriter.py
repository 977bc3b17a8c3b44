#!/usr/bin/env python3
"""
TOPOFORGE REWRITER - Dependency List Surgeon
------------------------------------------
Replaces the dependency list of one service with the full set of workers
plus the shared infrastructure services it must wait for.

Author: TopoForge Team
"""

import logging
from typing import Callable, List, Optional, Sequence

from topoforge.core.errors import (
    DependencyBlockNotFoundError,
    KeyNotFoundError,
    ServiceNotFoundError,
    check_device_count,
)
from topoforge.core.models import BlockRange, Document, LineKind
from topoforge.editing.locator import BlockLocator

logger = logging.getLogger("topoforge.rewriter")

DEFAULT_HEAD = "rest_api"
DEFAULT_TAIL = (
    "exec_agent0",
    "exec_agent1",
    "aux_agent",
    "snark_agent",
    "redis",
    "postgres",
)


def build_dependencies(head: str, worker_name: Callable[[int], str],
                       device_count: int, tail: Sequence[str]) -> List[str]:
    """Head first, then workers 0..N-1 in ascending order, then the tail."""
    return [head] + [worker_name(i) for i in range(device_count)] + list(tail)


class DependencyRewriter:
    """
    Locates `<service>:` then its nested dependency key, and splices a
    freshly built list over the old one. Both lookups are hard failures.
    """

    def __init__(self, locator: Optional[BlockLocator] = None,
                 dependency_key: str = "depends_on"):
        self.locator = locator or BlockLocator()
        self.dependency_key = dependency_key

    def locate(self, doc: Document, service: str,
               service_indent: Optional[int] = None) -> BlockRange:
        try:
            service_block = self.locator.find_key_block(doc, service, indent=service_indent)
        except KeyNotFoundError:
            raise ServiceNotFoundError(service, service_indent) from None

        try:
            return self.locator.find_key_block(doc, self.dependency_key, within=service_block)
        except KeyNotFoundError:
            raise DependencyBlockNotFoundError(f"{service}.{self.dependency_key}") from None

    def render(self, doc: Document, block: BlockRange, names: Sequence[str]) -> List[str]:
        shards = self.locator.classifier.shard(doc)
        key_indent = shards[block.start].indent
        item_indent = key_indent + 2
        for shard in shards[block.start + 1:block.end]:
            if shard.kind is LineKind.SEQUENCE_ITEM:
                item_indent = shard.indent
                break

        lines = [f"{' ' * key_indent}{self.dependency_key}:"]
        lines.extend(f"{' ' * item_indent}- {name}" for name in names)
        return lines

    def rewrite(self, doc: Document, service: str, names: Sequence[str],
                service_indent: Optional[int] = None) -> Document:
        """Replaces the dependency block of `service` with `names`."""
        block = self.locate(doc, service, service_indent)
        replacement = self.render(doc, block, names)
        logger.info(f"Rewriting {service}.{self.dependency_key} "
                    f"(lines {block.start + 1}-{block.end}) with {len(names)} entries")
        return doc.replace_lines(block.start, block.end, replacement)

    def rewrite_for_devices(self, doc: Document, service: str, device_count: int,
                            worker_name: Callable[[int], str], head: str = DEFAULT_HEAD,
                            tail: Sequence[str] = DEFAULT_TAIL,
                            service_indent: Optional[int] = None) -> Document:
        check_device_count(device_count)
        names = build_dependencies(head, worker_name, device_count, tail)
        return self.rewrite(doc, service, names, service_indent)
