#!/usr/bin/env python3
"""
TOPOFORGE PIPELINE - The Topology Generator
-----------------------------------------
Runs the two edits in a fixed order: replicate the worker block, then
regenerate the dependent service's dependency list.

The pipeline is pure. It never touches the disk; the engine owns the
backup and the atomic write-back.

Author: TopoForge Team
"""

import logging
from typing import Optional

from topoforge.core.config import GeneratorConfig
from topoforge.core.errors import check_device_count
from topoforge.core.models import Document, GenerationResult, Outcome
from topoforge.editing.expander import TemplateExpander
from topoforge.editing.locator import BlockLocator
from topoforge.editing.rewriter import DependencyRewriter, build_dependencies

logger = logging.getLogger("topoforge.pipeline")


class TopologyPipeline:
    """
    Expands a manifest for a device count.

    Fail-fast: if the expansion raises, the rewrite is never attempted, and
    no half-transformed document is ever returned.
    """

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.config = config or GeneratorConfig()
        locator = BlockLocator()
        self.expander = TemplateExpander(self.config.template, locator)
        self.rewriter = DependencyRewriter(locator, self.config.dependency_key)

    def dependencies(self, device_count: int):
        return build_dependencies(self.config.head, self.config.template.name,
                                  device_count, self.config.tail)

    def generate(self, doc: Document, device_count: int) -> GenerationResult:
        check_device_count(device_count)
        if device_count <= 1:
            logger.info(f"{device_count} device(s) detected, no modification needed")
            return GenerationResult(Outcome.UNCHANGED, doc, device_count)

        cfg = self.config
        expanded = self.expander.expand(doc, cfg.anchor, device_count)
        names = self.dependencies(device_count)
        rewritten = self.rewriter.rewrite_for_devices(
            expanded, cfg.service, device_count, cfg.template.name,
            head=cfg.head, tail=cfg.tail, service_indent=cfg.service_indent,
        )

        added = tuple(cfg.template.name(i) for i in range(1, device_count))
        return GenerationResult(Outcome.MODIFIED, rewritten, device_count,
                                workers_added=added, dependencies=tuple(names))
