#!/usr/bin/env python3
"""
TOPOFORGE EXPANDER - The Replicator
---------------------------------
Duplicates the reference worker block once per additional device and
inserts the copies right after the anchor line of the reference block.

Author: TopoForge Team
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from topoforge.core.errors import ConfigError, check_device_count
from topoforge.core.models import Document
from topoforge.editing.locator import BlockLocator

logger = logging.getLogger("topoforge.expander")

PLACEHOLDER = "{index}"

DEFAULT_WORKER_TEMPLATE = """
  gpu_prove_agent{index}:
    <<: *agent-common
    runtime: nvidia
    mem_limit: 4G
    cpus: 4
    entrypoint: /app/agent -t prove

    deploy:
      resources:
        reservations:
          devices:
            - driver: nvidia
              device_ids: ['{index}']
              capabilities: [gpu]
"""


@dataclass(frozen=True)
class WorkerTemplate:
    """
    One worker block with `{index}` placeholders. The leading blank line of
    the text is the separator between consecutive workers.
    """
    text: str = DEFAULT_WORKER_TEMPLATE
    name_format: str = "gpu_prove_agent{index}"

    def __post_init__(self):
        if PLACEHOLDER not in self.name_format:
            raise ConfigError(f"Worker name format '{self.name_format}' lacks {PLACEHOLDER}")
        if f"{self.name_format}:" not in self.text:
            raise ConfigError(f"Worker template does not define '{self.name_format}:'")

    @property
    def lines(self) -> Tuple[str, ...]:
        body = self.text[:-1] if self.text.endswith("\n") else self.text
        return tuple(body.split("\n"))

    def name(self, index: int) -> str:
        return self.name_format.replace(PLACEHOLDER, str(index))

    def render(self, index: int) -> List[str]:
        return [line.replace(PLACEHOLDER, str(index)) for line in self.lines]


class TemplateExpander:
    """Inserts worker blocks for device indices 1..N-1 after the anchor."""

    def __init__(self, template: Optional[WorkerTemplate] = None,
                 locator: Optional[BlockLocator] = None):
        self.template = template or WorkerTemplate()
        self.locator = locator or BlockLocator()

    def payload(self, device_count: int) -> List[str]:
        lines: List[str] = []
        for index in range(1, device_count):
            lines.extend(self.template.render(index))
        return lines

    def expand(self, doc: Document, anchor: str, device_count: int) -> Document:
        check_device_count(device_count)
        if device_count <= 1:
            return doc

        anchor_line = self.locator.find_anchor(doc, anchor)
        payload = self.payload(device_count)
        logger.info(f"Adding {device_count - 1} worker(s) after line {anchor_line + 1}")
        return doc.insert_after(anchor_line, payload)
