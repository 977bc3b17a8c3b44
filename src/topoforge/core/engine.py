#!/usr/bin/env python3
"""
TOPOFORGE ENGINE - The High Orchestrator
--------------------------------------
Owns everything that touches the disk: reading the manifest, the one-time
backup, the pre-flight check and the atomic write-back. The editing
pipeline itself stays pure.

A run either replaces the manifest with a fully transformed document or
leaves it exactly as it was.

Author: TopoForge Team
"""

import logging
import os
import shutil
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from topoforge.core.config import GeneratorConfig
from topoforge.core.errors import IOFailureError, ValidationFailedError, check_device_count
from topoforge.core.models import Document
from topoforge.editing.pipeline import TopologyPipeline
from topoforge.planner.capacity import plan_capacity
from topoforge.planner.settings import upsert_setting
from topoforge.validator.validator import TopologyValidator

logger = logging.getLogger("topoforge.engine")

BACKUP_SUFFIX = ".backup"
TEMP_SUFFIX = ".topoforge.tmp"
SETTINGS_SECTION = "market"

PathLike = Union[str, Path]


class TopologyEngine:
    """
    Applies the topology pipeline and the capacity plan to files on disk.
    Not safe for concurrent runs against the same manifest.
    """

    def __init__(self, config: Optional[GeneratorConfig] = None, validate: bool = True):
        self.config = config or GeneratorConfig()
        self.pipeline = TopologyPipeline(self.config)
        self.validator = TopologyValidator(self.config.service, self.config.dependency_key)
        self.validate = validate

    def generate_file(self, path: PathLike, device_count: int,
                      dry_run: bool = False) -> Dict[str, Any]:
        """
        Rewrites the manifest at `path` for `device_count` GPUs.

        Raises a TopoForgeError subclass on any failure; the file on disk is
        untouched in that case.
        """
        check_device_count(device_count)
        target = Path(path)
        original = self._read(target)

        result = self.pipeline.generate(Document.from_text(original), device_count)
        generated = result.document.to_text()

        report = {
            "file_path": str(target),
            "device_count": device_count,
            "status": result.outcome.value,
            "written": False,
            "backup_created": None,
            "workers_added": list(result.workers_added),
            "dependencies": list(result.dependencies),
            "original_content": original,
            "generated_content": generated,
            "timestamp": time.time(),
        }
        if not result.modified:
            return report

        if self.validate:
            valid, reason = self.validator.validate(
                original, generated,
                workers=[self.config.template.name(i) for i in range(device_count)],
                dependencies=result.dependencies,
            )
            if not valid:
                raise ValidationFailedError(reason)

        if dry_run:
            report["status"] = "PREVIEW"
            return report

        backup_path = self._create_unique_backup(target)
        try:
            shutil.copy2(target, backup_path)
        except OSError as e:
            raise IOFailureError(f"Backup of {target} failed: {e}") from e
        logger.info(f"Created backup: {backup_path}")
        report["backup_created"] = str(backup_path)

        self._atomic_write(target, generated)
        report["written"] = True
        logger.info(f"Configured {target} for {device_count} GPUs")
        return report

    def apply_capacity(self, settings_path: PathLike, device_count: int,
                       template_path: Optional[PathLike] = None,
                       dry_run: bool = False) -> Dict[str, Any]:
        """
        Writes the capacity plan into the `[market]` table of a TOML settings
        file. When a template is given, it replaces the file before the upsert.
        """
        plan = plan_capacity(device_count)
        target = Path(settings_path)

        current = self._read(target) if target.exists() else None
        if template_path is not None:
            base = self._read(Path(template_path))
        else:
            base = current or ""

        doc = Document.from_text(base)
        for key, value in plan.as_settings().items():
            doc = upsert_setting(doc, key, value, section=SETTINGS_SECTION)
        content = doc.to_text()

        written = False
        if not dry_run and content != current:
            self._atomic_write(target, content)
            written = True

        logger.info(f"Capacity for {device_count} GPU(s): "
                    f"{plan.max_concurrent} concurrent, {plan.peak_rate} kHz peak")
        return {
            "file_path": str(target),
            "device_count": device_count,
            "plan": plan,
            "written": written,
            "content": content,
        }

    def _read(self, path: Path) -> str:
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Unable to read {path}")
            raise IOFailureError(f"Read of {path} failed: {e}") from e

    def _atomic_write(self, target_path: Path, content: str):
        if not os.access(target_path.parent, os.W_OK):
            raise IOFailureError(f"No write access to {target_path.parent}")
        temp_file = target_path.with_name(target_path.name + TEMP_SUFFIX)
        try:
            with open(temp_file, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            if target_path.exists():
                shutil.copymode(target_path, temp_file)
            os.replace(temp_file, target_path)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise IOFailureError(f"Atomic write failed: {e}") from e

    def _create_unique_backup(self, target_path: Path) -> Path:
        backup_path = target_path.with_name(target_path.name + BACKUP_SUFFIX)
        counter = 1
        while backup_path.exists():
            backup_path = target_path.with_name(f"{target_path.name}{BACKUP_SUFFIX}.{counter}")
            counter += 1
        return backup_path
