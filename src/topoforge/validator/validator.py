#!/usr/bin/env python3
"""
TOPOFORGE VALIDATOR - The Judge
-----------------------------
Final safety gate before write-back. Parses the generated manifest and
checks that every worker exists and the dependent service waits on the
exact dependency list that was requested.

This is a parse-level sanity check, not schema validation.

Author: TopoForge Team
"""

import logging
from typing import Any, Iterable, Optional, Sequence, Tuple

from ruamel.yaml import YAML, YAMLError

# Standardized logging for audit trails
logger = logging.getLogger("topoforge.validator")


class TopologyValidator:
    """Compares the generated manifest against the intended topology."""

    def __init__(self, service: str = "broker", dependency_key: str = "depends_on"):
        self.service = service
        self.dependency_key = dependency_key
        self.yaml = YAML(typ="safe")

    def _load(self, text: str) -> Tuple[bool, Any]:
        try:
            return True, self.yaml.load(text)
        except YAMLError as e:
            return False, str(e)

    def _services(self, data: Any) -> Optional[dict]:
        if not isinstance(data, dict):
            return None
        services = data.get("services", data)
        return services if isinstance(services, dict) else None

    def validate(self, original_text: str, generated_text: str,
                 workers: Iterable[str], dependencies: Sequence[str]) -> Tuple[bool, str]:
        """
        Returns (valid, reason). An original that does not parse cannot be
        judged, so the check is skipped and reported as valid.
        """
        ok, _ = self._load(original_text)
        if not ok:
            logger.warning("Original manifest is not parseable YAML, skipping pre-flight check")
            return True, "skipped: original not parseable"

        ok, data = self._load(generated_text)
        if not ok:
            return False, f"Generated manifest does not parse: {data}"

        services = self._services(data)
        if services is None:
            return False, "Generated manifest has no services mapping"

        missing = [name for name in workers if name not in services]
        if missing:
            return False, f"Missing worker services: {', '.join(missing)}"

        target = services.get(self.service)
        if not isinstance(target, dict):
            return False, f"Service '{self.service}' is missing"

        actual = target.get(self.dependency_key)
        if list(actual or []) != list(dependencies):
            return False, (f"{self.service}.{self.dependency_key} is {actual!r}, "
                           f"expected {list(dependencies)!r}")
        return True, ""
