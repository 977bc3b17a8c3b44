#!/usr/bin/env python3
"""
TOPOFORGE CONFIG
--------------
Generator settings. The defaults describe the stock prover manifest:
a `gpu_prove_agent0` worker ending in `capabilities: [gpu]` and a `broker`
service that waits on every agent.

Overrides are read from a YAML mapping whose keys mirror GeneratorConfig.
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from ruamel.yaml import YAML, YAMLError

from topoforge.core.errors import ConfigError
from topoforge.editing.expander import DEFAULT_WORKER_TEMPLATE, WorkerTemplate
from topoforge.editing.rewriter import DEFAULT_HEAD, DEFAULT_TAIL

logger = logging.getLogger("topoforge.config")


@dataclass(frozen=True)
class GeneratorConfig:
    anchor: str = "capabilities: [gpu]"
    service: str = "broker"
    service_indent: Optional[int] = 2
    dependency_key: str = "depends_on"
    head: str = DEFAULT_HEAD
    tail: Tuple[str, ...] = DEFAULT_TAIL
    worker_name: str = "gpu_prove_agent{index}"
    worker_template: str = DEFAULT_WORKER_TEMPLATE
    template: WorkerTemplate = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "template",
                           WorkerTemplate(text=self.worker_template, name_format=self.worker_name))


_EXPECTED_TYPES = {
    "anchor": str,
    "service": str,
    "service_indent": (int, type(None)),
    "dependency_key": str,
    "head": str,
    "tail": list,
    "worker_name": str,
    "worker_template": str,
}


def config_from_mapping(data: Dict[str, Any]) -> GeneratorConfig:
    """Builds a GeneratorConfig, rejecting unknown keys and wrong types."""
    known = {f.name for f in fields(GeneratorConfig) if f.init}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    for key, value in data.items():
        expected = _EXPECTED_TYPES[key]
        if isinstance(value, bool) or not isinstance(value, expected):
            raise ConfigError(f"Config key '{key}' has invalid value {value!r}")

    kwargs = dict(data)
    if "tail" in kwargs:
        if not all(isinstance(name, str) for name in kwargs["tail"]):
            raise ConfigError("Config key 'tail' must be a list of service names")
        kwargs["tail"] = tuple(kwargs["tail"])
    return GeneratorConfig(**kwargs)


def load_config(path: Optional[Union[str, Path]] = None) -> GeneratorConfig:
    """Loads overrides from a YAML file. No path means built-in defaults."""
    if path is None:
        return GeneratorConfig()

    config_path = Path(path)
    try:
        data = YAML(typ="safe").load(config_path.read_text(encoding="utf-8"))
    except (OSError, YAMLError) as e:
        logger.error(f"Unable to load config from {config_path}")
        raise ConfigError(f"Failed to load config: {e}") from e

    if data is None:
        return GeneratorConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    logger.debug(f"Loaded config overrides: {sorted(data)}")
    return config_from_mapping(data)
