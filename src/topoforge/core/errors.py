#!/usr/bin/env python3
"""
TOPOFORGE ERRORS
--------------
Every failure of a generation step is fatal and surfaces as one of these.
Nothing here is retried internally.

Author: TopoForge Team
"""


class TopoForgeError(Exception):
    """Base class for all generator failures."""


class AnchorNotFoundError(TopoForgeError):
    def __init__(self, anchor: str):
        self.anchor = anchor
        super().__init__(f"No line contains anchor '{anchor}'")


class KeyNotFoundError(TopoForgeError):
    def __init__(self, key: str, indent=None):
        self.key = key
        self.indent = indent
        where = f" at indent {indent}" if indent is not None else ""
        super().__init__(f"Key '{key}:'{where} not found")


class ServiceNotFoundError(KeyNotFoundError):
    pass


class DependencyBlockNotFoundError(KeyNotFoundError):
    pass


class IOFailureError(TopoForgeError):
    """Read, write or rename of a manifest failed."""


class InvalidDeviceCountError(TopoForgeError, ValueError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Device count must be a non-negative integer, got {value!r}")


class ConfigError(TopoForgeError):
    pass


class ValidationFailedError(TopoForgeError):
    """The generated manifest failed the pre-flight check."""


def check_device_count(value) -> int:
    """Returns `value` if it is a usable device count, raises otherwise."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidDeviceCountError(value)
    return value
