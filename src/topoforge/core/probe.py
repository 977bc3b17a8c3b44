#!/usr/bin/env python3
"""
TOPOFORGE PROBE
-------------
Counts the GPUs visible to the host via `nvidia-smi -L`.
Any failure is reported as zero devices rather than raised.
"""

import logging
import shutil
import subprocess
from typing import Callable, Optional

logger = logging.getLogger("topoforge.probe")

PROBE_COMMAND = ["nvidia-smi", "-L"]


def count_devices(runner: Optional[Callable[..., subprocess.CompletedProcess]] = None,
                  which: Callable[[str], Optional[str]] = shutil.which) -> int:
    """Number of non-empty lines in the `nvidia-smi -L` listing, or 0."""
    if which(PROBE_COMMAND[0]) is None:
        logger.info(f"{PROBE_COMMAND[0]} not found, assuming 0 GPUs")
        return 0

    runner = runner or subprocess.run
    try:
        proc = runner(PROBE_COMMAND, capture_output=True, text=True, check=True)
    except (OSError, subprocess.CalledProcessError) as e:
        logger.warning(f"GPU probe failed: {e}")
        return 0

    count = sum(1 for line in proc.stdout.splitlines() if line.strip())
    logger.info(f"Found {count} GPU(s)")
    return count
