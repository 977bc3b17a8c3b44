#!/usr/bin/env python3
"""
TOPOFORGE CAPACITY PLANNER
------------------------
Derives the broker's concurrency and throughput settings from the
number of GPUs on the host.

Author: TopoForge Team
"""

from dataclasses import dataclass

from topoforge.core.errors import check_device_count

MAX_CONCURRENT_KEY = "max_concurrent_proofs"
PEAK_RATE_KEY = "peak_prove_khz"


@dataclass(frozen=True)
class CapacityPlan:
    max_concurrent: int
    peak_rate: int

    def as_settings(self) -> dict:
        return {MAX_CONCURRENT_KEY: self.max_concurrent, PEAK_RATE_KEY: self.peak_rate}


def plan_capacity(device_count: int) -> CapacityPlan:
    """
    Calibrated values for 1-3 GPUs; linear scaling for everything else.
    The first three rows are measured values, not the formula, and are
    kept as separate cases so they can be retuned independently.
    """
    check_device_count(device_count)
    if device_count == 1:
        return CapacityPlan(max_concurrent=2, peak_rate=100)
    elif device_count == 2:
        return CapacityPlan(max_concurrent=4, peak_rate=200)
    elif device_count == 3:
        return CapacityPlan(max_concurrent=6, peak_rate=300)
    return CapacityPlan(max_concurrent=device_count * 2, peak_rate=device_count * 100)
