import pytest

from topoforge.core.errors import InvalidDeviceCountError
from topoforge.planner.capacity import CapacityPlan, plan_capacity


@pytest.mark.parametrize("devices, expected", [
    (0, (0, 0)),
    (1, (2, 100)),
    (2, (4, 200)),
    (3, (6, 300)),
    (4, (8, 400)),
    (5, (10, 500)),
    (8, (16, 800)),
])
def test_capacity_table(devices, expected):
    plan = plan_capacity(devices)
    assert (plan.max_concurrent, plan.peak_rate) == expected


def test_zero_and_one_are_distinct():
    assert plan_capacity(0) != plan_capacity(1)


def test_negative_devices_rejected():
    with pytest.raises(InvalidDeviceCountError):
        plan_capacity(-2)


def test_settings_keys():
    assert CapacityPlan(6, 300).as_settings() == {"max_concurrent_proofs": 6, "peak_prove_khz": 300}
