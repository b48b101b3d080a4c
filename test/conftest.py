"""
Shared fixtures for the simulator tests.
"""
import os
import sys
import threading
import time

import pytest

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from ambsim.simulator.city_map import CityMap  # noqa: E402
from ambsim.simulator.patient import Hospital  # noqa: E402
from ambsim.simulator.simulator import AmbulanceSimulator, build_fleet  # noqa: E402


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            return self.now

    def advance(self, seconds: float) -> None:
        with self._lock:
            self.now += seconds


def wait_for(predicate, timeout: float = 3.0) -> bool:
    """Poll ``predicate`` until it holds or ``timeout`` seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def make_engine(hospital_nodes=(0, 2), ambulances=4, num_nodes=6, **kwargs):
    """Chain city with weight 5 per edge and no automatic patient calls."""
    city = CityMap.chain(num_nodes, 5)
    hospitals = [Hospital(id=i, location=node) for i, node in enumerate(hospital_nodes)]
    return AmbulanceSimulator(city, hospitals, build_fleet(hospitals, ambulances), **kwargs)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def chain_engine():
    """6-node chain, hospitals at nodes 0 and 2, two ambulances each."""
    return make_engine()
