"""Shared fixtures: a scripted provider and a controllable clock."""
import copy
from typing import Any, Dict, List

import pytest

from perf_stats.config import Settings
from perf_stats.rates import RateTracker

GB = 1024 ** 3


class FakeProvider:
    """Provider returning canned data; any method can be told to fail."""

    def __init__(self) -> None:
        self.load: Dict[str, Any] = {
            "avg_load": 0.5,
            "current_load": 12.345,
            "current_load_user": 8.0,
            "current_load_system": 4.345,
            "current_load_idle": 87.655,
            "cpus": [
                {"load": 10.0, "load_user": 6.0, "load_system": 4.0, "load_idle": 90.0},
                {"load": 14.69, "load_user": 10.0, "load_system": 4.69, "load_idle": 85.31},
            ],
        }
        self.cpu: Dict[str, Any] = {"manufacturer": "Intel", "brand": "Core(TM) i7-8700", "cores": 2}
        self.memory: Dict[str, Any] = {"total": 16 * GB, "used": 6 * GB, "free": 10 * GB, "percent": 37.5}
        self.interfaces: List[Dict[str, Any]] = [{"iface": "eth0", "rx_bytes": 1000, "tx_bytes": 500}]
        self.filesystems: List[Dict[str, Any]] = [
            {"fs": "/dev/sda1", "mount": "/", "size": 100 * GB, "used": 40 * GB},
            {"fs": "/dev/sdb1", "mount": "/data", "size": 300 * GB, "used": 60 * GB},
        ]
        self.failing: set = set()
        self.calls: List[str] = []

    def _result(self, name: str, value: Any) -> Any:
        self.calls.append(name)
        if name in self.failing:
            raise RuntimeError(f"{name} unavailable")
        return copy.deepcopy(value)

    def current_load(self):
        return self._result("current_load", self.load)

    def cpu_info(self):
        return self._result("cpu_info", self.cpu)

    def mem(self):
        return self._result("mem", self.memory)

    def network_stats(self):
        return self._result("network_stats", self.interfaces)

    def fs_size(self):
        return self._result("fs_size", self.filesystems)


class FakeClock:
    def __init__(self, *times: int) -> None:
        self.times = list(times)
        self.now = 0

    def __call__(self) -> int:
        if self.times:
            self.now = self.times.pop(0)
        return self.now


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    return RateTracker(clock=clock)


@pytest.fixture
def settings():
    return Settings(server_name="test-box", api_key="secret", need_auth=False, collect_timeout=5.0)
