"""Per-second network throughput from successive cumulative counter samples."""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TypeVar

T = TypeVar("T")


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class NetworkSample:
    iface: str
    rx_bytes: int
    tx_bytes: int

    @classmethod
    def from_interfaces(cls, interfaces: List[Dict[str, Any]]) -> Optional["NetworkSample"]:
        """Build a sample from the first reported interface, or None if there is none."""
        if not interfaces:
            return None
        first = interfaces[0]
        return cls(
            iface=str(first.get("iface", "")),
            rx_bytes=int(first.get("rx_bytes", 0)),
            tx_bytes=int(first.get("tx_bytes", 0)),
        )


@dataclass(frozen=True)
class RateResult:
    input_per_second: float
    output_per_second: float
    previous: Optional[NetworkSample]
    previous_time: Optional[int]
    current_time: int


class RateTracker:
    """Holds the last network sample for the lifetime of the process.

    ``sample`` (or ``sample_into``) is the only entry point. It computes
    bytes per second against the stored sample and then replaces it with the
    current one, even when no rate could be computed. Rates are 0 on the
    first call, when the elapsed time is not positive, when the interface
    changed, or when no interface was reported; negative deltas are clamped
    to 0.
    """

    def __init__(self, clock: Callable[[], int] = wall_clock_ms) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._last_sample: Optional[NetworkSample] = None
        self._last_time: Optional[int] = None

    @property
    def last_sample(self) -> Optional[NetworkSample]:
        return self._last_sample

    @property
    def last_time(self) -> Optional[int]:
        return self._last_time

    def sample(self, current: Optional[NetworkSample]) -> RateResult:
        return self.sample_into(current, lambda result: result)

    def sample_into(self, current: Optional[NetworkSample], render: Callable[[RateResult], T]) -> T:
        """Compute rates, pass them to ``render`` and return what it returns.

        The stored sample is replaced only after ``render`` succeeds, so a
        response that fails to build leaves the tracker as it was.
        """
        with self._lock:
            now = self._clock()
            previous, previous_time = self._last_sample, self._last_time

            rx_rate = tx_rate = 0.0
            if current is not None and previous is not None and previous_time is not None:
                elapsed = (now - previous_time) / 1000
                if elapsed > 0 and current.iface == previous.iface:
                    rx_rate = max(0, current.rx_bytes - previous.rx_bytes) / elapsed
                    tx_rate = max(0, current.tx_bytes - previous.tx_bytes) / elapsed

            rendered = render(
                RateResult(
                    input_per_second=rx_rate,
                    output_per_second=tx_rate,
                    previous=previous,
                    previous_time=previous_time,
                    current_time=now,
                )
            )

            self._last_sample = current
            self._last_time = now

        return rendered
