"""Shapes a raw snapshot and network rates into the ``/performance`` body."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .collector import RawSnapshot
from .rates import NetworkSample, RateResult

GB = 1024 ** 3
MB = 1024 ** 2


def bytes_to_gb(value: float) -> str:
    return f"{value / GB:.2f} GB"


def bytes_to_mb(value: float) -> str:
    return f"{value / MB:.2f} MB"


def rate_to_mb(value: float) -> str:
    return f"{value / MB:.2f} MB/s"


def percent(value: float) -> str:
    return f"{value:.2f}%"


@dataclass(frozen=True)
class StorageAggregate:
    total: int
    used: int

    @property
    def free(self) -> int:
        return self.total - self.used

    @property
    def used_percentage(self) -> float:
        """Share of used space; 0 when nothing is mounted."""
        if self.total <= 0:
            return 0.0
        return round(self.used / self.total * 100, 2)

    @property
    def free_percentage(self) -> float:
        if self.total <= 0:
            return 0.0
        return round(self.free / self.total * 100, 2)

    @classmethod
    def from_filesystems(cls, filesystems: List[Dict[str, Any]]) -> "StorageAggregate":
        return cls(
            total=sum(int(fs.get("size") or 0) for fs in filesystems),
            used=sum(int(fs.get("used") or 0) for fs in filesystems),
        )


def cpu_name(cpu_info: Dict[str, Any]) -> str:
    return f"{cpu_info.get('manufacturer', '')} {cpu_info.get('brand', '')}"


def _sample_dict(sample: Optional[NetworkSample]) -> Optional[Dict[str, Any]]:
    if sample is None:
        return None
    return {"iface": sample.iface, "rx_bytes": sample.rx_bytes, "tx_bytes": sample.tx_bytes}


def build_performance(server_name: str, snapshot: RawSnapshot, rates: RateResult) -> Dict[str, Any]:
    """Return the human readable and raw views of one snapshot.

    Both views are derived from the same ``snapshot`` and ``rates`` so they
    always describe the same moment.
    """
    name = cpu_name(snapshot.cpu)
    load = snapshot.load
    cores = load.get("cpus") or []
    memory = snapshot.memory
    primary = snapshot.interfaces[0] if snapshot.interfaces else {}
    storage = StorageAggregate.from_filesystems(snapshot.filesystems)

    return {
        "server": {"name": server_name},
        "cpu": {
            "name": name,
            "usage": percent(load.get("current_load") or 0.0),
            "cores": len(cores),
        },
        "memory": {
            "total": bytes_to_gb(memory.get("total", 0)),
            "used": bytes_to_gb(memory.get("used", 0)),
            "free": bytes_to_gb(memory.get("free", 0)),
        },
        "network": {
            "interface": primary.get("iface"),
            "inputMb": bytes_to_mb(primary.get("rx_bytes", 0)),
            "outputMb": bytes_to_mb(primary.get("tx_bytes", 0)),
            "inputPerSecond": rate_to_mb(rates.input_per_second),
            "outputPerSecond": rate_to_mb(rates.output_per_second),
        },
        "storage": {
            "total": bytes_to_gb(storage.total),
            "used": bytes_to_gb(storage.used),
            "free": bytes_to_gb(storage.free),
            "usedPercentage": percent(storage.used_percentage),
            "freePercentage": percent(storage.free_percentage),
        },
        "raw": {
            "cpu": {
                "name": name,
                **load,
                "cpus": [{"load": core.get("load")} for core in cores],
            },
            "memory": memory,
            "network": {
                "interfaces": snapshot.interfaces,
                "lastNetworkStats": _sample_dict(rates.previous),
                "lastNetworkTime": rates.previous_time,
                "networkInPerSecond": rates.input_per_second,
                "networkOutPerSecond": rates.output_per_second,
            },
            "storage": {
                "total": storage.total,
                "used": storage.used,
                "free": storage.free,
            },
        },
    }
