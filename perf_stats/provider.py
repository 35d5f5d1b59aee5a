"""psutil-backed provider for the raw host facts behind ``/performance``."""
from __future__ import annotations

import logging
import platform
import socket
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import psutil

logger = logging.getLogger(__name__)

_VENDOR_NAMES = {
    "GenuineIntel": "Intel",
    "AuthenticAMD": "AMD",
    "CentaurHauls": "VIA",
    "HygonGenuine": "Hygon",
}


def _as_dict(stats_obj: Any) -> Dict[str, Any]:
    """Normalize psutil namedtuple output to plain dicts."""
    if hasattr(stats_obj, "_asdict"):
        return dict(stats_obj._asdict())
    return dict(stats_obj)


def _split_brand(vendor: str, model_name: str) -> Tuple[str, str]:
    """Return (manufacturer, brand) with the manufacturer prefix removed from the brand."""
    manufacturer = _VENDOR_NAMES.get(vendor, vendor)
    brand = model_name.strip()
    if not manufacturer and brand:
        manufacturer, _, brand = brand.partition(" ")
        manufacturer = manufacturer.replace("(R)", "")
    for prefix in (f"{manufacturer}(R)", manufacturer):
        if prefix and brand.startswith(prefix):
            brand = brand[len(prefix):].strip()
            break
    return manufacturer, brand


def _read_cpu_identity(system_name: str) -> Tuple[str, str]:
    try:
        if system_name == "Linux":
            cpuinfo = Path("/proc/cpuinfo")
            if cpuinfo.exists():
                fields: Dict[str, str] = {}
                for line in cpuinfo.read_text(encoding="utf-8", errors="ignore").splitlines():
                    key, sep, value = line.partition(":")
                    if not sep:
                        if fields:
                            break
                        continue
                    fields.setdefault(key.strip(), value.strip())
                model = fields.get("model name") or fields.get("Model") or fields.get("Hardware", "")
                return _split_brand(fields.get("vendor_id", ""), model)
        if system_name == "Darwin":
            brand = subprocess.run(
                ["/usr/sbin/sysctl", "-n", "machdep.cpu.brand_string"],
                capture_output=True,
                text=True,
                check=True,
            ).stdout.strip()
            return _split_brand("", brand)
    except (OSError, subprocess.SubprocessError):  # pragma: no cover - best effort cpu detection
        logger.debug("CPU identity lookup failed", exc_info=True)
    return _split_brand("", platform.processor() or "")


class SystemInfoProvider:
    """Reads host metrics through psutil.

    Every method blocks (``current_load`` for ``cpu_sample_interval`` seconds)
    and is meant to be run in a worker thread.
    """

    def __init__(self, cpu_sample_interval: float = 0.1) -> None:
        self.cpu_sample_interval = cpu_sample_interval

    def current_load(self) -> Dict[str, Any]:
        per_cpu = psutil.cpu_times_percent(interval=self.cpu_sample_interval, percpu=True)
        cpus = []
        for times in per_cpu:
            idle = getattr(times, "idle", 0.0)
            cpus.append(
                {
                    "load": max(0.0, 100.0 - idle),
                    "load_user": getattr(times, "user", 0.0),
                    "load_system": getattr(times, "system", 0.0),
                    "load_idle": idle,
                }
            )
        count = len(cpus) or 1

        def mean(key: str) -> float:
            return sum(core[key] for core in cpus) / count

        try:
            avg_load = psutil.getloadavg()[0]
        except (AttributeError, OSError):
            avg_load = None

        return {
            "avg_load": avg_load,
            "current_load": mean("load"),
            "current_load_user": mean("load_user"),
            "current_load_system": mean("load_system"),
            "current_load_idle": mean("load_idle"),
            "cpus": cpus,
        }

    def cpu_info(self) -> Dict[str, Any]:
        manufacturer, brand = _read_cpu_identity(platform.system())
        freq = psutil.cpu_freq()
        return {
            "manufacturer": manufacturer,
            "brand": brand,
            "vendor": manufacturer,
            "cores": psutil.cpu_count(logical=True) or 0,
            "physical_cores": psutil.cpu_count(logical=False),
            "speed_mhz": freq.current if freq else None,
            "speed_min_mhz": freq.min if freq else None,
            "speed_max_mhz": freq.max if freq else None,
        }

    def mem(self) -> Dict[str, Any]:
        return _as_dict(psutil.virtual_memory())

    def network_stats(self) -> List[Dict[str, Any]]:
        """Per-interface counters, primary interface first."""
        counters = psutil.net_io_counters(pernic=True)
        if_stats = psutil.net_if_stats()
        primary = _primary_interface_name(if_stats, psutil.net_if_addrs())

        interfaces = []
        for name in sorted(counters, key=lambda n: (n != primary, n)):
            io = counters[name]
            stat = if_stats.get(name)
            interfaces.append(
                {
                    "iface": name,
                    "operstate": "up" if stat and stat.isup else "down",
                    "rx_bytes": io.bytes_recv,
                    "tx_bytes": io.bytes_sent,
                    "rx_packets": io.packets_recv,
                    "tx_packets": io.packets_sent,
                    "rx_errors": io.errin,
                    "tx_errors": io.errout,
                    "rx_dropped": io.dropin,
                    "tx_dropped": io.dropout,
                }
            )
        return interfaces

    def fs_size(self) -> List[Dict[str, Any]]:
        """Size and usage of each mounted device."""
        volumes = []
        seen = set()
        for part in psutil.disk_partitions(all=False):
            if part.device in seen:
                continue
            try:
                usage = psutil.disk_usage(part.mountpoint)
            except OSError:
                logger.debug("Skipping unreadable mount %s", part.mountpoint)
                continue
            seen.add(part.device)
            volumes.append(
                {
                    "fs": part.device,
                    "type": part.fstype,
                    "mount": part.mountpoint,
                    "size": usage.total,
                    "used": usage.used,
                    "available": usage.free,
                    "use": usage.percent,
                }
            )
        return volumes


def _primary_interface_name(stats: Dict[str, Any], addrs: Dict[str, Any]) -> Optional[str]:
    for name, stat in sorted(stats.items()):
        if not stat.isup or name.lower().startswith("lo"):
            continue
        if any(addr.family == socket.AF_INET for addr in addrs.get(name, [])):
            return name
    return None

