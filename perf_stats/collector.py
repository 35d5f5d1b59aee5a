"""Concurrent collection of one raw metrics snapshot."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class CollectionError(RuntimeError):
    """Raised when any part of a snapshot could not be collected."""


class MetricsProvider(Protocol):
    def current_load(self) -> Dict[str, Any]: ...

    def cpu_info(self) -> Dict[str, Any]: ...

    def mem(self) -> Dict[str, Any]: ...

    def network_stats(self) -> List[Dict[str, Any]]: ...

    def fs_size(self) -> List[Dict[str, Any]]: ...


@dataclass(frozen=True)
class RawSnapshot:
    load: Dict[str, Any]
    cpu: Dict[str, Any]
    memory: Dict[str, Any]
    interfaces: List[Dict[str, Any]]
    filesystems: List[Dict[str, Any]]


async def collect_snapshot(provider: MetricsProvider, timeout: Optional[float] = None) -> RawSnapshot:
    """Run the five provider reads concurrently and wait for all of them.

    The first failure (or the deadline, when a positive ``timeout`` is given)
    aborts the whole snapshot with :class:`CollectionError`; results of the
    other reads are discarded.
    """
    gathered = asyncio.gather(
        asyncio.to_thread(provider.current_load),
        asyncio.to_thread(provider.cpu_info),
        asyncio.to_thread(provider.mem),
        asyncio.to_thread(provider.network_stats),
        asyncio.to_thread(provider.fs_size),
    )
    done, _ = await asyncio.wait({gathered}, timeout=timeout or None)
    if not done:
        gathered.cancel()
        raise CollectionError(f"Metric collection timed out after {timeout:.1f}s")

    try:
        load, cpu, memory, interfaces, filesystems = gathered.result()
    except Exception as exc:
        raise CollectionError(f"Metric collection failed: {exc!r}") from exc

    logger.debug("Collected snapshot with %d interfaces and %d volumes", len(interfaces), len(filesystems))
    return RawSnapshot(
        load=load,
        cpu=cpu,
        memory=memory,
        interfaces=list(interfaces),
        filesystems=list(filesystems),
    )
