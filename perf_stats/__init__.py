"""Host performance metrics service."""
from importlib.metadata import version

__all__ = ["__version__"]

try:
    __version__ = version("perf-stats-service")
except Exception:  # pragma: no cover - fallback when package metadata missing
    __version__ = "0.1.0"
