"""Runtime configuration helpers."""
from __future__ import annotations

import json
import logging
import os
import socket
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.json"
_TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(ValueError):
    """Raised when the application config file cannot be used."""


@dataclass(frozen=True)
class AppConfig:
    server_name: str
    api_key: str = ""
    need_auth: bool = False


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3405
    log_level: str = "info"
    config_path: str = DEFAULT_CONFIG_PATH
    collect_timeout: float = 10.0
    cpu_sample_interval: float = 0.1
    cors_origins: Tuple[str, ...] = ("*",)
    server_name: str = ""
    api_key: str = ""
    need_auth: bool = False


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUTHY


def load_app_config(path: str) -> AppConfig:
    """Read ``{"server": {"name"}, "api": {"key", "needAuth"}}`` from ``path``.

    A missing file is not fatal: the host name is used as the server name and
    authentication stays disabled.
    """
    config_file = Path(path).expanduser()
    if not config_file.exists():
        logger.warning("Config file %s not found; using defaults", config_file)
        return AppConfig(server_name=socket.gethostname())

    try:
        data: Dict[str, Any] = json.loads(config_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Unable to read config file {config_file}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_file} must contain a JSON object")

    server = data.get("server") or {}
    api = data.get("api") or {}
    if not isinstance(server, dict) or not isinstance(api, dict):
        raise ConfigError(f"'server' and 'api' in {config_file} must be objects")

    need_auth = api.get("needAuth", False)
    if not isinstance(need_auth, bool):
        raise ConfigError("api.needAuth must be a boolean")

    return AppConfig(
        server_name=str(server.get("name") or socket.gethostname()),
        api_key=str(api.get("key") or ""),
        need_auth=need_auth,
    )


def _env(name: str) -> Optional[str]:
    value = os.getenv(f"PERF_STATS_{name}")
    return value if value else None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables and the JSON config file."""
    config_path = _env("CONFIG") or DEFAULT_CONFIG_PATH
    app_config = load_app_config(config_path)

    collect_timeout = float(_env("COLLECT_TIMEOUT") or "10")
    if collect_timeout < 0:
        raise ConfigError("PERF_STATS_COLLECT_TIMEOUT must be 0 (no deadline) or a positive number of seconds")

    need_auth_override = _env("NEED_AUTH")
    origins = _env("CORS_ORIGINS")

    return Settings(
        host=_env("HOST") or "0.0.0.0",
        port=int(_env("PORT") or "3405"),
        log_level=(_env("LOG_LEVEL") or "info").lower(),
        config_path=config_path,
        collect_timeout=collect_timeout,
        cpu_sample_interval=float(_env("CPU_SAMPLE_INTERVAL") or "0.1"),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) if origins else ("*",),
        server_name=_env("SERVER_NAME") or app_config.server_name,
        api_key=_env("API_KEY") or app_config.api_key,
        need_auth=_parse_bool(need_auth_override) if need_auth_override else app_config.need_auth,
    )
