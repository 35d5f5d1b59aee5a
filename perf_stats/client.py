"""Command line client that fetches ``/performance`` from a running service."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, Optional

import requests

DEFAULT_SERVICE_URL = "http://127.0.0.1:3405"
DEFAULT_TIMEOUT_SECONDS = 10.0


def get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value else default


def fetch_performance(base_url: str, api_key: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> Dict[str, Any]:
    headers = {"x-api-key": api_key} if api_key else {}
    response = requests.get(f"{base_url.rstrip('/')}/performance", headers=headers, timeout=timeout)
    response.raise_for_status()
    return response.json()


def summarize(payload: Dict[str, Any]) -> str:
    cpu = payload.get("cpu", {})
    memory = payload.get("memory", {})
    network = payload.get("network", {})
    storage = payload.get("storage", {})
    return (
        f"{payload.get('server', {}).get('name')}: "
        f"cpu={cpu.get('usage')} "
        f"mem={memory.get('used')}/{memory.get('total')} "
        f"net={network.get('interface')} in={network.get('inputPerSecond')} out={network.get('outputPerSecond')} "
        f"disk={storage.get('usedPercentage')} used"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fetch host performance metrics from a perf-stats service.")
    parser.add_argument("--url", default=get_env("PERF_STATS_URL", DEFAULT_SERVICE_URL), help="service base URL")
    parser.add_argument("--api-key", default=os.getenv("PERF_STATS_API_KEY"), help="value for the x-api-key header")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT_SECONDS, help="request timeout in seconds")
    parser.add_argument("--summary", action="store_true", help="print a single summary line instead of JSON")
    return parser


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=get_env("PERF_STATS_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        payload = fetch_performance(args.url, args.api_key, args.timeout)
    except requests.RequestException as exc:
        logging.error("Failed to fetch metrics from %s: %s", args.url, exc)
        return 1

    if args.summary:
        print(summarize(payload))
    else:
        print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
