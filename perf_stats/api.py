"""FastAPI application exposing host performance metrics."""
from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .collector import MetricsProvider, collect_snapshot
from .config import Settings, get_settings
from .formatting import build_performance
from .provider import SystemInfoProvider
from .rates import NetworkSample, RateTracker

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[MetricsProvider] = None,
    tracker: Optional[RateTracker] = None,
) -> FastAPI:
    """Build the application; also usable as ``uvicorn perf_stats.api:create_app --factory``."""
    settings = settings or get_settings()
    provider = provider or SystemInfoProvider(cpu_sample_interval=settings.cpu_sample_interval)
    tracker = tracker or RateTracker()

    app = FastAPI(
        title="Performance Stats Service",
        description="Reports CPU, memory, network throughput and storage of this host.",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.tracker = tracker

    @app.middleware("http")
    async def require_api_key(request: Request, call_next):
        if settings.need_auth:
            supplied = request.headers.get(API_KEY_HEADER, "")
            if not supplied or not hmac.compare_digest(supplied.encode(), settings.api_key.encode()):
                logger.warning("Rejected %s %s: missing or invalid API key", request.method, request.url.path)
                return _error(401, "Unauthorized")
        return await call_next(request)

    # Added last so it wraps the key check and answers preflight requests itself.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            return _error(404, f"Cannot {request.method} {request.url.path}")
        return _error(exc.status_code, str(exc.detail))

    @app.get("/performance", summary="Return current host performance metrics", tags=["system"])
    async def performance():
        try:
            snapshot = await collect_snapshot(provider, timeout=settings.collect_timeout)
            # The tracker keeps its previous sample unless the body was built.
            return tracker.sample_into(
                NetworkSample.from_interfaces(snapshot.interfaces),
                lambda rates: build_performance(settings.server_name, snapshot, rates),
            )
        except Exception:  # pylint: disable=broad-except
            logger.exception("Error fetching host performance")
            return _error(500, "Internal Server Error")

    return app
