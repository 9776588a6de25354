"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from streamchain.infrastructure.config import AppConfig
from streamchain.interfaces.app_state import AppState
from streamchain.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration only, no resource initialization.

    Resources (HTTP client, registries, cache) are created in lifespan().
    """
    app = FastAPI(
        title="streamchain",
        description="Embed-chain stream resolver",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from streamchain.interfaces.api.stats.router import router as stats_router
    from streamchain.interfaces.api.stream.router import router as stream_router

    app.include_router(stream_router, prefix="/api/v1")
    app.include_router(stats_router, prefix="/api/v1")

    @app.get("/api/v1/healthz")
    async def healthz() -> dict[str, str | int]:
        """Liveness probe: returns 200 as long as the process is running."""
        providers = getattr(app.state, "providers", None)
        return {
            "status": "ok",
            "providers": len(providers) if providers is not None else 0,
        }

    @app.get("/api/v1/readyz")
    async def readyz() -> JSONResponse:
        """Readiness probe: 200 once the resolution stack is wired, 503 before."""
        if getattr(app.state, "failover", None) is None:
            return JSONResponse({"status": "not_ready"}, status_code=503)
        return JSONResponse({"status": "ready"})

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=str(request.url.query),
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
