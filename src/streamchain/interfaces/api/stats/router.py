"""Runtime statistics endpoint."""

from __future__ import annotations

from typing import Any, cast

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from streamchain.interfaces.app_state import AppState

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/metrics")
async def metrics(request: Request) -> JSONResponse:
    """Return in-memory runtime metrics.

    Includes per-provider resolution stats, failover outcomes, decode
    cache counters and outbound limiter utilisation.
    """
    state = cast(AppState, request.app.state)

    data: dict[str, Any] = {}

    m = getattr(state, "metrics", None)
    if m is not None:
        data.update(m.snapshot())

    cache = getattr(state, "decode_cache", None)
    if cache is not None:
        data["decode_cache"] = cache.snapshot()

    limiter = getattr(state, "limiter", None)
    if limiter is not None:
        data["outbound_limiter"] = limiter.snapshot()

    return JSONResponse(content=data)
