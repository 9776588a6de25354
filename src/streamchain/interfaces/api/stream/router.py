"""Stream resolution endpoints."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, Path, Query, Request
from fastapi.responses import JSONResponse

from streamchain.domain.entities import ContentRef
from streamchain.domain.exceptions import ProviderNotFound
from streamchain.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["stream"])

# Seconds a client should wait before retrying a retryable miss.
_RETRY_AFTER_SECONDS = 30


async def _lookup(
    request: Request, ref: ContentRef, provider: str | None
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    providers = [provider] if provider else None

    log.info("stream_request", content=str(ref), provider=provider)
    try:
        outcome = await state.failover.lookup(ref, providers)
    except ProviderNotFound as exc:
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": f"unknown provider: {exc.provider_id}"},
        )

    if outcome.success:
        return JSONResponse(content=outcome.to_payload())

    headers = {"Retry-After": str(_RETRY_AFTER_SECONDS)} if outcome.retryable else None
    return JSONResponse(status_code=503, content=outcome.to_payload(), headers=headers)


@router.get("/stream/movie/{tmdb_id}")
async def stream_movie(
    request: Request,
    tmdb_id: str = Path(min_length=1, description="TMDB movie id."),
    provider: str | None = Query(default=None, description="Try only this provider."),
) -> JSONResponse:
    """Resolve a movie into a playable HLS manifest URL."""
    return await _lookup(request, ContentRef(tmdb_id=tmdb_id), provider)


@router.get("/stream/tv/{tmdb_id}/{season}/{episode}")
async def stream_episode(
    request: Request,
    tmdb_id: str = Path(min_length=1, description="TMDB series id."),
    season: int = Path(ge=0),
    episode: int = Path(ge=0),
    provider: str | None = Query(default=None, description="Try only this provider."),
) -> JSONResponse:
    """Resolve a single TV episode into a playable HLS manifest URL."""
    ref = ContentRef(tmdb_id=tmdb_id, media_type="tv", season=season, episode=episode)
    return await _lookup(request, ref, provider)


@router.get("/providers")
async def list_providers(request: Request) -> JSONResponse:
    """Registered provider ids in failover order."""
    state = cast(AppState, request.app.state)
    return JSONResponse(content={"providers": state.failover.order()})
