"""Shared test fixtures for the streamchain test suite."""

from __future__ import annotations

import httpx
import pytest
import respx

from streamchain.domain.entities import (
    ContentRef,
    DecodedResolution,
    EncodedPayload,
    ExtractionRule,
    HeaderPolicy,
    HopSpec,
    ProviderSpec,
)
from streamchain.infrastructure.concurrency import OutboundLimiter

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def movie_ref() -> ContentRef:
    return ContentRef(tmdb_id="550")


@pytest.fixture()
def episode_ref() -> ContentRef:
    return ContentRef(tmdb_id="1399", media_type="tv", season=1, episode=2)


@pytest.fixture()
def provider_spec() -> ProviderSpec:
    """Two-hop provider against example.test with one two-domain token."""
    return ProviderSpec(
        id="testprov",
        hops=(
            HopSpec(
                url_template="https://embed.example.test/movie/{tmdb_id}",
                tv_url_template="https://embed.example.test/tv/{tmdb_id}/{season}/{episode}",
                extract=ExtractionRule.attr("[data-hash]", "data-hash"),
            ),
            HopSpec(
                url_template="https://player.example.test/rcp/{prev}",
                extract=ExtractionRule.hidden_text(min_length=10),
            ),
        ),
        decoder_id="identity",
        headers=HeaderPolicy(send_origin=True),
        tokens={"v1": ("a.example.test", "b.example.test")},
    )


@pytest.fixture()
def payload() -> EncodedPayload:
    return EncodedPayload(
        provider_id="testprov",
        raw="https://{v1}/hls/master.m3u8",
        hop_index=1,
        hop_url="https://player.example.test/rcp/abc",
    )


@pytest.fixture()
def decoded() -> DecodedResolution:
    return DecodedResolution(
        provider_id="testprov",
        text="https://{v1}/hls/master.m3u8",
        decoder_id="identity",
        hop_url="https://player.example.test/rcp/abc",
    )


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
async def http_client() -> httpx.AsyncClient:
    """Real httpx.AsyncClient for use with respx mocking."""
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture()
def respx_mock() -> respx.MockRouter:
    """Explicit respx mock router for request interception."""
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture()
def limiter() -> OutboundLimiter:
    return OutboundLimiter(global_slots=4, per_provider_slots=2)
