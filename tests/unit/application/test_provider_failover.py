"""Tests for ProviderFailover."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from streamchain.application.use_cases import (
    SOURCE_UNAVAILABLE,
    ProviderFailover,
    StreamLookup,
)
from streamchain.domain.entities import CandidateURL, ResolutionResult
from streamchain.domain.exceptions import (
    ChainBroken,
    DecoderStale,
    ProviderNotFound,
    ResolutionFailed,
    StageTimeout,
)
from streamchain.infrastructure.metrics import MetricsCollector


def _result(provider: str) -> ResolutionResult:
    chosen = CandidateURL(f"https://{provider}.test/m.m3u8", 0)
    return ResolutionResult(
        url=chosen.url,
        provider_id=provider,
        chosen=chosen,
        fallback_urls=(f"https://{provider}-b.test/m.m3u8",),
    )


@pytest.fixture()
def resolver() -> MagicMock:
    r = MagicMock()
    r.provider_ids.return_value = ["vidsrc", "cloudstream", "extra"]
    r.resolve = AsyncMock()
    return r


class TestOrder:
    def test_priority_then_rest(self, resolver) -> None:
        failover = ProviderFailover(resolver, priority=["cloudstream", "missing"])
        assert failover.order() == ["cloudstream", "vidsrc", "extra"]

    def test_explicit_list(self, resolver) -> None:
        failover = ProviderFailover(resolver, priority=["cloudstream"])
        assert failover.order(["extra"]) == ["extra"]


class TestLookup:
    async def test_first_failure_then_success(self, resolver, movie_ref) -> None:
        resolver.resolve.side_effect = [
            DecoderStale("vidsrc", "cloudnestra"),
            _result("cloudstream"),
        ]
        metrics = MetricsCollector()
        failover = ProviderFailover(
            resolver, priority=["vidsrc", "cloudstream"], metrics=metrics
        )

        outcome = await failover.lookup(movie_ref)

        assert outcome.success
        assert outcome.provider == "cloudstream"
        assert outcome.tried == ("vidsrc", "cloudstream")
        assert outcome.to_payload() == {
            "success": True,
            "url": "https://cloudstream.test/m.m3u8",
            "fallbackUrls": ["https://cloudstream-b.test/m.m3u8"],
            "provider": "cloudstream",
        }
        assert metrics.snapshot()["lookups"]["served"] == 1

    async def test_all_fail_generic_message(self, resolver, movie_ref) -> None:
        resolver.resolve.side_effect = [
            ChainBroken(0, "vidsrc"),
            DecoderStale("cloudstream", "cloudnestra", "IndexError in aes"),
            ResolutionFailed("extra", 3),
        ]
        failover = ProviderFailover(resolver)

        outcome = await failover.lookup(movie_ref)

        assert not outcome.success
        assert outcome.error == SOURCE_UNAVAILABLE
        assert not outcome.retryable
        assert outcome.to_payload() == {"success": False, "error": "source unavailable"}

    async def test_retryable_when_every_failure_is_transient(self, resolver, movie_ref) -> None:
        resolver.resolve.side_effect = [
            ResolutionFailed("vidsrc", 2),
            StageTimeout("cloudstream", "chain", 1),
            StageTimeout("extra", "probe"),
        ]
        outcome = await ProviderFailover(resolver).lookup(movie_ref)
        assert outcome.retryable

    async def test_explicit_unknown_provider_raises(self, resolver, movie_ref) -> None:
        resolver.resolve.side_effect = ProviderNotFound("nope")
        with pytest.raises(ProviderNotFound):
            await ProviderFailover(resolver).lookup(movie_ref, ["nope"])

    async def test_unexpected_errors_propagate(self, resolver, movie_ref) -> None:
        resolver.resolve.side_effect = RuntimeError("bug")
        with pytest.raises(RuntimeError):
            await ProviderFailover(resolver).lookup(movie_ref)

    def test_failure_payload_defaults(self) -> None:
        assert StreamLookup(success=False).to_payload()["error"] == SOURCE_UNAVAILABLE
