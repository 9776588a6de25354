"""Tests for the Resolver use case with mocked stage ports."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from streamchain.application.use_cases import Resolver
from streamchain.domain.entities import (
    CandidateURL,
    DecodedResolution,
    EncodedPayload,
    HopTrace,
    ProbeAttempt,
    ProbeOutcome,
)
from streamchain.domain.exceptions import (
    ChainBroken,
    DecoderStale,
    ProviderNotFound,
    ResolutionFailed,
    StageTimeout,
)
from streamchain.infrastructure.cache import TtlDecodeCache
from streamchain.infrastructure.metrics import MetricsCollector
from streamchain.infrastructure.placeholders import PlaceholderExpander
from streamchain.infrastructure.providers import ProviderRegistry

A_URL = "https://a.example.test/hls/master.m3u8"
B_URL = "https://b.example.test/hls/master.m3u8"


@pytest.fixture()
def navigator(payload) -> AsyncMock:
    nav = AsyncMock()
    nav.walk = AsyncMock(
        return_value=EncodedPayload(
            provider_id=payload.provider_id,
            raw=payload.raw,
            hop_index=payload.hop_index,
            hop_url=payload.hop_url,
            hops=(HopTrace(0, "https://embed.example.test/movie/550", 200, 5.0),),
        )
    )
    return nav


@pytest.fixture()
def decoder(decoded) -> MagicMock:
    dec = MagicMock()
    dec.decode.return_value = decoded
    return dec


@pytest.fixture()
def prober() -> AsyncMock:
    async def _select(candidates, spec, *, referer, deadline):
        chosen = candidates[0]
        return chosen, [ProbeAttempt(chosen, ProbeOutcome.OK, 200)]

    p = AsyncMock()
    p.select = AsyncMock(side_effect=_select)
    return p


@pytest.fixture()
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture()
def resolver(provider_spec, navigator, decoder, prober, metrics) -> Resolver:
    return Resolver(
        catalog=ProviderRegistry([provider_spec]),
        navigator=navigator,
        decoder=decoder,
        expander=PlaceholderExpander(),
        prober=prober,
        cache=TtlDecodeCache(ttl_seconds=60),
        deadline_seconds=10.0,
        metrics=metrics,
    )


class TestResolve:
    async def test_happy_path(self, resolver, movie_ref, decoder, prober) -> None:
        result = await resolver.resolve("testprov", movie_ref)

        assert result.url == A_URL
        assert result.provider_id == "testprov"
        assert result.fallback_urls == (B_URL,)
        assert result.decoder_id == "identity"
        decoder.decode.assert_called_once()
        assert decoder.decode.call_args.args[1] == "identity"

        _, kwargs = prober.select.call_args
        assert kwargs["referer"] == "https://player.example.test/rcp/abc"

    async def test_trail(self, resolver, movie_ref) -> None:
        result = await resolver.resolve("testprov", movie_ref)

        trail = result.trail
        assert trail is not None
        assert trail.content_ref == movie_ref
        assert len(trail.hops) == 1
        assert trail.decoder_id == "identity"
        assert [p.outcome for p in trail.probes] == [ProbeOutcome.OK]
        assert [t.stage for t in trail.timings] == ["chain", "decode", "expand", "probe"]
        assert not trail.cache_hit

    async def test_cache_skips_chain_walk(self, resolver, movie_ref, navigator, prober) -> None:
        await resolver.resolve("testprov", movie_ref)
        second = await resolver.resolve("testprov", movie_ref)

        assert navigator.walk.await_count == 1
        assert prober.select.await_count == 2
        assert second.trail.cache_hit
        assert second.url == A_URL

    async def test_unknown_token_recorded(self, resolver, movie_ref, decoder) -> None:
        decoder.decode.return_value = DecodedResolution(
            provider_id="testprov",
            text="https://{v9}/x.m3u8",
            decoder_id="identity",
        )
        result = await resolver.resolve("testprov", movie_ref)

        assert result.url == "https://v9/x.m3u8"
        assert [n.token for n in result.trail.unknown_tokens] == ["v9"]

    async def test_provider_ids(self, resolver) -> None:
        assert resolver.provider_ids() == ["testprov"]


class TestErrors:
    async def test_unknown_provider(self, resolver, movie_ref, navigator) -> None:
        with pytest.raises(ProviderNotFound) as exc_info:
            await resolver.resolve("nope", movie_ref)
        assert exc_info.value.trail is not None
        navigator.walk.assert_not_awaited()

    async def test_chain_broken_propagates_unchanged(
        self, resolver, movie_ref, navigator, metrics
    ) -> None:
        err = ChainBroken(1, "testprov", "no_match", "https://player.example.test/rcp/x")
        err.hops = (
            HopTrace(0, "https://embed.example.test/movie/550", 200, 3.0),
            HopTrace(1, "https://player.example.test/rcp/x", 200, 3.0),
        )
        navigator.walk.side_effect = err

        with pytest.raises(ChainBroken) as exc_info:
            await resolver.resolve("testprov", movie_ref)

        assert exc_info.value is err
        assert err.hop_index == 1
        assert [h.index for h in err.trail.hops] == [0, 1]
        stats = metrics.snapshot()["providers"]["testprov"]
        assert stats["failures_by_kind"] == {"ChainBroken": 1}

    async def test_decoder_stale_not_cached(self, resolver, movie_ref, decoder, navigator) -> None:
        decoder.decode.side_effect = DecoderStale("testprov", "identity", "bad")

        for _ in range(2):
            with pytest.raises(DecoderStale) as exc_info:
                await resolver.resolve("testprov", movie_ref)

        assert navigator.walk.await_count == 2
        assert exc_info.value.trail.decoder_id == "identity"
        assert len(exc_info.value.trail.hops) == 1

    async def test_resolution_failed_keeps_attempts(
        self, resolver, movie_ref, prober
    ) -> None:
        attempts = (
            ProbeAttempt(CandidateURL(A_URL, 0), ProbeOutcome.TIMEOUT),
            ProbeAttempt(CandidateURL(B_URL, 1), ProbeOutcome.HTTP_STATUS, 403),
        )
        err = ResolutionFailed("testprov", 2)
        err.attempts = attempts
        prober.select.side_effect = err

        with pytest.raises(ResolutionFailed) as exc_info:
            await resolver.resolve("testprov", movie_ref)

        trail = exc_info.value.trail
        assert [p.outcome for p in trail.probes] == [
            ProbeOutcome.TIMEOUT,
            ProbeOutcome.HTTP_STATUS,
        ]
        assert "probe" in [t.stage for t in trail.timings]
        assert exc_info.value.retryable

    async def test_deadline_expired_before_decode(
        self, provider_spec, navigator, decoder, prober, movie_ref
    ) -> None:
        resolver = Resolver(
            catalog=ProviderRegistry([provider_spec]),
            navigator=navigator,
            decoder=decoder,
            expander=PlaceholderExpander(),
            prober=prober,
            deadline_seconds=0.0,
        )

        with pytest.raises(StageTimeout) as exc_info:
            await resolver.resolve("testprov", movie_ref)

        assert exc_info.value.stage == "decode"
        decoder.decode.assert_not_called()
