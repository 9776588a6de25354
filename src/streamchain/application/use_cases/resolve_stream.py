"""Single-provider stream resolution use case.

(provider_id, ContentRef) -> decode cache or chain walk -> decode
-> placeholder expansion -> sequential probe -> ResolutionResult.
"""

from __future__ import annotations

import time
from typing import Protocol

import structlog

from streamchain.domain.entities import (
    ContentRef,
    Deadline,
    DecodedResolution,
    ProviderSpec,
    ResolutionResult,
    ResolutionTrail,
)
from streamchain.domain.exceptions import (
    ProviderNotFound,
    ResolutionError,
    StageTimeout,
)
from streamchain.domain.ports import (
    CandidateProberPort,
    ChainNavigatorPort,
    DecodeCachePort,
    DecoderPort,
    ExpanderPort,
    ProviderCatalogPort,
)

log = structlog.get_logger(__name__)


class _MetricsRecorder(Protocol):
    """Records per-provider resolution outcomes."""

    def record_resolution(
        self,
        provider_id: str,
        duration_ns: int,
        *,
        success: bool,
        error_kind: str | None = None,
        cache_hit: bool = False,
    ) -> None: ...


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class Resolver:
    """Orchestrates one resolution end to end.

    Each call is strictly sequential.  Every stage raises one typed
    ``ResolutionError``; the resolver never converts or suppresses
    them, it only attaches the diagnostic trail before re-raising.
    """

    def __init__(
        self,
        *,
        catalog: ProviderCatalogPort,
        navigator: ChainNavigatorPort,
        decoder: DecoderPort,
        expander: ExpanderPort,
        prober: CandidateProberPort,
        cache: DecodeCachePort | None = None,
        deadline_seconds: float = 30.0,
        metrics: _MetricsRecorder | None = None,
    ) -> None:
        self._catalog = catalog
        self._navigator = navigator
        self._decoder = decoder
        self._expander = expander
        self._prober = prober
        self._cache = cache
        self._deadline_seconds = deadline_seconds
        self._metrics = metrics

    def provider_ids(self) -> list[str]:
        return self._catalog.ids()

    async def resolve(self, provider_id: str, ref: ContentRef) -> ResolutionResult:
        """Resolve *ref* through *provider_id* into a probed manifest URL.

        Raises:
            ProviderNotFound: *provider_id* is not registered.
            ChainBroken: a hop failed or its rule matched nothing.
            DecoderStale: the payload no longer decodes.
            ResolutionFailed: every candidate failed its probe.
            StageTimeout: a stage timeout or the deadline expired.
        """
        trail = ResolutionTrail(provider_id=provider_id, content_ref=ref)
        try:
            spec = self._catalog.get(provider_id)
        except ProviderNotFound as exc:
            exc.with_trail(trail)
            raise

        deadline = Deadline(self._deadline_seconds)
        started_ns = time.perf_counter_ns()

        log.info("resolution_started", provider=provider_id, content=str(ref))
        try:
            result = await self._run(spec, ref, trail, deadline)
        except ResolutionError as exc:
            trail.hops.extend(h for h in exc.hops if h not in trail.hops)
            trail.probes.extend(a for a in exc.attempts if a not in trail.probes)
            exc.with_trail(trail)
            self._record(provider_id, started_ns, trail, error=exc)
            log.warning(
                "resolution_failed",
                provider=provider_id,
                content=str(ref),
                error=type(exc).__name__,
                detail=str(exc),
                retryable=exc.retryable,
                trail=trail.as_dict(),
            )
            raise

        self._record(provider_id, started_ns, trail)
        log.info(
            "resolution_succeeded",
            provider=provider_id,
            content=str(ref),
            url=result.url,
            rank=result.chosen.rank,
            cache_hit=trail.cache_hit,
            fallbacks=len(result.fallback_urls),
        )
        return result

    async def _decoded(
        self,
        spec: ProviderSpec,
        ref: ContentRef,
        trail: ResolutionTrail,
        deadline: Deadline,
    ) -> DecodedResolution:
        provider_id = spec.id
        key = (provider_id, ref)
        if self._cache is not None:
            cached = self._cache.get(key)
            if cached is not None:
                trail.cache_hit = True
                trail.decoder_id = cached.decoder_id
                log.debug("decode_cache_hit", provider=provider_id, content=str(ref))
                return cached

        start = time.perf_counter()
        payload = await self._navigator.walk(spec, ref, deadline)
        trail.hops.extend(payload.hops)
        trail.add_timing("chain", _elapsed_ms(start))

        if deadline.expired:
            raise StageTimeout(provider_id, "decode")

        trail.decoder_id = spec.decoder_id
        start = time.perf_counter()
        decoded = self._decoder.decode(payload, spec.decoder_id)
        trail.decoder_id = decoded.decoder_id
        trail.add_timing("decode", _elapsed_ms(start))

        if self._cache is not None:
            self._cache.put(key, decoded)
        return decoded

    async def _run(
        self,
        spec: ProviderSpec,
        ref: ContentRef,
        trail: ResolutionTrail,
        deadline: Deadline,
    ) -> ResolutionResult:
        decoded = await self._decoded(spec, ref, trail, deadline)

        start = time.perf_counter()
        candidates, notices = self._expander.expand(decoded, spec.tokens)
        trail.unknown_tokens.extend(notices)
        trail.add_timing("expand", _elapsed_ms(start))

        start = time.perf_counter()
        try:
            chosen, attempts = await self._prober.select(
                candidates, spec, referer=decoded.hop_url, deadline=deadline
            )
        finally:
            trail.add_timing("probe", _elapsed_ms(start))
        trail.probes.extend(attempts)

        fallback_urls = tuple(c.url for c in candidates if c.rank > chosen.rank)
        return ResolutionResult(
            url=chosen.url,
            provider_id=spec.id,
            chosen=chosen,
            fallback_urls=fallback_urls,
            decoder_id=decoded.decoder_id,
            trail=trail,
        )

    def _record(
        self,
        provider_id: str,
        started_ns: int,
        trail: ResolutionTrail,
        *,
        error: ResolutionError | None = None,
    ) -> None:
        if self._metrics is None:
            return
        self._metrics.record_resolution(
            provider_id,
            time.perf_counter_ns() - started_ns,
            success=error is None,
            error_kind=None if error is None else type(error).__name__,
            cache_hit=trail.cache_hit,
        )
