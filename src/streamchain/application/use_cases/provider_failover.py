"""Caller-facing failover across providers.

Tries providers in priority order and collapses the typed resolution
errors into one generic outcome.  Decode and crypto details stay in
the logs; callers only ever see "source unavailable".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence

import structlog

from streamchain.domain.entities import ContentRef
from streamchain.domain.exceptions import ProviderNotFound, ResolutionError
from streamchain.domain.ports import StreamResolverPort

log = structlog.get_logger(__name__)

SOURCE_UNAVAILABLE = "source unavailable"


class _LookupRecorder(Protocol):
    def record_lookup(self, *, success: bool) -> None: ...


@dataclass(frozen=True)
class StreamLookup:
    """Outcome of a failover lookup."""

    success: bool
    url: str | None = None
    fallback_urls: tuple[str, ...] = ()
    provider: str | None = None
    error: str | None = None
    retryable: bool = False
    # Provider ids tried, in order.
    tried: tuple[str, ...] = field(default=())

    def to_payload(self) -> dict[str, object]:
        if self.success:
            return {
                "success": True,
                "url": self.url,
                "fallbackUrls": list(self.fallback_urls),
                "provider": self.provider,
            }
        return {"success": False, "error": self.error or SOURCE_UNAVAILABLE}


class ProviderFailover:
    """Resolve through the first provider that yields a playable manifest."""

    def __init__(
        self,
        resolver: StreamResolverPort,
        *,
        priority: Sequence[str] = (),
        metrics: _LookupRecorder | None = None,
    ) -> None:
        self._resolver = resolver
        self._priority = tuple(priority)
        self._metrics = metrics

    def order(self, providers: Sequence[str] | None = None) -> list[str]:
        """Provider ids to try.

        An explicit list is used as given.  Otherwise the configured
        priority comes first, followed by any other registered provider.
        """
        if providers:
            return list(providers)
        known = self._resolver.provider_ids()
        ordered = [p for p in self._priority if p in known]
        ordered.extend(p for p in known if p not in ordered)
        return ordered

    async def lookup(
        self,
        ref: ContentRef,
        providers: Sequence[str] | None = None,
    ) -> StreamLookup:
        """Try providers in order; raise ``ProviderNotFound`` only for an explicit unknown id."""
        order = self.order(providers)
        tried: list[str] = []
        failures: list[ResolutionError] = []

        for provider_id in order:
            tried.append(provider_id)
            try:
                result = await self._resolver.resolve(provider_id, ref)
            except ProviderNotFound:
                raise
            except ResolutionError as exc:
                failures.append(exc)
                log.info(
                    "failover_provider_failed",
                    provider=provider_id,
                    content=str(ref),
                    error=type(exc).__name__,
                    retryable=exc.retryable,
                )
                continue

            self._record(success=True)
            return StreamLookup(
                success=True,
                url=result.url,
                fallback_urls=result.fallback_urls,
                provider=result.provider_id,
                tried=tuple(tried),
            )

        retryable = bool(failures) and all(f.retryable for f in failures)
        log.warning(
            "failover_exhausted",
            content=str(ref),
            tried=tried,
            retryable=retryable,
        )
        self._record(success=False)
        return StreamLookup(
            success=False,
            error=SOURCE_UNAVAILABLE,
            retryable=retryable,
            tried=tuple(tried),
        )

    def _record(self, *, success: bool) -> None:
        if self._metrics is not None:
            self._metrics.record_lookup(success=success)
