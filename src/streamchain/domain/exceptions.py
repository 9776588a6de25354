"""Typed resolution errors.

Every stage raises exactly one of these; none of them is swallowed on
the way up.  The orchestrator attaches the diagnostic trail before the
error leaves ``Resolver.resolve()``.
"""

from __future__ import annotations

from streamchain.domain.entities.resolution import (
    HopTrace,
    ProbeAttempt,
    ResolutionTrail,
)


class ResolutionError(Exception):
    """Base class for all resolution failures."""

    #: Whether a caller may retry after backoff.
    retryable: bool = False

    def __init__(self, provider_id: str, message: str = "") -> None:
        super().__init__(message or self.__class__.__name__)
        self.provider_id = provider_id
        self.trail: ResolutionTrail | None = None
        # Partial diagnostics recorded by the stage that raised.
        self.hops: tuple[HopTrace, ...] = ()
        self.attempts: tuple[ProbeAttempt, ...] = ()

    def with_trail(self, trail: ResolutionTrail) -> ResolutionError:
        self.trail = trail
        return self


class ProviderNotFound(ResolutionError):
    """Raised when a provider id is not registered."""

    def __init__(self, provider_id: str) -> None:
        super().__init__(provider_id, f"unknown provider: {provider_id}")


class ChainBroken(ResolutionError):
    """A hop returned non-2xx, failed in transport, or its rule matched nothing.

    Signals that the upstream markup or routing changed; needs a rule
    update, not a retry.
    """

    def __init__(
        self,
        hop_index: int,
        provider_id: str,
        reason: str = "no_match",
        url: str = "",
    ) -> None:
        super().__init__(
            provider_id,
            f"chain broken at hop {hop_index} of {provider_id}: {reason}",
        )
        self.hop_index = hop_index
        self.reason = reason
        self.url = url


class DecoderStale(ResolutionError):
    """The payload no longer decodes into a valid resolution."""

    def __init__(self, provider_id: str, decoder_id: str, detail: str = "") -> None:
        msg = f"decoder {decoder_id} stale for {provider_id}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(provider_id, msg)
        self.decoder_id = decoder_id
        self.detail = detail


class ResolutionFailed(ResolutionError):
    """Every candidate was probed and none served a valid manifest."""

    retryable = True

    def __init__(self, provider_id: str, tried_count: int) -> None:
        super().__init__(
            provider_id,
            f"no working candidate for {provider_id} ({tried_count} tried)",
        )
        self.tried_count = tried_count


class StageTimeout(ResolutionError):
    """A hop timeout or the overall deadline expired inside ``stage``."""

    retryable = True

    def __init__(
        self,
        provider_id: str,
        stage: str,
        hop_index: int | None = None,
    ) -> None:
        where = stage if hop_index is None else f"{stage} (hop {hop_index})"
        super().__init__(provider_id, f"timeout in {where} for {provider_id}")
        self.stage = stage
        self.hop_index = hop_index


class ProviderConfigError(Exception):
    """A provider definition is malformed or references an unknown decoder."""
