"""Ports for the stages of a single resolution.

The application-layer ``Resolver`` only depends on these protocols;
the infrastructure layer provides the httpx/bs4/pycryptodome backed
implementations.
"""

from __future__ import annotations

from typing import Mapping, Protocol, runtime_checkable

from streamchain.domain.entities import (
    CandidateURL,
    ContentRef,
    Deadline,
    DecodedResolution,
    EncodedPayload,
    PlaceholderUnknownToken,
    ProbeAttempt,
    ProviderSpec,
)


@runtime_checkable
class ChainNavigatorPort(Protocol):
    async def walk(
        self, spec: ProviderSpec, ref: ContentRef, deadline: Deadline
    ) -> EncodedPayload:
        """Walk every hop of *spec* and return the final encoded payload.

        Raises ``ChainBroken`` or ``StageTimeout``.
        """
        ...


@runtime_checkable
class DecoderPort(Protocol):
    def decode(self, payload: EncodedPayload, decoder_id: str) -> DecodedResolution:
        """Run the pipeline registered as *decoder_id*.

        Raises ``DecoderStale``.
        """
        ...


@runtime_checkable
class ExpanderPort(Protocol):
    def expand(
        self,
        decoded: DecodedResolution,
        tokens: Mapping[str, tuple[str, ...]],
    ) -> tuple[list[CandidateURL], list[PlaceholderUnknownToken]]:
        """Expand placeholder tokens into ranked candidates."""
        ...


@runtime_checkable
class CandidateProberPort(Protocol):
    async def select(
        self,
        candidates: list[CandidateURL],
        spec: ProviderSpec,
        *,
        referer: str,
        deadline: Deadline,
    ) -> tuple[CandidateURL, list[ProbeAttempt]]:
        """Probe candidates in rank order and return the first valid one.

        Raises ``ResolutionFailed`` or ``StageTimeout``.
        """
        ...


@runtime_checkable
class DecodeCachePort(Protocol):
    def get(self, key: tuple[str, ContentRef]) -> DecodedResolution | None:
        ...

    def put(self, key: tuple[str, ContentRef], value: DecodedResolution) -> bool:
        """Store *value* unless a live entry exists. Returns True if stored."""
        ...
