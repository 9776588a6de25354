"""Port for the top-level resolution entry point."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from streamchain.domain.entities import ContentRef, ResolutionResult


@runtime_checkable
class StreamResolverPort(Protocol):
    """Turns ``(provider_id, ContentRef)`` into a probed manifest URL."""

    async def resolve(self, provider_id: str, ref: ContentRef) -> ResolutionResult:
        """Raise a ``ResolutionError`` subclass on any failure."""
        ...

    def provider_ids(self) -> list[str]:
        ...
