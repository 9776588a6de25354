"""Outbound concurrency limiting port."""

from __future__ import annotations

from typing import AsyncContextManager, Protocol, runtime_checkable


@runtime_checkable
class OutboundLimiterPort(Protocol):
    """Bounds outbound HTTP requests globally and per provider.

    ``slot(provider_id)`` is an async context manager held for the
    duration of exactly one outbound request.
    """

    def slot(self, provider_id: str) -> AsyncContextManager[None]:
        ...
