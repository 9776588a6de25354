"""Outbound HTTP concurrency limits.

Every outbound request holds one global slot plus one slot of its
provider's own pool:

    global_slots        -- total in-flight requests across all providers
    per_provider_slots  -- in-flight requests for any single provider

The provider slot is taken first, so requests queued behind a busy
provider never sit on global slots other providers could use.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class OutboundLimiter:
    """Application-level singleton bounding outbound requests.

    Parameters:
        global_slots: Total concurrent outbound requests.
        per_provider_slots: Concurrent outbound requests per provider.
    """

    def __init__(self, *, global_slots: int = 20, per_provider_slots: int = 4) -> None:
        if global_slots < 1 or per_provider_slots < 1:
            raise ValueError("limiter slots must be >= 1")
        self.global_slots = global_slots
        self.per_provider_slots = per_provider_slots
        self._global = asyncio.Semaphore(global_slots)
        self._providers: dict[str, asyncio.Semaphore] = {}
        self._in_flight: dict[str, int] = {}
        self._waiting = 0

    def _provider_semaphore(self, provider_id: str) -> asyncio.Semaphore:
        sem = self._providers.get(provider_id)
        if sem is None:
            sem = asyncio.Semaphore(self.per_provider_slots)
            self._providers[provider_id] = sem
        return sem

    @property
    def in_flight(self) -> int:
        return sum(self._in_flight.values())

    def in_flight_for(self, provider_id: str) -> int:
        return self._in_flight.get(provider_id, 0)

    @asynccontextmanager
    async def slot(self, provider_id: str) -> AsyncIterator[None]:
        """Hold one provider slot and one global slot for a single request."""
        self._waiting += 1
        try:
            await self._provider_semaphore(provider_id).acquire()
            try:
                await self._global.acquire()
            except BaseException:
                self._providers[provider_id].release()
                raise
        finally:
            self._waiting -= 1

        self._in_flight[provider_id] = self._in_flight.get(provider_id, 0) + 1
        try:
            yield
        finally:
            self._in_flight[provider_id] -= 1
            self._global.release()
            self._providers[provider_id].release()

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable utilisation summary."""
        return {
            "global_slots": self.global_slots,
            "per_provider_slots": self.per_provider_slots,
            "in_flight": self.in_flight,
            "waiting": self._waiting,
            "providers": {
                pid: count for pid, count in sorted(self._in_flight.items()) if count
            },
        }
