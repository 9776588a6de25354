"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from streamchain.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from streamchain.application.use_cases import ProviderFailover, Resolver
    from streamchain.infrastructure.cache import TtlDecodeCache
    from streamchain.infrastructure.concurrency import OutboundLimiter
    from streamchain.infrastructure.metrics import MetricsCollector
    from streamchain.infrastructure.providers import ProviderRegistry


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient
    limiter: OutboundLimiter
    decode_cache: TtlDecodeCache

    # Static provider table
    providers: ProviderRegistry

    # Application services
    resolver: Resolver
    failover: ProviderFailover

    # Metrics (zero-impact in-memory counters)
    metrics: MetricsCollector
