"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from streamchain.application.use_cases import ProviderFailover, Resolver
from streamchain.infrastructure.cache import TtlDecodeCache
from streamchain.infrastructure.chain import DEFAULT_USER_AGENT, HttpxChainNavigator
from streamchain.infrastructure.concurrency import OutboundLimiter
from streamchain.infrastructure.config.schema import AppConfig
from streamchain.infrastructure.decoders import default_decoder_registry
from streamchain.infrastructure.metrics import MetricsCollector
from streamchain.infrastructure.placeholders import PlaceholderExpander
from streamchain.infrastructure.probing import HttpxCandidateProber
from streamchain.infrastructure.providers import (
    BUILTIN_PROVIDERS,
    ProviderRegistry,
    load_providers_file,
)
from streamchain.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ResolutionStack:
    """Everything one process needs to resolve streams."""

    limiter: OutboundLimiter
    decode_cache: TtlDecodeCache
    providers: ProviderRegistry
    resolver: Resolver
    failover: ProviderFailover


def create_http_client(config: AppConfig) -> httpx.AsyncClient:
    """Shared client; per-request headers are set by the navigator and prober."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        follow_redirects=True,
    )


def build_provider_registry(config: AppConfig, known_decoders: list[str]) -> ProviderRegistry:
    """Built-in providers plus the optional providers file.

    File entries replace built-ins with the same id.
    """
    registry = ProviderRegistry(BUILTIN_PROVIDERS, known_decoders=known_decoders)
    path = config.resolver.providers_file
    if path is not None:
        for spec in load_providers_file(path):
            registry.register(spec, replace=spec.id in registry)
    return registry


def build_resolution_stack(
    config: AppConfig,
    http_client: httpx.AsyncClient,
    metrics: MetricsCollector | None = None,
) -> ResolutionStack:
    """Wire limiter, registries, stages and use cases in dependency order."""
    rc = config.resolver
    user_agent = config.http_user_agent or DEFAULT_USER_AGENT

    limiter = OutboundLimiter(
        global_slots=rc.max_outbound_concurrency,
        per_provider_slots=rc.per_provider_concurrency,
    )
    decoders = default_decoder_registry()
    providers = build_provider_registry(config, decoders.ids())
    decode_cache = TtlDecodeCache(
        ttl_seconds=rc.cache_ttl_seconds,
        max_entries=rc.cache_max_entries,
    )

    resolver = Resolver(
        catalog=providers,
        navigator=HttpxChainNavigator(
            http_client,
            limiter,
            hop_timeout=rc.hop_timeout_seconds,
            user_agent=user_agent,
        ),
        decoder=decoders,
        expander=PlaceholderExpander(),
        prober=HttpxCandidateProber(
            http_client,
            limiter,
            probe_timeout=rc.probe_timeout_seconds,
            read_bytes=rc.probe_read_bytes,
            user_agent=user_agent,
        ),
        cache=decode_cache,
        deadline_seconds=rc.deadline_seconds,
        metrics=metrics,
    )
    failover = ProviderFailover(
        resolver,
        priority=rc.provider_priority,
        metrics=metrics,
    )
    return ResolutionStack(
        limiter=limiter,
        decode_cache=decode_cache,
        providers=providers,
        resolver=resolver,
        failover=failover,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: initialize and clean up all resources.

    Order matters:
        1. Metrics (recorded into by the use cases)
        2. HTTP client (shared by navigator and prober)
        3. Resolution stack (providers, decoders, cache, stages)
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) Metrics collector
    state.metrics = MetricsCollector()

    # 2) HTTP client
    state.http_client = create_http_client(config)
    log.info("http_client_initialized", timeout_seconds=config.http_timeout_seconds)

    # 3) Resolution stack
    stack = build_resolution_stack(config, state.http_client, state.metrics)
    state.limiter = stack.limiter
    state.decode_cache = stack.decode_cache
    state.providers = stack.providers
    state.resolver = stack.resolver
    state.failover = stack.failover
    log.info(
        "resolver_initialized",
        providers=stack.providers.ids(),
        priority=config.resolver.provider_priority,
        deadline_seconds=config.resolver.deadline_seconds,
        cache_enabled=stack.decode_cache.enabled,
    )

    log.info("app_startup_complete")

    try:
        yield
    finally:
        state.decode_cache.clear()

        await state.http_client.aclose()
        log.info("http_client_closed")

        log.info("app_shutdown_complete")
