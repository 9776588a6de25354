"""httpx-backed chain navigator.

Walks a provider's hops strictly in order:
``INIT -> FETCH(i) -> EXTRACT(i) -> FETCH(i+1) ... -> DONE``.
Any failure stops the walk at that hop.  Nothing is retried: a rule
that no longer matches means the upstream markup changed.
"""

from __future__ import annotations

import asyncio
import time
from urllib.parse import urljoin

import httpx
import structlog

from streamchain.domain.entities import (
    ContentRef,
    Deadline,
    EncodedPayload,
    HopSpec,
    HopTrace,
    ProviderSpec,
)
from streamchain.domain.exceptions import (
    ChainBroken,
    ProviderConfigError,
    ResolutionError,
    StageTimeout,
)
from streamchain.domain.ports.concurrency import OutboundLimiterPort
from streamchain.infrastructure.chain.extraction import extract
from streamchain.infrastructure.chain.headers import DEFAULT_USER_AGENT, hop_headers

log = structlog.get_logger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000.0, 2)


def _with_hops(err: ResolutionError, traces: list[HopTrace]) -> ResolutionError:
    err.hops = tuple(traces)
    return err


class HttpxChainNavigator:
    """Fetch-and-extract walker over ``ProviderSpec.hops``."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        limiter: OutboundLimiterPort,
        *,
        hop_timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._http = http_client
        self._limiter = limiter
        self._hop_timeout = hop_timeout
        self._user_agent = user_agent

    @staticmethod
    def hop_url(
        spec: ProviderSpec,
        index: int,
        hop: HopSpec,
        ref: ContentRef,
        prev_value: str,
        prev_url: str | None,
    ) -> str:
        template = hop.template_for(ref)
        try:
            formatted = template.format(**ref.template_fields(), prev=prev_value)
        except (KeyError, IndexError, ValueError) as e:
            raise ProviderConfigError(
                f"hop {index} of {spec.id} has an invalid url template: {template!r}"
            ) from e
        return urljoin(prev_url, formatted) if prev_url else formatted

    async def _fetch(
        self, spec: ProviderSpec, url: str, headers: dict[str, str], timeout: float
    ) -> httpx.Response:
        async def _get() -> httpx.Response:
            async with self._limiter.slot(spec.id):
                return await self._http.get(
                    url, headers=headers, timeout=timeout, follow_redirects=True
                )

        # Waiting for a limiter slot counts against the hop timeout too.
        return await asyncio.wait_for(_get(), timeout=timeout)

    async def walk(
        self, spec: ProviderSpec, ref: ContentRef, deadline: Deadline
    ) -> EncodedPayload:
        traces: list[HopTrace] = []
        prev_value = ""
        prev_url: str | None = None
        context: dict[str, str] = {}

        for index, hop in enumerate(spec.hops):
            url = self.hop_url(spec, index, hop, ref, prev_value, prev_url)
            timeout = deadline.clamp(self._hop_timeout)
            if timeout <= 0:
                log.warning("chain_deadline_exceeded", provider=spec.id, hop=index)
                raise _with_hops(StageTimeout(spec.id, "chain", index), traces)

            headers = hop_headers(
                spec.headers,
                url=url,
                referer=prev_url,
                default_user_agent=self._user_agent,
            )
            start = time.perf_counter()
            try:
                resp = await self._fetch(spec, url, headers, timeout)
            except (httpx.TimeoutException, asyncio.TimeoutError):
                traces.append(HopTrace(index, url, None, _elapsed_ms(start)))
                log.warning("chain_hop_timeout", provider=spec.id, hop=index, url=url)
                raise _with_hops(StageTimeout(spec.id, "chain", index), traces) from None
            except httpx.InvalidURL as e:
                # Control characters in an extracted value end up here.
                traces.append(HopTrace(index, url, None, _elapsed_ms(start)))
                log.warning(
                    "chain_hop_invalid_url", provider=spec.id, hop=index, url=repr(url)
                )
                raise _with_hops(
                    ChainBroken(index, spec.id, "invalid_url", url), traces
                ) from e
            except httpx.HTTPError as e:
                traces.append(HopTrace(index, url, None, _elapsed_ms(start)))
                log.warning(
                    "chain_hop_transport_error",
                    provider=spec.id,
                    hop=index,
                    url=url,
                    error_type=type(e).__name__,
                )
                raise _with_hops(
                    ChainBroken(index, spec.id, "transport", url), traces
                ) from e

            traces.append(HopTrace(index, url, resp.status_code, _elapsed_ms(start)))
            if not resp.is_success:
                log.warning(
                    "chain_hop_bad_status",
                    provider=spec.id,
                    hop=index,
                    url=url,
                    status=resp.status_code,
                )
                raise _with_hops(ChainBroken(index, spec.id, "http_status", url), traces)

            extracted = extract(resp.text, hop.extract)
            if extracted is None:
                log.warning(
                    "chain_hop_no_match",
                    provider=spec.id,
                    hop=index,
                    url=url,
                    rule=hop.extract.kind.value,
                    body_length=len(resp.text),
                )
                raise _with_hops(ChainBroken(index, spec.id, "no_match", url), traces)

            log.debug(
                "chain_hop_fetched",
                provider=spec.id,
                hop=index,
                url=url,
                status=resp.status_code,
                duration_ms=traces[-1].duration_ms,
            )
            prev_value = extracted.value
            prev_url = str(resp.url)
            context = extracted.context

        return EncodedPayload(
            provider_id=spec.id,
            raw=prev_value,
            hop_index=len(spec.hops) - 1,
            hop_url=prev_url or "",
            context=context,
            hops=tuple(traces),
        )
