"""Sequential manifest prober.

Candidates are probed one at a time in rank order so the chosen URL is
always the best-ranked working one.  A candidate counts as working only
when it answers 2xx *and* its first bytes carry one of the provider's
manifest signatures: several CDNs serve 200 error pages.
"""

from __future__ import annotations

import asyncio
import time

import httpx
import structlog

from streamchain.domain.entities import (
    CandidateURL,
    Deadline,
    ProbeAttempt,
    ProbeOutcome,
    ProviderSpec,
)
from streamchain.domain.exceptions import ResolutionError, ResolutionFailed, StageTimeout
from streamchain.domain.ports.concurrency import OutboundLimiterPort
from streamchain.infrastructure.chain.headers import DEFAULT_USER_AGENT, probe_headers

log = structlog.get_logger(__name__)


def _with_attempts(err: ResolutionError, attempts: list[ProbeAttempt]) -> ResolutionError:
    err.attempts = tuple(attempts)
    return err


async def read_head(resp: httpx.Response, limit: int) -> bytes:
    """Read at most *limit* bytes of a streamed response body."""
    buf = bytearray()
    async for chunk in resp.aiter_bytes():
        buf.extend(chunk)
        if len(buf) >= limit:
            break
    return bytes(buf[:limit])


class HttpxCandidateProber:
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        limiter: OutboundLimiterPort,
        *,
        probe_timeout: float = 5.0,
        read_bytes: int = 4096,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._http = http_client
        self._limiter = limiter
        self._probe_timeout = probe_timeout
        self._read_bytes = read_bytes
        self._user_agent = user_agent

    async def _fetch_head(
        self, spec: ProviderSpec, url: str, headers: dict[str, str], timeout: float
    ) -> tuple[int, bytes | None]:
        async with self._limiter.slot(spec.id):
            async with self._http.stream(
                "GET", url, headers=headers, timeout=timeout, follow_redirects=True
            ) as resp:
                if not resp.is_success:
                    return resp.status_code, None
                return resp.status_code, await read_head(resp, self._read_bytes)

    async def probe(
        self,
        candidate: CandidateURL,
        spec: ProviderSpec,
        *,
        referer: str | None,
        timeout: float,
    ) -> ProbeAttempt:
        headers = probe_headers(
            spec.headers,
            url=candidate.url,
            referer=referer,
            default_user_agent=self._user_agent,
        )
        start = time.perf_counter()

        def _attempt(outcome: ProbeOutcome, status: int | None = None) -> ProbeAttempt:
            duration_ms = round((time.perf_counter() - start) * 1000.0, 2)
            return ProbeAttempt(candidate, outcome, status, duration_ms)

        try:
            status, head = await asyncio.wait_for(
                self._fetch_head(spec, candidate.url, headers, timeout), timeout=timeout
            )
        except (httpx.TimeoutException, asyncio.TimeoutError):
            return _attempt(ProbeOutcome.TIMEOUT)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.debug(
                "probe_transport_error",
                url=candidate.url,
                error_type=type(e).__name__,
            )
            return _attempt(ProbeOutcome.TRANSPORT_ERROR)

        if head is None:
            return _attempt(ProbeOutcome.HTTP_STATUS, status)
        if not any(sig.encode() in head for sig in spec.manifest_signatures):
            return _attempt(ProbeOutcome.SIGNATURE_MISMATCH, status)
        return _attempt(ProbeOutcome.OK, status)

    async def select(
        self,
        candidates: list[CandidateURL],
        spec: ProviderSpec,
        *,
        referer: str,
        deadline: Deadline,
    ) -> tuple[CandidateURL, list[ProbeAttempt]]:
        attempts: list[ProbeAttempt] = []
        for candidate in candidates:
            timeout = deadline.clamp(self._probe_timeout)
            if timeout <= 0:
                log.warning(
                    "probe_deadline_exceeded",
                    provider=spec.id,
                    tried=len(attempts),
                    remaining=len(candidates) - len(attempts),
                )
                raise _with_attempts(StageTimeout(spec.id, "probe"), attempts)

            attempt = await self.probe(candidate, spec, referer=referer or None, timeout=timeout)
            attempts.append(attempt)
            log.info(
                "probe_attempt",
                provider=spec.id,
                rank=candidate.rank,
                url=candidate.url,
                outcome=attempt.outcome.value,
                status=attempt.status,
                duration_ms=attempt.duration_ms,
            )
            if attempt.ok:
                return candidate, attempts

        log.warning("probe_exhausted", provider=spec.id, tried=len(attempts))
        raise _with_attempts(ResolutionFailed(spec.id, len(attempts)), attempts)
