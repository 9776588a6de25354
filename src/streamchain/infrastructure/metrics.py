"""Zero-impact in-memory resolution metrics.

All counters are plain Python integers manipulated inside the single-threaded
async event loop, so no locks are needed.

``time.perf_counter_ns()`` is used for timing (monotonic, nanosecond
resolution, near-zero overhead).
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class ProviderStats:
    """Accumulated statistics for a single provider."""

    resolutions: int = 0
    successes: int = 0
    cache_hits: int = 0
    failures: dict[str, int] = field(default_factory=dict)
    total_duration_ns: int = 0

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable summary."""
        avg_ms = (
            round(self.total_duration_ns / self.resolutions / 1_000_000, 1)
            if self.resolutions
            else 0.0
        )
        return {
            "resolutions": self.resolutions,
            "successes": self.successes,
            "failures": sum(self.failures.values()),
            "failures_by_kind": dict(sorted(self.failures.items())),
            "cache_hits": self.cache_hits,
            "avg_duration_ms": avg_ms,
        }


@dataclass
class LookupStats:
    """Caller-level failover outcomes."""

    lookups: int = 0
    served: int = 0
    unavailable: int = 0

    def snapshot(self) -> dict[str, object]:
        return {
            "lookups": self.lookups,
            "served": self.served,
            "unavailable": self.unavailable,
        }


@dataclass
class MetricsCollector:
    """Central in-memory metrics collector."""

    _providers: dict[str, ProviderStats] = field(default_factory=dict)
    _lookups: LookupStats = field(default_factory=LookupStats)
    _start_ns: int = field(default_factory=time.perf_counter_ns)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_resolution(
        self,
        provider_id: str,
        duration_ns: int,
        *,
        success: bool,
        error_kind: str | None = None,
        cache_hit: bool = False,
    ) -> None:
        """Record one ``resolve()`` call."""
        stats = self._providers.get(provider_id)
        if stats is None:
            stats = ProviderStats()
            self._providers[provider_id] = stats

        stats.resolutions += 1
        stats.total_duration_ns += duration_ns
        if cache_hit:
            stats.cache_hits += 1

        if success:
            stats.successes += 1
        else:
            kind = error_kind or "unknown"
            stats.failures[kind] = stats.failures.get(kind, 0) + 1

    def record_lookup(self, *, success: bool) -> None:
        """Record one failover lookup across providers."""
        self._lookups.lookups += 1
        if success:
            self._lookups.served += 1
        else:
            self._lookups.unavailable += 1

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable snapshot of all metrics."""
        uptime_ns = time.perf_counter_ns() - self._start_ns
        uptime_s = round(uptime_ns / 1_000_000_000, 1)

        return {
            "uptime_seconds": uptime_s,
            "providers": {
                name: stats.snapshot() for name, stats in sorted(self._providers.items())
            },
            "lookups": self._lookups.snapshot(),
        }
