"""Per-resolution entities.

Created for one ``resolve()`` call and discarded afterwards (except
``DecodedResolution``, which may be memoized for a short TTL).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

MediaType = Literal["movie", "tv"]


@dataclass(frozen=True)
class ContentRef:
    """Reference to a movie or a single TV episode by TMDB id."""

    tmdb_id: str
    media_type: MediaType = "movie"
    season: int | None = None
    episode: int | None = None

    def __post_init__(self) -> None:
        if not self.tmdb_id:
            raise ValueError("tmdb_id must not be empty")
        if self.media_type not in ("movie", "tv"):
            raise ValueError(f"unsupported media type: {self.media_type!r}")
        if self.media_type == "tv" and (self.season is None or self.episode is None):
            raise ValueError("tv references need season and episode")
        if self.media_type == "movie" and (
            self.season is not None or self.episode is not None
        ):
            raise ValueError("movie references take no season/episode")

    @property
    def is_episode(self) -> bool:
        return self.media_type == "tv"

    def template_fields(self) -> dict[str, str]:
        return {
            "tmdb_id": self.tmdb_id,
            "season": "" if self.season is None else str(self.season),
            "episode": "" if self.episode is None else str(self.episode),
        }

    def __str__(self) -> str:
        if self.is_episode:
            return f"tv:{self.tmdb_id}:{self.season}:{self.episode}"
        return f"movie:{self.tmdb_id}"


@dataclass(frozen=True)
class HopTrace:
    """Diagnostic record of one fetched hop."""

    index: int
    url: str
    status: int | None
    duration_ms: float


@dataclass(frozen=True)
class EncodedPayload:
    """Raw string extracted from the last hop of a chain."""

    provider_id: str
    raw: str
    hop_index: int
    hop_url: str
    context: dict[str, str] = field(default_factory=dict, hash=False)
    hops: tuple[HopTrace, ...] = ()


@dataclass(frozen=True)
class DecodedResolution:
    """Decoder output: a URL template, possibly with tokens and alternatives."""

    provider_id: str
    text: str
    decoder_id: str
    # URL of the hop the payload came from; default probe Referer.
    hop_url: str = ""


@dataclass(frozen=True)
class Substitution:
    """One token replacement that contributed to a candidate."""

    token: str
    value: str
    literal: bool = False


@dataclass(frozen=True)
class CandidateURL:
    """A concrete, fully substituted URL considered for playback."""

    url: str
    rank: int
    alternative: int = 0
    substitutions: tuple[Substitution, ...] = ()


@dataclass(frozen=True)
class PlaceholderUnknownToken:
    """Notice for a token missing from the provider's table.

    Never raised: expansion degrades to a literal substitution of the
    token's inner text and records this notice on the trail.
    """

    token: str


class ProbeOutcome(str, Enum):
    OK = "ok"
    HTTP_STATUS = "http_status"
    SIGNATURE_MISMATCH = "signature_mismatch"
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class ProbeAttempt:
    """Result of probing one candidate."""

    candidate: CandidateURL
    outcome: ProbeOutcome
    status: int | None = None
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.outcome is ProbeOutcome.OK


@dataclass(frozen=True)
class StageTiming:
    stage: str
    duration_ms: float


@dataclass
class ResolutionTrail:
    """Mutable diagnostic trail accumulated while a resolution runs.

    Attached to every ``ResolutionResult`` and every ``ResolutionError``.
    """

    provider_id: str
    content_ref: ContentRef | None = None
    hops: list[HopTrace] = field(default_factory=list)
    decoder_id: str | None = None
    probes: list[ProbeAttempt] = field(default_factory=list)
    timings: list[StageTiming] = field(default_factory=list)
    unknown_tokens: list[PlaceholderUnknownToken] = field(default_factory=list)
    cache_hit: bool = False

    def add_timing(self, stage: str, duration_ms: float) -> None:
        self.timings.append(StageTiming(stage=stage, duration_ms=round(duration_ms, 2)))

    def as_dict(self) -> dict[str, object]:
        """JSON-serializable view for logs and debug output."""
        return {
            "provider": self.provider_id,
            "content": str(self.content_ref) if self.content_ref else None,
            "hops": [
                {"index": h.index, "url": h.url, "status": h.status}
                for h in self.hops
            ],
            "decoder": self.decoder_id,
            "probes": [
                {
                    "url": p.candidate.url,
                    "rank": p.candidate.rank,
                    "outcome": p.outcome.value,
                    "status": p.status,
                }
                for p in self.probes
            ],
            "timings": {t.stage: t.duration_ms for t in self.timings},
            "unknown_tokens": [n.token for n in self.unknown_tokens],
            "cache_hit": self.cache_hit,
        }


@dataclass(frozen=True)
class ResolutionResult:
    """A probed-and-validated manifest URL plus its diagnostic trail."""

    url: str
    provider_id: str
    chosen: CandidateURL
    fallback_urls: tuple[str, ...] = ()
    decoder_id: str = ""
    trail: ResolutionTrail | None = field(default=None, compare=False, hash=False)
