"""Static provider configuration entities.

Pure value objects: no framework dependencies, no I/O.  A
``ProviderSpec`` describes one third-party embed site: the ordered hop
chain, the decoder pipeline id, the header policy and the CDN token
table used to expand decoded URL templates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from streamchain.domain.entities.resolution import ContentRef

# Master playlists start with #EXTM3U; some edges serve bare media playlists.
DEFAULT_MANIFEST_SIGNATURES: tuple[str, ...] = ("#EXTM3U", "#EXT-X")


class ExtractionKind(str, Enum):
    """How the next identifier is pulled out of a fetched hop body."""

    ATTRIBUTE = "attribute"
    HIDDEN_TEXT = "hidden_text"
    REGEX = "regex"


@dataclass(frozen=True)
class ExtractionRule:
    """Tagged extraction rule.

    ``attribute``   -- ``attribute`` of the first element matching ``selector``.
    ``hidden_text`` -- text of the first ``display:none`` element longer
                       than ``min_length``; its id becomes auxiliary context.
    ``regex``       -- capture ``group`` of ``pattern``.
    """

    kind: ExtractionKind
    selector: str = ""
    attribute: str = ""
    pattern: str = ""
    group: int = 1
    min_length: int = 0

    def __post_init__(self) -> None:
        if self.kind is ExtractionKind.ATTRIBUTE and not (
            self.selector and self.attribute
        ):
            raise ValueError("attribute rule needs selector and attribute")
        if self.kind is ExtractionKind.REGEX and not self.pattern:
            raise ValueError("regex rule needs a pattern")

    @classmethod
    def attr(cls, selector: str, attribute: str) -> ExtractionRule:
        return cls(ExtractionKind.ATTRIBUTE, selector=selector, attribute=attribute)

    @classmethod
    def hidden_text(cls, min_length: int = 0) -> ExtractionRule:
        return cls(ExtractionKind.HIDDEN_TEXT, min_length=min_length)

    @classmethod
    def regex(cls, pattern: str, group: int = 1) -> ExtractionRule:
        return cls(ExtractionKind.REGEX, pattern=pattern, group=group)


@dataclass(frozen=True)
class HopSpec:
    """One fetch-and-extract step of a provider chain.

    ``url_template`` is formatted with ``tmdb_id``, ``season``,
    ``episode`` and ``prev`` (the value extracted by the previous hop).
    ``tv_url_template`` replaces it for episode references when set.
    """

    url_template: str
    extract: ExtractionRule
    tv_url_template: str | None = None

    def template_for(self, ref: ContentRef) -> str:
        if ref.is_episode and self.tv_url_template:
            return self.tv_url_template
        return self.url_template


@dataclass(frozen=True)
class HeaderPolicy:
    """Browser-mirroring header rules for hop fetches and probes."""

    send_referer: bool = True
    send_origin: bool = False
    probe_referer: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class ProviderSpec:
    """Immutable description of one embed provider."""

    id: str
    hops: tuple[HopSpec, ...]
    decoder_id: str
    headers: HeaderPolicy = field(default_factory=HeaderPolicy)
    tokens: Mapping[str, tuple[str, ...]] = field(default_factory=dict, hash=False)
    manifest_signatures: tuple[str, ...] = DEFAULT_MANIFEST_SIGNATURES

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("provider id must not be empty")
        if not self.hops:
            raise ValueError(f"provider {self.id!r} needs at least one hop")
        if not self.decoder_id:
            raise ValueError(f"provider {self.id!r} needs a decoder id")
        signatures = self.manifest_signatures
        if isinstance(signatures, str):
            signatures = (signatures,)
        if not signatures or not all(signatures):
            raise ValueError(f"provider {self.id!r} needs non-empty manifest signatures")
        frozen = {k: tuple(v) for k, v in self.tokens.items()}
        object.__setattr__(self, "hops", tuple(self.hops))
        object.__setattr__(self, "manifest_signatures", tuple(signatures))
        object.__setattr__(self, "tokens", MappingProxyType(frozen))
