"""Decoder table: decoder id -> tagged pipeline variant."""

from __future__ import annotations

import json
from typing import Iterable

import structlog

from streamchain.domain.entities import DecodedResolution, EncodedPayload
from streamchain.domain.exceptions import DecoderStale
from streamchain.infrastructure.decoders.builtin import BUILTIN_DECODERS
from streamchain.infrastructure.decoders.pipelines import Decoder

log = structlog.get_logger(__name__)

_URL_PREFIXES = ("http://", "https://")
_JSON_URL_FIELDS = ("file", "url")


def extract_resolution(text: str) -> str | None:
    """Validity predicate for decoder output.

    Returns the resolution string when ``text`` starts with an http(s)
    scheme, or when it is a JSON object carrying a ``file``/``url``
    string field.  Returns ``None`` for anything else.
    """
    candidate = text.strip()
    if candidate.startswith(_URL_PREFIXES):
        return candidate
    if not candidate.startswith("{"):
        return None
    try:
        data = json.loads(candidate)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    for key in _JSON_URL_FIELDS:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class DecoderRegistry:
    """Dispatches encoded payloads to registered decoder variants."""

    def __init__(self, decoders: Iterable[Decoder] | None = None) -> None:
        self._decoders: dict[str, Decoder] = {}
        for decoder in decoders or ():
            self.register(decoder)

    def register(self, decoder: Decoder) -> None:
        if decoder.decoder_id in self._decoders:
            raise ValueError(f"decoder already registered: {decoder.decoder_id}")
        self._decoders[decoder.decoder_id] = decoder
        log.debug("decoder_registered", decoder=decoder.decoder_id)

    def ids(self) -> list[str]:
        return list(self._decoders)

    def __contains__(self, decoder_id: object) -> bool:
        return decoder_id in self._decoders

    def decode(self, payload: EncodedPayload, decoder_id: str) -> DecodedResolution:
        """Run *decoder_id* over *payload*.

        Raises ``DecoderStale`` when the decoder is unknown, a primitive
        fails, or the output does not pass :func:`extract_resolution`.
        """
        decoder = self._decoders.get(decoder_id)
        if decoder is None:
            raise DecoderStale(payload.provider_id, decoder_id, "decoder not registered")

        try:
            text, variant = decoder.run(payload.raw.strip())
        except (ValueError, TypeError) as exc:
            log.warning(
                "decoder_stale",
                provider=payload.provider_id,
                decoder=decoder_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise DecoderStale(payload.provider_id, decoder_id, type(exc).__name__) from exc

        resolved = extract_resolution(text)
        if resolved is None:
            log.warning(
                "decoder_stale",
                provider=payload.provider_id,
                decoder=variant,
                error="output is not a url",
                preview=text[:40],
            )
            raise DecoderStale(payload.provider_id, variant, "output is not a url")

        log.debug(
            "payload_decoded",
            provider=payload.provider_id,
            decoder=variant,
            length=len(resolved),
        )
        return DecodedResolution(
            provider_id=payload.provider_id,
            text=resolved,
            decoder_id=variant,
            hop_url=payload.hop_url,
        )


def default_decoder_registry() -> DecoderRegistry:
    return DecoderRegistry(BUILTIN_DECODERS)
