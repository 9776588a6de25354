"""In-memory provider catalog."""

from __future__ import annotations

from typing import Collection, Iterable

import structlog

from streamchain.domain.entities import ProviderSpec
from streamchain.domain.exceptions import ProviderConfigError, ProviderNotFound

log = structlog.get_logger(__name__)


class ProviderRegistry:
    """Immutable-after-startup table of provider specs.

    When *known_decoders* is given, every registered spec must name one
    of them, so a typo in a providers file fails at startup instead of
    surfacing as ``DecoderStale`` on the first request.
    """

    def __init__(
        self,
        specs: Iterable[ProviderSpec] | None = None,
        *,
        known_decoders: Collection[str] | None = None,
    ) -> None:
        self._specs: dict[str, ProviderSpec] = {}
        self._known_decoders = known_decoders
        for spec in specs or ():
            self.register(spec)

    def register(self, spec: ProviderSpec, *, replace: bool = False) -> None:
        if spec.id in self._specs and not replace:
            raise ProviderConfigError(f"provider already registered: {spec.id}")
        if self._known_decoders is not None and spec.decoder_id not in self._known_decoders:
            raise ProviderConfigError(
                f"provider {spec.id} references unknown decoder {spec.decoder_id}"
            )
        self._specs[spec.id] = spec
        log.debug(
            "provider_registered",
            provider=spec.id,
            hops=len(spec.hops),
            decoder=spec.decoder_id,
        )

    def get(self, provider_id: str) -> ProviderSpec:
        try:
            return self._specs[provider_id]
        except KeyError:
            raise ProviderNotFound(provider_id) from None

    def ids(self) -> list[str]:
        return list(self._specs)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._specs

    def __len__(self) -> int:
        return len(self._specs)
