"""Port for looking up static provider configuration."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from streamchain.domain.entities.provider import ProviderSpec


@runtime_checkable
class ProviderCatalogPort(Protocol):
    """Read-only, process-wide table of provider specs."""

    def get(self, provider_id: str) -> ProviderSpec:
        """Return the ``ProviderSpec`` for *provider_id*.

        Raises ``ProviderNotFound`` for unknown ids.
        """
        ...

    def ids(self) -> list[str]:
        """Return all registered provider ids in registration order."""
        ...
