from __future__ import annotations

from .builtin import BUILTIN_PROVIDERS, CLOUDSTREAM, VIDSRC
from .loader import load_providers_file, to_provider_spec
from .registry import ProviderRegistry

__all__ = [
    "BUILTIN_PROVIDERS",
    "CLOUDSTREAM",
    "VIDSRC",
    "ProviderRegistry",
    "load_providers_file",
    "to_provider_spec",
]
