from .concurrency import OutboundLimiterPort
from .provider_catalog import ProviderCatalogPort
from .resolution import (
    CandidateProberPort,
    ChainNavigatorPort,
    DecodeCachePort,
    DecoderPort,
    ExpanderPort,
)
from .resolver import StreamResolverPort

__all__ = [
    "CandidateProberPort",
    "ChainNavigatorPort",
    "DecodeCachePort",
    "DecoderPort",
    "ExpanderPort",
    "OutboundLimiterPort",
    "ProviderCatalogPort",
    "StreamResolverPort",
]
