from .provider_failover import SOURCE_UNAVAILABLE, ProviderFailover, StreamLookup
from .resolve_stream import Resolver

__all__ = ["SOURCE_UNAVAILABLE", "ProviderFailover", "Resolver", "StreamLookup"]
