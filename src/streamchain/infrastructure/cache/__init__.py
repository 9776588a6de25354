from __future__ import annotations

from .decode_cache import CacheKey, TtlDecodeCache

__all__ = ["CacheKey", "TtlDecodeCache"]
