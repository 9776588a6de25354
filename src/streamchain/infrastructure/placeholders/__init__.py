from __future__ import annotations

from .expander import (
    ALTERNATIVE_SEPARATOR,
    PlaceholderExpander,
    discover_tokens,
    split_alternatives,
)

__all__ = [
    "ALTERNATIVE_SEPARATOR",
    "PlaceholderExpander",
    "discover_tokens",
    "split_alternatives",
]
