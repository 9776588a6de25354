from __future__ import annotations

from .extraction import Extracted, extract, parse_html
from .headers import DEFAULT_USER_AGENT, hop_headers, probe_headers
from .navigator import HttpxChainNavigator

__all__ = [
    "DEFAULT_USER_AGENT",
    "Extracted",
    "HttpxChainNavigator",
    "extract",
    "hop_headers",
    "parse_html",
    "probe_headers",
]
