"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "streamchain",
    "environment": "dev",
    "http": {
        "timeout_seconds": 15.0,
        "user_agent": None,  # Browser UA from chain.headers when unset
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "resolver": {
        "hop_timeout_seconds": 10.0,
        "probe_timeout_seconds": 5.0,
        "deadline_seconds": 30.0,
        "cache_ttl_seconds": 60.0,
        "cache_max_entries": 1000,
        "max_outbound_concurrency": 20,
        "per_provider_concurrency": 4,
        "probe_read_bytes": 4096,
        "provider_priority": ["vidsrc", "cloudstream"],
        "providers_file": None,
    },
}
