from __future__ import annotations

from copy import deepcopy
from functools import reduce
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

# section -> (flat prefix, keys); "logging.level" is "log_level" when flat.
_SECTIONS: dict[str, tuple[str, tuple[str, ...]]] = {
    "http": ("http", ("timeout_seconds", "user_agent")),
    "logging": ("log", ("level", "format")),
    "resolver": (
        "resolver",
        (
            "hop_timeout_seconds",
            "probe_timeout_seconds",
            "deadline_seconds",
            "cache_ttl_seconds",
            "cache_max_entries",
            "max_outbound_concurrency",
            "per_provider_concurrency",
            "probe_read_bytes",
            "provider_priority",
            "providers_file",
        ),
    ),
}

_FLAT_KEYS: dict[str, tuple[str, str]] = {
    f"{prefix}_{key}": (section, key)
    for section, (prefix, keys) in _SECTIONS.items()
    for key in keys
}

_TOP_LEVEL_KEYS = ("app_name", "environment")


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into ``base`` in place; nested mappings merge, the rest replaces."""
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _deep_merge(current, value)
        else:
            base[key] = value
    return base


def _normalize_layer(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Bring one layer (defaults/YAML/ENV/CLI) into the sectioned shape.

    Both ``{"resolver": {"deadline_seconds": 5}}`` and the flat
    ``{"resolver_deadline_seconds": 5}`` end up as the former.
    """
    out: dict[str, Any] = {k: data[k] for k in _TOP_LEVEL_KEYS if k in data}

    for section in _SECTIONS:
        block = data.get(section)
        if isinstance(block, Mapping):
            out[section] = dict(block)

    for flat_key, (section, key) in _FLAT_KEYS.items():
        if flat_key in data:
            out.setdefault(section, {})[key] = data[flat_key]

    return out


def _yaml_layer(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(config_path)
    parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"config YAML root must be a mapping, got {type(parsed).__name__}")
    return _normalize_layer(parsed)


def _env_layer(dotenv_path: Path | None) -> dict[str, Any]:
    # Variables already set in the process win over the .env file.
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)
    return _normalize_layer(EnvOverrides().to_update_dict())


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """
    Build the validated config from defaults < YAML < env (+ .env) < CLI.

    Reads files only; never creates them.
    """
    layers = [
        _normalize_layer(deepcopy(DEFAULT_CONFIG)),
        _yaml_layer(config_path) if config_path is not None else {},
        _env_layer(dotenv_path),
        _normalize_layer(cli_overrides or {}),
    ]
    merged = reduce(_deep_merge, layers[1:], layers[0])
    return AppConfig.model_validate(merged)
