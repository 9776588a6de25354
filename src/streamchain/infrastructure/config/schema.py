"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class ResolverConfig(BaseModel):
    """Timeouts, cache and concurrency limits of the resolution engine.

    All values configurable via YAML (resolver section) or ENV vars.
    """

    hop_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for fetching a single hop of a provider chain.",
    )
    probe_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for probing a single candidate manifest URL.",
    )
    deadline_seconds: float = Field(
        default=30.0,
        description="Overall budget for one resolution; bounds the sum of stage timeouts.",
    )

    cache_ttl_seconds: float = Field(
        default=60.0,
        description="TTL for memoized decoded resolutions (seconds). 0 = disabled.",
    )
    cache_max_entries: int = Field(
        default=1000,
        description="Maximum number of memoized decoded resolutions.",
    )

    max_outbound_concurrency: int = Field(
        default=20,
        description="Global cap on in-flight outbound HTTP requests.",
    )
    per_provider_concurrency: int = Field(
        default=4,
        description="Cap on in-flight outbound HTTP requests per provider.",
    )

    probe_read_bytes: int = Field(
        default=4096,
        description="Bytes of each candidate body read for the manifest sniff.",
    )

    provider_priority: List[str] = Field(
        default_factory=lambda: ["vidsrc", "cloudstream"],
        description="Providers tried in order by the failover lookup.",
    )
    providers_file: Optional[Path] = Field(
        default=None,
        description="Optional YAML file with extra provider definitions.",
    )

    @field_validator("providers_file", mode="before")
    @classmethod
    def _validate_providers_file(cls, v: Any) -> Optional[Path]:
        if v is None or v == "":
            return None
        return _normalize_path(v)

    @field_validator(
        "hop_timeout_seconds", "probe_timeout_seconds", "deadline_seconds"
    )
    @classmethod
    def _validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator("cache_ttl_seconds")
    @classmethod
    def _validate_cache_ttl(cls, v: float) -> float:
        if v < 0:
            raise ValueError("cache_ttl_seconds must be >= 0")
        return v

    @field_validator(
        "max_outbound_concurrency", "per_provider_concurrency", "probe_read_bytes"
    )
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @model_validator(mode="after")
    def _validate_layering(self) -> "ResolverConfig":
        if self.probe_timeout_seconds > self.deadline_seconds:
            raise ValueError("probe_timeout_seconds must not exceed deadline_seconds")
        if self.hop_timeout_seconds > self.deadline_seconds:
            raise ValueError("hop_timeout_seconds must not exceed deadline_seconds")
        return self


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/resolver).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="streamchain", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=15.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Default httpx client timeout in seconds.",
    )
    http_user_agent: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing requests; a desktop browser UA if unset.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Resolution engine (YAML section: resolver.*)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        resolver = self.resolver.model_dump()
        if resolver["providers_file"] is not None:
            resolver["providers_file"] = str(resolver["providers_file"])
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "resolver": resolver,
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read STREAMCHAIN_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - STREAMCHAIN_ENVIRONMENT
    - STREAMCHAIN_LOG_LEVEL
    - STREAMCHAIN_RESOLVER_DEADLINE_SECONDS
    - STREAMCHAIN_RESOLVER_PROVIDER_PRIORITY='["cloudstream", "vidsrc"]'
    """

    model_config = SettingsConfigDict(
        env_prefix="STREAMCHAIN_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    resolver_hop_timeout_seconds: Optional[float] = None
    resolver_probe_timeout_seconds: Optional[float] = None
    resolver_deadline_seconds: Optional[float] = None
    resolver_cache_ttl_seconds: Optional[float] = None
    resolver_cache_max_entries: Optional[int] = None
    resolver_max_outbound_concurrency: Optional[int] = None
    resolver_per_provider_concurrency: Optional[int] = None
    resolver_probe_read_bytes: Optional[int] = None
    resolver_provider_priority: Optional[List[str]] = None
    resolver_providers_file: Optional[Path] = None

    @field_validator("resolver_providers_file", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
