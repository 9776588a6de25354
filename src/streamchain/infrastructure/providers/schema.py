"""Pydantic validation models for the providers YAML file."""

from __future__ import annotations

import re
from string import Formatter
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from streamchain.domain.entities import DEFAULT_MANIFEST_SIGNATURES

PROVIDER_ID_RE = r"^[a-z0-9-]+$"
TEMPLATE_FIELDS = frozenset({"tmdb_id", "season", "episode", "prev"})


class ExtractionModel(BaseModel):
    kind: Literal["attribute", "hidden_text", "regex"]
    selector: Optional[str] = None
    attribute: Optional[str] = None
    pattern: Optional[str] = None
    group: int = 1
    min_length: int = 0

    @model_validator(mode="after")
    def _validate_kind(self) -> "ExtractionModel":
        if self.kind == "attribute" and not (self.selector and self.attribute):
            raise ValueError("attribute extraction requires 'selector' and 'attribute'")
        if self.kind == "regex":
            if not self.pattern:
                raise ValueError("regex extraction requires 'pattern'")
            try:
                compiled = re.compile(self.pattern)
            except re.error as e:
                raise ValueError(f"invalid regex pattern: {e}") from e
            if self.group > compiled.groups:
                raise ValueError(
                    f"group {self.group} out of range for pattern "
                    f"with {compiled.groups} groups"
                )
        if self.min_length < 0:
            raise ValueError("min_length must be >= 0")
        return self


class HopModel(BaseModel):
    url: str = Field(..., description="URL template for movie references")
    tv_url: Optional[str] = Field(default=None, description="URL template for episodes")
    extract: ExtractionModel

    @field_validator("url", "tv_url")
    @classmethod
    def _validate_template(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        # Formatter.parse raises ValueError on unbalanced braces.
        for _, field_name, _, _ in Formatter().parse(v):
            if field_name is not None and field_name not in TEMPLATE_FIELDS:
                raise ValueError(
                    f"unknown url template field {{{field_name}}}; "
                    f"allowed: {sorted(TEMPLATE_FIELDS)}"
                )
        return v


class HeaderPolicyModel(BaseModel):
    send_referer: bool = True
    send_origin: bool = False
    probe_referer: Optional[str] = None
    user_agent: Optional[str] = None


class ProviderModel(BaseModel):
    id: str = Field(..., pattern=PROVIDER_ID_RE)
    decoder: str
    hops: List[HopModel] = Field(..., min_length=1)
    headers: HeaderPolicyModel = Field(default_factory=HeaderPolicyModel)
    tokens: Dict[str, List[str]] = Field(default_factory=dict)
    manifest_signatures: List[str] = Field(
        default_factory=lambda: list(DEFAULT_MANIFEST_SIGNATURES), min_length=1
    )

    @field_validator("manifest_signatures")
    @classmethod
    def _validate_signatures(cls, v: List[str]) -> List[str]:
        if not all(v):
            raise ValueError("manifest signatures must not be empty strings")
        return v

    @field_validator("tokens")
    @classmethod
    def _validate_tokens(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        for token, domains in v.items():
            if not domains:
                raise ValueError(f"token '{token}' needs at least one domain")
        return v

    @model_validator(mode="after")
    def _validate_first_hop(self) -> "ProviderModel":
        first = self.hops[0]
        for template in (first.url, first.tv_url or ""):
            if "{prev}" in template:
                raise ValueError("the first hop has no previous value to use for {prev}")
        return self


class ProvidersFile(BaseModel):
    providers: List[ProviderModel] = Field(default_factory=list)
