"""Tests for provider definitions, the YAML loader and ProviderRegistry."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from streamchain.domain.entities import ExtractionKind
from streamchain.domain.exceptions import ProviderConfigError, ProviderNotFound
from streamchain.infrastructure.decoders import default_decoder_registry
from streamchain.infrastructure.providers import (
    BUILTIN_PROVIDERS,
    CLOUDSTREAM,
    VIDSRC,
    ProviderRegistry,
    load_providers_file,
)

_PROVIDER = {
    "id": "moviesapi",
    "decoder": "identity",
    "hops": [
        {
            "url": "https://moviesapi.test/movie/{tmdb_id}",
            "tv_url": "https://moviesapi.test/tv/{tmdb_id}-{season}-{episode}",
            "extract": {"kind": "regex", "pattern": r"file:\s*'([^']+)'"},
        }
    ],
    "headers": {"send_origin": True, "probe_referer": "https://moviesapi.test/"},
    "tokens": {"v1": ["a.test", "b.test"]},
}


def _write(tmp_path: Path, data: object) -> Path:
    path = tmp_path / "providers.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestBuiltins:
    def test_ids(self) -> None:
        assert [p.id for p in BUILTIN_PROVIDERS] == ["vidsrc", "cloudstream"]

    def test_decoders_exist(self) -> None:
        decoders = default_decoder_registry()
        for spec in BUILTIN_PROVIDERS:
            assert spec.decoder_id in decoders

    def test_three_hops_ending_in_hidden_payload(self) -> None:
        for spec in (VIDSRC, CLOUDSTREAM):
            assert len(spec.hops) == 3
            assert spec.hops[-1].extract.kind is ExtractionKind.HIDDEN_TEXT

    def test_token_table(self) -> None:
        assert VIDSRC.tokens["v1"] == ("shadowlandschronicles.com",)
        assert set(VIDSRC.tokens) == {"v1", "v2", "v3", "v4", "s1", "s2", "s3", "s4"}


class TestLoader:
    def test_loads_valid_file(self, tmp_path: Path) -> None:
        (spec,) = load_providers_file(_write(tmp_path, {"providers": [_PROVIDER]}))
        assert spec.id == "moviesapi"
        assert spec.decoder_id == "identity"
        assert spec.hops[0].tv_url_template.endswith("{episode}")
        assert spec.hops[0].extract.kind is ExtractionKind.REGEX
        assert spec.headers.send_origin
        assert spec.tokens["v1"] == ("a.test", "b.test")
        assert spec.manifest_signatures == ("#EXTM3U", "#EXT-X")

    def test_custom_manifest_signatures(self, tmp_path: Path) -> None:
        data = {"providers": [{**_PROVIDER, "manifest_signatures": ["<MPD"]}]}
        (spec,) = load_providers_file(_write(tmp_path, data))
        assert spec.manifest_signatures == ("<MPD",)

    def test_literal_braces_allowed_in_template(self, tmp_path: Path) -> None:
        hop = {**_PROVIDER["hops"][0], "url": "https://moviesapi.test/{{raw}}/{tmdb_id}"}
        data = {"providers": [{**_PROVIDER, "hops": [hop]}]}
        (spec,) = load_providers_file(_write(tmp_path, data))
        assert spec.hops[0].url_template == "https://moviesapi.test/{{raw}}/{tmdb_id}"

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "providers.yaml"
        path.write_text("", encoding="utf-8")
        assert load_providers_file(path) == []

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ProviderConfigError):
            load_providers_file(tmp_path / "missing.yaml")

    def test_root_must_be_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ProviderConfigError):
            load_providers_file(_write(tmp_path, ["not", "a", "mapping"]))

    @pytest.mark.parametrize(
        "patch",
        [
            {"id": "Bad Id"},
            {"hops": []},
            {"tokens": {"v1": []}},
            {"hops": [{"url": "{prev}", "extract": {"kind": "hidden_text"}}]},
            {"hops": [{"url": "https://x.test", "extract": {"kind": "regex", "pattern": "("}}]},
            {"hops": [{"url": "https://x.test", "extract": {"kind": "regex", "pattern": "x"}}]},
            {"hops": [{"url": "https://x.test", "extract": {"kind": "attribute", "selector": "a"}}]},
            {"hops": [{"url": "https://x.test/{imdb_id}", "extract": {"kind": "hidden_text"}}]},
            {"hops": [{"url": "https://x.test/{tmdb_id", "extract": {"kind": "hidden_text"}}]},
            {"hops": [{"url": "https://x.test/m", "tv_url": "https://x.test/{show}", "extract": {"kind": "hidden_text"}}]},
            {"manifest_signatures": []},
            {"manifest_signatures": [""]},
        ],
    )
    def test_invalid_definitions(self, tmp_path: Path, patch: dict) -> None:
        data = {"providers": [{**_PROVIDER, **patch}]}
        with pytest.raises(ProviderConfigError):
            load_providers_file(_write(tmp_path, data))


class TestProviderRegistry:
    def test_get_and_ids(self) -> None:
        registry = ProviderRegistry(BUILTIN_PROVIDERS)
        assert registry.get("vidsrc") is VIDSRC
        assert registry.ids() == ["vidsrc", "cloudstream"]
        assert "cloudstream" in registry
        assert len(registry) == 2

    def test_unknown_provider(self) -> None:
        with pytest.raises(ProviderNotFound) as exc_info:
            ProviderRegistry(BUILTIN_PROVIDERS).get("nope")
        assert exc_info.value.provider_id == "nope"

    def test_duplicate_rejected_unless_replacing(self) -> None:
        registry = ProviderRegistry(BUILTIN_PROVIDERS)
        with pytest.raises(ProviderConfigError):
            registry.register(VIDSRC)
        registry.register(VIDSRC, replace=True)
        assert registry.ids() == ["vidsrc", "cloudstream"]

    def test_unknown_decoder_rejected(self, tmp_path: Path) -> None:
        (spec,) = load_providers_file(
            _write(tmp_path, {"providers": [{**_PROVIDER, "decoder": "wasm"}]})
        )
        registry = ProviderRegistry(known_decoders=default_decoder_registry().ids())
        with pytest.raises(ProviderConfigError):
            registry.register(spec)
