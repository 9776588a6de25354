"""Provider specs shipped with the package.

Both providers reach the same cloudnestra player through different
entry points: ``vidsrc`` follows the embed page's iframe, while
``cloudstream`` reads the ``data-hash`` attribute and builds the rcp
URL itself.
"""

from __future__ import annotations

from streamchain.domain.entities import ExtractionRule, HeaderPolicy, HopSpec, ProviderSpec

EMBED_BASE = "https://vidsrc-embed.ru/embed"
PLAYER_BASE = "https://cloudnestra.com"

# Decoded cloudnestra URLs carry {vN}/{sN} host placeholders.
CLOUDNESTRA_TOKENS: dict[str, tuple[str, ...]] = {
    "v1": ("shadowlandschronicles.com",),
    "v2": ("shadowlandschronicles.net",),
    "v3": ("shadowlandschronicles.io",),
    "v4": ("shadowlandschronicles.org",),
    "s1": ("com",),
    "s2": ("net",),
    "s3": ("io",),
    "s4": ("org",),
}

CLOUDNESTRA_HEADERS = HeaderPolicy(
    send_referer=True,
    send_origin=False,
    probe_referer=f"{PLAYER_BASE}/",
)

_PLAYER_PATH = r"""['"](/(?:prorcp|srcrcp)/[A-Za-z0-9+/=_\-]+)['"]"""
_HIDDEN_PAYLOAD = ExtractionRule.hidden_text(min_length=100)

VIDSRC = ProviderSpec(
    id="vidsrc",
    hops=(
        HopSpec(
            url_template=EMBED_BASE + "/movie/{tmdb_id}",
            tv_url_template=EMBED_BASE + "/tv/{tmdb_id}/{season}/{episode}",
            extract=ExtractionRule.regex(
                r"""<iframe[^>]*?\ssrc=["']([^"']*cloudnestra\.com/rcp/[^"']+)["']"""
            ),
        ),
        HopSpec(url_template="{prev}", extract=ExtractionRule.regex(_PLAYER_PATH)),
        HopSpec(url_template="{prev}", extract=_HIDDEN_PAYLOAD),
    ),
    decoder_id="cloudnestra",
    headers=CLOUDNESTRA_HEADERS,
    tokens=CLOUDNESTRA_TOKENS,
)

CLOUDSTREAM = ProviderSpec(
    id="cloudstream",
    hops=(
        HopSpec(
            url_template=EMBED_BASE + "/movie/{tmdb_id}",
            tv_url_template=EMBED_BASE + "/tv/{tmdb_id}/{season}/{episode}",
            extract=ExtractionRule.attr("[data-hash]", "data-hash"),
        ),
        HopSpec(
            url_template=PLAYER_BASE + "/rcp/{prev}",
            extract=ExtractionRule.regex(r"/prorcp/([A-Za-z0-9+/=_\-]+)"),
        ),
        HopSpec(url_template=PLAYER_BASE + "/prorcp/{prev}", extract=_HIDDEN_PAYLOAD),
    ),
    decoder_id="cloudnestra",
    headers=CLOUDNESTRA_HEADERS,
    tokens=CLOUDNESTRA_TOKENS,
)

BUILTIN_PROVIDERS: tuple[ProviderSpec, ...] = (VIDSRC, CLOUDSTREAM)
