"""Browser-mirroring request headers for hop fetches and manifest probes.

Upstream edges compare ``Referer``/``Origin``/``Sec-Fetch-*`` against
what a real browser would send while navigating the embed chain, so the
headers are derived from the previous URL instead of being static.
"""

from __future__ import annotations

from urllib.parse import urlsplit

from streamchain.domain.entities import HeaderPolicy

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

_DOCUMENT_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,*/*;q=0.8"
)
_ACCEPT_LANGUAGE = "en-US,en;q=0.5"


def origin_of(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def _site_of(host: str) -> str:
    labels = host.lower().split(".")
    return ".".join(labels[-2:])


def fetch_site(url: str, referer: str | None) -> str:
    """Value of ``Sec-Fetch-Site`` for a request to *url* initiated from *referer*."""
    if not referer:
        return "none"
    target, source = urlsplit(url), urlsplit(referer)
    if (target.scheme, target.netloc) == (source.scheme, source.netloc):
        return "same-origin"
    if _site_of(target.hostname or "") == _site_of(source.hostname or ""):
        return "same-site"
    return "cross-site"


def _with_referer(
    headers: dict[str, str], policy: HeaderPolicy, referer: str | None
) -> dict[str, str]:
    if referer and policy.send_referer:
        headers["Referer"] = referer
        # Some edges reject Origin without a matching Referer, so Origin
        # is only ever added next to one.
        if policy.send_origin:
            headers["Origin"] = origin_of(referer)
    return headers


def hop_headers(
    policy: HeaderPolicy,
    *,
    url: str,
    referer: str | None,
    default_user_agent: str = DEFAULT_USER_AGENT,
) -> dict[str, str]:
    """Headers for fetching one hop; hops after the first load as iframes."""
    headers = {
        "User-Agent": policy.user_agent or default_user_agent,
        "Accept": _DOCUMENT_ACCEPT,
        "Accept-Language": _ACCEPT_LANGUAGE,
        "Sec-Fetch-Dest": "iframe" if referer else "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": fetch_site(url, referer),
        "Upgrade-Insecure-Requests": "1",
    }
    return _with_referer(headers, policy, referer)


def probe_headers(
    policy: HeaderPolicy,
    *,
    url: str,
    referer: str | None,
    default_user_agent: str = DEFAULT_USER_AGENT,
) -> dict[str, str]:
    """Headers for a player-initiated manifest request."""
    effective_referer = policy.probe_referer or referer
    headers = {
        "User-Agent": policy.user_agent or default_user_agent,
        "Accept": "*/*",
        "Accept-Language": _ACCEPT_LANGUAGE,
        "Sec-Fetch-Dest": "empty",
        "Sec-Fetch-Mode": "cors",
        "Sec-Fetch-Site": fetch_site(url, effective_referer),
    }
    return _with_referer(headers, policy, effective_referer)
