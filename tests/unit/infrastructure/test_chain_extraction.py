"""Tests for hop extraction rules and browser-mirroring headers."""

from __future__ import annotations

from streamchain.domain.entities import ExtractionRule, HeaderPolicy
from streamchain.infrastructure.chain import extract, hop_headers, probe_headers
from streamchain.infrastructure.chain.headers import fetch_site, origin_of

_PAYLOAD = "eqqmp://" + "x" * 120

_PLAYER_PAGE = f"""
<html><body>
  <div id="player_parent" data-hash="NjQ5ZTE2" data-i="550"></div>
  <div id="visible" style="color: red">visible text that is long enough to qualify</div>
  <div id="short" style="display:none">tiny</div>
  <div id="xTyBxQyGTA" style="display: none;">{_PAYLOAD}</div>
  <script>var src = '/prorcp/ZGVmZ2hp&amp;x';</script>
</body></html>
"""


class TestExtract:
    def test_attribute(self) -> None:
        result = extract(_PLAYER_PAGE, ExtractionRule.attr("[data-hash]", "data-hash"))
        assert result is not None
        assert result.value == "NjQ5ZTE2"
        assert result.context == {}

    def test_attribute_missing(self) -> None:
        assert extract(_PLAYER_PAGE, ExtractionRule.attr("iframe", "src")) is None

    def test_hidden_text_skips_short_and_visible(self) -> None:
        result = extract(_PLAYER_PAGE, ExtractionRule.hidden_text(min_length=100))
        assert result is not None
        assert result.value == _PAYLOAD
        assert result.context == {"element_id": "xTyBxQyGTA"}

    def test_hidden_text_none_long_enough(self) -> None:
        assert extract(_PLAYER_PAGE, ExtractionRule.hidden_text(min_length=500)) is None

    def test_regex_group_unescaped(self) -> None:
        result = extract(_PLAYER_PAGE, ExtractionRule.regex(r"'(/prorcp/[^']+)'"))
        assert result is not None
        assert result.value == "/prorcp/ZGVmZ2hp&x"

    def test_regex_no_match(self) -> None:
        assert extract("<html></html>", ExtractionRule.regex(r"/srcrcp/(\w+)")) is None


class TestHeaders:
    def test_origin_of(self) -> None:
        assert origin_of("https://a.test:8443/x/y?z") == "https://a.test:8443"

    def test_fetch_site(self) -> None:
        assert fetch_site("https://a.test/x", None) == "none"
        assert fetch_site("https://a.test/x", "https://a.test/y") == "same-origin"
        assert fetch_site("https://cdn.a.test/x", "https://www.a.test/") == "same-site"
        assert fetch_site("https://b.test/x", "https://a.test/") == "cross-site"

    def test_first_hop_is_document_navigation(self) -> None:
        headers = hop_headers(HeaderPolicy(), url="https://a.test/", referer=None)
        assert headers["Sec-Fetch-Dest"] == "document"
        assert headers["Sec-Fetch-Site"] == "none"
        assert "Referer" not in headers
        assert "Origin" not in headers

    def test_later_hops_load_as_iframe(self) -> None:
        headers = hop_headers(
            HeaderPolicy(), url="https://b.test/rcp/1", referer="https://a.test/embed"
        )
        assert headers["Sec-Fetch-Dest"] == "iframe"
        assert headers["Referer"] == "https://a.test/embed"
        assert "Origin" not in headers

    def test_origin_only_with_referer(self) -> None:
        policy = HeaderPolicy(send_origin=True)
        with_ref = hop_headers(policy, url="https://b.test/", referer="https://a.test/x")
        assert with_ref["Origin"] == "https://a.test"
        without = hop_headers(policy, url="https://b.test/", referer=None)
        assert "Origin" not in without

    def test_referer_suppressed(self) -> None:
        headers = hop_headers(
            HeaderPolicy(send_referer=False, send_origin=True),
            url="https://b.test/",
            referer="https://a.test/",
        )
        assert "Referer" not in headers
        assert "Origin" not in headers

    def test_probe_prefers_policy_referer(self) -> None:
        headers = probe_headers(
            HeaderPolicy(probe_referer="https://cloudnestra.com/"),
            url="https://cdn.test/m.m3u8",
            referer="https://cloudnestra.com/prorcp/abc",
        )
        assert headers["Referer"] == "https://cloudnestra.com/"
        assert headers["Sec-Fetch-Mode"] == "cors"
        assert headers["Accept"] == "*/*"

    def test_user_agent_override(self) -> None:
        headers = probe_headers(
            HeaderPolicy(user_agent="UA/1"), url="https://a.test", referer=None
        )
        assert headers["User-Agent"] == "UA/1"
