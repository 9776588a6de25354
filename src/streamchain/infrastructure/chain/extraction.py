"""Apply an ``ExtractionRule`` to a fetched hop body.

CSS-selector rules use BeautifulSoup with the ``lxml`` parser; regex
rules run against the raw body so they also see inline scripts.
"""

from __future__ import annotations

import html
import re
from functools import lru_cache
from typing import NamedTuple

from bs4 import BeautifulSoup

from streamchain.domain.entities import ExtractionKind, ExtractionRule

_WHITESPACE = re.compile(r"\s+")


class Extracted(NamedTuple):
    value: str
    context: dict[str, str]


def parse_html(body: str) -> BeautifulSoup:
    return BeautifulSoup(body, "lxml")


@lru_cache(maxsize=128)
def _compiled(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


def _is_hidden(style: str) -> bool:
    return "display:none" in _WHITESPACE.sub("", style).lower()


def _extract_attribute(body: str, rule: ExtractionRule) -> Extracted | None:
    element = parse_html(body).select_one(rule.selector)
    if element is None:
        return None
    value = element.get(rule.attribute)
    if isinstance(value, list):
        value = " ".join(value)
    if not value or not value.strip():
        return None
    return Extracted(value.strip(), {})


def _extract_hidden_text(body: str, rule: ExtractionRule) -> Extracted | None:
    for element in parse_html(body).find_all(style=True):
        if not _is_hidden(str(element["style"])):
            continue
        text = element.get_text(strip=True)
        if len(text) > rule.min_length:
            element_id = element.get("id")
            context = {"element_id": str(element_id)} if element_id else {}
            return Extracted(text, context)
    return None


def _extract_regex(body: str, rule: ExtractionRule) -> Extracted | None:
    match = _compiled(rule.pattern).search(body)
    if match is None:
        return None
    value = match.group(rule.group)
    if not value:
        return None
    return Extracted(html.unescape(value), {})


def extract(body: str, rule: ExtractionRule) -> Extracted | None:
    """Return the next identifier, or ``None`` when the rule matches nothing."""
    if rule.kind is ExtractionKind.ATTRIBUTE:
        return _extract_attribute(body, rule)
    if rule.kind is ExtractionKind.HIDDEN_TEXT:
        return _extract_hidden_text(body, rule)
    return _extract_regex(body, rule)
