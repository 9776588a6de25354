"""Cartesian-product expansion of CDN placeholder tokens.

``"https://{v1}/{s2}/a.m3u8"`` with ``{"v1": ("a.com", "b.com"),
"s2": ("x",)}`` becomes two candidates, primary first::

    https://a.com/x/a.m3u8   (rank 0)
    https://b.com/x/a.m3u8   (rank 1)

Tokens are taken in left-to-right first-discovery order; the product
varies the last token fastest.  A decoded string holding several
alternatives joined by ``" or "`` is expanded alternative by
alternative and flattened in source order; a URL already produced at an
earlier rank is dropped.
"""

from __future__ import annotations

import itertools
import re
from typing import Mapping

import structlog

from streamchain.domain.entities import (
    CandidateURL,
    DecodedResolution,
    PlaceholderUnknownToken,
    Substitution,
)

log = structlog.get_logger(__name__)

TOKEN_PATTERN = re.compile(r"\{([^{}]+)\}")
ALTERNATIVE_SEPARATOR = " or "


def split_alternatives(text: str) -> list[str]:
    return [part.strip() for part in text.split(ALTERNATIVE_SEPARATOR) if part.strip()]


def discover_tokens(template: str) -> list[str]:
    """Distinct token names in first-discovery order."""
    return list(dict.fromkeys(TOKEN_PATTERN.findall(template)))


class PlaceholderExpander:
    """Pure and deterministic; holds no state between calls."""

    def expand(
        self,
        decoded: DecodedResolution,
        tokens: Mapping[str, tuple[str, ...]],
    ) -> tuple[list[CandidateURL], list[PlaceholderUnknownToken]]:
        candidates: list[CandidateURL] = []
        notices: list[PlaceholderUnknownToken] = []
        reported: set[str] = set()
        seen: set[str] = set()
        duplicates = 0

        for alt_index, template in enumerate(split_alternatives(decoded.text)):
            choices: list[list[Substitution]] = []
            for name in discover_tokens(template):
                domains = tokens.get(name) or ()
                if domains:
                    choices.append([Substitution(name, domain) for domain in domains])
                    continue
                # Unknown tokens degrade to their inner text.
                choices.append([Substitution(name, name, literal=True)])
                if name not in reported:
                    reported.add(name)
                    notices.append(PlaceholderUnknownToken(name))
                    log.warning(
                        "placeholder_unknown_token",
                        provider=decoded.provider_id,
                        token=name,
                    )

            for combo in itertools.product(*choices):
                mapping = {sub.token: sub.value for sub in combo}
                url = TOKEN_PATTERN.sub(lambda m: mapping[m.group(1)], template)
                if url in seen:
                    duplicates += 1
                    continue
                seen.add(url)
                candidates.append(
                    CandidateURL(
                        url=url,
                        rank=len(candidates),
                        alternative=alt_index,
                        substitutions=tuple(combo),
                    )
                )

        log.debug(
            "placeholders_expanded",
            provider=decoded.provider_id,
            candidates=len(candidates),
            duplicates_dropped=duplicates,
            unknown_tokens=[n.token for n in notices],
        )
        return candidates, notices
