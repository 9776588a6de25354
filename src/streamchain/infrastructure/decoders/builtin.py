"""Decoder pipelines shipped with the package.

Parameters were established offline against live payloads.  A provider
whose output stops validating needs a new entry here, not a runtime
search over shifts or keys.
"""

from __future__ import annotations

from streamchain.infrastructure.decoders import steps
from streamchain.infrastructure.decoders.pipelines import Decoder, Pipeline, PrefixDispatch
from streamchain.infrastructure.decoders.primitives import STANDARD_BASE64

# PlayerJS "#0"/"#1" payloads: shuffled alphabet including the pad char.
PLAYERJS_ALPHABET = "ABCDEFGHIJKLMabcdefghijklmNOPQRSTUVWXYZnopqrstuvwxyz0123456789+/="

CLOUDNESTRA = PrefixDispatch(
    decoder_id="cloudnestra",
    branches=(
        ("eqqmp://", Pipeline("cloudnestra:rot3", (steps.shift(-3),))),
        (
            "#0",
            Pipeline(
                "cloudnestra:playerjs0",
                (
                    steps.strip_prefix("#0"),
                    steps.alphabet_b64(PLAYERJS_ALPHABET, STANDARD_BASE64 + "="),
                    steps.text("utf-8"),
                ),
            ),
        ),
        (
            "#1",
            Pipeline(
                "cloudnestra:playerjs1",
                (
                    steps.strip_prefix("#1"),
                    steps.replace("#", "+"),
                    steps.alphabet_b64(PLAYERJS_ALPHABET, STANDARD_BASE64 + "="),
                    steps.text("utf-8"),
                ),
            ),
        ),
        (
            "=",
            Pipeline(
                "cloudnestra:rev-b64",
                (
                    steps.strip_prefix("="),
                    steps.reverse(),
                    steps.b64(),
                    steps.text("latin-1"),
                    steps.subtract(3),
                ),
            ),
        ),
    ),
    default=Pipeline(
        "cloudnestra:rev-hex",
        (
            steps.reverse(),
            steps.subtract(1),
            steps.hex_bytes(lenient=True),
            steps.text("latin-1"),
        ),
    ),
)

IDENTITY = Pipeline("identity", (steps.identity(),))

BUILTIN_DECODERS: tuple[Decoder, ...] = (CLOUDNESTRA, IDENTITY)
