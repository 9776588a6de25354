"""Named pipeline steps built from the decode primitives.

A step is a one-argument callable carrying a short name for logs.
Parameters are bound when the pipeline is declared, so running a
pipeline never searches for keys or shift values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from streamchain.infrastructure.decoders import primitives as p


@dataclass(frozen=True)
class Step:
    name: str
    fn: Callable[[Any], Any]
    accepts: type | None = None

    def __call__(self, value: Any) -> Any:
        if self.accepts is not None and not isinstance(value, self.accepts):
            raise TypeError(
                f"step {self.name} expects {self.accepts.__name__}, "
                f"got {type(value).__name__}"
            )
        return self.fn(value)


def shift(n: int) -> Step:
    return Step("shift", lambda v: p.shift_cipher(v, n), str)


def xor(key: bytes) -> Step:
    key = bytes(key)
    return Step("xor", lambda v: p.xor_chain(v, key), bytes)


def aes_cbc(key: bytes, iv: bytes) -> Step:
    key, iv = bytes(key), bytes(iv)
    return Step("aes_cbc", lambda v: p.aes_cbc_decrypt(v, key, iv), bytes)


def alphabet_b64(source: str, target: str = p.STANDARD_BASE64) -> Step:
    return Step(
        "alphabet_b64",
        lambda v: p.substitution_alphabet_base64(v, source, target),
        str,
    )


def b64() -> Step:
    return Step("b64", p.base64_decode, str)


def reverse() -> Step:
    return Step("reverse", p.reverse)


def subtract(n: int) -> Step:
    return Step("subtract", lambda v: p.subtract(v, n), str)


def hex_bytes(*, lenient: bool = False) -> Step:
    return Step("hex", lambda v: p.hex_decode(v, lenient=lenient), str)


def strip_prefix(prefix: str) -> Step:
    return Step("strip_prefix", lambda v: p.strip_prefix(v, prefix), str)


def replace(old: str, new: str) -> Step:
    return Step("replace", lambda v: p.replace(v, old, new), str)


def text(encoding: str = "utf-8") -> Step:
    return Step("text", lambda v: p.to_text(v, encoding), bytes)


def encode(encoding: str = "utf-8") -> Step:
    return Step("encode", lambda v: p.to_bytes(v, encoding), str)


def identity() -> Step:
    return Step("identity", p.identity)
