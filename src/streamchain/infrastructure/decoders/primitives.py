"""Reversible decode primitives.

Pure functions without I/O.  Every primitive raises ``ValueError`` (or a
subclass such as ``binascii.Error`` / ``UnicodeDecodeError``) on input it
cannot handle; :class:`~streamchain.infrastructure.decoders.registry.DecoderRegistry`
turns that into ``DecoderStale``.
"""

from __future__ import annotations

import base64
import re
import string
from typing import TypeVar

from Crypto.Cipher import AES
from Crypto.Util.Padding import unpad

STANDARD_BASE64 = string.ascii_uppercase + string.ascii_lowercase + string.digits + "+/"

_NON_BASE64 = re.compile(r"[^A-Za-z0-9+/]")
_NON_HEX = re.compile(r"[^0-9a-fA-F]")
_URLSAFE = str.maketrans("-_", "+/")

_Seq = TypeVar("_Seq", str, bytes)


def shift_cipher(text: str, n: int) -> str:
    """Undo a Caesar shift of ``n`` over ASCII letters.

    ``n`` is the shift the encoder applied, so
    ``shift_cipher("eqqmp://", -3) == "https://"``.  Digits, punctuation
    and non-ASCII characters pass through unchanged.
    """
    out: list[str] = []
    for ch in text:
        if "a" <= ch <= "z":
            out.append(chr((ord(ch) - 97 - n) % 26 + 97))
        elif "A" <= ch <= "Z":
            out.append(chr((ord(ch) - 65 - n) % 26 + 65))
        else:
            out.append(ch)
    return "".join(out)


def xor_chain(data: bytes, key: bytes) -> bytes:
    """Repeating-key XOR."""
    if not key:
        raise ValueError("xor key must not be empty")
    size = len(key)
    return bytes(b ^ key[i % size] for i, b in enumerate(data))


def aes_cbc_decrypt(data: bytes, key: bytes, iv: bytes) -> bytes:
    """AES-CBC decrypt with PKCS#7 unpadding.

    Wrong key length, a ciphertext that is not block aligned, or bad
    padding all raise ``ValueError``.
    """
    cipher = AES.new(key, AES.MODE_CBC, iv=iv)
    return unpad(cipher.decrypt(data), AES.block_size)


def base64_decode(text: str) -> bytes:
    """Decode standard or url-safe base64.

    Characters outside the alphabet are dropped and padding is
    recomputed, matching how browser-side ``atob`` shims treat the
    payloads.
    """
    cleaned = _NON_BASE64.sub("", text.translate(_URLSAFE))
    remainder = len(cleaned) % 4
    if remainder == 1:
        raise ValueError("truncated base64 input")
    if remainder:
        cleaned += "=" * (4 - remainder)
    return base64.b64decode(cleaned, validate=True)


def substitution_alphabet_base64(
    text: str,
    source: str,
    target: str = STANDARD_BASE64,
) -> bytes:
    """Map ``source[i]`` to ``target[i]`` for every character, then decode.

    Characters missing from ``source`` pass through the translation
    unchanged.
    """
    if len(source) != len(target):
        raise ValueError("substitution alphabets differ in length")
    return base64_decode(text.translate(str.maketrans(source, target)))


def identity(value: _Seq) -> _Seq:
    return value


def reverse(value: _Seq) -> _Seq:
    return value[::-1]


def subtract(text: str, n: int) -> str:
    """Subtract ``n`` from every code point."""
    return "".join(chr(ord(ch) - n) for ch in text)


def hex_decode(text: str, *, lenient: bool = False) -> bytes:
    """Decode hex pairs.

    In lenient mode non-hex characters are dropped first, a dangling
    nibble is ignored and zero bytes are skipped; strict mode delegates
    to :meth:`bytes.fromhex`.
    """
    if not lenient:
        return bytes.fromhex(text)
    cleaned = _NON_HEX.sub("", text)
    pairs = (cleaned[i : i + 2] for i in range(0, len(cleaned) - 1, 2))
    return bytes(b for b in (int(pair, 16) for pair in pairs) if b)


def strip_prefix(text: str, prefix: str) -> str:
    if not text.startswith(prefix):
        raise ValueError(f"expected prefix {prefix!r}")
    return text[len(prefix) :]


def replace(text: str, old: str, new: str) -> str:
    return text.replace(old, new)


def to_text(data: bytes, encoding: str = "utf-8") -> str:
    """Strict decode; non-text output means the payload is stale."""
    return data.decode(encoding)


def to_bytes(text: str, encoding: str = "utf-8") -> bytes:
    return text.encode(encoding)
