"""Tests for the reversible decode primitives."""

from __future__ import annotations

import base64

import pytest
from Crypto.Cipher import AES
from Crypto.Util.Padding import pad

from streamchain.infrastructure.decoders import primitives as p


class TestShiftCipher:
    def test_known_scheme(self) -> None:
        assert p.shift_cipher("eqqmp://", -3) == "https://"

    @pytest.mark.parametrize(
        "text",
        ["https://example.com/a.m3u8?x=1", "Hello, World! 123", "zZaA", "ümlaut-ä"],
    )
    @pytest.mark.parametrize("n", [1, 3, 13, 25, -7])
    def test_inverse(self, text: str, n: int) -> None:
        assert p.shift_cipher(p.shift_cipher(text, n), -n) == text

    def test_non_letters_preserved(self) -> None:
        text = "0123 -_/:.{}?=ü"
        assert p.shift_cipher(text, 5) == text

    def test_wraps_around(self) -> None:
        assert p.shift_cipher("a", 1) == "z"
        assert p.shift_cipher("Z", -1) == "A"


class TestXorChain:
    def test_repeating_key_is_involution(self) -> None:
        data = b"0123456789abcdef"
        key = b"\x01\xff\x10"
        assert p.xor_chain(p.xor_chain(data, key), key) == data

    def test_empty_key_rejected(self) -> None:
        with pytest.raises(ValueError):
            p.xor_chain(b"abc", b"")


class TestAesCbc:
    KEY = bytes(range(32))
    IV = bytes(range(16))

    def test_decrypts_padded_ciphertext(self) -> None:
        cipher = AES.new(self.KEY, AES.MODE_CBC, iv=self.IV)
        ct = cipher.encrypt(pad(b"https://cdn.test/x.m3u8", AES.block_size))
        assert p.aes_cbc_decrypt(ct, self.KEY, self.IV) == b"https://cdn.test/x.m3u8"

    def test_bad_key_length(self) -> None:
        with pytest.raises(ValueError):
            p.aes_cbc_decrypt(bytes(16), bytes(7), self.IV)

    def test_unaligned_input(self) -> None:
        with pytest.raises(ValueError):
            p.aes_cbc_decrypt(b"short", self.KEY, self.IV)


class TestBase64:
    def test_standard(self) -> None:
        assert p.base64_decode(base64.b64encode(b"hello").decode()) == b"hello"

    def test_urlsafe_without_padding(self) -> None:
        raw = bytes([251, 255, 191])
        encoded = base64.urlsafe_b64encode(raw).decode().rstrip("=")
        assert p.base64_decode(encoded) == raw

    def test_noise_characters_dropped(self) -> None:
        assert p.base64_decode("aGVs\nbG8=") == b"hello"

    def test_truncated(self) -> None:
        with pytest.raises(ValueError):
            p.base64_decode("aGVsb")

    def test_substitution_alphabet(self) -> None:
        source = p.STANDARD_BASE64[::-1]
        encoded = base64.b64encode(b"stream").decode()
        shuffled = encoded.translate(str.maketrans(p.STANDARD_BASE64, source))
        assert p.substitution_alphabet_base64(shuffled, source) == b"stream"

    def test_substitution_alphabet_length_mismatch(self) -> None:
        with pytest.raises(ValueError):
            p.substitution_alphabet_base64("abc", "ab", "abc")


class TestHex:
    def test_strict(self) -> None:
        assert p.hex_decode("68690a") == b"hi\n"
        with pytest.raises(ValueError):
            p.hex_decode("6z")

    def test_lenient_drops_noise_zeros_and_odd_nibble(self) -> None:
        assert p.hex_decode("68:00:69-7", lenient=True) == b"hi"


class TestStringOps:
    def test_reverse(self) -> None:
        assert p.reverse("abc") == "cba"
        assert p.reverse(b"abc") == b"cba"

    def test_subtract(self) -> None:
        assert p.subtract("ifmmp", 1) == "hello"

    def test_strip_prefix(self) -> None:
        assert p.strip_prefix("#0abc", "#0") == "abc"
        with pytest.raises(ValueError):
            p.strip_prefix("abc", "#0")

    def test_to_text_is_strict(self) -> None:
        with pytest.raises(UnicodeDecodeError):
            p.to_text(b"\xff\xfe", "utf-8")
