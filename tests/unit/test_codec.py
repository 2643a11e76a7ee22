"""Unit tests for base64url and random helpers."""

import pytest

from oidc_debugger.codec import (
    base64url_decode,
    base64url_encode,
    from_bytes,
    random_bytes,
    random_bytes_base64url,
    random_bytes_hex,
)
from oidc_debugger.errors import DecodeError


class TestBase64Url:
    """Tests for unpadded base64url encoding."""

    def test_uses_url_safe_alphabet_without_padding(self) -> None:
        """0xfb 0xff maps to '+/' in standard base64."""
        assert base64url_encode(b"\xfb\xff") == "-_8"

    def test_encodes_text_as_utf8(self) -> None:
        assert base64url_encode('{"alg":"HS256"}') == "eyJhbGciOiJIUzI1NiJ9"

    def test_empty_input(self) -> None:
        assert base64url_encode(b"") == ""
        assert base64url_decode("") == b""

    def test_decode_restores_padding(self) -> None:
        assert base64url_decode("YQ") == b"a"
        assert base64url_decode("YWI") == b"ab"
        assert base64url_decode("YWJj") == b"abc"

    def test_decode_accepts_padded_input(self) -> None:
        assert base64url_decode("YQ==") == b"a"

    @pytest.mark.parametrize("value", ["ab+c", "ab/c", "a b", "abc!", "YQ\n"])
    def test_decode_rejects_non_alphabet_characters(self, value: str) -> None:
        with pytest.raises(DecodeError):
            base64url_decode(value)

    def test_decode_rejects_impossible_length(self) -> None:
        """A single trailing character cannot come from any byte string."""
        with pytest.raises(DecodeError, match="length"):
            base64url_decode("abcde")


class TestFromBytes:
    def test_invalid_utf8_raises_decode_error(self) -> None:
        with pytest.raises(DecodeError, match="UTF-8"):
            from_bytes(b"\xff\xfe")

    def test_valid_utf8(self) -> None:
        assert from_bytes("héllo".encode()) == "héllo"


class TestRandomBytes:
    """Tests for random byte generation."""

    def test_default_source_returns_requested_length(self) -> None:
        assert len(random_bytes(16)) == 16

    def test_hex_encoding_doubles_length(self) -> None:
        value = random_bytes_hex(16)
        assert len(value) == 32
        int(value, 16)

    def test_base64url_of_32_bytes_is_43_chars(self) -> None:
        assert len(random_bytes_base64url(32)) == 43

    def test_injected_source_is_used(self) -> None:
        assert random_bytes_hex(2, random_source=lambda n: b"\xab" * n) == "abab"

    def test_short_source_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="expected 4"):
            random_bytes(4, random_source=lambda n: b"\x00")

    def test_negative_count_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            random_bytes(-1)

    def test_consecutive_values_differ(self) -> None:
        assert random_bytes_hex(16) != random_bytes_hex(16)
