"""Encoding helpers shared by the PKCE engine and the JWT decoder.

base64url follows RFC 4648 §5 without padding, which is what both
RFC 7636 (PKCE) and RFC 7515 (JWS compact serialization) use.
"""

from __future__ import annotations

import binascii
import re
import secrets
from typing import Callable

from jwt import utils as jwt_utils

from .errors import DecodeError

RandomSource = Callable[[int], bytes]
"""Returns ``n`` cryptographically secure random bytes."""

_B64URL_RE = re.compile(r"[A-Za-z0-9_-]*")


def to_bytes(text: str) -> bytes:
    """UTF-8 encode ``text``."""
    return text.encode("utf-8")


def from_bytes(data: bytes) -> str:
    """UTF-8 decode ``data``.

    Raises:
        DecodeError: If ``data`` is not valid UTF-8.
    """
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        msg = f"Invalid UTF-8: {e}"
        raise DecodeError(msg) from e


def base64url_encode(data: bytes | str) -> str:
    """Encode bytes (or UTF-8 text) as unpadded base64url."""
    if isinstance(data, str):
        data = to_bytes(data)
    return jwt_utils.base64url_encode(data).decode("ascii")


def base64url_decode(data: str) -> bytes:
    """Decode unpadded (or padded) base64url text.

    Raises:
        DecodeError: On characters outside the base64url alphabet or a
            length no base64 encoding can produce.
    """
    stripped = data.rstrip("=")
    if not _B64URL_RE.fullmatch(stripped):
        msg = "Input contains characters outside the base64url alphabet"
        raise DecodeError(msg)
    if len(stripped) % 4 == 1:
        msg = "Input length is not a valid base64url length"
        raise DecodeError(msg)
    try:
        return jwt_utils.base64url_decode(stripped)
    except (binascii.Error, ValueError) as e:
        msg = f"Invalid base64url: {e}"
        raise DecodeError(msg) from e


def random_bytes(n: int, *, random_source: RandomSource | None = None) -> bytes:
    """Return ``n`` random bytes from ``random_source`` or the OS CSPRNG."""
    if n < 0:
        msg = "Byte count must be non-negative"
        raise ValueError(msg)
    source = random_source or secrets.token_bytes
    data = source(n)
    if len(data) != n:
        msg = f"Random source returned {len(data)} bytes, expected {n}"
        raise ValueError(msg)
    return data


def random_bytes_hex(n: int, *, random_source: RandomSource | None = None) -> str:
    """``n`` random bytes, hex encoded (``2 * n`` characters)."""
    return random_bytes(n, random_source=random_source).hex()


def random_bytes_base64url(n: int, *, random_source: RandomSource | None = None) -> str:
    """``n`` random bytes, base64url encoded without padding."""
    return base64url_encode(random_bytes(n, random_source=random_source))
