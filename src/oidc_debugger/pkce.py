"""PKCE (Proof Key for Code Exchange) engine.

Implements RFC 7636 with both the ``plain`` and ``S256`` challenge
methods, plus ``none`` for flows that do not use PKCE. The randomness
source and digest function are injectable so challenges can be
reproduced in tests from a fixed verifier.
"""

from __future__ import annotations

import hashlib
import re
import secrets
from typing import Callable

from .codec import RandomSource, base64url_encode, random_bytes_base64url, random_bytes_hex
from .errors import UnsupportedPkceMethodError
from .models import PkceMaterial, PkceMethod

DigestFunction = Callable[[bytes], bytes]

# 32 bytes of entropy -> 43 base64url characters, the RFC 7636 minimum.
VERIFIER_BYTES = 32
STATE_BYTES = 16
NONCE_BYTES = 16

_VERIFIER_RE = re.compile(r"[A-Za-z0-9\-._~]{43,128}")


def sha256_digest(data: bytes) -> bytes:
    """Default digest for the S256 method."""
    return hashlib.sha256(data).digest()


def normalize_method(method: str | PkceMethod) -> PkceMethod:
    """Map a configured method name to :class:`PkceMethod`.

    Raises:
        UnsupportedPkceMethodError: For anything but none, plain or S256.
    """
    try:
        return PkceMethod(method)
    except ValueError:
        raise UnsupportedPkceMethodError(str(method)) from None


def generate_code_verifier(
    num_bytes: int = VERIFIER_BYTES,
    *,
    random_source: RandomSource | None = None,
) -> str:
    """Generate a code verifier from ``num_bytes`` random bytes.

    Args:
        num_bytes: Entropy in bytes (32-96, giving 43-128 characters).
        random_source: Optional byte source; defaults to the OS CSPRNG.

    Returns:
        URL-safe base64-encoded random string.

    Raises:
        ValueError: If the resulting length would fall outside 43-128.
    """
    if not VERIFIER_BYTES <= num_bytes <= 96:
        msg = "Code verifier entropy must be between 32 and 96 bytes"
        raise ValueError(msg)
    return random_bytes_base64url(num_bytes, random_source=random_source)


def is_valid_code_verifier(verifier: str) -> bool:
    """Whether a verifier meets RFC 7636 §4.1 (43-128 unreserved characters)."""
    return _VERIFIER_RE.fullmatch(verifier) is not None


def code_challenge(
    verifier: str,
    method: str | PkceMethod = PkceMethod.S256,
    *,
    digest: DigestFunction | None = None,
) -> str:
    """Derive the code challenge for ``verifier`` under ``method``.

    ``none`` yields an empty challenge.
    """
    resolved = normalize_method(method)
    if resolved is PkceMethod.NONE:
        return ""
    if resolved is PkceMethod.PLAIN:
        return verifier
    return base64url_encode((digest or sha256_digest)(verifier.encode("utf-8")))


def derive_pkce(
    method: str | PkceMethod,
    verifier: str | None = None,
    *,
    random_source: RandomSource | None = None,
    digest: DigestFunction | None = None,
) -> PkceMaterial:
    """Resolve PKCE material for one authorization attempt.

    A missing verifier is generated; a supplied one is kept as is,
    so the same (method, verifier) always yields the same challenge.

    Raises:
        UnsupportedPkceMethodError: If ``method`` is unknown.
    """
    resolved = normalize_method(method)
    if resolved is PkceMethod.NONE:
        return PkceMaterial(method=resolved.value, verifier=verifier or "")

    if not verifier:
        verifier = generate_code_verifier(random_source=random_source)

    return PkceMaterial(
        method=resolved.value,
        verifier=verifier,
        challenge=code_challenge(verifier, resolved, digest=digest),
    )


def verify_code_challenge(
    code_verifier: str,
    challenge: str,
    method: str | PkceMethod = PkceMethod.S256,
) -> bool:
    """Check that ``code_verifier`` produces ``challenge``.

    Useful when a provider rejects an exchange with ``invalid_grant``
    and the saved verifier is suspected to be stale.
    """
    expected = code_challenge(code_verifier, method)
    return secrets.compare_digest(expected.encode(), challenge.encode())


def generate_state(*, random_source: RandomSource | None = None) -> str:
    """16 random bytes, hex encoded, for CSRF protection."""
    return random_bytes_hex(STATE_BYTES, random_source=random_source)


def generate_nonce(*, random_source: RandomSource | None = None) -> str:
    """16 random bytes, hex encoded, for ID token replay protection."""
    return random_bytes_hex(NONCE_BYTES, random_source=random_source)
