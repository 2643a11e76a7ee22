"""
Shared test fixtures for OIDC Debugger tests.

Provides deterministic randomness, settings, a temporary profile store,
signed sample tokens and mock HTTP transports.
"""

from collections.abc import Callable, Iterator
from pathlib import Path

import httpx
import jwt
import pytest
import structlog

from oidc_debugger import telemetry
from oidc_debugger.config import DebuggerSettings, TelemetryConfig
from oidc_debugger.core.token_exchange import TokenExchangeClient
from oidc_debugger.models import AuthRequestParams
from oidc_debugger.storage import ProfileStore


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Undo any structlog configuration a test (or the CLI) applied."""
    yield
    structlog.reset_defaults()
    telemetry._logger = None
    telemetry._tracer = None


@pytest.fixture
def fixed_random() -> Callable[[int], bytes]:
    """Random source that always returns 0x01 bytes."""
    return lambda n: b"\x01" * n


@pytest.fixture
def counting_random() -> Callable[[int], bytes]:
    """Random source returning a different, reproducible block per call."""
    calls = iter(range(1, 256))

    def source(n: int) -> bytes:
        return bytes([next(calls)]) * n

    return source


@pytest.fixture
def settings(tmp_path: Path) -> DebuggerSettings:
    """Provide debugger settings with profiles under a temp directory."""
    return DebuggerSettings(
        profile_path=tmp_path / "profiles.json",
        telemetry=TelemetryConfig(enabled=False),
    )


@pytest.fixture
def profile_store(tmp_path: Path) -> ProfileStore:
    return ProfileStore(tmp_path / "profiles.json")


@pytest.fixture
def base_params() -> AuthRequestParams:
    """A complete authorization code request without PKCE."""
    return AuthRequestParams(
        authorization_endpoint="https://idp.example.com/authorize",
        client_id="test-client-id",
        redirect_uri="http://localhost:3000/callback",
        scope="openid profile email",
        response_type="code",
    )


@pytest.fixture
def id_token() -> str:
    """HS256 ID token; signature is irrelevant to the unverified decoder."""
    return jwt.encode(
        {
            "iss": "https://idp.example.com",
            "sub": "user-123",
            "aud": "test-client-id",
            "nonce": "n-0S6_WzA2Mj",
            "exp": 1893456000,
        },
        "test-secret-key-with-enough-length-32b",
        algorithm="HS256",
        headers={"kid": "key-1"},
    )


@pytest.fixture
def token_response(id_token: str) -> dict:
    return {
        "access_token": "at-opaque-value",
        "token_type": "Bearer",
        "expires_in": 3600,
        "id_token": id_token,
        "scope": "openid profile email",
    }


@pytest.fixture
def make_exchange_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], TokenExchangeClient]:
    """Factory for exchange clients whose HTTP traffic goes to a handler."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> TokenExchangeClient:
        return TokenExchangeClient(
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

    return factory
