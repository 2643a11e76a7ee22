"""Unit tests for configuration."""

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from oidc_debugger.config import DebuggerSettings, ExchangeConfig
from oidc_debugger.errors import ErrorCode, InvalidConfigError


class TestDebuggerSettings:
    """Tests for defaults and validation."""

    def test_defaults(self) -> None:
        settings = DebuggerSettings()
        assert settings.host == "127.0.0.1"
        assert settings.port == 3000
        assert settings.redirect_uri == "http://localhost:3000/callback"
        assert settings.scope == "openid profile email"
        assert settings.response_type == "code"
        assert settings.pkce_method == "none"
        assert settings.callback_path == "/callback"
        assert settings.profile_path.name == "profiles.json"

    def test_invalid_pkce_method(self) -> None:
        with pytest.raises(PydanticValidationError, match="Unsupported PKCE method"):
            DebuggerSettings(pkce_method="S512")

    @pytest.mark.parametrize("port", [0, 65536])
    def test_invalid_port(self, port: int) -> None:
        with pytest.raises(PydanticValidationError):
            DebuggerSettings(port=port)

    def test_frozen(self) -> None:
        settings = DebuggerSettings()
        with pytest.raises(PydanticValidationError):
            settings.port = 8080  # type: ignore[misc]

    def test_with_overrides(self) -> None:
        settings = DebuggerSettings().with_overrides(port=8080)
        assert settings.port == 8080
        assert settings.host == "127.0.0.1"

    def test_default_params(self) -> None:
        params = DebuggerSettings(pkce_method="S256").default_params(client_id="c", scope=None)
        assert params.client_id == "c"
        assert params.scope == "openid profile email"
        assert params.pkce_method == "S256"
        assert params.redirect_uri == "http://localhost:3000/callback"


class TestFromEnv:
    def test_reads_prefixed_variables(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("OIDC_DEBUGGER_PORT", "4000")
        monkeypatch.setenv("OIDC_DEBUGGER_SCOPE", "openid")
        monkeypatch.setenv("OIDC_DEBUGGER_PKCE_METHOD", "S256")
        monkeypatch.setenv("OIDC_DEBUGGER_PROFILE_PATH", str(tmp_path / "p.json"))
        monkeypatch.setenv("OIDC_DEBUGGER_EXCHANGE_TIMEOUT", "5")
        monkeypatch.setenv("OIDC_DEBUGGER_VERIFY_TLS", "false")
        monkeypatch.setenv("OIDC_DEBUGGER_JSON_LOGS", "true")

        settings = DebuggerSettings.from_env()

        assert settings.port == 4000
        assert settings.scope == "openid"
        assert settings.pkce_method == "S256"
        assert settings.profile_path == tmp_path / "p.json"
        assert settings.exchange.timeout == 5.0
        assert settings.exchange.verify_tls is False
        assert settings.telemetry.json_logs is True

    def test_custom_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DBG_HOST", "0.0.0.0")
        assert DebuggerSettings.from_env(prefix="DBG_").host == "0.0.0.0"

    @pytest.mark.parametrize(
        ("key", "value"),
        [("PORT", "http"), ("PORT", "0"), ("EXCHANGE_TIMEOUT", "-1"), ("PKCE_METHOD", "S512")],
    )
    def test_bad_value_raises_invalid_config(
        self, monkeypatch: pytest.MonkeyPatch, key: str, value: str
    ) -> None:
        monkeypatch.setenv(f"OIDC_DEBUGGER_{key}", value)
        with pytest.raises(InvalidConfigError) as exc_info:
            DebuggerSettings.from_env()
        assert exc_info.value.code == ErrorCode.INVALID_CONFIG
        assert "OIDC_DEBUGGER_" in exc_info.value.message


class TestExchangeConfig:
    def test_timeout_bounds(self) -> None:
        with pytest.raises(PydanticValidationError):
            ExchangeConfig(timeout=0)
