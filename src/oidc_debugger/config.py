"""Configuration for OIDC Debugger.

Pydantic v2 models with defaults matching the browser tool: a local
relay on port 3000, ``/callback`` as redirect URI and the usual OIDC
scopes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import InvalidConfigError
from .models import AuthRequestParams, PkceMethod


class TelemetryConfig(BaseModel):
    """Logging and tracing configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    service_name: str = "oidc-debugger"
    log_level: str = "INFO"
    json_logs: bool = False


class ExchangeConfig(BaseModel):
    """HTTP settings for the code-to-token exchange."""

    model_config = ConfigDict(frozen=True)

    timeout: Annotated[float, Field(gt=0, le=300)] = 30.0
    connect_timeout: Annotated[float, Field(gt=0, le=60)] = 10.0
    verify_tls: bool = True
    user_agent: str = "oidc-debugger/0.1.0 Python"


def _default_profile_path() -> Path:
    return Path.home() / ".oidc-debugger" / "profiles.json"


class DebuggerSettings(BaseModel):
    """Main configuration for OIDC Debugger."""

    model_config = ConfigDict(frozen=True, validate_default=True)

    # Relay server
    host: str = "127.0.0.1"
    port: Annotated[int, Field(gt=0, lt=65536)] = 3000

    # Form defaults
    redirect_uri: str = "http://localhost:3000/callback"
    scope: str = "openid profile email"
    response_type: str = "code"
    pkce_method: str = PkceMethod.NONE.value

    profile_path: Path = Field(default_factory=_default_profile_path)

    exchange: ExchangeConfig = Field(default_factory=ExchangeConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    @field_validator("pkce_method")
    @classmethod
    def validate_pkce_method(cls, v: str) -> str:
        """Validate the default PKCE method is supported."""
        supported = {m.value for m in PkceMethod}
        if v not in supported:
            msg = f"Unsupported PKCE method: {v}. Supported: {sorted(supported)}"
            raise ValueError(msg)
        return v

    @property
    def callback_path(self) -> str:
        return "/callback"

    def default_params(self, **overrides: Any) -> AuthRequestParams:
        """Authorization request pre-filled with the configured defaults."""
        data: dict[str, Any] = {
            "redirect_uri": self.redirect_uri,
            "scope": self.scope,
            "response_type": self.response_type,
            "pkce_method": self.pkce_method,
        }
        data.update({k: v for k, v in overrides.items() if v is not None})
        return AuthRequestParams(**data)

    def with_overrides(self, **kwargs: Any) -> Self:
        """Create new settings with overridden values."""
        data = self.model_dump()
        data.update(kwargs)
        return self.__class__(**data)

    @classmethod
    def from_env(cls, prefix: str = "OIDC_DEBUGGER_") -> Self:
        """Create settings from environment variables.

        Raises:
            InvalidConfigError: If a variable holds an unusable value.
        """
        import os

        def get_env(key: str, default: Any = None) -> Any:
            return os.environ.get(f"{prefix}{key}", default)

        data: dict[str, Any] = {}
        for key in ("host", "redirect_uri", "scope", "response_type", "pkce_method"):
            value = get_env(key.upper())
            if value:
                data[key] = value

        profile_path = get_env("PROFILE_PATH")
        if profile_path:
            data["profile_path"] = Path(profile_path).expanduser()

        try:
            port = get_env("PORT")
            if port:
                data["port"] = int(port)
            data["exchange"] = ExchangeConfig(
                timeout=float(get_env("EXCHANGE_TIMEOUT", "30.0")),
                verify_tls=get_env("VERIFY_TLS", "true").lower() not in {"0", "false", "no"},
            )
            data["telemetry"] = TelemetryConfig(
                log_level=get_env("LOG_LEVEL", "INFO"),
                json_logs=get_env("JSON_LOGS", "false").lower() in {"1", "true", "yes"},
            )
            return cls(**data)
        except ValueError as e:
            raise InvalidConfigError(f"Invalid {prefix}* settings: {e}") from e
