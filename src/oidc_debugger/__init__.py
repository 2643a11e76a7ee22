"""OIDC Debugger: build, inspect and complete OAuth 2.0 / OIDC code flows."""

from .config import DebuggerSettings, ExchangeConfig, TelemetryConfig
from .core import (
    AuthorizationBuilder,
    AuthorizationResult,
    TokenExchangeClient,
    build_authorization_url,
    build_exchange_request,
    decode_jwt,
    parse_callback,
)
from .errors import (
    DecodeError,
    ExchangeFailedError,
    ExchangeTimeoutError,
    InvalidConfigError,
    OIDCDebuggerError,
    UnsupportedPkceMethodError,
    ValidationError,
)
from .models import (
    AuthContext,
    AuthRequestParams,
    CallbackResult,
    DecodedToken,
    DecodeStatus,
    ExchangeRequest,
    ExchangeResult,
    PkceMaterial,
    PkceMethod,
    TokenSet,
)
from .pkce import code_challenge, derive_pkce, generate_code_verifier
from .storage import ProfileStore

__all__ = [
    "AuthContext",
    "AuthRequestParams",
    "AuthorizationBuilder",
    "AuthorizationResult",
    "CallbackResult",
    "DebuggerSettings",
    "DecodeError",
    "DecodeStatus",
    "DecodedToken",
    "ExchangeConfig",
    "ExchangeFailedError",
    "ExchangeRequest",
    "ExchangeResult",
    "ExchangeTimeoutError",
    "InvalidConfigError",
    "OIDCDebuggerError",
    "PkceMaterial",
    "PkceMethod",
    "ProfileStore",
    "TelemetryConfig",
    "TokenExchangeClient",
    "TokenSet",
    "UnsupportedPkceMethodError",
    "ValidationError",
    "build_authorization_url",
    "build_exchange_request",
    "code_challenge",
    "decode_jwt",
    "derive_pkce",
    "generate_code_verifier",
    "parse_callback",
]

__version__ = "0.1.0"
