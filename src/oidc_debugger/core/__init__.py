"""Core flow steps: authorization URL, callback, JWT display and exchange."""

from .auth_builder import AuthorizationBuilder, AuthorizationResult, build_authorization_url
from .callback import extract_code, parse_callback
from .errors import ErrorFactory
from .jwt_decoder import decode_jwt
from .token_exchange import (
    TokenExchangeClient,
    build_exchange_request,
    build_exchange_request_from_context,
)

__all__ = [
    "AuthorizationBuilder",
    "AuthorizationResult",
    "ErrorFactory",
    "TokenExchangeClient",
    "build_authorization_url",
    "build_exchange_request",
    "build_exchange_request_from_context",
    "decode_jwt",
    "extract_code",
    "parse_callback",
]
