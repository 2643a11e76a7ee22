"""Error classes for OIDC Debugger.

Every error carries a stable ``code`` so the CLI and the relay can report
failures as JSON. Subclasses fix their code and HTTP status as class
attributes; parsers and decoders never raise these for malformed provider
input, they return typed failure results instead.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, ClassVar


class ErrorCode(StrEnum):
    """Standardized error codes for OIDC Debugger."""

    # Input validation (2xxx)
    VALIDATION_ERROR = "VAL_2001"
    INVALID_CONFIG = "VAL_2002"

    # Token exchange transport (3xxx)
    EXCHANGE_FAILED = "NET_3001"
    EXCHANGE_TIMEOUT = "NET_3002"

    # PKCE (7xxx)
    UNSUPPORTED_PKCE_METHOD = "PKCE_7001"

    # Decoding of tokens and stored content (8xxx)
    DECODE_ERROR = "DEC_8001"


class OIDCDebuggerError(Exception):
    """Base error for OIDC Debugger.

    Attributes:
        message: Human readable description.
        code: One of :class:`ErrorCode` (or a custom string).
        status_code: HTTP status the relay should answer with, if any.
        correlation_id: Ties a log line to the reported error.
        details: Extra structured context.
    """

    default_code: ClassVar[ErrorCode] = ErrorCode.VALIDATION_ERROR
    default_status: ClassVar[int | None] = None

    def __init__(
        self,
        message: str,
        code: ErrorCode | str | None = None,
        *,
        status_code: int | None = None,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = str(code or self.default_code)
        self.status_code = status_code if status_code is not None else self.default_status
        self.correlation_id = correlation_id
        self.details: dict[str, Any] = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready view; unset status, correlation id and details are left out."""
        data: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.status_code is not None:
            data["status_code"] = self.status_code
        if self.correlation_id:
            data["correlation_id"] = self.correlation_id
        if self.details:
            data["details"] = dict(self.details)
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code}: {self.message!r})"


class ValidationError(OIDCDebuggerError):
    """A required input is missing or invalid; ``field`` names it."""

    default_status = 400

    def __init__(self, message: str, *, field: str, correlation_id: str | None = None) -> None:
        super().__init__(message, correlation_id=correlation_id, details={"field": field})
        self.field = field

    @classmethod
    def required(cls, field: str) -> ValidationError:
        return cls(f"{field} is required", field=field)


class InvalidConfigError(OIDCDebuggerError):
    """Debugger settings that cannot be used."""

    default_code = ErrorCode.INVALID_CONFIG

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message, details={"field": field} if field else None)


class UnsupportedPkceMethodError(OIDCDebuggerError):
    """PKCE method is not one of none, plain or S256."""

    default_code = ErrorCode.UNSUPPORTED_PKCE_METHOD
    default_status = 400

    def __init__(self, method: str) -> None:
        super().__init__(f"Unsupported PKCE method: {method!r}", details={"method": method})
        self.method = method


class DecodeError(OIDCDebuggerError):
    """Malformed base64url, UTF-8 or JSON content.

    ``segment`` says what was being decoded (``header``, ``payload``,
    ``profile``...), when known.
    """

    default_code = ErrorCode.DECODE_ERROR

    def __init__(self, message: str, *, segment: str | None = None) -> None:
        super().__init__(message, details={"segment": segment} if segment else None)
        self.segment = segment


class ExchangeFailedError(OIDCDebuggerError):
    """The token endpoint could not be reached.

    Provider error responses (4xx/5xx with a body) are not failures; they
    come back as an unsuccessful ``ExchangeResult``.
    """

    default_code = ErrorCode.EXCHANGE_FAILED

    def __init__(
        self,
        message: str = "Token exchange request failed",
        *,
        correlation_id: str | None = None,
        cause: Exception | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        merged = dict(details or {})
        if cause is not None:
            merged["cause"] = str(cause)
        super().__init__(message, correlation_id=correlation_id, details=merged)
        self.__cause__ = cause


class ExchangeTimeoutError(ExchangeFailedError):
    """The token endpoint did not answer within the configured timeout."""

    default_code = ErrorCode.EXCHANGE_TIMEOUT
    default_status = 408

    def __init__(
        self,
        message: str = "Token exchange timed out",
        *,
        correlation_id: str | None = None,
        cause: Exception | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(
            message,
            correlation_id=correlation_id,
            cause=cause,
            details={"timeout_seconds": timeout_seconds} if timeout_seconds else None,
        )
