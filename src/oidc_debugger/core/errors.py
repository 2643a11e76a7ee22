"""Translation of httpx failures into debugger errors."""

from __future__ import annotations

import uuid

import httpx

from ..errors import ExchangeFailedError, ExchangeTimeoutError, OIDCDebuggerError


class ErrorFactory:
    """Builds :class:`ExchangeFailedError` values for exchange failures."""

    @staticmethod
    def generate_correlation_id() -> str:
        return uuid.uuid4().hex

    @staticmethod
    def from_exception(
        exc: Exception,
        *,
        endpoint: str | None = None,
        correlation_id: str | None = None,
        timeout_seconds: float | None = None,
    ) -> OIDCDebuggerError:
        """Map ``exc`` raised while talking to ``endpoint``.

        Debugger errors pass through (gaining a correlation id if they lack
        one). Timeouts become :class:`ExchangeTimeoutError`; any other
        failure becomes :class:`ExchangeFailedError` with a short reason.
        """
        correlation_id = correlation_id or ErrorFactory.generate_correlation_id()

        if isinstance(exc, OIDCDebuggerError):
            exc.correlation_id = exc.correlation_id or correlation_id
            return exc

        target = f" ({endpoint})" if endpoint else ""
        if isinstance(exc, httpx.TimeoutException):
            return ExchangeTimeoutError(
                f"Token endpoint timed out{target}: {exc}",
                correlation_id=correlation_id,
                cause=exc,
                timeout_seconds=timeout_seconds,
            )

        if isinstance(exc, httpx.ConnectError):
            reason = "Connection failed"
        elif isinstance(exc, httpx.InvalidURL | httpx.UnsupportedProtocol):
            reason = "Invalid token endpoint URL"
        elif isinstance(exc, httpx.HTTPError):
            reason = "HTTP error"
        else:
            reason = "Unexpected error"
        return ExchangeFailedError(
            f"{reason}{target}: {exc}",
            correlation_id=correlation_id,
            cause=exc,
        )
