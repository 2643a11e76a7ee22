"""Authorization code exchange.

Shapes the form-encoded token request and interprets whatever the token
endpoint sends back. Non-2xx responses are results, not errors: the
debugger's job is to show them. Only transport failures raise.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Self

import httpx

from ..config import ExchangeConfig
from ..errors import ValidationError
from ..http import create_async_http_client
from ..models import AuthContext, ExchangeRequest, ExchangeResult
from ..telemetry import get_logger, trace_operation
from .errors import ErrorFactory

if TYPE_CHECKING:
    from types import TracebackType

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def build_exchange_request(
    token_endpoint: str,
    client_id: str,
    redirect_uri: str,
    code: str,
    code_verifier: str | None = None,
) -> ExchangeRequest:
    """Build an authorization_code grant request.

    Raises:
        ValidationError: Naming the first empty required field, checked in
            the order token_endpoint, client_id, redirect_uri, code.
    """
    fields = {
        "token_endpoint": (token_endpoint or "").strip(),
        "client_id": (client_id or "").strip(),
        "redirect_uri": (redirect_uri or "").strip(),
        "code": (code or "").strip(),
    }
    for name, value in fields.items():
        if not value:
            raise ValidationError.required(name)
    return ExchangeRequest(
        **fields,
        code_verifier=(code_verifier or "").strip() or None,
    )


def build_exchange_request_from_context(
    context: AuthContext,
    token_endpoint: str,
    code: str,
) -> ExchangeRequest:
    """Exchange request using the client, redirect and verifier saved before redirect."""
    return build_exchange_request(
        token_endpoint,
        context.client_id,
        context.redirect_uri,
        code,
        context.code_verifier,
    )


def interpret_response(status: int, text: str) -> ExchangeResult:
    """Wrap a token endpoint response.

    JSON object bodies are returned as is; anything else (HTML error
    pages, plain text, JSON scalars or arrays) is kept under ``raw``.
    """
    data: dict[str, Any]
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        parsed = None
    data = parsed if isinstance(parsed, dict) else {"raw": text}
    return ExchangeResult(ok=200 <= status < 300, status=status, data=data)


class TokenExchangeClient:
    """Async client posting code exchanges straight to a token endpoint."""

    def __init__(
        self,
        config: ExchangeConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the exchange client.

        Args:
            config: Exchange configuration (timeouts, TLS).
            client: Optional pre-built client; closed by the caller.
        """
        self.config = config or ExchangeConfig()
        self._owns_client = client is None
        self._http = client or create_async_http_client(self.config)
        self._logger = get_logger()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def exchange(self, request: ExchangeRequest) -> ExchangeResult:
        """POST the code exchange and interpret the response.

        No retry is attempted; authorization codes are single-use.

        Raises:
            ExchangeFailedError: On transport failure (including timeouts).
        """
        with trace_operation(
            "token_exchange",
            attributes={
                "http.url": request.token_endpoint,
                "pkce": bool(request.code_verifier),
            },
        ):
            try:
                response = await self._http.post(
                    request.token_endpoint,
                    content=request.form_body,
                    headers={"Content-Type": FORM_CONTENT_TYPE},
                )
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                error = ErrorFactory.from_exception(
                    e,
                    endpoint=request.token_endpoint,
                    timeout_seconds=self.config.timeout,
                )
                self._logger.warning(
                    "Token exchange failed",
                    endpoint=request.token_endpoint,
                    error=error.message,
                    correlation_id=error.correlation_id,
                )
                raise error from e

            result = interpret_response(response.status_code, response.text)
            self._logger.info(
                "Token exchange completed",
                endpoint=request.token_endpoint,
                status=result.status,
                ok=result.ok,
            )
            return result

