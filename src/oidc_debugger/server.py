"""Relay HTTP service.

Browsers cannot POST to most token endpoints directly (CORS), so the
relay forwards code exchanges server-side and hands the raw provider
response back. It also serves the callback as JSON so a pasted redirect
can be inspected without the browser UI.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from . import __version__
from .config import DebuggerSettings
from .core.callback import parse_callback
from .core.jwt_decoder import decode_jwt
from .core.token_exchange import TokenExchangeClient, build_exchange_request
from .errors import ExchangeFailedError, ValidationError
from .telemetry import get_logger

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "Pragma": "no-cache",
    "Expires": "0",
}


class ExchangeTokenBody(BaseModel):
    """JSON body of ``POST /api/exchange-token``."""

    model_config = ConfigDict(extra="ignore")

    token_endpoint: str | None = None
    client_id: str | None = None
    redirect_uri: str | None = None
    code: str | None = None
    code_verifier: str | None = None


class DecodeBody(BaseModel):
    token: str | None = None


def create_app(
    settings: DebuggerSettings | None = None,
    *,
    exchange_client: TokenExchangeClient | None = None,
) -> FastAPI:
    """Create the relay application.

    Args:
        settings: Debugger settings; defaults are used when omitted.
        exchange_client: Optional pre-built client (tests inject one backed
            by ``httpx.MockTransport``).
    """
    settings = settings or DebuggerSettings()
    logger = get_logger()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        if app.state.exchange_client is not None:
            await app.state.exchange_client.close()

    app = FastAPI(
        lifespan=lifespan,
        title="OIDC Debugger relay",
        description="Relays authorization code exchanges and decodes callbacks",
        version=__version__,
    )
    app.state.settings = settings
    app.state.exchange_client = exchange_client

    async def _exchange_client() -> TokenExchangeClient:
        if app.state.exchange_client is None:
            app.state.exchange_client = TokenExchangeClient(settings.exchange)
        return app.state.exchange_client

    @app.post("/api/exchange-token")
    async def exchange_token(body: ExchangeTokenBody) -> JSONResponse:
        try:
            request = build_exchange_request(
                body.token_endpoint or "",
                body.client_id or "",
                body.redirect_uri or "",
                body.code or "",
                body.code_verifier,
            )
        except ValidationError as e:
            logger.info("Exchange request rejected", field=e.field)
            return JSONResponse(
                {"error": "missing_required_fields", "field": e.field},
                status_code=400,
            )

        client = await _exchange_client()
        try:
            result = await client.exchange(request)
        except ExchangeFailedError as e:
            return JSONResponse(
                {"ok": False, "error": "exchange_failed", "message": e.message},
                status_code=500,
            )
        return JSONResponse(result.model_dump(), status_code=result.status)

    @app.get(settings.callback_path)
    async def callback(request: Request) -> JSONResponse:
        # Fragments never reach the server; only the query is visible here.
        result = parse_callback(str(request.url))
        id_token = result.id_token
        payload: dict[str, Any] = {
            "query": result.query_params,
            "fragment": result.fragment_params,
            "extracted": result.extracted(),
            "id_token": decode_jwt(id_token).to_display() if id_token else None,
        }
        return JSONResponse(payload, headers=NO_STORE_HEADERS)

    @app.post("/api/decode")
    async def decode(body: DecodeBody) -> JSONResponse:
        decoded = decode_jwt(body.token)
        return JSONResponse(decoded.to_display(), headers=NO_STORE_HEADERS)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return app


def run(settings: DebuggerSettings | None = None) -> None:
    """Serve the relay with uvicorn."""
    import uvicorn

    settings = settings or DebuggerSettings()
    logger = get_logger()
    logger.info(
        "OIDC Debugger relay starting",
        url=f"http://{settings.host}:{settings.port}",
        callback=f"http://{settings.host}:{settings.port}{settings.callback_path}",
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
