"""Command line front end for OIDC Debugger.

Typical flow:
  1. ``oidc-debugger build ... --context-file ctx.json`` prints the
     authorization URL and saves the state needed after the redirect.
  2. Sign in, then ``oidc-debugger parse '<redirect url>'`` to inspect it.
  3. ``oidc-debugger exchange --context-file ctx.json --token-endpoint ...
     --callback-url '<redirect url>'`` to trade the code for tokens.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import textwrap
import webbrowser
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError

from .config import DebuggerSettings
from .core.auth_builder import AuthorizationBuilder
from .core.callback import extract_code, parse_callback
from .core.jwt_decoder import decode_jwt
from .core.token_exchange import TokenExchangeClient, build_exchange_request
from .errors import (
    DecodeError,
    ExchangeFailedError,
    InvalidConfigError,
    UnsupportedPkceMethodError,
    ValidationError,
)
from .models import AuthContext, AuthRequestParams, PkceMethod, ResponseMode
from .pkce import derive_pkce
from .storage import ProfileStore
from .telemetry import configure_telemetry

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID = 2

DEFAULT_ENV_FILE = ".env"

# argparse dest -> AuthRequestParams field
REQUEST_ARGS = {
    "endpoint": "authorization_endpoint",
    "client_id": "client_id",
    "redirect_uri": "redirect_uri",
    "scope": "scope",
    "response_type": "response_type",
    "response_mode": "response_mode",
    "state": "state",
    "nonce": "nonce",
    "pkce": "pkce_method",
    "code_verifier": "code_verifier",
}


def _dump(data: Any) -> None:
    json.dump(data, sys.stdout, indent=2)
    print()


def _decoded_or_none(token: str | None) -> dict[str, Any] | None:
    return decode_jwt(token).to_display() if token else None


def _request_params(args: argparse.Namespace, base: AuthRequestParams) -> AuthRequestParams:
    """Apply command line overrides on top of ``base``."""
    overrides: dict[str, Any] = {}
    for dest, field in REQUEST_ARGS.items():
        value = getattr(args, dest, None)
        if value is not None:
            overrides[field] = value
    if args.extra:
        lines = [base.extra_params] if base.extra_params else []
        lines.extend(args.extra)
        overrides["extra_params"] = "\n".join(lines)
    return base.with_overrides(**overrides)


def _base_params(args: argparse.Namespace) -> AuthRequestParams:
    settings: DebuggerSettings = args.settings
    profile = getattr(args, "profile", None)
    if not profile:
        return settings.default_params()
    loaded = ProfileStore(settings.profile_path).load(profile)
    if loaded is None:
        raise ValidationError(f"Profile {profile!r} not found", field="profile_name")
    return loaded


def handle_build(args: argparse.Namespace) -> int:
    params = _request_params(args, _base_params(args))
    result = AuthorizationBuilder().build(params)
    if result.error is not None:
        _dump({"error": result.error.message, "field": result.error.field})
        return EXIT_INVALID

    if args.context_file:
        args.context_file.write_text(
            result.context().model_dump_json(indent=2), encoding="utf-8"
        )
    if args.json:
        resolved = result.params
        _dump(
            {
                "url": result.url,
                "state": resolved.state,
                "nonce": resolved.nonce,
                "pkce_method": resolved.pkce_method,
                "code_verifier": resolved.code_verifier,
                "code_challenge": resolved.code_challenge,
            }
        )
    else:
        print(result.url)
    if args.open:
        webbrowser.open(result.url)
    return EXIT_OK


def handle_parse(args: argparse.Namespace) -> int:
    result = parse_callback(args.url)
    _dump(
        {
            "query": result.query_params,
            "fragment": result.fragment_params,
            "extracted": result.extracted(),
            "id_token": _decoded_or_none(result.id_token),
            "access_token": _decoded_or_none(result.access_token),
        }
    )
    return EXIT_OK


def handle_decode(args: argparse.Namespace) -> int:
    token = args.token
    if token == "-":
        token = sys.stdin.read()
    _dump(decode_jwt(token).to_display())
    return EXIT_OK


def handle_pkce(args: argparse.Namespace) -> int:
    material = derive_pkce(args.method, args.verifier)
    _dump(material.model_dump())
    return EXIT_OK


def _load_context(path: Path) -> AuthContext:
    try:
        return AuthContext.model_validate_json(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ValidationError(f"Context file {str(path)!r} not found", field="context_file") from None
    except PydanticValidationError as e:
        msg = f"Context file {str(path)!r} is invalid: {e.error_count()} error(s)"
        raise DecodeError(msg, segment="context") from e


async def _exchange(args: argparse.Namespace) -> int:
    settings: DebuggerSettings = args.settings
    client_id, redirect_uri, verifier = args.client_id, args.redirect_uri, args.code_verifier
    if args.context_file:
        context = _load_context(args.context_file)
        client_id = client_id or context.client_id
        redirect_uri = redirect_uri or context.redirect_uri
        verifier = verifier if verifier is not None else context.code_verifier

    code = args.code
    if not code and args.callback_url:
        callback = parse_callback(args.callback_url)
        if callback.error:
            _dump({"error": callback.error, "error_description": callback.error_description})
            return EXIT_FAILURE
        code = extract_code(args.callback_url)

    request = build_exchange_request(
        args.token_endpoint or "",
        client_id or "",
        redirect_uri or settings.redirect_uri,
        code or "",
        verifier,
    )
    async with TokenExchangeClient(settings.exchange) as client:
        result = await client.exchange(request)

    tokens = result.tokens()
    _dump(
        {
            **result.model_dump(),
            "id_token_decoded": _decoded_or_none(tokens.id_token),
            "access_token_decoded": _decoded_or_none(tokens.access_token),
        }
    )
    return EXIT_OK if result.ok else EXIT_FAILURE


def handle_exchange(args: argparse.Namespace) -> int:
    return asyncio.run(_exchange(args))


def handle_profile(args: argparse.Namespace) -> int:
    settings: DebuggerSettings = args.settings
    store = ProfileStore(settings.profile_path)
    if args.profile_command == "list":
        _dump(store.list_profiles())
        return EXIT_OK
    if args.profile_command == "save":
        existing = store.load(args.name) if args.merge else None
        params = _request_params(args, existing or settings.default_params())
        store.save(args.name, params)
        _dump({"saved": args.name})
        return EXIT_OK
    if args.profile_command == "load":
        params = store.load(args.name)
        if params is None:
            _dump({"error": f"Profile {args.name!r} not found"})
            return EXIT_FAILURE
        _dump(params.model_dump())
        return EXIT_OK
    deleted = store.delete(args.name)
    _dump({"deleted": deleted})
    return EXIT_OK if deleted else EXIT_FAILURE


def handle_serve(args: argparse.Namespace) -> int:
    from .server import run

    settings: DebuggerSettings = args.settings
    overrides = {k: v for k, v in (("host", args.host), ("port", args.port)) if v is not None}
    run(settings.with_overrides(**overrides) if overrides else settings)
    return EXIT_OK


def _add_request_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--endpoint", help="Authorization endpoint URL.")
    parser.add_argument("--client-id", help="OAuth client ID.")
    parser.add_argument("--redirect-uri", help="Redirect URI registered with the provider.")
    parser.add_argument("--scope", help="Space-delimited scopes.")
    parser.add_argument("--response-type", help="e.g. 'code' or 'code id_token'.")
    parser.add_argument(
        "--response-mode",
        choices=[m.value for m in ResponseMode],
        help="How the provider should return callback parameters.",
    )
    parser.add_argument("--state", help="State value (generated when omitted).")
    parser.add_argument("--nonce", help="Nonce (generated when id_token is requested).")
    parser.add_argument(
        "--pkce",
        choices=[m.value for m in PkceMethod],
        help="PKCE challenge method.",
    )
    parser.add_argument("--code-verifier", help="Use this verifier instead of generating one.")
    parser.add_argument(
        "--extra",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Additional authorization parameter; may be repeated.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oidc-debugger",
        description=textwrap.dedent(__doc__ or "").strip(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--env-file",
        default=DEFAULT_ENV_FILE,
        help="Optional .env file with OIDC_DEBUGGER_* settings (default: %(default)s).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build an authorization URL.")
    _add_request_arguments(build)
    build.add_argument("--profile", help="Start from a saved profile.")
    build.add_argument(
        "--context-file",
        type=Path,
        help="Write the values needed for the exchange to this JSON file.",
    )
    build.add_argument("--json", action="store_true", help="Print generated values as JSON.")
    build.add_argument("--open", action="store_true", help="Open the URL in a browser.")
    build.set_defaults(func=handle_build)

    parse = subparsers.add_parser("parse", help="Inspect a redirect/callback URL.")
    parse.add_argument("url", help="Full redirect URL, including any fragment.")
    parse.set_defaults(func=handle_parse)

    decode = subparsers.add_parser("decode", help="Decode a JWT without verifying it.")
    decode.add_argument("token", help="Compact JWT, or '-' to read from stdin.")
    decode.set_defaults(func=handle_decode)

    pkce = subparsers.add_parser("pkce", help="Generate or check PKCE material.")
    pkce.add_argument(
        "--method",
        choices=[m.value for m in PkceMethod],
        default=PkceMethod.S256.value,
        help="Challenge method (default: %(default)s).",
    )
    pkce.add_argument("--verifier", help="Derive the challenge for this verifier.")
    pkce.set_defaults(func=handle_pkce)

    exchange = subparsers.add_parser("exchange", help="Exchange an authorization code.")
    exchange.add_argument("--token-endpoint", help="Token endpoint URL.")
    exchange.add_argument("--client-id", help="OAuth client ID.")
    exchange.add_argument("--redirect-uri", help="Redirect URI used in the authorization request.")
    code_group = exchange.add_mutually_exclusive_group()
    code_group.add_argument("--code", help="Authorization code.")
    code_group.add_argument("--callback-url", help="Redirect URL to take the code from.")
    exchange.add_argument("--code-verifier", help="PKCE code verifier.")
    exchange.add_argument(
        "--context-file",
        type=Path,
        help="Context written by 'build --context-file'.",
    )
    exchange.set_defaults(func=handle_exchange)

    profile = subparsers.add_parser("profile", help="Manage saved profiles.")
    profile_sub = profile.add_subparsers(dest="profile_command", required=True)
    profile_sub.add_parser("list", help="List saved profiles.")
    save = profile_sub.add_parser("save", help="Save request fields under a name.")
    save.add_argument("name")
    save.add_argument(
        "--merge",
        action="store_true",
        help="Apply the given fields on top of the existing profile.",
    )
    _add_request_arguments(save)
    load = profile_sub.add_parser("load", help="Print a saved profile.")
    load.add_argument("name")
    delete = profile_sub.add_parser("delete", help="Delete a saved profile.")
    delete.add_argument("name")
    profile.set_defaults(func=handle_profile)

    serve = subparsers.add_parser("serve", help="Run the relay server.")
    serve.add_argument("--host", help="Bind address.")
    serve.add_argument("--port", type=int, help="Bind port.")
    serve.set_defaults(func=handle_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    env_file = Path(args.env_file)
    if env_file.is_file():
        load_dotenv(env_file, override=False)
    try:
        settings = DebuggerSettings.from_env()
    except InvalidConfigError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return EXIT_INVALID
    configure_telemetry(settings.telemetry)
    args.settings = settings

    try:
        return args.func(args)
    except (ValidationError, UnsupportedPkceMethodError, DecodeError) as e:
        print(f"error: {e.message}", file=sys.stderr)
        return EXIT_INVALID
    except ExchangeFailedError as e:
        print(f"error: {e.message} (correlation_id={e.correlation_id})", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
