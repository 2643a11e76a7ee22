"""Pydantic models for OIDC Debugger.

Frozen Pydantic v2 models for the values passed between the builder,
callback parser, JWT decoder and token exchange.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Self
from urllib.parse import urlencode

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class PkceMethod(StrEnum):
    """PKCE code challenge methods (RFC 7636 §4.2) plus ``none``."""

    NONE = "none"
    PLAIN = "plain"
    S256 = "S256"


class ResponseMode(StrEnum):
    """How the provider delivers callback parameters."""

    QUERY = "query"
    FRAGMENT = "fragment"
    FORM_POST = "form_post"


class DecodeStatus(StrEnum):
    """Classification of a JWT decode attempt."""

    OK = "ok"
    NO_TOKEN = "no_token"
    NOT_JWT = "not_jwt"
    DECODE_FAILED = "decode_failed"


def parse_extra_params(text: str | None) -> dict[str, str]:
    """Parse newline-delimited ``key=value`` lines.

    Blank lines and lines without ``=`` are skipped. The first ``=`` is the
    delimiter, keys and values are trimmed and later keys win.
    """
    out: dict[str, str] = {}
    if not text:
        return out
    for line in text.splitlines():
        trimmed = line.strip()
        if not trimmed or "=" not in trimmed:
            continue
        key, _, value = trimmed.partition("=")
        key = key.strip()
        if key:
            out[key] = value.strip()
    return out


class AuthRequestParams(BaseModel):
    """Authorization request as entered by the user (or loaded from a profile)."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, extra="ignore")

    authorization_endpoint: str = ""
    client_id: str = ""
    redirect_uri: str = ""
    scope: str = ""
    response_type: str = ""
    response_mode: str = ""
    state: str = ""
    nonce: str = ""
    # "pkce" is the key the browser tool used in exported profiles.
    pkce_method: str = Field(
        default=PkceMethod.NONE.value,
        validation_alias=AliasChoices("pkce_method", "pkce"),
    )
    code_verifier: str = ""
    code_challenge: str = ""
    extra_params: str = ""

    @field_validator("response_mode")
    @classmethod
    def validate_response_mode(cls, v: str) -> str:
        """Allow unset or one of query, fragment, form_post."""
        if v and v not in {m.value for m in ResponseMode}:
            msg = f"Unsupported response_mode: {v}"
            raise ValueError(msg)
        return v

    @field_validator("extra_params", mode="before")
    @classmethod
    def coerce_extra_params(cls, v: Any) -> Any:
        """Accept a mapping and store it as ``key=value`` lines."""
        if isinstance(v, dict):
            return "\n".join(f"{k}={val}" for k, val in v.items())
        if v is None:
            return ""
        return v

    @property
    def response_types(self) -> set[str]:
        """response_type as a set of space-delimited tokens."""
        return set(self.response_type.split())

    @property
    def requires_nonce(self) -> bool:
        """OIDC requires a nonce whenever an id_token is requested directly."""
        return "id_token" in self.response_types

    @property
    def extra_params_map(self) -> dict[str, str]:
        """Parsed extra parameters, in insertion order."""
        return parse_extra_params(self.extra_params)

    def with_overrides(self, **kwargs: Any) -> Self:
        """Create new params with overridden values."""
        data = self.model_dump()
        data.update(kwargs)
        return self.__class__(**data)


class PkceMaterial(BaseModel):
    """Code verifier and the challenge derived from it."""

    model_config = ConfigDict(frozen=True)

    method: str
    verifier: str = ""
    challenge: str = ""


class SegmentFailure(BaseModel):
    """Stands in for a JWT header or payload that could not be decoded."""

    model_config = ConfigDict(frozen=True)

    segment: str
    error: str

    @property
    def message(self) -> str:
        return f"Failed to decode {self.segment}"


class DecodedToken(BaseModel):
    """Unverified view of a compact-serialized JWT."""

    model_config = ConfigDict(frozen=True)

    status: DecodeStatus
    header: dict[str, Any] | SegmentFailure | None = Field(
        default=None, union_mode="left_to_right"
    )
    payload: dict[str, Any] | SegmentFailure | None = Field(
        default=None, union_mode="left_to_right"
    )
    segments: tuple[str, ...] = ()
    signature: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == DecodeStatus.OK

    @property
    def claims(self) -> dict[str, Any]:
        """Payload claims, or an empty dict when the payload did not decode."""
        return self.payload if isinstance(self.payload, dict) else {}

    def to_display(self) -> dict[str, Any]:
        """JSON-friendly view: header and payload, failures spelled out."""

        def _part(part: dict[str, Any] | SegmentFailure | None) -> Any:
            if isinstance(part, SegmentFailure):
                return {"error": part.message, "detail": part.error}
            return part

        return {
            "status": self.status.value,
            "header": _part(self.header),
            "payload": _part(self.payload),
        }


class TokenSet(BaseModel):
    """Tokens and token metadata found in a callback or exchange response."""

    model_config = ConfigDict(frozen=True)

    access_token: str | None = None
    id_token: str | None = None
    refresh_token: str | None = None
    token_type: str | None = None
    expires_in: str | None = None
    scope: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def coerce_to_text(cls, v: Any) -> Any:
        """Provider JSON may carry numbers (expires_in); keep everything as text."""
        if v is None or isinstance(v, str):
            return v
        return str(v)

    def merged_with(self, fallback: TokenSet) -> TokenSet:
        """Fill fields that are unset here from ``fallback``."""
        data = {
            k: v if v is not None else getattr(fallback, k)
            for k, v in self.model_dump().items()
        }
        return TokenSet(**data)


CALLBACK_FIELDS = (
    "code",
    "id_token",
    "access_token",
    "token_type",
    "scope",
    "expires_in",
    "refresh_token",
    "state",
    "error",
    "error_description",
)


class CallbackResult(BaseModel):
    """Parameters returned to the redirect URI, split by delivery channel."""

    model_config = ConfigDict(frozen=True)

    query_params: dict[str, str] = Field(default_factory=dict)
    fragment_params: dict[str, str] = Field(default_factory=dict)

    def get(self, name: str) -> str | None:
        """Look up ``name``: non-empty query value first, then the fragment."""
        return self.query_params.get(name) or self.fragment_params.get(name) or None

    @property
    def code(self) -> str | None:
        return self.get("code")

    @property
    def id_token(self) -> str | None:
        return self.get("id_token")

    @property
    def access_token(self) -> str | None:
        return self.get("access_token")

    @property
    def state(self) -> str | None:
        return self.get("state")

    @property
    def error(self) -> str | None:
        return self.get("error")

    @property
    def error_description(self) -> str | None:
        return self.get("error_description")

    def extracted(self) -> dict[str, str]:
        """All known callback fields that are present in either channel."""
        out: dict[str, str] = {}
        for name in CALLBACK_FIELDS:
            value = self.get(name)
            if value is not None:
                out[name] = value
        return out

    def tokens(self) -> TokenSet:
        return TokenSet(
            access_token=self.get("access_token"),
            id_token=self.get("id_token"),
            refresh_token=self.get("refresh_token"),
            token_type=self.get("token_type"),
            expires_in=self.get("expires_in"),
            scope=self.get("scope"),
        )


class AuthContext(BaseModel):
    """What must survive the redirect to finish a code exchange."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    client_id: str
    redirect_uri: str
    code_verifier: str = ""
    scope: str = ""
    response_type: str = ""
    state: str = ""
    nonce: str = ""
    pkce_method: str = PkceMethod.NONE.value
    built_url: str = ""

    @classmethod
    def from_params(cls, params: AuthRequestParams, built_url: str) -> Self:
        """Snapshot resolved request params right before redirecting."""
        return cls(
            client_id=params.client_id,
            redirect_uri=params.redirect_uri,
            code_verifier=params.code_verifier,
            scope=params.scope,
            response_type=params.response_type,
            state=params.state,
            nonce=params.nonce,
            pkce_method=params.pkce_method,
            built_url=built_url,
        )


class ExchangeRequest(BaseModel):
    """Authorization code grant request (RFC 6749 §4.1.3, RFC 7636 §4.5)."""

    model_config = ConfigDict(frozen=True)

    token_endpoint: str
    client_id: str
    redirect_uri: str
    code: str
    code_verifier: str | None = None

    def to_form_data(self) -> dict[str, str]:
        """Form fields in wire order; code_verifier only when set."""
        data: dict[str, str] = {
            "grant_type": "authorization_code",
            "code": self.code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
        }
        if self.code_verifier:
            data["code_verifier"] = self.code_verifier
        return data

    @property
    def form_body(self) -> str:
        """``application/x-www-form-urlencoded`` request body."""
        return urlencode(self.to_form_data())

    def to_relay_payload(self) -> dict[str, str]:
        """JSON body accepted by the relay's exchange endpoint."""
        payload = {
            "token_endpoint": self.token_endpoint,
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "code": self.code,
        }
        if self.code_verifier:
            payload["code_verifier"] = self.code_verifier
        return payload


class ExchangeResult(BaseModel):
    """Token endpoint response as relayed to the caller."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    status: int
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_raw(self) -> bool:
        """True when the body was not JSON and is wrapped under ``raw``."""
        return set(self.data) == {"raw"}

    def tokens(self) -> TokenSet:
        d = self.data
        return TokenSet(
            access_token=d.get("access_token") or d.get("token"),
            id_token=d.get("id_token"),
            refresh_token=d.get("refresh_token"),
            token_type=d.get("token_type"),
            expires_in=d.get("expires_in"),
            scope=d.get("scope"),
        )
