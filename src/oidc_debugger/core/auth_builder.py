"""Authorization request builder.

Turns user-entered :class:`AuthRequestParams` into a provider-ready
authorization URL: fills state/nonce, resolves PKCE, validates and
serializes the query string.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from ..errors import ValidationError
from ..models import AuthContext, AuthRequestParams, PkceMethod
from ..pkce import (
    derive_pkce,
    generate_nonce,
    generate_state,
    is_valid_code_verifier,
    normalize_method,
)
from ..telemetry import get_logger, trace_operation

if TYPE_CHECKING:
    from ..codec import RandomSource
    from ..pkce import DigestFunction


REQUIRED_FIELDS = (
    "authorization_endpoint",
    "client_id",
    "redirect_uri",
    "scope",
    "response_type",
)


@dataclass(frozen=True)
class AuthorizationResult:
    """Outcome of building an authorization URL.

    Exactly one of ``url`` and ``error`` is set. ``params`` always holds the
    resolved values (generated state, nonce and PKCE material included) so
    they can be shown back to the user even when validation fails.
    """

    params: AuthRequestParams
    url: str | None = None
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.url is not None

    def context(self) -> AuthContext:
        """Snapshot to keep until the callback arrives."""
        if self.url is None:
            msg = "Cannot create an auth context for a failed build"
            raise ValueError(msg)
        return AuthContext.from_params(self.params, self.url)


def validate_params(params: AuthRequestParams) -> ValidationError | None:
    """Return the first validation error, or None when ``params`` are complete."""
    for field in REQUIRED_FIELDS:
        if not getattr(params, field):
            return ValidationError.required(field)
    if params.requires_nonce and not params.nonce:
        return ValidationError(
            "nonce is required when response_type includes id_token",
            field="nonce",
        )
    return None


def build_query_params(params: AuthRequestParams) -> dict[str, str]:
    """Query parameters in wire order.

    Extra parameters are applied after the standard ones and may override
    them; ``response_mode`` goes last.
    """
    query: dict[str, str] = {
        "client_id": params.client_id,
        "redirect_uri": params.redirect_uri,
        "scope": params.scope,
        "response_type": params.response_type,
    }
    if params.state:
        query["state"] = params.state
    if params.nonce:
        query["nonce"] = params.nonce

    if normalize_method(params.pkce_method) is not PkceMethod.NONE:
        query["code_challenge_method"] = params.pkce_method
        query["code_challenge"] = params.code_challenge

    query.update(params.extra_params_map)

    if params.response_mode:
        query["response_mode"] = params.response_mode
    return query


def join_endpoint(endpoint: str, query: str) -> str:
    """Append ``query`` to ``endpoint``, respecting an existing query string."""
    separator = "&" if "?" in endpoint else "?"
    return f"{endpoint}{separator}{query}"


class AuthorizationBuilder:
    """Builds authorization URLs with injectable randomness and digest.

    Injecting ``random_source`` and ``digest`` makes generated state, nonce
    and PKCE values reproducible in tests.
    """

    def __init__(
        self,
        *,
        random_source: RandomSource | None = None,
        digest: DigestFunction | None = None,
    ) -> None:
        self._random_source = random_source
        self._digest = digest
        self._logger = get_logger()

    def fill_defaults(self, params: AuthRequestParams) -> AuthRequestParams:
        """Generate state, nonce (when id_token is requested) and PKCE material.

        Raises:
            UnsupportedPkceMethodError: If ``params.pkce_method`` is unknown.
        """
        updates: dict[str, str] = {}
        if not params.state:
            updates["state"] = generate_state(random_source=self._random_source)
        if params.requires_nonce and not params.nonce:
            updates["nonce"] = generate_nonce(random_source=self._random_source)

        pkce = derive_pkce(
            params.pkce_method,
            params.code_verifier or None,
            random_source=self._random_source,
            digest=self._digest,
        )
        updates["pkce_method"] = pkce.method
        updates["code_verifier"] = pkce.verifier
        updates["code_challenge"] = pkce.challenge

        if pkce.method != PkceMethod.NONE and not is_valid_code_verifier(pkce.verifier):
            self._logger.warning(
                "Code verifier does not meet RFC 7636 length/charset rules",
                verifier_length=len(pkce.verifier),
            )
        return params.model_copy(update=updates)

    def build(self, params: AuthRequestParams) -> AuthorizationResult:
        """Build the authorization URL for ``params``.

        Returns:
            AuthorizationResult with either ``url`` or the first
            :class:`ValidationError`.

        Raises:
            UnsupportedPkceMethodError: If ``params.pkce_method`` is unknown.
        """
        with trace_operation(
            "build_authorization_url",
            attributes={"pkce.method": params.pkce_method},
        ):
            resolved = self.fill_defaults(params)
            error = validate_params(resolved)
            if error is not None:
                self._logger.info("Authorization request invalid", field=error.field)
                return AuthorizationResult(params=resolved, error=error)

            query = urlencode(build_query_params(resolved))
            url = join_endpoint(resolved.authorization_endpoint, query)
            self._logger.debug(
                "Built authorization URL",
                endpoint=resolved.authorization_endpoint,
                response_type=resolved.response_type,
                pkce_method=resolved.pkce_method,
            )
            return AuthorizationResult(params=resolved, url=url)


def build_authorization_url(
    params: AuthRequestParams,
    *,
    random_source: RandomSource | None = None,
    digest: DigestFunction | None = None,
) -> AuthorizationResult:
    """Convenience wrapper around :meth:`AuthorizationBuilder.build`."""
    builder = AuthorizationBuilder(random_source=random_source, digest=digest)
    return builder.build(params)
