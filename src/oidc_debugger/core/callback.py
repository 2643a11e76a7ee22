"""Callback parameter parsing.

Providers return parameters in the query string (``response_mode=query``)
or in the fragment (implicit and hybrid flows). Both channels are parsed
independently; lookups prefer the query and fall back to the fragment.
"""

from __future__ import annotations

from urllib.parse import parse_qsl

from ..models import CallbackResult


def parse_form_params(text: str) -> dict[str, str]:
    """Parse ``application/x-www-form-urlencoded`` text.

    The last occurrence of a repeated key wins. Malformed input never
    raises; undecodable percent-escapes are replaced.
    """
    if not text:
        return {}
    return dict(parse_qsl(text, keep_blank_values=True, errors="replace"))


def split_callback_url(url: str) -> tuple[str, str]:
    """Return the raw (query, fragment) substrings of ``url``.

    The query runs from the first ``?`` up to the first ``#``; a ``?``
    inside the fragment does not start a query.
    """
    before_hash, _, fragment = url.partition("#")
    _, _, query = before_hash.partition("?")
    return query, fragment


def parse_callback(url: str | None) -> CallbackResult:
    """Parse a redirect URL into query and fragment parameter mappings."""
    if not url:
        return CallbackResult()
    query, fragment = split_callback_url(url)
    return CallbackResult(
        query_params=parse_form_params(query),
        fragment_params=parse_form_params(fragment),
    )


def extract_code(value: str) -> str:
    """Pull an authorization code out of a pasted redirect URL or bare code.

    Returns an empty string when a URL carries no ``code`` parameter.
    """
    value = value.strip()
    if "?" not in value and "#" not in value and "=" not in value:
        return value
    return parse_callback(value).code or ""
