"""Unverified JWT decoding for display.

Splits a compact-serialized token and decodes the header and payload
segments. The signature is never decoded or checked; everything returned
here is untrusted and meant for inspection only.
"""

from __future__ import annotations

import json
from typing import Any

from ..codec import base64url_decode, from_bytes
from ..errors import DecodeError
from ..models import DecodedToken, DecodeStatus, SegmentFailure


def decode_segment(segment: str, label: str) -> dict[str, Any]:
    """Decode one base64url JSON segment into an object.

    Raises:
        DecodeError: If the segment is not base64url, not UTF-8, not JSON
            or not a JSON object.
    """
    text = from_bytes(base64url_decode(segment))
    try:
        value = json.loads(text)
    except (ValueError, RecursionError) as e:
        msg = f"Invalid JSON in {label}: {e}"
        raise DecodeError(msg, segment=label) from e
    if not isinstance(value, dict):
        msg = f"{label} is not a JSON object"
        raise DecodeError(msg, segment=label)
    return value


def _decode_part(segment: str, label: str) -> dict[str, Any] | SegmentFailure:
    try:
        return decode_segment(segment, label)
    except DecodeError as e:
        return SegmentFailure(segment=label, error=e.message)


def decode_jwt(token: str | None) -> DecodedToken:
    """Classify and decode ``token`` without verifying it.

    Never raises. A token with a segment count other than three is
    reported as ``not_jwt``, but its first two segments are still decoded
    when present so a token with a missing signature remains inspectable.
    """
    token = (token or "").strip()
    if not token:
        return DecodedToken(status=DecodeStatus.NO_TOKEN)

    segments = tuple(token.split("."))
    if len(segments) < 2:
        return DecodedToken(status=DecodeStatus.NOT_JWT, segments=segments)

    header = _decode_part(segments[0], "header")
    payload = _decode_part(segments[1], "payload")

    if len(segments) != 3:
        status = DecodeStatus.NOT_JWT
    elif isinstance(header, SegmentFailure) or isinstance(payload, SegmentFailure):
        status = DecodeStatus.DECODE_FAILED
    else:
        status = DecodeStatus.OK

    return DecodedToken(
        status=status,
        header=header,
        payload=payload,
        segments=segments,
        signature=segments[2] if len(segments) == 3 else None,
    )
