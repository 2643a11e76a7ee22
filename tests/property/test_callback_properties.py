"""
Property-based tests for callback parsing and JWT decoding.

Neither operation raises for any input string.
"""

from urllib.parse import urlencode

from hypothesis import given, settings, strategies as st

from oidc_debugger.core.callback import parse_callback
from oidc_debugger.core.jwt_decoder import decode_jwt
from oidc_debugger.models import DecodedToken, DecodeStatus

param_strategy = st.dictionaries(
    st.text(alphabet="abcdefghijklmnopqrstuvwxyz_", min_size=1, max_size=12),
    st.text(max_size=30),
    max_size=6,
)


class TestParseCallbackProperties:
    @given(url=st.text(max_size=200))
    @settings(max_examples=300)
    def test_never_raises(self, url: str) -> None:
        result = parse_callback(url)
        assert isinstance(result.query_params, dict)
        assert isinstance(result.fragment_params, dict)

    @given(query=param_strategy, fragment=param_strategy)
    def test_channels_round_trip(self, query: dict, fragment: dict) -> None:
        url = f"https://x/cb?{urlencode(query)}#{urlencode(fragment)}"
        result = parse_callback(url)
        assert result.query_params == query
        assert result.fragment_params == fragment

    @given(query=param_strategy, fragment=param_strategy)
    def test_query_precedence(self, query: dict, fragment: dict) -> None:
        result = parse_callback(f"https://x/cb?{urlencode(query)}#{urlencode(fragment)}")
        for key in set(query) | set(fragment):
            expected = query.get(key) or fragment.get(key) or None
            assert result.get(key) == expected


class TestDecodeJwtProperties:
    @given(token=st.text(max_size=300))
    @settings(max_examples=300)
    def test_never_raises(self, token: str) -> None:
        decoded = decode_jwt(token)
        assert isinstance(decoded, DecodedToken)
        assert decoded.status in set(DecodeStatus)

    @given(parts=st.lists(st.text(alphabet="abcXYZ019-_", max_size=12), min_size=4, max_size=6))
    def test_wrong_segment_count_is_not_jwt(self, parts: list[str]) -> None:
        assert decode_jwt(".".join(parts)).status is DecodeStatus.NOT_JWT
