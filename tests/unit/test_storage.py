"""Unit tests for profile storage."""

import json
from pathlib import Path

import pytest

from oidc_debugger.errors import DecodeError, ValidationError
from oidc_debugger.models import AuthRequestParams
from oidc_debugger.storage import PROFILES_KEY, ProfileStore, profile_key


class TestProfileStore:
    """Tests for save/load/list/delete."""

    def test_empty_store(self, profile_store: ProfileStore) -> None:
        assert profile_store.list_profiles() == []
        assert profile_store.load("missing") is None

    def test_round_trip(self, profile_store: ProfileStore, base_params: AuthRequestParams) -> None:
        params = base_params.with_overrides(pkce_method="S256", extra_params="prompt=login")
        profile_store.save("okta-dev", params)
        assert profile_store.load("okta-dev") == params
        assert profile_store.list_profiles() == ["okta-dev"]

    def test_key_layout(self, profile_store: ProfileStore, base_params: AuthRequestParams) -> None:
        profile_store.save("a", base_params)
        data = json.loads(profile_store.path.read_text())
        assert data[PROFILES_KEY] == ["a"]
        assert data[profile_key("a")]["client_id"] == "test-client-id"
        assert profile_key("a") == "oidcdbg:v1:profile:a"

    def test_overwrite_keeps_single_name(
        self, profile_store: ProfileStore, base_params: AuthRequestParams
    ) -> None:
        profile_store.save("a", base_params)
        profile_store.save("b", base_params)
        profile_store.save("a", base_params.with_overrides(scope="openid"))
        assert profile_store.list_profiles() == ["a", "b"]
        assert profile_store.load("a").scope == "openid"

    def test_delete(self, profile_store: ProfileStore, base_params: AuthRequestParams) -> None:
        profile_store.save("a", base_params)
        assert profile_store.delete("a") is True
        assert profile_store.delete("a") is False
        assert profile_store.list_profiles() == []
        assert profile_store.load("a") is None

    def test_name_is_required(self, profile_store: ProfileStore, base_params: AuthRequestParams) -> None:
        with pytest.raises(ValidationError) as exc_info:
            profile_store.save("  ", base_params)
        assert exc_info.value.field == "profile_name"

    def test_corrupt_file_reads_as_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "profiles.json"
        path.write_text("{not json")
        assert ProfileStore(path).list_profiles() == []

    @pytest.mark.parametrize(
        "content",
        [b"\xff\xfe{}", b'{"n": ' + b"1" * 5000 + b"}"],
        ids=["not-utf8", "oversized-integer"],
    )
    def test_undecodable_file_reads_as_empty(
        self, tmp_path: Path, base_params: AuthRequestParams, content: bytes
    ) -> None:
        path = tmp_path / "profiles.json"
        path.write_bytes(content)
        store = ProfileStore(path)
        assert store.list_profiles() == []
        assert store.load("a") is None
        store.save("a", base_params)
        assert store.list_profiles() == ["a"]

    def test_invalid_blob_raises_decode_error(self, tmp_path: Path) -> None:
        path = tmp_path / "profiles.json"
        path.write_text(json.dumps({profile_key("x"): "just a string"}))
        with pytest.raises(DecodeError) as exc_info:
            ProfileStore(path).load("x")
        assert exc_info.value.segment == "profile"

    def test_legacy_pkce_key(self, tmp_path: Path) -> None:
        path = tmp_path / "profiles.json"
        path.write_text(
            json.dumps(
                {
                    PROFILES_KEY: ["legacy"],
                    profile_key("legacy"): {"client_id": "c", "pkce": "S256", "extra_params": ""},
                }
            )
        )
        assert ProfileStore(path).load("legacy").pkce_method == "S256"

    def test_creates_parent_directory(self, tmp_path: Path, base_params: AuthRequestParams) -> None:
        store = ProfileStore(tmp_path / "nested" / "dir" / "profiles.json")
        store.save("a", base_params)
        assert store.path.exists()

    def test_no_temp_files_left(self, profile_store: ProfileStore, base_params: AuthRequestParams) -> None:
        profile_store.save("a", base_params)
        assert [p.name for p in profile_store.path.parent.iterdir()] == ["profiles.json"]
