"""Named profile storage.

Profiles are saved sets of authorization request fields. They live in a
single JSON document using the same namespaced key layout as the browser
tool's local storage::

    oidcdbg:v1:profiles            -> ["name", ...]
    oidcdbg:v1:profile:<name>      -> {serialized AuthRequestParams}

Each write replaces the whole document via temp file + ``os.replace``, so
a reader sees either the previous state or the new one.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .errors import DecodeError, ValidationError
from .models import AuthRequestParams
from .telemetry import get_logger

NAMESPACE = "oidcdbg:v1"
PROFILES_KEY = f"{NAMESPACE}:profiles"


def profile_key(name: str) -> str:
    return f"{NAMESPACE}:profile:{name}"


def _atomic_write(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, sort_keys=True)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class ProfileStore:
    """JSON-file backed profile store."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._logger = get_logger()

    def _read(self) -> dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except UnicodeDecodeError:
            self._logger.warning("Profile storage is corrupt, ignoring", path=str(self.path))
            return {}
        try:
            data = json.loads(raw)
        except (ValueError, RecursionError):
            self._logger.warning("Profile storage is corrupt, ignoring", path=str(self.path))
            return {}
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _require_name(name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Profile name required", field="profile_name")
        return name

    @staticmethod
    def _names(data: dict[str, Any]) -> list[str]:
        names = data.get(PROFILES_KEY, [])
        if not isinstance(names, list):
            return []
        return [n for n in names if isinstance(n, str)]

    def list_profiles(self) -> list[str]:
        """Saved profile names, in save order."""
        return self._names(self._read())

    def save(self, name: str, params: AuthRequestParams) -> None:
        """Store ``params`` under ``name``, replacing any previous profile."""
        name = self._require_name(name)
        data = self._read()
        data[profile_key(name)] = params.model_dump()
        names = self._names(data)
        if name not in names:
            names.append(name)
        data[PROFILES_KEY] = names
        _atomic_write(self.path, data)
        self._logger.info("Profile saved", profile=name)

    def load(self, name: str) -> AuthRequestParams | None:
        """Load a profile, or None if it does not exist.

        Raises:
            DecodeError: If the stored blob is not a valid profile.
        """
        name = self._require_name(name)
        blob = self._read().get(profile_key(name))
        if blob is None:
            return None
        if not isinstance(blob, dict):
            msg = f"Profile {name!r} is not a JSON object"
            raise DecodeError(msg, segment="profile")
        try:
            return AuthRequestParams.model_validate(blob)
        except PydanticValidationError as e:
            msg = f"Profile {name!r} is invalid: {e.error_count()} error(s)"
            raise DecodeError(msg, segment="profile") from e

    def delete(self, name: str) -> bool:
        """Remove a profile. Returns False if it did not exist."""
        name = self._require_name(name)
        data = self._read()
        existed = data.pop(profile_key(name), None) is not None
        names = self._names(data)
        data[PROFILES_KEY] = [n for n in names if n != name]
        _atomic_write(self.path, data)
        if existed:
            self._logger.info("Profile deleted", profile=name)
        return existed
