"""JSON file cache holding the last known company profile.

The in-memory backend has no Settings sheet, so the profile is written
through to this file and read back from it when the process starts again.
"""
from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Optional

from cleanswift import app_paths
from cleanswift.models import UserProfile

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "user_profile.json"


class ProfileCache:
    """Persist a :class:`UserProfile` as a JSON document on disk."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or app_paths.CACHE_DIR / DEFAULT_FILENAME
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> Optional[UserProfile]:
        """Return the cached profile, or ``None`` when nothing usable is stored."""

        with self._lock:
            if not self._path.exists():
                return None
            try:
                with self._path.open("r", encoding="utf-8") as handle:
                    payload = json.load(handle)
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Ignoring unreadable profile cache %s: %s", self._path, exc)
                return None
        if not isinstance(payload, dict):
            return None
        return UserProfile.from_dict(payload)

    def set(self, profile: UserProfile) -> None:
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(".tmp")
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(profile.to_dict(), handle, ensure_ascii=False, indent=2)
            tmp_path.replace(self._path)

    def clear(self) -> None:
        with self._lock:
            try:
                self._path.unlink()
            except FileNotFoundError:
                pass


__all__ = ["DEFAULT_FILENAME", "ProfileCache"]
