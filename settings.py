"""Application configuration helpers for CleanSwift."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from cleanswift import app_paths
from cleanswift.sheets_client import SPREADSHEET_NAME


logger = logging.getLogger(__name__)


BACKEND_SETTINGS_PATH = str(app_paths.data_path("backend_settings.json"))
DEFAULT_CREDENTIALS_PATH = str(app_paths.APP_DIR / "credentials" / "service_account.json")
DEFAULT_LATENCY = 0.3
DEFAULT_QUICK_LATENCY = 0.1
MAX_LATENCY = 5.0

ENV_OVERRIDES: Mapping[str, str] = {
    "CLEANSWIFT_SPREADSHEET_NAME": "spreadsheet_name",
    "CLEANSWIFT_SPREADSHEET_ID": "spreadsheet_id",
    "CLEANSWIFT_CREDENTIALS_PATH": "credentials_path",
    "CLEANSWIFT_ACCESS_TOKEN": "access_token",
}


class SettingsError(RuntimeError):
    """Raised when the settings file cannot be parsed."""


@dataclass
class BackendSettings:
    spreadsheet_name: str = SPREADSHEET_NAME
    spreadsheet_id: str = ""
    credentials_path: str = DEFAULT_CREDENTIALS_PATH
    access_token: str = ""
    use_remote: bool = False
    latency_seconds: float = DEFAULT_LATENCY
    quick_latency_seconds: float = DEFAULT_QUICK_LATENCY
    log_level: str = "INFO"

    def credential(self) -> Optional[str]:
        """Return the access token if set, otherwise the credentials file path."""

        if self.access_token:
            return self.access_token
        if self.credentials_path and os.path.exists(self.credentials_path):
            return self.credentials_path
        return None

    def to_json(self) -> Dict[str, object]:
        # Access tokens are short lived and never written to disk.
        return {
            "spreadsheet_name": self.spreadsheet_name,
            "spreadsheet_id": self.spreadsheet_id,
            "credentials_path": self.credentials_path,
            "use_remote": self.use_remote,
            "latency_seconds": self.latency_seconds,
            "quick_latency_seconds": self.quick_latency_seconds,
            "log_level": self.log_level,
        }


def _clamp_latency(value: object, default: float) -> float:
    try:
        return max(0.0, min(MAX_LATENCY, float(value)))
    except (TypeError, ValueError):
        return default


def _ensure_backend_settings(path: str) -> Dict[str, object]:
    defaults = BackendSettings().to_json()
    if not os.path.exists(path):
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(defaults, handle, indent=2)
        return dict(defaults)

    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise SettingsError(f"Could not parse {path}: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise SettingsError(f"{path} must contain a JSON object")

    merged: Dict[str, object] = dict(defaults)
    for key, value in data.items():
        if key == "latency_seconds":
            merged[key] = _clamp_latency(value, DEFAULT_LATENCY)
        elif key == "quick_latency_seconds":
            merged[key] = _clamp_latency(value, DEFAULT_QUICK_LATENCY)
        elif key == "use_remote":
            merged[key] = bool(value)
        elif key in defaults and isinstance(value, str):
            merged[key] = value
    return merged


def load_backend_settings(
    path: str = BACKEND_SETTINGS_PATH,
    environ: Optional[Mapping[str, str]] = None,
) -> BackendSettings:
    data = _ensure_backend_settings(path)
    environ = os.environ if environ is None else environ
    settings = BackendSettings(
        spreadsheet_name=str(data.get("spreadsheet_name") or SPREADSHEET_NAME),
        spreadsheet_id=str(data.get("spreadsheet_id", "")),
        credentials_path=str(data.get("credentials_path", DEFAULT_CREDENTIALS_PATH)),
        use_remote=bool(data.get("use_remote", False)),
        latency_seconds=float(data.get("latency_seconds", DEFAULT_LATENCY)),
        quick_latency_seconds=float(data.get("quick_latency_seconds", DEFAULT_QUICK_LATENCY)),
        log_level=str(data.get("log_level", "INFO")),
    )
    for env_var, attribute in ENV_OVERRIDES.items():
        value = environ.get(env_var)
        if value:
            setattr(settings, attribute, value.strip())
    return settings


def save_backend_settings(settings: BackendSettings, path: str = BACKEND_SETTINGS_PATH) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(path, "w", encoding="utf-8") as handle:
        json.dump(settings.to_json(), handle, indent=2)
    logger.debug("Saved backend settings to %s", path)


__all__ = [
    "BACKEND_SETTINGS_PATH",
    "BackendSettings",
    "DEFAULT_CREDENTIALS_PATH",
    "ENV_OVERRIDES",
    "SettingsError",
    "load_backend_settings",
    "save_backend_settings",
]
