"""Helpers for turning user-supplied credentials into ``google-auth`` objects.

The remote backend accepts three kinds of credential:

* an existing ``google.auth`` credentials object (already authorised);
* a path to a service account JSON file, validated before use;
* a raw OAuth access token obtained by the caller's sign-in flow, which is
  attached to every request as a bearer token.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Sequence

from google.auth.credentials import Credentials as BaseCredentials
from google.oauth2 import credentials as user_credentials
from google.oauth2 import service_account

__all__ = [
    "CredentialsError",
    "CredentialsFileInvalidError",
    "REQUIRED_FIELDS",
    "SCOPES",
    "bearer_credentials",
    "load_service_account_data",
    "resolve_credentials",
    "service_account_credentials",
]

SCOPES: Sequence[str] = (
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.file",
)

REQUIRED_FIELDS: Iterable[str] = (
    "type",
    "project_id",
    "private_key_id",
    "private_key",
    "client_email",
    "client_id",
    "token_uri",
)


class CredentialsError(Exception):
    """Raised when a credential cannot be turned into an authorised session."""


class CredentialsFileInvalidError(CredentialsError):
    """Raised when a service account JSON file is missing required data."""


def _normalise_private_key(key: str) -> str:
    key = key.replace("\r\n", "\n").replace("\r", "\n")
    key = key.replace("\\n", "\n")
    if not key.endswith("\n"):
        key += "\n"
    return key


def _load_json(path: Path) -> Mapping[str, object]:
    try:
        with path.open("r", encoding="utf-8-sig") as handle:
            raw = handle.read()
    except OSError as exc:
        raise CredentialsFileInvalidError(f"Could not read credentials file: {exc}") from exc

    payload_text = raw.lstrip("\ufeff").strip()
    if not payload_text:
        raise CredentialsFileInvalidError("Service account JSON file is empty.")

    try:
        payload = json.loads(payload_text)
    except json.JSONDecodeError as exc:
        raise CredentialsFileInvalidError(f"Could not parse credentials JSON: {exc.msg}") from exc
    if not isinstance(payload, Mapping):
        raise CredentialsFileInvalidError("Service account JSON must be an object.")
    return payload


def _validate_payload(payload: Mapping[str, object]) -> Dict[str, object]:
    data: Dict[str, object] = dict(payload)
    missing: list[str] = []

    for field in REQUIRED_FIELDS:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            missing.append(field)

    if data.get("type") != "service_account":
        missing.append("type")

    if missing:
        ordered = ", ".join(sorted(dict.fromkeys(missing)))
        raise CredentialsFileInvalidError(f"Service account JSON missing fields: {ordered}")

    data["private_key"] = _normalise_private_key(str(data["private_key"]))
    return data


def load_service_account_data(path: Path) -> Dict[str, object]:
    """Return validated service account data without modifying ``path``."""

    return _validate_payload(_load_json(path))


def service_account_credentials(path: Path, scopes: Sequence[str] = SCOPES) -> service_account.Credentials:
    payload = load_service_account_data(path)
    try:
        return service_account.Credentials.from_service_account_info(payload, scopes=list(scopes))
    except ValueError as exc:
        raise CredentialsFileInvalidError(str(exc) or "Invalid service account key.") from exc


def bearer_credentials(token: str) -> user_credentials.Credentials:
    """Wrap an OAuth access token so it is sent as ``Authorization: Bearer``."""

    token = (token or "").strip()
    if not token:
        raise CredentialsError("An access token is required for the Google Sheets backend.")
    return user_credentials.Credentials(token=token)


def resolve_credentials(value: Any, scopes: Sequence[str] = SCOPES) -> BaseCredentials:
    """Return ``google-auth`` credentials for ``value``.

    Strings naming an existing file are treated as service account key files;
    any other string is treated as an access token.
    """

    if isinstance(value, BaseCredentials):
        return value
    if isinstance(value, Path):
        return service_account_credentials(value.expanduser(), scopes)
    if isinstance(value, str):
        candidate = Path(value).expanduser()
        if value.strip().lower().endswith(".json") or candidate.is_file():
            if not candidate.exists():
                raise CredentialsFileInvalidError(f"Credentials file not found: {candidate}")
            return service_account_credentials(candidate, scopes)
        return bearer_credentials(value)
    raise CredentialsError(f"Unsupported credential type: {type(value).__name__}")
