"""Where CleanSwift keeps its settings, caches and logs on disk."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

DATA_DIR_ENV = "CLEANSWIFT_DATA_DIR"
_PLATFORM_DIR_VARS = ("LOCALAPPDATA", "APPDATA", "XDG_DATA_HOME")


def base_directory(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Resolve the data directory, honouring ``CLEANSWIFT_DATA_DIR`` first."""

    environ = os.environ if environ is None else environ
    explicit = environ.get(DATA_DIR_ENV)
    if explicit:
        return Path(explicit).expanduser().resolve()
    platform_dir = next((environ[name] for name in _PLATFORM_DIR_VARS if environ.get(name)), None)
    if platform_dir:
        return Path(platform_dir).expanduser().resolve() / "CleanSwift"
    return Path.home().resolve() / ".cleanswift"


APP_DIR: Path = base_directory()
CACHE_DIR: Path = APP_DIR / "cache"
LOG_DIR: Path = APP_DIR / "logs"


def data_path(*parts: str) -> Path:
    """Return ``APP_DIR/parts``; the parent directory is created on demand."""

    target = APP_DIR.joinpath(*parts)
    target.parent.mkdir(parents=True, exist_ok=True)
    return target


def logs_path(name: str) -> Path:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    return LOG_DIR / name


__all__ = ["APP_DIR", "CACHE_DIR", "DATA_DIR_ENV", "LOG_DIR", "base_directory", "data_path", "logs_path"]
