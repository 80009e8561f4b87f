"""Logging setup shared by the CLI and any embedding application."""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from cleanswift import app_paths

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FILENAME = "cleanswift.log"
MAX_LOG_BYTES = 1_000_000
BACKUP_COUNT = 3

_configured_path: Optional[Path] = None


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    log_path: Optional[Path] = None,
    console: bool = False,
) -> Path:
    """Attach a rotating ``cleanswift.log`` handler to the root logger.

    ``level`` accepts either a ``logging`` constant or a level name such as
    ``"DEBUG"`` taken from the settings file. Calling this again for the same
    file only adjusts the level. With ``console`` set, records are echoed to
    stderr as well.
    """

    global _configured_path

    target = Path(log_path) if log_path is not None else app_paths.logs_path(LOG_FILENAME)
    target.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(_coerce_level(level))
    formatter = logging.Formatter(LOG_FORMAT)

    has_file = any(getattr(handler, "baseFilename", None) == str(target) for handler in root.handlers)
    if not has_file:
        file_handler = RotatingFileHandler(
            target, maxBytes=MAX_LOG_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    has_console = any(
        type(handler) is logging.StreamHandler and handler.stream is sys.stderr for handler in root.handlers
    )
    if console and not has_console:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)

    _configured_path = target
    root.debug("Logging to %s", target)
    return target


def get_log_path() -> Optional[Path]:
    """Return the active log file, or ``None`` before :func:`configure_logging` ran."""

    return _configured_path


__all__ = ["LOG_FORMAT", "configure_logging", "get_log_path"]
