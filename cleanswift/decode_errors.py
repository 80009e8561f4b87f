"""Tracking for spreadsheet cells that could not be decoded.

Malformed JSON cells never abort a read: the codec substitutes an empty
collection and reports the problem here so persistent corruption stays
visible to callers and in the log.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Deque, Dict, List

_LOGGER = logging.getLogger("cleanswift.decode")
_ISSUES: Deque[Dict[str, str]] = deque(maxlen=100)
_LOCK = threading.Lock()
_TOTAL = 0


def record(sheet: str, record_id: str, field: str, reason: str) -> None:
    """Remember a decode failure and log it on the ``cleanswift.decode`` channel."""

    global _TOTAL

    timestamp = datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")
    payload = {
        "sheet": sheet,
        "record_id": record_id,
        "field": field,
        "reason": reason,
        "timestamp": timestamp,
    }
    _LOGGER.warning(
        "Could not decode %s.%s for record %r: %s", sheet, field, record_id or "?", reason
    )
    with _LOCK:
        _ISSUES.appendleft(payload)
        _TOTAL += 1


def count() -> int:
    """Return the number of decode failures seen since the last :func:`clear`."""

    with _LOCK:
        return _TOTAL


def recent(limit: int = 10) -> List[Dict[str, str]]:
    with _LOCK:
        return list(_ISSUES)[:limit]


def clear() -> None:
    global _TOTAL

    with _LOCK:
        _ISSUES.clear()
        _TOTAL = 0


__all__ = ["record", "count", "recent", "clear"]
