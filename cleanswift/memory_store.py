"""Process-local record tables used by the demo/offline backend.

Tables hand out deep copies so callers can never mutate stored state behind
the repository's back, and they sleep for a configurable delay to mimic the
round trip of the spreadsheet backend.
"""
from __future__ import annotations

import copy
import logging
import time
from typing import Generic, Iterable, List, Optional, Sequence, TypeVar

from cleanswift.models import UserProfile
from cleanswift.profile_cache import ProfileCache
from cleanswift.sheet_table import Modifier

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_LATENCY = 0.3
QUICK_LATENCY = 0.1


class MemoryTable(Generic[T]):
    def __init__(
        self,
        records: Optional[Iterable[T]] = None,
        *,
        latency: float = DEFAULT_LATENCY,
        quick_latency: float = QUICK_LATENCY,
    ) -> None:
        self._records: List[T] = copy.deepcopy(list(records or []))
        self.latency = latency
        self.quick_latency = quick_latency

    def _pause(self, quick: bool = False) -> None:
        delay = self.quick_latency if quick else self.latency
        if delay > 0:
            time.sleep(delay)

    def all(self) -> List[T]:
        self._pause()
        return copy.deepcopy(self._records)

    def append(self, records: Sequence[T]) -> None:
        self._pause()
        self._records.extend(copy.deepcopy(list(records)))

    def rewrite(self, modifier: Modifier[T], *, quick: bool = False) -> List[T]:
        self._pause(quick)
        updated = modifier(copy.deepcopy(self._records))
        if updated is None:
            return copy.deepcopy(self._records)
        self._records = copy.deepcopy(list(updated))
        return copy.deepcopy(self._records)

    def replace(self, records: Sequence[T]) -> None:
        self._pause()
        self._records = copy.deepcopy(list(records))


class CachedProfileTable:
    """Single-row settings table that writes through to a :class:`ProfileCache`."""

    def __init__(
        self,
        default: Optional[UserProfile] = None,
        *,
        cache: Optional[ProfileCache] = None,
        latency: float = DEFAULT_LATENCY,
    ) -> None:
        self._profile = copy.deepcopy(default)
        self._cache = cache
        self.latency = latency

    def all(self) -> List[UserProfile]:
        if self.latency > 0:
            time.sleep(self.latency)
        if self._cache is not None:
            cached = self._cache.get()
            if cached is not None:
                return [cached]
        return [copy.deepcopy(self._profile)] if self._profile is not None else []

    def replace(self, records: Sequence[UserProfile]) -> None:
        if self.latency > 0:
            time.sleep(self.latency)
        self._profile = copy.deepcopy(records[0]) if records else None
        if self._cache is not None and self._profile is not None:
            self._cache.set(self._profile)
            logger.debug("Profile written to %s", self._cache.path)


__all__ = ["CachedProfileTable", "DEFAULT_LATENCY", "MemoryTable", "QUICK_LATENCY"]
