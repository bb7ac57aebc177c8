"""Append-only memo of computed indicator series."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Hashable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

CacheKey = tuple[str, str, tuple[Hashable, ...]]


class IndicatorCache:
    """
    Explicit, passed-in cache of indicator results.

    Keyed by (series fingerprint, indicator kind, parameters). Entries are
    never replaced or evicted; when two workers compute the same key, the
    first stored value wins and both callers receive it. ``dict.setdefault``
    is atomic, so entries need no lock; only the hit/miss counters take one.
    """

    def __init__(self) -> None:
        self._entries: dict[CacheKey, object] = {}
        self.hits = 0
        self.misses = 0
        self._counter_lock = threading.Lock()

    def get_or_compute(
        self,
        fingerprint: str,
        kind: str,
        params: tuple[Hashable, ...],
        compute: Callable[[], T],
    ) -> T:
        key: CacheKey = (fingerprint, kind, params)
        try:
            value = self._entries[key]
        except KeyError:
            with self._counter_lock:
                self.misses += 1
            value = self._entries.setdefault(key, compute())
            logger.debug(f"Indicator cached: {kind}{params} series={fingerprint[:12]}")
            return value  # type: ignore[return-value]
        with self._counter_lock:
            self.hits += 1
        return value  # type: ignore[return-value]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
