# src/cache/session_cache.py — v1
"""Session-scoped key/value cache with per-entry time-to-live.

Values are wrapped in CacheEntry envelopes; expired entries are evicted on
read. Lives only as long as the owning object.
"""

from __future__ import annotations

import time
from typing import Callable, Generic, TypeVar

from wispview.core.models import CacheEntry

T = TypeVar("T")


class SessionCache(Generic[T]):
    """In-memory TTL cache keyed by string."""

    def __init__(
        self,
        default_ttl: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._entries: dict[str, CacheEntry[T]] = {}
        self._default_ttl = default_ttl
        self._clock = clock

    def get(self, key: str) -> T | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry.data

    def set(self, key: str, value: T, ttl: float | None = None) -> None:
        self._entries[key] = CacheEntry(
            data=value,
            timestamp=self._clock(),
            ttl=self._default_ttl if ttl is None else ttl,
        )

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self, prefix: str | None = None) -> None:
        """Drop every entry, or only keys starting with ``prefix``."""
        if prefix is None:
            self._entries.clear()
            return
        for key in [k for k in self._entries if k.startswith(prefix)]:
            del self._entries[key]

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
