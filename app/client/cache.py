"""In-memory time-to-live cache with stale reads for course API clients.

Expired entries are kept until they are overwritten, deleted or the cache is
cleared, so callers can fall back to the last known value when a refresh
fails. Not thread safe; use one instance per client session.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

DEFAULT_TTL_SECONDS = 300.0


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    written_at: float
    expires_at: float


class ClientCache:
    def __init__(self, default_ttl: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        now = self._clock()
        self._entries[key] = CacheEntry(
            value=value,
            written_at=now,
            expires_at=now + (self.default_ttl if ttl is None else ttl),
        )

    def _fresh(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None or self._clock() > entry.expires_at:
            return None
        return entry

    def get(self, key: str) -> Any | None:
        entry = self._fresh(key)
        return entry.value if entry else None

    def has(self, key: str) -> bool:
        return self._fresh(key) is not None

    def get_stale(self, key: str) -> Any | None:
        """Return the stored value regardless of expiry."""
        entry = self._entries.get(key)
        return entry.value if entry else None

    def is_stale(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        return self._clock() > entry.expires_at

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
