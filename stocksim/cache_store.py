import time
from collections.abc import Callable
from typing import Any

from .config import CACHE_TTL_SECONDS


class TTLCache:
    """In-memory key/value store whose entries expire ``ttl_seconds`` after being set."""

    def __init__(self, ttl_seconds: float = CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at >= self.ttl_seconds

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._expired(stored_at, self._clock()):
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        now = self._clock()
        self.prune(now)
        self._entries[key] = (now, value)

    def prune(self, now: float | None = None) -> int:
        now = self._clock() if now is None else now
        stale = [key for key, (stored_at, _) in self._entries.items() if self._expired(stored_at, now)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
