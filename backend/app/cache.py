from __future__ import annotations

from asyncio import Lock
import time
from typing import Any

from .config import LEADERBOARD_CACHE_TTL

LEADERBOARD_KEY = "leaderboard"


class TTLCache:
    """A simple in-memory TTL cache with async-safe access.

    ``generation`` is bumped by every ``clear()``. Callers that compute a
    value from the database capture it before reading and pass it to
    ``set()``; the store is skipped when a write cleared the cache in the
    meantime, so a result computed from an older snapshot is never kept.
    """

    def __init__(self, ttl_seconds: float = 300.0) -> None:
        self._ttl = ttl_seconds
        self._lock = Lock()
        self._store: dict[Any, tuple[Any, float]] = {}
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    async def get(self, key: Any) -> Any | None:
        now = time.monotonic()
        async with self._lock:
            entry = self._store.get(key)
            if not entry:
                return None
            value, expires_at = entry
            if expires_at <= now:
                self._store.pop(key, None)
                return None
            return value

    async def set(
        self,
        key: Any,
        value: Any,
        ttl_seconds: float | None = None,
        *,
        generation: int | None = None,
    ) -> bool:
        """Store ``value``; return False when skipped as stale."""
        ttl = self._ttl if ttl_seconds is None else ttl_seconds
        expires_at = time.monotonic() + max(ttl, 0.0)
        async with self._lock:
            if generation is not None and generation != self._generation:
                return False
            if ttl <= 0:
                self._store.pop(key, None)
                return False
            self._store[key] = (value, expires_at)
            return True

    async def clear(self) -> None:
        async with self._lock:
            self._generation += 1
            self._store.clear()


# Ranked player stats for the whole game history.
leaderboard_cache = TTLCache(ttl_seconds=LEADERBOARD_CACHE_TTL)
