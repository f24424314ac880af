from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from competition.core.config import settings
from competition.core.logger import get_logger

log = get_logger("services.standings_cache")


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    computed_at: float
    ttl_seconds: float

    def age(self, now: float) -> float:
        return max(0.0, now - self.computed_at)

    def is_fresh(self, now: float, ttl_seconds: Optional[float] = None) -> bool:
        """Fresh for the caller's TTL; the stored TTL only applies when none is given."""
        ttl = self.ttl_seconds if ttl_seconds is None else float(ttl_seconds)
        return self.age(now) < ttl


class ReadThroughCache:
    """Process-wide memo of computed values keyed by query scope.

    Two concurrent misses on one key may both compute; the computation is
    pure, so the second write only replaces an equal value. A failed
    computation stores nothing.
    """

    def __init__(self, *, max_entries: int = 256, clock: Callable[[], float] = time.monotonic):
        self.max_entries = max(1, int(max_entries))
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def now(self) -> float:
        return self._clock()

    def __len__(self) -> int:
        return len(self._entries)

    def peek(self, key: str, ttl_seconds: Optional[float] = None) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None or not entry.is_fresh(self._clock(), ttl_seconds):
            return None
        return entry

    def age_seconds(self, key: str, ttl_seconds: Optional[float] = None) -> Optional[float]:
        entry = self.peek(key, ttl_seconds)
        return entry.age(self._clock()) if entry is not None else None

    async def get_or_compute_entry(
        self, key: str, ttl_seconds: float, compute: Callable[[], Awaitable[Any]]
    ) -> CacheEntry:
        entry = self.peek(key, ttl_seconds)
        if entry is not None:
            self.hits += 1
            return entry

        self.misses += 1
        value = await compute()
        entry = CacheEntry(value=value, computed_at=self._clock(), ttl_seconds=float(ttl_seconds))
        self._store(key, entry)
        return entry

    async def get_or_compute(self, key: str, ttl_seconds: float, compute: Callable[[], Awaitable[Any]]) -> Any:
        entry = await self.get_or_compute_entry(key, ttl_seconds, compute)
        return entry.value

    def purge(self, key: Optional[str] = None) -> int:
        if key is not None:
            return 1 if self._entries.pop(key, None) is not None else 0
        purged = len(self._entries)
        self._entries.clear()
        if purged:
            log.info("standings_cache_purged entries=%s", purged)
        return purged

    def _store(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry
        if len(self._entries) <= self.max_entries:
            return
        now = self._clock()
        for stale_key in [k for k, e in self._entries.items() if not e.is_fresh(now)]:
            self._entries.pop(stale_key, None)
        while len(self._entries) > self.max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k].computed_at)
            self._entries.pop(oldest, None)


standings_cache = ReadThroughCache(max_entries=settings.standings_cache_max_entries)
