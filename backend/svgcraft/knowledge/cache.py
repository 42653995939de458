"""In-process TTL cache for grounding bundles. Last write wins."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Tiered TTL by estimated token cost of the cached value
_TTL_TIERS = ((2000, 15 * 60), (1000, 10 * 60))
_DEFAULT_TTL = 5 * 60

MAX_CACHE_ENTRIES = 10_000
# Expired entries are swept on write at most this often (seconds)
SWEEP_INTERVAL = 60.0


def ttl_for_tokens(tokens: int) -> int:
    """Seconds to keep a value: 15 min above 2000 tokens, 10 min above 1000, else 5."""
    for threshold, ttl in _TTL_TIERS:
        if tokens > threshold:
            return ttl
    return _DEFAULT_TTL


def grounding_cache_key(prompt: str, user_id: str | None) -> str:
    digest = hashlib.sha256(
        json.dumps({"prompt": prompt.strip().lower(), "user": user_id}).encode()
    ).hexdigest()[:24]
    return f"grounding:{user_id or 'anonymous'}:{digest}"


@dataclass
class CacheEntry(Generic[T]):
    key: str
    value: T
    expires_at: float


class TTLCache(Generic[T]):
    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        max_entries: int = MAX_CACHE_ENTRIES,
        sweep_interval: float = SWEEP_INTERVAL,
    ) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}
        self.max_entries = max_entries
        self.sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: str) -> T | None:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            self.misses += 1
            return None
        self.hits += 1
        return entry.value

    def set(self, key: str, value: T, ttl_seconds: float) -> None:
        now = self._clock()
        if now >= self._next_sweep:
            self.cleanup()
        self._entries[key] = CacheEntry(key, value, now + ttl_seconds)
        if len(self._entries) > self.max_entries:
            self._evict(len(self._entries) - self.max_entries)

    def _evict(self, count: int) -> None:
        """Drop ``count`` entries, soonest to expire first."""
        doomed = sorted(self._entries.values(), key=lambda e: e.expires_at)[:count]
        for entry in doomed:
            del self._entries[entry.key]
        self.evictions += len(doomed)
        logger.debug("Cache: evicted %d entries over the %d-entry cap", len(doomed), self.max_entries)

    def invalidate(self, pattern: str | None = None) -> int:
        """Drop entries whose key contains ``pattern`` (all when empty). Returns the count."""
        if not pattern:
            count = len(self._entries)
            self._entries.clear()
        else:
            doomed = [k for k in self._entries if pattern in k]
            for k in doomed:
                del self._entries[k]
            count = len(doomed)
        if count:
            logger.debug("Cache: invalidated %d entries", count)
        return count

    def cleanup(self) -> int:
        """Remove expired entries. Returns the count removed."""
        now = self._clock()
        self._next_sweep = now + self.sweep_interval
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug("Cache: removed %d expired entries", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0
