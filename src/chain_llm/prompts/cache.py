"""TTL and LRU bounded cache for prompt records."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from cachetools import Cache  # type: ignore[import-untyped]
from cachetools import LRUCache  # type: ignore[import-untyped]

from chain_llm.models.cache_config import CacheStats
from chain_llm.models.cache_config import PromptCacheConfig
from chain_llm.models.prompt_record import PromptRecord

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class CacheEntry:
    record: PromptRecord
    timestamp: float
    access_count: int


class PromptLRU(LRUCache):
    """LRUCache that logs evictions and can read an entry without touching its recency."""

    def popitem(self) -> tuple[Any, Any]:
        cache_key, entry = super().popitem()
        logger.debug("Evicted prompt %s:%s from cache", *cache_key)
        return cache_key, entry

    def peek(self, cache_key: CacheKey) -> CacheEntry | None:
        if cache_key not in self:
            return None
        return Cache.__getitem__(self, cache_key)


class PromptCache:
    """
    Prompt records keyed by (area, key). Entries live in a cachetools LRUCache,
    so inserting into a full cache evicts the least recently used entry. A hit
    also slides the entry's TTL window. Expired entries are dropped when read
    or by cleanup().
    """

    def __init__(
        self,
        config: PromptCacheConfig | None = None,
        *,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        config = config or PromptCacheConfig()
        self._ttl_ms = config.ttl_ms
        self._max_size = config.max_size
        self._enabled = config.enabled
        self._clock = clock
        self._lock = threading.Lock()
        self._entries = PromptLRU(maxsize=self._max_size)
        self._hits = 0
        self._misses = 0

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp > self._ttl_ms

    def _touch(self, cache_key: CacheKey, now: float) -> PromptRecord:
        entry: CacheEntry = self._entries[cache_key]
        entry.access_count += 1
        entry.timestamp = now
        self._hits += 1
        return entry.record

    def get(self, area: str, key: str) -> PromptRecord | None:
        with self._lock:
            if not self._enabled:
                return None
            cache_key = (area, key)
            entry = self._entries.peek(cache_key)
            if entry is None:
                self._misses += 1
                return None
            now = self._clock()
            if self._is_expired(entry, now):
                del self._entries[cache_key]
                self._misses += 1
                return None
            return self._touch(cache_key, now)

    def get_by_id(self, record_id: str) -> PromptRecord | None:
        with self._lock:
            if not self._enabled:
                return None
            now = self._clock()
            for cache_key in list(self._entries):
                entry = self._entries.peek(cache_key)
                if entry is None or entry.record.id != record_id:
                    continue
                if self._is_expired(entry, now):
                    del self._entries[cache_key]
                    self._misses += 1
                    return None
                return self._touch(cache_key, now)
            self._misses += 1
            return None

    def set(self, record: PromptRecord) -> None:
        with self._lock:
            if not self._enabled:
                return
            cache_key = (record.prompt_area, record.prompt_key)
            self._entries[cache_key] = CacheEntry(record=record, timestamp=self._clock(), access_count=1)

    def invalidate(self, area: str, key: str) -> None:
        with self._lock:
            self._entries.pop((area, key), None)

    def invalidate_by_id(self, record_id: str) -> None:
        with self._lock:
            for cache_key in list(self._entries):
                entry = self._entries.peek(cache_key)
                if entry is not None and entry.record.id == record_id:
                    del self._entries[cache_key]

    def invalidate_area(self, area: str) -> None:
        with self._lock:
            for cache_key in [cache_key for cache_key in self._entries if cache_key[0] == area]:
                del self._entries[cache_key]

    def clear(self) -> None:
        with self._lock:
            self._reset()

    def _reset(self) -> None:
        self._entries = PromptLRU(maxsize=self._max_size)
        self._hits = 0
        self._misses = 0

    def cleanup(self) -> int:
        with self._lock:
            now = self._clock()
            expired = []
            for cache_key in list(self._entries):
                entry = self._entries.peek(cache_key)
                if entry is not None and self._is_expired(entry, now):
                    expired.append(cache_key)
            for cache_key in expired:
                del self._entries[cache_key]
        if expired:
            logger.debug("Removed %d expired prompt(s) from cache", len(expired))
        return len(expired)

    def get_stats(self) -> CacheStats:
        with self._lock:
            total = self._hits + self._misses
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=len(self._entries),
                max_size=self._max_size,
                hit_rate=self._hits / total if total > 0 else 0.0,
            )

    def set_enabled(self, enabled: bool) -> None:
        with self._lock:
            self._enabled = enabled
            if not enabled:
                self._reset()

    def is_enabled(self) -> bool:
        with self._lock:
            return self._enabled

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_default_cache: PromptCache | None = None
_default_cache_lock = threading.Lock()


def get_prompt_cache() -> PromptCache:
    global _default_cache
    with _default_cache_lock:
        if _default_cache is None:
            _default_cache = PromptCache()
        return _default_cache


def configure_prompt_cache(config: PromptCacheConfig) -> PromptCache:
    """Replace the default cache with a fresh one; previous entries are dropped."""
    global _default_cache
    with _default_cache_lock:
        _default_cache = PromptCache(config)
        return _default_cache


def clear_prompt_cache() -> None:
    with _default_cache_lock:
        cache = _default_cache
    if cache is not None:
        cache.clear()
