"""In-memory response cache with a TTL per category and LRU eviction.

One instance is created per app (or per CLI run) and handed to the client;
nothing here is module-global.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable

logger = logging.getLogger(__name__)


class TTLCache:
    def __init__(
        self,
        max_entries: int = 256,
        ttl_by_category: dict[str, int] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl_by_category = dict(ttl_by_category or {"default": 300})
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def ttl_for(self, category: str) -> int:
        return self.ttl_by_category.get(category, self.ttl_by_category.get("default", 300))

    def get(self, key: str) -> Any | None:
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                self.misses += 1
                return None
            expires_at, value = item
            if self._clock() >= expires_at:
                del self._entries[key]
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return value

    def set(self, key: str, value: Any, category: str = "default") -> None:
        expires_at = self._clock() + self.ttl_for(category)
        with self._lock:
            self._entries[key] = (expires_at, value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self.evictions += 1
                logger.debug("Evicted %s from cache", evicted)

    def get_or_load(self, key: str, loader: Callable[[], Any], category: str = "default") -> Any:
        """Cached value for key, calling loader on a miss.

        Loader exceptions propagate and nothing is stored.
        """
        value = self.get(key)
        if value is not None:
            return value
        logger.debug("Cache miss for %s, loading", key)
        value = loader()
        self.set(key, value, category)
        return value

    def invalidate(self, prefix: str | None = None) -> int:
        """Drop every entry, or only the keys starting with prefix. Returns the count dropped."""
        with self._lock:
            if prefix is None:
                dropped = len(self._entries)
                self._entries.clear()
                return dropped
            keys = [k for k in self._entries if k.startswith(prefix)]
            for k in keys:
                del self._entries[k]
            return len(keys)

    def stats(self) -> dict:
        with self._lock:
            return {
                "entries": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self.hits,
                "misses": self.misses,
                "evictions": self.evictions,
            }

    def __len__(self) -> int:
        return len(self._entries)
