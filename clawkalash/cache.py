import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


@dataclass
class CacheEntry:
    value: Any
    fetched_at: float
    expires_at: float


class TTLCache:
    """In-memory TTL cache with lazy eviction.

    Access is sequential within one event loop, so no lock is taken. Inserts
    are last-write-wins and expired entries are dropped on the next read.
    """

    def __init__(
        self,
        default_ttl: float = 60,
        max_size: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._clock = clock
        self._cache: Dict[str, CacheEntry] = {}
        self._access_order: list = []

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        if key not in self._cache:
            return None

        entry = self._cache[key]
        if self._clock() >= entry.expires_at:
            del self._cache[key]
            if key in self._access_order:
                self._access_order.remove(key)
            return None

        # Update access order for LRU
        if key in self._access_order:
            self._access_order.remove(key)
        self._access_order.append(key)

        return entry

    def get(self, key: str) -> Optional[Any]:
        entry = self.get_entry(key)
        return entry.value if entry else None

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()

        self._cache[key] = CacheEntry(value=value, fetched_at=now, expires_at=now + ttl)

        if key in self._access_order:
            self._access_order.remove(key)
        self._access_order.append(key)

        # Evict oldest if over max size
        while len(self._cache) > self.max_size:
            oldest_key = self._access_order.pop(0)
            if oldest_key in self._cache:
                del self._cache[oldest_key]

    def clear(self) -> None:
        self._cache.clear()
        self._access_order.clear()

    def size(self) -> int:
        return len(self._cache)
