"""
InMemoryCache - In-memory cache implementation for unit tests and local runs.

Simple dict-based cache without persistence. Single event loop only.
"""

import time
from typing import Optional, Callable, Dict
from dataclasses import dataclass


@dataclass
class CacheEntry:
    """Cache entry with optional expiration (monotonic seconds)."""
    value: bytes
    expires_at: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        """Check if entry is expired."""
        if self.expires_at is None:
            return False
        return now >= self.expires_at


class InMemoryCache:
    """
    In-memory cache implementation.

    Implements CacheProtocol for unit testing.
    No persistence - data lost on restart.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._store: Dict[str, CacheEntry] = {}
        self._clock = clock

    async def open(self) -> None:
        pass

    async def close(self) -> None:
        self._store.clear()

    async def get(self, key: str) -> Optional[bytes]:
        """Get value by key."""
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._store[key]
            return None
        return entry.value

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> None:
        """Set value with optional TTL in seconds."""
        expires_at = None
        if ttl is not None:
            expires_at = self._clock() + ttl
        self._store[key] = CacheEntry(value=value, expires_at=expires_at)

    async def delete(self, key: str) -> None:
        """Delete key."""
        self._store.pop(key, None)

    async def ping(self) -> bool:
        return True

    def keys(self) -> list:
        """Get all non-expired keys, dropping expired entries."""
        now = self._clock()
        expired = [k for k, entry in self._store.items() if entry.is_expired(now)]
        for k in expired:
            del self._store[k]
        return list(self._store.keys())

    def size(self) -> int:
        """Get number of live entries."""
        return len(self.keys())
