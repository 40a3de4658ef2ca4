"""
Cache Protocol - Interface for cache implementations.

Implementations:
- RedisCache (app.core.connectors.redis_cache)
- InMemoryCache (app.core.connectors.inmemory_cache)

Values are opaque bytes; serialization belongs to the caller. Backend
failures are raised as CacheUnavailableError so callers can bypass the cache.
"""

from typing import Protocol, Optional, runtime_checkable


@runtime_checkable
class CacheProtocol(Protocol):
    """Protocol for async TTL key-value caches (DI interface)."""

    async def open(self) -> None:
        """Connect to the backend."""
        ...

    async def close(self) -> None:
        """Release backend connections."""
        ...

    async def get(self, key: str) -> Optional[bytes]:
        """Get value by key, None when absent or expired."""
        ...

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> None:
        """Set value with optional TTL in seconds. Last write wins."""
        ...

    async def delete(self, key: str) -> None:
        """Delete key. Missing keys are a no-op."""
        ...

    async def ping(self) -> bool:
        """Check backend connectivity."""
        ...
