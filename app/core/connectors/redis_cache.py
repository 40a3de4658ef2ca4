"""
RedisCache - Redis-based cache implementation for production.

Uses the asyncio client from the redis package. Connect and operation
timeouts are bounded so an outage surfaces as CacheUnavailableError
instead of hanging the request.
"""

from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.common.logging import get_logger
from app.core.errors import CacheUnavailableError

logger = get_logger(__name__)


class RedisCache:
    """
    Redis-based cache implementation.

    Implements CacheProtocol for production use.
    Requires Redis server.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 2.0,
        prefix: str = "",
        client: Optional[redis.Redis] = None,
    ):
        """
        Initialize Redis cache.

        Args:
            host: Redis host
            port: Redis port
            username: ACL user name (optional)
            password: Password (optional)
            timeout: Connect and per-operation timeout in seconds
            prefix: Key prefix for namespacing
            client: Pre-built client (tests)
        """
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout
        self.prefix = prefix
        self.client = client

    def _key(self, key: str) -> str:
        """Add prefix to key."""
        return f"{self.prefix}{key}"

    async def open(self) -> None:
        """Create the client. Connection errors surface on first use."""
        if self.client is None:
            self.client = redis.Redis(
                host=self.host,
                port=self.port,
                username=self.username,
                password=self.password,
                socket_connect_timeout=self.timeout,
                socket_timeout=self.timeout,
            )
        logger.info(f"Redis cache initialized: {self.host}:{self.port}")

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None

    def _require_client(self) -> redis.Redis:
        if self.client is None:
            raise CacheUnavailableError("Redis cache is not open")
        return self.client

    async def get(self, key: str) -> Optional[bytes]:
        """Get value by key."""
        client = self._require_client()
        try:
            return await client.get(self._key(key))
        except (RedisError, OSError) as e:
            raise CacheUnavailableError("Redis get failed", data={"key": key}, cause=e) from e

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> None:
        """Set value with optional TTL in seconds."""
        client = self._require_client()
        try:
            if ttl:
                await client.setex(self._key(key), ttl, value)
            else:
                await client.set(self._key(key), value)
        except (RedisError, OSError) as e:
            raise CacheUnavailableError("Redis set failed", data={"key": key}, cause=e) from e

    async def delete(self, key: str) -> None:
        """Delete key."""
        client = self._require_client()
        try:
            await client.delete(self._key(key))
        except (RedisError, OSError) as e:
            raise CacheUnavailableError("Redis delete failed", data={"key": key}, cause=e) from e

    async def ping(self) -> bool:
        """Check Redis connection."""
        if self.client is None:
            return False
        try:
            return bool(await self.client.ping())
        except (RedisError, OSError):
            return False
