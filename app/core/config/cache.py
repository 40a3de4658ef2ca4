"""
Cache Factory - Create cache client based on configuration.

Uses factory pattern for dependency injection.
"""

from typing import Optional
from ..errors import ConfigurationError
from ..interfaces import CacheProtocol
from .settings import CacheBackend, Settings, get_settings


def create_cache_client(
    backend: Optional[CacheBackend] = None,
    settings: Optional[Settings] = None,
    **kwargs
) -> CacheProtocol:
    """
    Factory for cache clients.

    Args:
        backend: Cache backend (default from settings)
        settings: Settings to read connection details from
        **kwargs: Backend-specific overrides

    Returns:
        CacheProtocol implementation (not yet opened)

    Example:
        cache = create_cache_client()  # Uses settings
        cache = create_cache_client(CacheBackend.MEMORY)
    """
    settings = settings or get_settings()
    backend = backend or settings.cache_backend

    if backend == CacheBackend.REDIS:
        from ..connectors.redis_cache import RedisCache
        return RedisCache(
            host=kwargs.get('host', settings.redis_host),
            port=kwargs.get('port', settings.redis_port),
            username=kwargs.get('username', settings.redis_username),
            password=kwargs.get('password', settings.redis_password),
            timeout=kwargs.get('timeout', settings.redis_timeout),
            prefix=kwargs.get('prefix', settings.cache_prefix),
        )

    elif backend == CacheBackend.MEMORY:
        from ..connectors.inmemory_cache import InMemoryCache
        return InMemoryCache()

    raise ConfigurationError(f"Unknown cache backend: {backend}", data={"backend": str(backend)})
