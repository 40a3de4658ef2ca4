"""
Config - Application configuration.

- settings.py: dataclass settings from environment
- cache.py: Cache client factory
"""

from .settings import Settings, CacheBackend, get_settings, reset_settings
from .cache import create_cache_client

__all__ = [
    # Settings
    "Settings",
    "CacheBackend",
    "get_settings",
    "reset_settings",
    # Cache
    "create_cache_client",
]
