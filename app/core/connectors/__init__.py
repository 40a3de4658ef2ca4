"""
Connectors - Cache and record store implementations.

- redis_cache.py: Redis-based cache (production)
- inmemory_cache.py: In-memory cache (unit tests, local runs)
- sql_store.py: SQLAlchemy record store (sqlite/postgres)
"""

from .redis_cache import RedisCache
from .inmemory_cache import InMemoryCache
from .sql_store import SQLRecordStore

__all__ = [
    "RedisCache",
    "InMemoryCache",
    "SQLRecordStore",
]
