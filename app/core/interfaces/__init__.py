"""
Interfaces - Protocols for Dependency Injection.

These protocols define contracts that implementations must follow.
Use Protocol for type hints to enable loose coupling.

Example:
    def build_service(cache: CacheProtocol, store: RecordStoreProtocol):
        # Works with any implementation
        return CatalogQueryService(cache=cache, store=store)
"""

from .cache_protocol import CacheProtocol
from .store_protocol import RecordStoreProtocol

__all__ = [
    'CacheProtocol',
    'RecordStoreProtocol',
]
