"""
Catalog - asset reads and writes.

Architecture:
    IngestionService (uploads, soft-deletes)
        └── CatalogQueryService.invalidate()
    CatalogQueryService (cache-coordinated reads)
        ├── CacheProtocol
        └── RecordStoreProtocol
"""

from .models import Asset, AssetKind, AssetPage, TagFilter, TagMatch
from .queries import ByIdQuery, ListingQuery, QueryDescriptor, TagQuery
from .query_service import CatalogQueryService
from .ingestion import IngestionService

__all__ = [
    # Models
    'Asset',
    'AssetKind',
    'AssetPage',
    'TagFilter',
    'TagMatch',
    # Queries
    'ByIdQuery',
    'ListingQuery',
    'QueryDescriptor',
    'TagQuery',
    # Services
    'CatalogQueryService',
    'IngestionService',
]
