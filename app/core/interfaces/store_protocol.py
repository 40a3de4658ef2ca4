"""
Record Store Protocol - Interface for durable asset persistence.

Implementations:
- SQLRecordStore (app.core.connectors.sql_store)
"""

from datetime import datetime
from typing import Protocol, Optional, List, Tuple, TYPE_CHECKING, runtime_checkable

if TYPE_CHECKING:
    from app.core.catalog.models import Asset, AssetKind, TagFilter


@runtime_checkable
class RecordStoreProtocol(Protocol):
    """Protocol for the asset record store (DI interface)."""

    async def open(self) -> None:
        """Connect and make sure the schema exists."""
        ...

    async def close(self) -> None:
        """Dispose connections."""
        ...

    async def ping(self) -> bool:
        """Run a trivial query; raises StoreUnavailableError on failure."""
        ...

    async def create(self, asset: 'Asset') -> 'Asset':
        """Insert a new asset. Duplicate id raises ConflictError."""
        ...

    async def get(self, kind: 'AssetKind', asset_id: str) -> Optional['Asset']:
        """Point lookup by id. Tombstones are returned."""
        ...

    async def find_page(
        self,
        kind: 'AssetKind',
        tag_filter: Optional['TagFilter'] = None,
        offset: int = 0,
        limit: Optional[int] = None,
        include_deleted: bool = False,
    ) -> Tuple[List['Asset'], int]:
        """Items and total match count read from one snapshot."""
        ...

    async def count(
        self,
        kind: 'AssetKind',
        tag_filter: Optional['TagFilter'] = None,
        include_deleted: bool = True,
    ) -> int:
        """Count rows matching the filter."""
        ...

    async def soft_delete(self, kind: 'AssetKind', asset_id: str, at: datetime) -> Optional['Asset']:
        """Set deletedAt/updatedAt; None when the id does not exist."""
        ...
