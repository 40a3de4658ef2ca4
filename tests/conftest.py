"""
Pytest configuration for media-catalog tests.

Automatically adds project root to sys.path so that 'from app...' imports work.
Defines markers and shared fixtures.
"""
import sys
from pathlib import Path
from typing import List, Optional

import pytest
import pytest_asyncio

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.catalog import Asset, AssetKind, CatalogQueryService, IngestionService
from app.core.catalog.models import utcnow
from app.core.connectors import InMemoryCache, SQLRecordStore
from app.core.errors import CacheUnavailableError
from app.core.storage import LocalBlobStore


# =============================================================================
# Pytest Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "asyncio: Async tests")
    config.addinivalue_line("markers", "integration: Tests wiring several components (sqlite store, cache, API)")
    config.addinivalue_line("markers", "consistency: Cache consistency and capacity guarantees")


# =============================================================================
# Test Doubles
# =============================================================================

class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class UnavailableCache:
    """Cache whose backend is always down."""

    def __init__(self):
        self.calls: List[str] = []

    async def open(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def get(self, key: str) -> Optional[bytes]:
        self.calls.append("get")
        raise CacheUnavailableError("Redis get failed", data={"key": key})

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> None:
        self.calls.append("set")
        raise CacheUnavailableError("Redis set failed", data={"key": key})

    async def delete(self, key: str) -> None:
        self.calls.append("delete")
        raise CacheUnavailableError("Redis delete failed", data={"key": key})

    async def ping(self) -> bool:
        return False


def make_asset(
    asset_id: str,
    tags=("a",),
    kind: AssetKind = AssetKind.PHOTO,
    title: str = "",
) -> Asset:
    now = utcnow()
    return Asset(
        id=asset_id,
        kind=kind,
        url=f"/uploads/{asset_id}.bin",
        tags=sorted(set(tags)),
        title=title,
        created_at=now,
        updated_at=now,
    )


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return project root path."""
    return PROJECT_ROOT


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> InMemoryCache:
    """Fresh in-memory cache driven by the fake clock."""
    return InMemoryCache(clock=clock)


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}"


@pytest_asyncio.fixture
async def store(database_url):
    """Opened SQLite-backed record store."""
    store = SQLRecordStore(database_url)
    await store.open()
    yield store
    await store.close()


@pytest.fixture
def blobs(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(str(tmp_path / "uploads"))


@pytest.fixture
def query_service(cache, store) -> CatalogQueryService:
    return CatalogQueryService(cache=cache, store=store, ttl=3600)


@pytest.fixture
def ingestion(store, blobs, query_service) -> IngestionService:
    return IngestionService(store=store, blobs=blobs, queries=query_service)


@pytest_asyncio.fixture
async def seed(store):
    """Insert assets straight into the store: await seed(n, tags=..., kind=...)."""
    async def _seed(count: int, tags=("a",), kind: AssetKind = AssetKind.PHOTO, prefix: str = "p"):
        created = []
        for i in range(1, count + 1):
            created.append(await store.create(make_asset(f"{prefix}{i:03d}", tags=tags, kind=kind)))
        return created
    return _seed
