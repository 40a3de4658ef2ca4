"""
CatalogQueryService - cache-coordinated reads over the record store.

Read path (read-through):
    1. cache.get(key)            hit  -> deserialize, return
    2. store lookup              miss -> NotFoundError (never cached)
    3. cache.set(key, ttl)       found -> return

Consistency contract:
- By-id entries are dropped by invalidate() on every soft-delete, so a
  by-id read never serves a pre-delete copy of an asset.
- Tag and listing entries are not invalidated; their key space is every
  tag subset times every page. They may serve stale results (including
  just-deleted assets) for at most cache_ttl seconds.
- A cache outage (CacheUnavailableError) is absorbed: reads go to the store,
  failed writes and invalidations are logged and counted.

Concurrent cold misses on one key may both hit the store and both write the
cache. Both writes carry the same value.

A by-id miss that is still reading the store when invalidate() runs for the
same key does not write its result back, so a copy loaded before a delete
cannot land in the cache after it. This holds within one service instance;
workers that share a Redis cache can still race this way, bounded by
cache_ttl.
"""

import json
from typing import Dict, Optional, Union

from app.common.logging import get_logger
from app.core.errors import CacheUnavailableError, NotFoundError
from app.core.interfaces import CacheProtocol, RecordStoreProtocol
from app.core.monitoring import record_cache_bypass, record_cache_hit, record_cache_miss
from .models import Asset, AssetKind, AssetPage
from .queries import ByIdQuery, ListingQuery, QueryDescriptor, TagQuery

logger = get_logger(__name__)

DEFAULT_TTL = 3600


class CatalogQueryService:
    """
    Answers every catalog read, consulting the cache before the store.

    Usage:
        service = CatalogQueryService(cache=cache, store=store)
        photo = await service.get_by_id(AssetKind.PHOTO, "abc")
        page = await service.list_by_tags(AssetKind.PHOTO, "sunset,beach")
    """

    def __init__(self, cache: CacheProtocol, store: RecordStoreProtocol, ttl: int = DEFAULT_TTL):
        self.cache = cache
        self.store = store
        self.ttl = ttl
        # by-id key -> number of invalidations seen
        self._generations: Dict[str, int] = {}

    # ============== Public read operations ==============

    async def get_by_id(self, kind: AssetKind, asset_id) -> Asset:
        """Asset by id, tombstoned or not. Raises NotFoundError."""
        return await self.fetch_and_cache(ByIdQuery.build(kind, asset_id))

    async def list_by_tags(self, kind: AssetKind, tags, page=None, page_size=None) -> AssetPage:
        """Live assets sharing at least one tag with `tags`."""
        return await self.fetch_and_cache(TagQuery.build(kind, tags, page, page_size))

    async def list_all(self, kind: AssetKind, page=1, page_size=10, tag: Optional[str] = None) -> AssetPage:
        """Live assets, optionally restricted to those carrying `tag`."""
        return await self.fetch_and_cache(ListingQuery.build(kind, page, page_size, tag))

    # ============== Generic read path ==============

    async def fetch_and_cache(self, query: QueryDescriptor) -> Union[Asset, AssetPage]:
        """
        Resolve a query descriptor through the cache.

        Args:
            query: ByIdQuery, TagQuery or ListingQuery (already validated)

        Returns:
            Asset for ByIdQuery, AssetPage otherwise
        """
        key = query.cache_key()

        cached = await self._cache_get(key)
        if cached is not None:
            try:
                result = self._deserialize(query, cached)
            except (ValueError, KeyError, TypeError) as e:
                logger.warning("Discarding undecodable cache entry", data={"key": key, "error": str(e)})
            else:
                record_cache_hit(query.kind.value, query.label)
                return result

        record_cache_miss(query.kind.value, query.label)
        generation = self._generations.get(key, 0)
        result = await self._load(query)
        if self._generations.get(key, 0) != generation:
            logger.debug("Skipping cache fill invalidated during load", data={"key": key})
            return result
        await self._cache_set(key, self._serialize(result))
        return result

    async def invalidate(self, kind: AssetKind, asset_id: str) -> None:
        """
        Drop the by-id entry for this asset.

        Fills of the same key already in flight are discarded. Tag and
        listing entries expire with their TTL.
        """
        key = ByIdQuery(kind=kind, asset_id=asset_id).cache_key()
        self._generations[key] = self._generations.get(key, 0) + 1
        try:
            await self.cache.delete(key)
        except CacheUnavailableError:
            record_cache_bypass("delete")
            logger.warning("Cache invalidation skipped, entry will expire", data={"key": key, "ttl": self.ttl})
        else:
            logger.debug("Invalidated cache entry", data={"key": key})

    # ============== Store access ==============

    async def _load(self, query: QueryDescriptor) -> Union[Asset, AssetPage]:
        if isinstance(query, ByIdQuery):
            asset = await self.store.get(query.kind, query.asset_id)
            if asset is None:
                raise NotFoundError(f"{query.kind.label} not found", data={"id": query.asset_id})
            return asset

        items, total = await self.store.find_page(
            query.kind,
            tag_filter=query.tag_filter,
            offset=query.offset,
            limit=query.page_size or None,
            include_deleted=False,
        )
        if not query.is_paged:
            return AssetPage(items=items, total_count=total, total_pages=1, current_page=None)

        total_pages = -(-total // query.page_size)
        return AssetPage(items=items, total_count=total, total_pages=total_pages, current_page=query.page)

    # ============== Cache access (degrades on outage) ==============

    async def _cache_get(self, key: str) -> Optional[bytes]:
        try:
            return await self.cache.get(key)
        except CacheUnavailableError:
            record_cache_bypass("get")
            return None

    async def _cache_set(self, key: str, value: bytes) -> None:
        try:
            await self.cache.set(key, value, self.ttl)
        except CacheUnavailableError:
            record_cache_bypass("set")

    # ============== Serialization ==============

    @staticmethod
    def _serialize(result: Union[Asset, AssetPage]) -> bytes:
        return json.dumps(result.to_dict(), separators=(",", ":")).encode("utf-8")

    @staticmethod
    def _deserialize(query: QueryDescriptor, raw: bytes) -> Union[Asset, AssetPage]:
        data = json.loads(raw)
        if isinstance(query, ByIdQuery):
            return Asset.from_dict(data, query.kind)
        return AssetPage.from_dict(data, query.kind)
