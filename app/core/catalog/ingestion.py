"""
IngestionService - creates and soft-deletes assets.

Upload flow:
    validate file + tags -> capacity count -> id collision check
    -> write blob -> insert row

The capacity check and the insert are separate store calls without a lock:
N concurrent uploads at ceiling - 1 can all pass the check, overshooting the
ceiling by at most N - 1. A duplicate id that slips past the collision check
the same way is caught by the primary key and reported as ConflictError.
If the insert fails for any reason the blob written for it is removed.

Creates need no cache invalidation: a by-id miss is never cached, so no entry
can exist for a new id. Soft-deletes drop the by-id entry through
CatalogQueryService.invalidate().
"""

import json
import uuid
from typing import Dict, List, Optional

from app.common.logging import get_logger
from app.core.errors import CapacityError, ConflictError, NotFoundError, ValidationError
from app.core.interfaces import RecordStoreProtocol
from app.core.monitoring import soft_deletes_total, uploads_total
from app.core.storage import LocalBlobStore
from .models import Asset, AssetKind, normalize_tags, utcnow
from .queries import validate_id
from .query_service import CatalogQueryService

logger = get_logger(__name__)

DEFAULT_LIMITS = {AssetKind.PHOTO: 50, AssetKind.VIDEO: 20}


def parse_upload_tags(tags_raw) -> List[str]:
    """
    Tags from the multipart `tags` field.

    Accepts a JSON array of strings ('["a", "b"]'); plain text falls back to
    comma separation ("a, b").
    """
    if tags_raw is None or (isinstance(tags_raw, str) and not tags_raw.strip()):
        raise ValidationError("Tags are required")

    if isinstance(tags_raw, (list, tuple)):
        parsed = list(tags_raw)
    else:
        try:
            parsed = json.loads(tags_raw)
        except (TypeError, ValueError):
            parsed = str(tags_raw).split(",")
        if isinstance(parsed, str):
            parsed = [parsed]

    if not isinstance(parsed, list) or not all(isinstance(tag, str) for tag in parsed):
        raise ValidationError("Tags must be a JSON array of strings", data={"tags": repr(tags_raw)})

    tags = normalize_tags(parsed)
    if not tags:
        raise ValidationError("Tags are required")
    return tags


class IngestionService:
    """
    Validates and persists new assets; performs soft-deletes.

    Usage:
        ingestion = IngestionService(store, blobs, query_service)
        photo = await ingestion.upload(AssetKind.PHOTO, "a.jpg", data, '["sunset"]')
        await ingestion.soft_delete(AssetKind.PHOTO, photo.id)
    """

    def __init__(
        self,
        store: RecordStoreProtocol,
        blobs: LocalBlobStore,
        queries: CatalogQueryService,
        limits: Optional[Dict[AssetKind, int]] = None,
    ):
        self.store = store
        self.blobs = blobs
        self.queries = queries
        self.limits = {**DEFAULT_LIMITS, **(limits or {})}

    async def upload(
        self,
        kind: AssetKind,
        filename: Optional[str],
        content: Optional[bytes],
        tags_raw,
        asset_id: Optional[str] = None,
        title: str = "",
    ) -> Asset:
        """
        Create an asset from an uploaded file.

        Args:
            kind: Photo or video
            filename: Client file name (required)
            content: File bytes
            tags_raw: JSON array string of tags (required)
            asset_id: Caller-supplied id (optional, must be unused)
            title: Optional title

        Raises:
            ValidationError: missing file/tags, malformed id
            CapacityError: ceiling for this kind reached
            ConflictError: asset_id already taken
        """
        try:
            asset = await self._upload(kind, filename, content, tags_raw, asset_id, title)
        except (ValidationError, CapacityError, ConflictError):
            uploads_total.labels(kind=kind.value, status='rejected').inc()
            raise
        uploads_total.labels(kind=kind.value, status='created').inc()
        return asset

    async def _upload(self, kind, filename, content, tags_raw, asset_id, title) -> Asset:
        if not filename or content is None:
            raise ValidationError(f"{kind.label} file is required")

        tags = parse_upload_tags(tags_raw)

        if asset_id is not None and asset_id != "":
            asset_id = validate_id(asset_id, kind)
        else:
            asset_id = None

        limit = self.limits[kind]
        current = await self.store.count(kind)
        if current >= limit:
            raise CapacityError(f"{kind.label} storage limit reached ({limit})", data={"count": current})

        if asset_id is not None and await self.store.get(kind, asset_id) is not None:
            raise ConflictError(f"{kind.label} ID already exists", data={"id": asset_id})

        url = await self.blobs.save(filename, content)
        now = utcnow()
        asset = Asset(
            id=asset_id or uuid.uuid4().hex,
            kind=kind,
            url=url,
            tags=tags,
            title=title or "",
            created_at=now,
            updated_at=now,
        )

        try:
            await self.store.create(asset)
        except BaseException:
            # no row points at the blob
            await self.blobs.remove(url)
            raise

        logger.info(f"{kind.label} created", data={"id": asset.id, "tags": tags, "url": url})
        return asset

    async def soft_delete(self, kind: AssetKind, asset_id) -> Asset:
        """
        Tombstone an asset and drop its by-id cache entry.

        Raises:
            ValidationError: malformed id
            NotFoundError: no asset with this id
        """
        asset_id = validate_id(asset_id, kind)

        deleted = await self.store.soft_delete(kind, asset_id, utcnow())
        if deleted is None:
            raise NotFoundError(f"{kind.label} not found", data={"id": asset_id})

        await self.queries.invalidate(kind, asset_id)
        soft_deletes_total.labels(kind=kind.value).inc()
        logger.info(f"{kind.label} soft-deleted", data={"id": asset_id})
        return deleted
