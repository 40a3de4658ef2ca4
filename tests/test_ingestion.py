"""Tests for IngestionService: uploads, capacity ceilings, soft-deletes."""

import pytest

from app.core.catalog import AssetKind, CatalogQueryService, IngestionService
from app.core.catalog.ingestion import DEFAULT_LIMITS, parse_upload_tags
from app.core.errors import CapacityError, ConflictError, NotFoundError, StoreUnavailableError, ValidationError

from conftest import UnavailableCache, make_asset


JPEG = b"\xff\xd8\xff\xe0fake-jpeg"


@pytest.mark.unit
class TestParseUploadTags:

    @pytest.mark.parametrize("raw,expected", [
        ('["sunset", "beach"]', ["beach", "sunset"]),
        ('["a", " a ", "b"]', ["a", "b"]),
        ("sunset, beach", ["beach", "sunset"]),
        ('"solo"', ["solo"]),
        (["x", "y"], ["x", "y"]),
    ])
    def test_accepted_forms(self, raw, expected):
        assert parse_upload_tags(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "[]", '[""]'])
    def test_missing_tags(self, raw):
        with pytest.raises(ValidationError, match="Tags are required"):
            parse_upload_tags(raw)

    @pytest.mark.parametrize("raw", ['[1, 2]', '{"a": 1}', "42"])
    def test_non_string_tags(self, raw):
        with pytest.raises(ValidationError):
            parse_upload_tags(raw)


@pytest.mark.unit
class TestUpload:

    @pytest.mark.asyncio
    async def test_upload_creates_asset_and_blob(self, ingestion, store, blobs):
        """Test a valid upload.

        ЧТО ПРОВЕРЯЕМ:
            Row is stored with normalized tags, blob written under the upload root
        """
        asset = await ingestion.upload(
            AssetKind.PHOTO, "My Photo.jpg", JPEG, '["sunset","beach"]', title="Dusk"
        )

        stored = await store.get(AssetKind.PHOTO, asset.id)
        assert stored.tags == ["beach", "sunset"]
        assert stored.title == "Dusk"
        assert stored.deleted_at is None
        assert asset.url.startswith("/uploads/")
        assert asset.url.endswith("My_Photo.jpg")
        assert (blobs.root / asset.url.rsplit("/", 1)[-1]).read_bytes() == JPEG

    @pytest.mark.asyncio
    async def test_generated_ids_are_unique(self, ingestion):
        a = await ingestion.upload(AssetKind.PHOTO, "a.jpg", JPEG, '["a"]')
        b = await ingestion.upload(AssetKind.PHOTO, "a.jpg", JPEG, '["a"]')
        assert a.id != b.id

    @pytest.mark.asyncio
    async def test_caller_supplied_id(self, ingestion, store):
        asset = await ingestion.upload(AssetKind.VIDEO, "clip.mp4", b"mp4", '["x"]', asset_id="clip-1")
        assert asset.id == "clip-1"
        assert (await store.get(AssetKind.VIDEO, "clip-1")) is not None

    @pytest.mark.asyncio
    async def test_new_asset_readable_immediately(self, ingestion, query_service):
        asset = await ingestion.upload(AssetKind.PHOTO, "a.jpg", JPEG, '["a"]', asset_id="fresh")
        assert (await query_service.get_by_id(AssetKind.PHOTO, "fresh")).to_dict() == asset.to_dict()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("filename,content", [(None, JPEG), ("", JPEG), ("a.jpg", None)])
    async def test_file_required(self, ingestion, filename, content):
        with pytest.raises(ValidationError, match="Photo file is required"):
            await ingestion.upload(AssetKind.PHOTO, filename, content, '["a"]')

    @pytest.mark.asyncio
    async def test_tags_required(self, ingestion, store):
        with pytest.raises(ValidationError, match="Tags are required"):
            await ingestion.upload(AssetKind.PHOTO, "a.jpg", JPEG, None)
        assert await store.count(AssetKind.PHOTO) == 0

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, ingestion, store, blobs):
        """Test id collision.

        ЧТО ПРОВЕРЯЕМ:
            Second upload with the same id fails, first record unchanged, no orphan blob
        """
        first = await ingestion.upload(AssetKind.PHOTO, "a.jpg", JPEG, '["a"]', asset_id="dup")

        with pytest.raises(ConflictError, match="Photo ID already exists"):
            await ingestion.upload(AssetKind.PHOTO, "b.jpg", b"other", '["b"]', asset_id="dup")

        stored = await store.get(AssetKind.PHOTO, "dup")
        assert stored.to_dict() == first.to_dict()
        assert len(list(blobs.root.iterdir())) == 1

    @pytest.mark.asyncio
    async def test_conflict_from_store_removes_blob(self, ingestion, store, blobs, monkeypatch):
        """A duplicate that slips past the pre-check is caught by the primary key."""
        await store.create(make_asset("race"))

        async def missing(kind, asset_id):
            return None

        monkeypatch.setattr(store, "get", missing)

        with pytest.raises(ConflictError):
            await ingestion.upload(AssetKind.PHOTO, "a.jpg", JPEG, '["a"]', asset_id="race")

        assert list(blobs.root.iterdir()) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        StoreUnavailableError("Record store query failed"),
        RuntimeError("connection reset"),
    ])
    async def test_failed_insert_removes_blob(self, ingestion, store, blobs, monkeypatch, error):
        """Test store failure after the blob was written.

        ЧТО ПРОВЕРЯЕМ:
            The original error propagates and no orphan file is left behind
        """
        async def failing_create(asset):
            raise error

        monkeypatch.setattr(store, "create", failing_create)

        with pytest.raises(type(error)):
            await ingestion.upload(AssetKind.PHOTO, "a.jpg", JPEG, '["a"]')

        assert list(blobs.root.iterdir()) == []
        assert await store.count(AssetKind.PHOTO) == 0


@pytest.mark.consistency
class TestCapacity:

    @pytest.mark.asyncio
    async def test_upload_below_ceiling_succeeds(self, ingestion, store, seed):
        """Test upload at limit - 1.

        ЧТО ПРОВЕРЯЕМ:
            With 49 photos stored the 50th upload is accepted
        """
        await seed(DEFAULT_LIMITS[AssetKind.PHOTO] - 1)

        await ingestion.upload(AssetKind.PHOTO, "a.jpg", JPEG, '["a"]')

        assert await store.count(AssetKind.PHOTO) == 50

    @pytest.mark.asyncio
    async def test_upload_at_ceiling_rejected(self, ingestion, store, seed, blobs):
        """Test upload at the limit.

        ЧТО ПРОВЕРЯЕМ:
            With 50 photos stored the upload fails and nothing is written
        """
        await seed(DEFAULT_LIMITS[AssetKind.PHOTO])

        with pytest.raises(CapacityError, match=r"Photo storage limit reached \(50\)"):
            await ingestion.upload(AssetKind.PHOTO, "a.jpg", JPEG, '["a"]')

        assert await store.count(AssetKind.PHOTO) == 50
        assert not blobs.root.exists() or list(blobs.root.iterdir()) == []

    @pytest.mark.asyncio
    async def test_tombstones_count_towards_ceiling(self, store, blobs, query_service, seed):
        ingestion = IngestionService(store, blobs, query_service, limits={AssetKind.VIDEO: 2})
        created = await seed(2, kind=AssetKind.VIDEO, prefix="v")
        await ingestion.soft_delete(AssetKind.VIDEO, created[0].id)

        with pytest.raises(CapacityError, match=r"Video storage limit reached \(2\)"):
            await ingestion.upload(AssetKind.VIDEO, "c.mp4", b"mp4", '["a"]')

    @pytest.mark.asyncio
    async def test_ceilings_are_per_kind(self, store, blobs, query_service, seed):
        ingestion = IngestionService(store, blobs, query_service, limits={AssetKind.PHOTO: 1})
        await seed(1)

        video = await ingestion.upload(AssetKind.VIDEO, "c.mp4", b"mp4", '["a"]')
        assert video.kind is AssetKind.VIDEO


@pytest.mark.unit
class TestSoftDelete:

    @pytest.mark.asyncio
    async def test_soft_delete_sets_tombstone(self, ingestion, store):
        asset = await ingestion.upload(AssetKind.PHOTO, "a.jpg", JPEG, '["a"]', asset_id="p1")

        deleted = await ingestion.soft_delete(AssetKind.PHOTO, "p1")

        assert deleted.deleted_at is not None
        assert deleted.updated_at == deleted.deleted_at
        assert deleted.created_at == asset.created_at
        assert (await store.get(AssetKind.PHOTO, "p1")).deleted_at == deleted.deleted_at

    @pytest.mark.asyncio
    async def test_soft_delete_invalidates_by_id_entry(self, ingestion, query_service, cache):
        """Test by-id freshness through the public delete path.

        ЧТО ПРОВЕРЯЕМ:
            A cached by-id entry is dropped and the next read shows the tombstone
        """
        await ingestion.upload(AssetKind.PHOTO, "a.jpg", JPEG, '["a"]', asset_id="p1")
        await query_service.get_by_id(AssetKind.PHOTO, "p1")
        assert await cache.get("photos:id:p1") is not None

        await ingestion.soft_delete(AssetKind.PHOTO, "p1")

        assert await cache.get("photos:id:p1") is None
        assert (await query_service.get_by_id(AssetKind.PHOTO, "p1")).is_deleted

    @pytest.mark.asyncio
    async def test_soft_delete_missing(self, ingestion):
        with pytest.raises(NotFoundError, match="Photo not found"):
            await ingestion.soft_delete(AssetKind.PHOTO, "ghost")

    @pytest.mark.asyncio
    async def test_soft_delete_invalid_id(self, ingestion):
        with pytest.raises(ValidationError):
            await ingestion.soft_delete(AssetKind.PHOTO, "  ")

    @pytest.mark.asyncio
    async def test_soft_delete_with_cache_down(self, store, blobs):
        queries = CatalogQueryService(cache=UnavailableCache(), store=store)
        ingestion = IngestionService(store, blobs, queries)
        await store.create(make_asset("p1"))

        deleted = await ingestion.soft_delete(AssetKind.PHOTO, "p1")
        assert deleted.is_deleted
