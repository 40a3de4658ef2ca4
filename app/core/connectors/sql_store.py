"""
SQLRecordStore - relational record store on SQLAlchemy's asyncio ORM.

Tables:
- Photo / Video: one row per asset (soft-deleted rows keep deletedAt set)
- PhotoTag / VideoTag: one row per (asset, tag)

Works with any async driver SQLAlchemy supports; the default URL uses
aiosqlite, production uses postgresql+asyncpg.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Dict, List, Optional, Tuple, Type

from sqlalchemy import DateTime, ForeignKey, String, Text, func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, aliased, mapped_column, relationship, selectinload

from app.common.logging import get_logger
from app.core.catalog.models import Asset, AssetKind, TagFilter, TagMatch, ensure_utc
from app.core.errors import ConflictError, StoreUnavailableError
from app.core.monitoring import store_query_seconds

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class PhotoRow(Base):
    __tablename__ = "Photo"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column("createdAt", DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column("updatedAt", DateTime(timezone=True), nullable=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column("deletedAt", DateTime(timezone=True), nullable=True)

    tags: Mapped[List["PhotoTagRow"]] = relationship(cascade="all, delete-orphan")


class PhotoTagRow(Base):
    __tablename__ = "PhotoTag"

    asset_id: Mapped[str] = mapped_column(
        "photoId", ForeignKey("Photo.id", ondelete="CASCADE"), primary_key=True
    )
    tag: Mapped[str] = mapped_column(String(255), primary_key=True, index=True)


class VideoRow(Base):
    __tablename__ = "Video"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column("createdAt", DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column("updatedAt", DateTime(timezone=True), nullable=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column("deletedAt", DateTime(timezone=True), nullable=True)

    tags: Mapped[List["VideoTagRow"]] = relationship(cascade="all, delete-orphan")


class VideoTagRow(Base):
    __tablename__ = "VideoTag"

    asset_id: Mapped[str] = mapped_column(
        "videoId", ForeignKey("Video.id", ondelete="CASCADE"), primary_key=True
    )
    tag: Mapped[str] = mapped_column(String(255), primary_key=True, index=True)


TABLES: Dict[AssetKind, Tuple[Type[Base], Type[Base]]] = {
    AssetKind.PHOTO: (PhotoRow, PhotoTagRow),
    AssetKind.VIDEO: (VideoRow, VideoTagRow),
}


def _to_asset(kind: AssetKind, row) -> Asset:
    return Asset(
        id=row.id,
        kind=kind,
        url=row.url,
        tags=sorted(t.tag for t in row.tags),
        title=row.title,
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
        deleted_at=ensure_utc(row.deleted_at),
    )


def _conditions(row, tag_row, tag_filter: Optional[TagFilter], include_deleted: bool) -> list:
    """WHERE clauses for a listing over `row` (an entity or an alias of it)."""
    clauses = []
    if not include_deleted:
        clauses.append(row.deleted_at.is_(None))
    if tag_filter is not None:
        if tag_filter.mode is TagMatch.HAS:
            tag_clause = tag_row.tag == tag_filter.tags[0]
        else:
            tag_clause = tag_row.tag.in_(tag_filter.tags)
        clauses.append(
            select(tag_row.asset_id).where(tag_row.asset_id == row.id, tag_clause).exists()
        )
    return clauses


class SQLRecordStore:
    """
    Record store backed by a relational database.

    Implements RecordStoreProtocol. The engine is created in open() and
    disposed in close(); one session per call.
    """

    def __init__(self, url: str, echo: bool = False):
        """
        Initialize the store (no connection yet).

        Args:
            url: SQLAlchemy async database URL
            echo: Log SQL statements
        """
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._sessions: Optional[async_sessionmaker[AsyncSession]] = None

    async def open(self) -> None:
        """Create the engine and the tables if missing."""
        self._engine = create_async_engine(self.url, echo=self.echo)
        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False)
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as e:
            raise StoreUnavailableError("Record store unreachable", cause=e) from e
        logger.info("Record store opened", data={"dialect": self._engine.dialect.name})

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessions = None

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Transactional session; driver errors become StoreUnavailableError."""
        if self._sessions is None:
            raise StoreUnavailableError("Record store is not open", data={"operation": operation})

        with store_query_seconds.labels(operation=operation).time():
            try:
                async with self._sessions() as session, session.begin():
                    yield session
            except IntegrityError:
                raise
            except (SQLAlchemyError, OSError) as e:
                raise StoreUnavailableError(
                    "Record store query failed", data={"operation": operation}, cause=e
                ) from e

    async def ping(self) -> bool:
        async with self._session("ping") as session:
            await session.execute(text("SELECT 1"))
        return True

    async def create(self, asset: Asset) -> Asset:
        row_cls, tag_cls = TABLES[asset.kind]
        row = row_cls(
            id=asset.id,
            url=asset.url,
            title=asset.title,
            created_at=asset.created_at,
            updated_at=asset.updated_at,
            deleted_at=asset.deleted_at,
            tags=[tag_cls(tag=tag) for tag in asset.tags],
        )
        try:
            async with self._session("create") as session:
                session.add(row)
        except IntegrityError as e:
            raise ConflictError(
                f"{asset.kind.label} ID already exists", data={"id": asset.id}, cause=e
            ) from e
        return asset

    async def get(self, kind: AssetKind, asset_id: str) -> Optional[Asset]:
        row_cls, _ = TABLES[kind]
        async with self._session("get") as session:
            row = await session.get(row_cls, asset_id, options=[selectinload(row_cls.tags)])
            if row is None:
                return None
            return _to_asset(kind, row)

    async def find_page(
        self,
        kind: AssetKind,
        tag_filter: Optional[TagFilter] = None,
        offset: int = 0,
        limit: Optional[int] = None,
        include_deleted: bool = False,
    ) -> Tuple[List[Asset], int]:
        """
        Items and total match count.

        A non-empty page carries the count as a scalar subquery over an alias
        of the table, so items and total come from one statement snapshot.
        An empty page has no row to carry it and runs a second COUNT; under
        READ COMMITTED that count may include writes committed in between,
        so total_count on a page past the end is only as fresh as that
        second statement.
        """
        row_cls, tag_cls = TABLES[kind]
        counted = aliased(row_cls)
        total_col = (
            select(func.count())
            .select_from(counted)
            .where(*_conditions(counted, tag_cls, tag_filter, include_deleted))
            .scalar_subquery()
        )

        stmt = (
            select(row_cls, total_col.label("total"))
            .where(*_conditions(row_cls, tag_cls, tag_filter, include_deleted))
            .order_by(row_cls.created_at, row_cls.id)
            .options(selectinload(row_cls.tags))
            .offset(offset)
        )
        if limit:
            stmt = stmt.limit(limit)

        async with self._session("find_page") as session:
            result = (await session.execute(stmt)).all()
            if result:
                total = result[0].total
            else:
                total = await session.scalar(
                    select(func.count())
                    .select_from(row_cls)
                    .where(*_conditions(row_cls, tag_cls, tag_filter, include_deleted))
                )
            return [_to_asset(kind, r[0]) for r in result], int(total or 0)

    async def count(
        self,
        kind: AssetKind,
        tag_filter: Optional[TagFilter] = None,
        include_deleted: bool = True,
    ) -> int:
        row_cls, tag_cls = TABLES[kind]
        stmt = (
            select(func.count())
            .select_from(row_cls)
            .where(*_conditions(row_cls, tag_cls, tag_filter, include_deleted))
        )
        async with self._session("count") as session:
            return int(await session.scalar(stmt) or 0)

    async def soft_delete(self, kind: AssetKind, asset_id: str, at: datetime) -> Optional[Asset]:
        row_cls, _ = TABLES[kind]
        async with self._session("soft_delete") as session:
            row = await session.get(row_cls, asset_id, options=[selectinload(row_cls.tags)])
            if row is None:
                return None
            row.deleted_at = at
            row.updated_at = at
            await session.flush()
            return _to_asset(kind, row)
