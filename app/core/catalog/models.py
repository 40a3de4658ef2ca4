"""
Domain Models for the media catalog.

These dataclasses represent the entities that are stored and cached.
All models have to_dict() and from_dict() for serialization; the dict form
is the JSON wire form (camelCase keys, ISO-8601 UTC timestamps).

Domain entities:
- AssetKind: photo or video
- Asset: a stored media file with tags and lifecycle timestamps
- AssetPage: one page of a listing plus pagination metadata
- TagFilter: tag-membership predicate used by listings
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple


class AssetKind(str, Enum):
    """Kind of media asset. Each kind lives in its own table."""
    PHOTO = "photo"
    VIDEO = "video"

    @property
    def plural(self) -> str:
        return f"{self.value}s"

    @property
    def upload_field(self) -> str:
        """Multipart field carrying the file."""
        return self.value

    @property
    def id_field(self) -> str:
        """Multipart field carrying an optional caller-supplied id."""
        return "imageId" if self is AssetKind.PHOTO else "videoId"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class TagMatch(str, Enum):
    """Tag membership predicate."""
    HAS = "has"            # exact single tag
    HAS_SOME = "has_some"  # any of several tags


def utcnow() -> datetime:
    """Current UTC time truncated to milliseconds (store precision)."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from the store."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return ensure_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def normalize_tags(tags: Iterable[str]) -> List[str]:
    """Sorted, de-duplicated, whitespace-trimmed tags; empty tags dropped."""
    return sorted({tag.strip() for tag in tags if tag and tag.strip()})


@dataclass
class Asset:
    """A cached/stored media asset (photo or video)."""
    id: str
    kind: AssetKind
    url: str
    tags: List[str] = field(default_factory=list)
    title: str = ""
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'url': self.url,
            'tags': list(self.tags),
            'title': self.title,
            'createdAt': format_timestamp(self.created_at),
            'updatedAt': format_timestamp(self.updated_at),
            'deletedAt': format_timestamp(self.deleted_at),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any], kind: AssetKind) -> 'Asset':
        return cls(
            id=d['id'],
            kind=kind,
            url=d['url'],
            tags=list(d.get('tags', [])),
            title=d.get('title', ""),
            created_at=parse_timestamp(d['createdAt']),
            updated_at=parse_timestamp(d['updatedAt']),
            deleted_at=parse_timestamp(d.get('deletedAt')),
        )


@dataclass(frozen=True)
class TagFilter:
    """Tag-membership predicate for listings."""
    mode: TagMatch
    tags: Tuple[str, ...]

    @classmethod
    def has(cls, tag: str) -> 'TagFilter':
        return cls(mode=TagMatch.HAS, tags=(tag,))

    @classmethod
    def has_some(cls, tags: Iterable[str]) -> 'TagFilter':
        return cls(mode=TagMatch.HAS_SOME, tags=tuple(tags))


@dataclass
class AssetPage:
    """
    One page of a listing.

    current_page is None when the listing is unpaged (all matches returned).
    """
    items: List[Asset]
    total_count: int
    total_pages: int
    current_page: Optional[int]

    @property
    def has_next_page(self) -> bool:
        return self.current_page is not None and self.current_page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.current_page is not None and self.current_page > 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'items': [asset.to_dict() for asset in self.items],
            'totalCount': self.total_count,
            'totalPages': self.total_pages,
            'currentPage': self.current_page,
            'hasNextPage': self.has_next_page,
            'hasPreviousPage': self.has_previous_page,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any], kind: AssetKind) -> 'AssetPage':
        return cls(
            items=[Asset.from_dict(item, kind) for item in d['items']],
            total_count=d['totalCount'],
            total_pages=d['totalPages'],
            current_page=d['currentPage'],
        )
