"""
Query descriptors and cache key derivation.

Every read goes through CatalogQueryService.fetch_and_cache() with one of
three descriptors:

- ByIdQuery:    point lookup             key  photos:id:<id>
- TagQuery:     any-of tag search        key  photos:tags:<a,b,c>:<page>:<size>
- ListingQuery: listing, no tag          key  photos:list:all:<page>:<size>
                listing, one exact tag   key  photos:list:tag=<tag>:<page>:<size>

Tag lists are trimmed, de-duplicated and sorted before they reach the key,
so "b,a" and "a,b" share an entry. Every tag is percent-encoded inside the
key, so a tag holding "," or ":" can never alias a different tag list.
Unpaged queries render page/size as "all".

Constructors validate their input and raise ValidationError; nothing here
touches the cache or the store.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union
from urllib.parse import quote

from app.core.errors import ValidationError
from .models import AssetKind, TagFilter, normalize_tags

TAG_DELIMITER = ","
UNPAGED = "all"


def validate_id(asset_id, kind: AssetKind) -> str:
    """Non-blank string id, returned exactly as given."""
    if not isinstance(asset_id, str) or not asset_id.strip():
        raise ValidationError(f"Invalid {kind.value} ID", data={"id": repr(asset_id)})
    return asset_id


def tag_key(tag: str) -> str:
    """Tag as it appears inside a cache key."""
    return quote(tag, safe="")


def parse_tag_list(tags) -> Tuple[str, ...]:
    """
    Accept "a,b" or ["a", "b"]; return sorted distinct tags.

    Raises ValidationError for empty strings, empty lists, non-string items,
    or input that holds no tag after trimming.
    """
    if isinstance(tags, str):
        raw = tags.split(TAG_DELIMITER)
    elif isinstance(tags, (list, tuple, set, frozenset)):
        if not all(isinstance(tag, str) for tag in tags):
            raise ValidationError("Invalid tags", data={"tags": repr(tags)})
        raw = list(tags)
    else:
        raise ValidationError("Invalid tags", data={"tags": repr(tags)})

    normalized = normalize_tags(raw)
    if not normalized:
        raise ValidationError("Invalid tags", data={"tags": repr(tags)})
    return tuple(normalized)


def normalize_page(page) -> int:
    """1-indexed page; missing, unparsable or non-positive values become 1."""
    try:
        value = int(page)
    except (TypeError, ValueError):
        return 1
    return value if value > 0 else 1


def normalize_page_size(page_size) -> int:
    """Page size; None means 0 (unpaged). Negative or unparsable is an error."""
    if page_size is None or page_size == "":
        return 0
    try:
        value = int(page_size)
    except (TypeError, ValueError):
        raise ValidationError("Invalid limit", data={"limit": repr(page_size)})
    if value < 0:
        raise ValidationError("Invalid limit", data={"limit": value})
    return value


@dataclass(frozen=True)
class ByIdQuery:
    """Point lookup by id. Tombstones are returned."""
    kind: AssetKind
    asset_id: str

    label = "by_id"

    @classmethod
    def build(cls, kind: AssetKind, asset_id) -> 'ByIdQuery':
        return cls(kind=kind, asset_id=validate_id(asset_id, kind))

    def cache_key(self) -> str:
        return f"{self.kind.plural}:id:{self.asset_id}"


@dataclass(frozen=True)
class _PagedQuery:
    kind: AssetKind
    page: int
    page_size: int  # 0 = unpaged

    @property
    def is_paged(self) -> bool:
        return self.page_size > 0

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size if self.is_paged else 0

    def _page_key(self) -> str:
        if not self.is_paged:
            return f"{UNPAGED}:{UNPAGED}"
        return f"{self.page}:{self.page_size}"


@dataclass(frozen=True)
class TagQuery(_PagedQuery):
    """Any-of tag search over live assets."""
    tags: Tuple[str, ...] = ()

    label = "tags"

    @classmethod
    def build(cls, kind: AssetKind, tags, page=None, page_size=None) -> 'TagQuery':
        return cls(
            kind=kind,
            tags=parse_tag_list(tags),
            page=normalize_page(page),
            page_size=normalize_page_size(page_size),
        )

    @property
    def tag_filter(self) -> TagFilter:
        return TagFilter.has_some(self.tags)

    def cache_key(self) -> str:
        tags = TAG_DELIMITER.join(tag_key(tag) for tag in self.tags)
        return f"{self.kind.plural}:tags:{tags}:{self._page_key()}"


@dataclass(frozen=True)
class ListingQuery(_PagedQuery):
    """Listing of live assets, optionally restricted to one exact tag."""
    tag: Optional[str] = None

    label = "listing"

    @classmethod
    def build(cls, kind: AssetKind, page=1, page_size=10, tag: Optional[str] = None) -> 'ListingQuery':
        if tag is not None and not isinstance(tag, str):
            raise ValidationError("Invalid tag", data={"tag": repr(tag)})
        tag = tag.strip() if tag else None
        return cls(
            kind=kind,
            tag=tag or None,
            page=normalize_page(page),
            page_size=normalize_page_size(page_size),
        )

    @property
    def tag_filter(self) -> Optional[TagFilter]:
        return TagFilter.has(self.tag) if self.tag else None

    def cache_key(self) -> str:
        scope = f"tag={tag_key(self.tag)}" if self.tag else "all"
        return f"{self.kind.plural}:list:{scope}:{self._page_key()}"


QueryDescriptor = Union[ByIdQuery, TagQuery, ListingQuery]


