"""Dataclasses shared by the source adapters and the scanner."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple, Union

from storekb.errors import InvalidArgument

ItemId = Union[int, str]


class SourceKind(str, Enum):
    """Content categories the pipeline understands, in scan order."""

    PRODUCT = "product"
    PAGE = "page"
    POST = "post"
    SETTING = "setting"
    CATEGORY = "category"

    @property
    def chunk_type(self) -> str:
        return _CHUNK_TYPES[self]


_CHUNK_TYPES = {
    SourceKind.PRODUCT: "product",
    SourceKind.PAGE: "page",
    SourceKind.POST: "post",
    SourceKind.SETTING: "setting",
    SourceKind.CATEGORY: "taxonomy_term",
}

CHUNK_TYPES: FrozenSet[str] = frozenset(_CHUNK_TYPES.values())

CHUNK_FIELDS: Tuple[str, ...] = (
    "id",
    "type",
    "title",
    "content",
    "url",
    "metadata",
    "language",
    "last_modified",
)


@dataclass
class ChunkRecord:
    """Canonical unit handed to the downstream embedding stage."""

    id: ItemId
    type: str
    title: str
    content: str
    url: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    language: str = ""
    last_modified: Optional[str] = None

    def __post_init__(self) -> None:
        if self.type not in CHUNK_TYPES:
            raise ValueError(f"Unknown chunk type: {self.type}")

    @property
    def identity(self) -> Tuple[str, ItemId, str]:
        return (self.type, self.id, self.language)

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in CHUNK_FIELDS}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ChunkRecord":
        return cls(**{name: payload.get(name) for name in CHUNK_FIELDS})


@dataclass
class ScanRequest:
    """Arguments accepted by every scan operation.

    ``limit`` of ``None`` means "use the scanner's batch size". The
    kind-specific flags are ignored by adapters that do not use them.
    """

    limit: Optional[int] = None
    offset: int = 0
    force_refresh: bool = False
    include_ids: FrozenSet[ItemId] = frozenset()
    exclude_ids: FrozenSet[ItemId] = frozenset()
    language: Optional[str] = None
    # pages
    include_legal_pages: bool = True
    # settings
    settings_sections: Optional[Tuple[str, ...]] = None
    # taxonomy
    taxonomies: Tuple[str, ...] = ("product_cat", "product_tag")
    include_hierarchy: bool = True

    def __post_init__(self) -> None:
        self.include_ids = frozenset(self.include_ids or ())
        self.exclude_ids = frozenset(self.exclude_ids or ())
        if self.settings_sections is not None:
            self.settings_sections = tuple(self.settings_sections)
        self.taxonomies = tuple(self.taxonomies)

    @classmethod
    def from_options(cls, options: Optional[Dict[str, Any]] = None) -> "ScanRequest":
        options = dict(options or {})
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(options) - known)
        if unknown:
            raise InvalidArgument(f"Unknown scan option(s): {', '.join(unknown)}")
        return cls(**options)

    def matches(self, item_id: ItemId) -> bool:
        """Apply the include/exclude sets to one identifier."""
        if self.include_ids and not _contains(self.include_ids, item_id):
            return False
        return not _contains(self.exclude_ids, item_id)

    def cache_payload(self, effective_limit: int) -> Dict[str, Any]:
        """Normalized request used for the cache key; force_refresh is excluded."""
        return {
            "limit": effective_limit,
            "offset": self.offset,
            "include_ids": _sorted_ids(self.include_ids),
            "exclude_ids": _sorted_ids(self.exclude_ids),
            "language": self.language,
            "include_legal_pages": self.include_legal_pages,
            "settings_sections": list(self.settings_sections) if self.settings_sections is not None else None,
            "taxonomies": list(self.taxonomies),
            "include_hierarchy": self.include_hierarchy,
        }


def _contains(ids: Iterable[ItemId], item_id: ItemId) -> bool:
    target = str(item_id)
    return any(str(candidate) == target for candidate in ids)


def _sorted_ids(ids: Iterable[ItemId]) -> list[str]:
    return sorted(str(item) for item in ids)
