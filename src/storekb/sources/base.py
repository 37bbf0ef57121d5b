"""Shared plumbing for the per-kind source adapters."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional

from storekb.chunks.payloads import ChunkRecord, ItemId, ScanRequest, SourceKind
from storekb.chunks.text import DEFAULT_MAX_CONTENT_LENGTH, sanitize_content, truncate_content
from storekb.config import settings
from storekb.errors import ItemMappingError
from storekb.language import LanguageResolver
from storekb.repository.base import ContentRepository, RawItem

logger = logging.getLogger(__name__)


class SourceAdapter(ABC):
    """Enumerates one source kind and maps its raw items to chunks."""

    kind: SourceKind

    def __init__(
        self,
        repository: ContentRepository,
        language_resolver: LanguageResolver,
        *,
        store_url: Optional[str] = None,
        max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH,
    ) -> None:
        self.repository = repository
        self.language_resolver = language_resolver
        self.store_url = (store_url or settings.store_url).rstrip("/")
        self.max_content_length = max_content_length

    @abstractmethod
    def enumerate(self, request: ScanRequest, limit: int) -> List[RawItem]:
        """Return at most ``limit`` raw items honouring the request filters.

        Raises ``SourceUnavailable`` when the kind cannot be listed at all.
        """

    @abstractmethod
    def map_item(self, item: RawItem, request: ScanRequest) -> ChunkRecord:
        """Map one raw item; raises ``ItemMappingError`` for unusable items."""

    def build_chunk(
        self,
        item: RawItem,
        request: ScanRequest,
        *,
        item_id: Any,
        title: Optional[str],
        content: Optional[str],
        url: Optional[str] = "",
        metadata: Optional[dict] = None,
        last_modified: Optional[str] = None,
    ) -> ChunkRecord:
        if item_id is None or item_id == "":
            raise ItemMappingError(f"{self.kind.value} item has no identifier")

        clean_title = sanitize_content(title)
        if not clean_title:
            raise ItemMappingError(f"{self.kind.value} {item_id} has an empty title", item_id=item_id)

        clean_content = truncate_content((content or "").strip(), self.max_content_length)
        if not clean_content:
            raise ItemMappingError(f"{self.kind.value} {item_id} has empty content", item_id=item_id)

        return ChunkRecord(
            id=item_id,
            type=self.kind.chunk_type,
            title=clean_title,
            content=clean_content,
            url=url or "",
            metadata=metadata or {},
            language=self.language_resolver.get_content_language(item, request.language),
            last_modified=last_modified or None,
        )

    def admin_url(self, query: str) -> str:
        return f"{self.store_url}/wp-admin/admin.php?{query}"


def as_item_id(value: Any) -> ItemId:
    """Normalise numeric identifiers coming back as strings."""
    if isinstance(value, bool):
        raise ItemMappingError(f"Invalid identifier: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    if isinstance(value, str) and value.strip():
        return value.strip()
    raise ItemMappingError(f"Invalid identifier: {value!r}")


def names(values: Optional[Iterable[Any]]) -> List[str]:
    """Term names from REST term objects or plain strings."""
    result: List[str] = []
    for value in values or []:
        if isinstance(value, dict):
            name = value.get("name")
        else:
            name = value
        if name:
            result.append(sanitize_content(str(name)))
    return result
