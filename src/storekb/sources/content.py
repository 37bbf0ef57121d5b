"""Static page and blog post adapters."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from storekb.chunks.payloads import ChunkRecord, ScanRequest, SourceKind
from storekb.chunks.text import sanitize_content
from storekb.errors import ItemMappingError
from storekb.repository.base import RawItem

from .base import SourceAdapter, as_item_id, names

logger = logging.getLogger(__name__)

LEGAL_PAGES = ("terms", "privacy", "refund")
LEGAL_SLUGS = frozenset(
    {
        "privacy-policy",
        "terms-and-conditions",
        "terms-of-service",
        "refund_returns",
        "refund-policy",
        "returns",
    }
)


# Written onto each page by enumerate, read back by map_item.
PAGE_TYPE_FIELD = "_page_type"


def page_type(item: RawItem, special_pages: Dict[str, int]) -> str:
    """Classify a page as a store special page, a legal page or ``standard``."""
    item_id = str(item.get("id"))
    for name, page_id in special_pages.items():
        if str(page_id) == item_id:
            return "legal" if name in LEGAL_PAGES else name
    if (item.get("slug") or "") in LEGAL_SLUGS:
        return "legal"
    return "standard"


class _PostTypeAdapter(SourceAdapter):
    post_type: str

    def enumerate(self, request: ScanRequest, limit: int) -> List[RawItem]:
        items = self._list(request, limit, request.offset, request.exclude_ids)
        return [item for item in items if request.matches(item.get("id"))][:limit]

    def _list(self, request: ScanRequest, limit: int, offset: int, exclude_ids) -> List[RawItem]:
        return self.repository.list_posts(
            self.post_type,
            limit=limit,
            offset=offset,
            include_ids=request.include_ids,
            exclude_ids=exclude_ids,
            language=request.language,
        )

    def _common_metadata(self, item: RawItem) -> Dict[str, Any]:
        return {
            "post_type": item.get("type") or self.post_type,
            "slug": item.get("slug") or "",
            "post_date": item.get("date") or "",
            "post_modified": item.get("modified") or "",
            "author": sanitize_content(item.get("author_name")),
            "excerpt": sanitize_content(item.get("excerpt")),
        }

    def map_item(self, item: RawItem, request: ScanRequest) -> ChunkRecord:
        item_id = as_item_id(item.get("id"))
        if item.get("status", "publish") != "publish":
            raise ItemMappingError(f"{self.post_type} {item_id} is not published", item_id=item_id)

        return self.build_chunk(
            item,
            request,
            item_id=item_id,
            title=item.get("title"),
            content=sanitize_content(item.get("content")),
            url=item.get("link", ""),
            metadata=self.metadata(item),
            last_modified=item.get("modified"),
        )

    def metadata(self, item: RawItem) -> Dict[str, Any]:
        return self._common_metadata(item)


class PageAdapter(_PostTypeAdapter):
    """Maps static pages.

    Metadata keys: ``post_type, slug, post_date, post_modified, author,
    excerpt, page_type, parent``. ``page_type`` is one of ``shop, cart,
    checkout, myaccount, legal, standard``.

    With ``include_legal_pages`` off, ``offset`` and ``limit`` count the
    pages left after legal pages are dropped, so a batch is only short
    when the store has no more pages.
    """

    kind = SourceKind.PAGE
    post_type = "page"

    def enumerate(self, request: ScanRequest, limit: int) -> List[RawItem]:
        if limit <= 0:
            return []
        special_pages = self.repository.get_special_pages()
        if request.include_legal_pages:
            items = super().enumerate(request, limit)
        else:
            items = self._non_legal_pages(request, limit, special_pages)
        for item in items:
            item[PAGE_TYPE_FIELD] = page_type(item, special_pages)
        return items

    def _non_legal_pages(self, request: ScanRequest, limit: int, special_pages: Dict[str, int]) -> List[RawItem]:
        legal_ids = {page_id for name, page_id in special_pages.items() if name in LEGAL_PAGES}
        exclude_ids = request.exclude_ids | legal_ids
        wanted = request.offset + limit

        kept: List[RawItem] = []
        raw_offset = 0
        while len(kept) < wanted:
            batch = self._list(request, limit, raw_offset, exclude_ids)
            for item in batch:
                if request.matches(item.get("id")) and page_type(item, special_pages) != "legal":
                    kept.append(item)
            if len(batch) < limit:
                break
            raw_offset += len(batch)
        return kept[request.offset : wanted]

    def metadata(self, item: RawItem) -> Dict[str, Any]:
        metadata = self._common_metadata(item)
        metadata["page_type"] = item.get(PAGE_TYPE_FIELD) or page_type(item, {})
        metadata["parent"] = item.get("parent") or 0
        return metadata


class PostAdapter(_PostTypeAdapter):
    """Maps blog posts; adds ``categories`` and ``tags`` metadata."""

    kind = SourceKind.POST
    post_type = "post"

    def metadata(self, item: RawItem) -> Dict[str, Any]:
        metadata = self._common_metadata(item)
        metadata["categories"] = names(item.get("categories"))
        metadata["tags"] = names(item.get("tags"))
        return metadata
