"""Product category and tag adapter."""

from __future__ import annotations

import logging
from typing import Dict, List

from storekb.chunks.payloads import ChunkRecord, ScanRequest, SourceKind
from storekb.chunks.text import sanitize_content
from storekb.repository.base import RawItem

from .base import SourceAdapter, as_item_id

logger = logging.getLogger(__name__)

_TERM_BASES = {
    "product_cat": "product-category",
    "product_tag": "product-tag",
}


class TaxonomyAdapter(SourceAdapter):
    """Maps taxonomy terms.

    Metadata keys: ``taxonomy, slug, count, parent, featured`` and
    ``parent_name`` when hierarchy is requested and the parent is known.
    Taxonomies missing on the store are skipped rather than failing.
    """

    kind = SourceKind.CATEGORY

    def enumerate(self, request: ScanRequest, limit: int) -> List[RawItem]:
        terms: List[RawItem] = []
        for taxonomy in request.taxonomies:
            if not self.repository.taxonomy_exists(taxonomy):
                logger.debug("Taxonomy %s does not exist, skipping", taxonomy)
                continue

            listed = self.repository.list_terms(taxonomy, language=request.language)
            parents: Dict[str, str] = {str(term.get("id")): term.get("name", "") for term in listed}
            for term in listed:
                term.setdefault("taxonomy", taxonomy)
                if request.include_hierarchy and term.get("parent"):
                    parent_name = parents.get(str(term["parent"]))
                    if parent_name:
                        term["parent_name"] = parent_name
                if request.matches(term.get("id")):
                    terms.append(term)

        return terms[request.offset : request.offset + limit]

    def map_item(self, item: RawItem, request: ScanRequest) -> ChunkRecord:
        term_id = as_item_id(item.get("id"))
        taxonomy = item.get("taxonomy", "")
        name = sanitize_content(item.get("name"))
        description = sanitize_content(item.get("description"))

        metadata = {
            "taxonomy": taxonomy,
            "slug": item.get("slug") or "",
            "count": int(item.get("count") or 0),
            "parent": item.get("parent") or 0,
            "featured": bool(item.get("featured")),
        }
        if request.include_hierarchy and item.get("parent_name"):
            metadata["parent_name"] = sanitize_content(item["parent_name"])

        return self.build_chunk(
            item,
            request,
            item_id=term_id,
            title=name,
            content=description or name,
            url=item.get("link") or self._term_url(taxonomy, item.get("slug")),
            metadata=metadata,
        )

    def _term_url(self, taxonomy: str, slug) -> str:
        base = _TERM_BASES.get(taxonomy)
        if not base or not slug:
            return ""
        return f"{self.store_url}/{base}/{slug}/"
