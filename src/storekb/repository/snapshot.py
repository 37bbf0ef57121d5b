"""Repository over a JSON export of the store's content."""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Collection, Dict, List, Optional, Union

from storekb.chunks.payloads import ItemId
from storekb.errors import SourceUnavailable

from .base import RawItem

logger = logging.getLogger(__name__)


class SnapshotRepository:
    """Serves content from an in-memory snapshot.

    The snapshot mirrors the REST resources::

        {
          "woocommerce": true,
          "products": [...], "pages": [...], "posts": [...],
          "settings": {"store_info": {...}, "shipping": {...}, ...},
          "special_pages": {"shop": 5, "privacy": 3, ...},
          "terms": {"product_cat": [...], "product_tag": [...]},
          "multilingual": null
        }

    Only items with ``status == "publish"`` (or no status) are listed.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(data) if data else {}

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "SnapshotRepository":
        snapshot_path = Path(path)
        try:
            data = json.loads(snapshot_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise SourceUnavailable(f"Cannot read store snapshot {snapshot_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise SourceUnavailable(f"Store snapshot {snapshot_path} is not a JSON object")
        logger.info("Loaded store snapshot from %s", snapshot_path)
        return cls(data)

    def catalog_available(self) -> bool:
        return bool(self._data.get("woocommerce", True))

    def list_products(
        self,
        *,
        limit: int,
        offset: int = 0,
        include_ids: Collection[ItemId] = (),
        exclude_ids: Collection[ItemId] = (),
        language: Optional[str] = None,
    ) -> List[RawItem]:
        if not self.catalog_available():
            raise SourceUnavailable("WooCommerce is not active", source="product")
        return self._page(self._data.get("products", []), limit, offset, include_ids, exclude_ids, language)

    def list_posts(
        self,
        post_type: str,
        *,
        limit: int,
        offset: int = 0,
        include_ids: Collection[ItemId] = (),
        exclude_ids: Collection[ItemId] = (),
        language: Optional[str] = None,
    ) -> List[RawItem]:
        collection = {"page": "pages", "post": "posts"}.get(post_type, post_type)
        return self._page(self._data.get(collection, []), limit, offset, include_ids, exclude_ids, language)

    def get_settings_group(self, group: str) -> Optional[RawItem]:
        if not self.catalog_available():
            raise SourceUnavailable("WooCommerce is not active", source="setting")
        group_data = self._data.get("settings", {}).get(group)
        return copy.deepcopy(group_data) if group_data is not None else None

    def get_special_pages(self) -> Dict[str, int]:
        return dict(self._data.get("special_pages", {}))

    def taxonomy_exists(self, taxonomy: str) -> bool:
        return taxonomy in self._data.get("terms", {})

    def list_terms(self, taxonomy: str, *, language: Optional[str] = None) -> List[RawItem]:
        terms = self._data.get("terms", {}).get(taxonomy, [])
        return [copy.deepcopy(term) for term in terms if _language_matches(term, language)]

    def get_multilingual_config(self) -> Optional[Dict[str, Any]]:
        config = self._data.get("multilingual")
        return copy.deepcopy(config) if config else None

    @staticmethod
    def _page(
        items: List[RawItem],
        limit: int,
        offset: int,
        include_ids: Collection[ItemId],
        exclude_ids: Collection[ItemId],
        language: Optional[str],
    ) -> List[RawItem]:
        included = {str(item_id) for item_id in include_ids}
        excluded = {str(item_id) for item_id in exclude_ids}

        selected: List[RawItem] = []
        for item in items:
            if item.get("status", "publish") != "publish":
                continue
            item_id = str(item.get("id"))
            if included and item_id not in included:
                continue
            if item_id in excluded:
                continue
            if not _language_matches(item, language):
                continue
            selected.append(item)

        return [copy.deepcopy(item) for item in selected[offset : offset + limit]]


def _language_matches(item: RawItem, language: Optional[str]) -> bool:
    if not language:
        return True
    item_language = item.get("lang")
    return not item_language or item_language == language
