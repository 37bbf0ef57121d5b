"""Catalog item adapter."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from storekb.chunks.payloads import ChunkRecord, ScanRequest, SourceKind
from storekb.chunks.text import join_lines, sanitize_content
from storekb.errors import ItemMappingError, SourceUnavailable
from storekb.repository.base import RawItem

from .base import SourceAdapter, as_item_id, names

logger = logging.getLogger(__name__)

# Written onto each item by enumerate, read back by map_item.
CURRENCY_SYMBOL_FIELD = "_currency_symbol"


class ProductAdapter(SourceAdapter):
    """Maps WooCommerce products.

    Metadata keys: ``product_type, sku, price, regular_price, sale_price,
    on_sale, stock_status, stock_quantity, featured, categories, tags,
    attributes, variations``.
    """

    kind = SourceKind.PRODUCT

    def enumerate(self, request: ScanRequest, limit: int) -> List[RawItem]:
        items = self.repository.list_products(
            limit=limit,
            offset=request.offset,
            include_ids=request.include_ids,
            exclude_ids=request.exclude_ids,
            language=request.language,
        )
        symbol = self._load_currency_symbol()
        kept = [item for item in items if request.matches(item.get("id"))][:limit]
        for item in kept:
            item[CURRENCY_SYMBOL_FIELD] = symbol
        return kept

    def _load_currency_symbol(self) -> str:
        try:
            store_info = self.repository.get_settings_group("store_info") or {}
        except SourceUnavailable as exc:
            logger.debug("Currency symbol unavailable: %s", exc)
            return ""
        return str(store_info.get("currency_symbol") or "")

    def map_item(self, item: RawItem, request: ScanRequest) -> ChunkRecord:
        product_id = as_item_id(item.get("id"))
        if item.get("status", "publish") != "publish":
            raise ItemMappingError(f"product {product_id} is not published", item_id=product_id)

        attributes = _visible_attributes(item.get("attributes"))
        categories = names(item.get("categories"))
        tags = names(item.get("tags"))
        manage_stock = bool(item.get("manage_stock"))

        metadata: Dict[str, Any] = {
            "product_type": item.get("type", "simple"),
            "sku": item.get("sku") or "",
            "price": _price(item.get("price")),
            "regular_price": _price(item.get("regular_price")),
            "sale_price": _price(item.get("sale_price")),
            "on_sale": bool(item.get("on_sale")),
            "stock_status": item.get("stock_status") or "",
            "stock_quantity": item.get("stock_quantity") if manage_stock else None,
            "featured": bool(item.get("featured")),
            "categories": categories,
            "tags": tags,
            "attributes": attributes,
            "variations": _variations(item.get("variations")),
        }

        return self.build_chunk(
            item,
            request,
            item_id=product_id,
            title=item.get("name"),
            content=self._build_content(item, metadata),
            url=item.get("permalink", ""),
            metadata=metadata,
            last_modified=item.get("date_modified_gmt") or item.get("date_modified"),
        )

    def _build_content(self, item: RawItem, metadata: Dict[str, Any]) -> str:
        lines: List[Optional[str]] = [f"Product: {sanitize_content(item.get('name'))}"]

        summary = sanitize_content(item.get("short_description"))
        if summary:
            lines.append(f"Summary: {summary}")
        description = sanitize_content(item.get("description"))
        if description:
            lines.append(f"Description: {description}")

        if metadata["price"]:
            lines.append(f"Price: {self._money(item, metadata['price'])}")
            if metadata["on_sale"]:
                lines.append(f"Regular Price: {self._money(item, metadata['regular_price'])}")
                lines.append(f"Sale Price: {self._money(item, metadata['sale_price'])}")

        if metadata["stock_quantity"] is not None:
            lines.append(f"Stock: {metadata['stock_quantity']} available")
        elif metadata["stock_status"]:
            lines.append(f"Stock Status: {_stock_label(metadata['stock_status'])}")

        if metadata["categories"]:
            lines.append("Categories: " + ", ".join(metadata["categories"]))
        if metadata["tags"]:
            lines.append("Tags: " + ", ".join(metadata["tags"]))
        for name, value in metadata["attributes"].items():
            lines.append(f"{name}: {value}")

        return join_lines(lines)

    def _money(self, item: RawItem, amount: str) -> str:
        return f"{item.get(CURRENCY_SYMBOL_FIELD) or ''}{amount}"


def _price(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


_STOCK_LABELS = {
    "instock": "In stock",
    "outofstock": "Out of stock",
    "onbackorder": "On backorder",
}


def _stock_label(status: str) -> str:
    return _STOCK_LABELS.get(status, status.capitalize())


def _visible_attributes(attributes: Any) -> Dict[str, str]:
    result: Dict[str, str] = {}
    if not attributes:
        return result
    if not isinstance(attributes, list):
        raise ItemMappingError("product attributes must be a list")
    for attribute in attributes:
        if not attribute.get("visible", True):
            continue
        name = sanitize_content(attribute.get("name"))
        if not name:
            continue
        options = attribute.get("options") or []
        result[name] = ", ".join(sanitize_content(str(option)) for option in options)
    return result


def _variations(variations: Any) -> List[Dict[str, Any]]:
    result: List[Dict[str, Any]] = []
    for variation in variations or []:
        if isinstance(variation, dict):
            result.append(
                {
                    "id": variation.get("id"),
                    "sku": variation.get("sku") or "",
                    "price": _price(variation.get("price")),
                    "stock_status": variation.get("stock_status") or "",
                    "attributes": dict(variation.get("attributes") or {}),
                }
            )
        else:
            result.append({"id": variation})
    return result
