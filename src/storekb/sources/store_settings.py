"""Store-wide settings adapter: one chunk per logical settings group."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from storekb.chunks.payloads import ChunkRecord, ScanRequest, SourceKind
from storekb.chunks.text import join_lines, sanitize_content
from storekb.errors import ItemMappingError
from storekb.repository.base import SETTINGS_GROUPS, RawItem

from .base import SourceAdapter

logger = logging.getLogger(__name__)

# group -> (chunk id, title, admin settings query)
_GROUP_CHUNKS = {
    "store_info": ("store_info", "Store Information", "page=wc-settings"),
    "shipping": ("shipping_settings", "Shipping Information", "page=wc-settings&tab=shipping"),
    "payment": ("payment_settings", "Payment Information", "page=wc-settings&tab=checkout"),
    "tax": ("tax_settings", "Tax Information", "page=wc-settings&tab=tax"),
}


class SettingsAdapter(SourceAdapter):
    """Synthesises chunks from store configuration groups.

    Metadata keys: ``setting_type`` plus a few group-specific values
    (``currency`` for store info, ``zone_count`` for shipping,
    ``gateway_count`` for payment, ``tax_enabled`` for tax).
    """

    kind = SourceKind.SETTING

    def enumerate(self, request: ScanRequest, limit: int) -> List[RawItem]:
        sections = request.settings_sections or SETTINGS_GROUPS
        groups: List[RawItem] = []
        for section in sections:
            if section not in _GROUP_CHUNKS:
                logger.debug("Unknown settings section %s, skipping", section)
                continue
            chunk_id = _GROUP_CHUNKS[section][0]
            if not request.matches(chunk_id):
                continue
            data = self.repository.get_settings_group(section)
            if data is None:
                logger.debug("Settings group %s not provided by store", section)
                continue
            groups.append(dict(data, group=section))

        return groups[request.offset : request.offset + limit]

    def map_item(self, item: RawItem, request: ScanRequest) -> ChunkRecord:
        group = item.get("group")
        if group not in _GROUP_CHUNKS:
            raise ItemMappingError(f"Unknown settings group: {group!r}")
        chunk_id, title, admin_query = _GROUP_CHUNKS[group]

        builder: Callable[[RawItem], str] = getattr(self, f"_{group}_content")
        metadata: Dict[str, Any] = {"setting_type": group}
        metadata.update(_group_metadata(group, item))

        return self.build_chunk(
            item,
            request,
            item_id=chunk_id,
            title=title,
            content=builder(item),
            url=self.admin_url(admin_query),
            metadata=metadata,
        )

    def _store_info_content(self, item: RawItem) -> str:
        return join_lines(
            _labelled(label, item.get(key))
            for label, key in (
                ("Store Name", "name"),
                ("Store Description", "description"),
                ("Store Address", "address"),
                ("Store City", "city"),
                ("Store Country", "country"),
                ("Store Postcode", "postcode"),
                ("Store Currency", "currency"),
                ("Currency Symbol", "currency_symbol"),
            )
        )

    def _shipping_content(self, item: RawItem) -> str:
        lines: List[Optional[str]] = []
        for zone in item.get("zones") or []:
            lines.append(_labelled("Shipping Zone", zone.get("name")))
            for method in zone.get("methods") or []:
                title = sanitize_content(method.get("title"))
                if title:
                    cost = sanitize_content(str(method.get("cost") or "")) or "Free"
                    lines.append(f"  Method: {title} - {cost}")
        lines.append(_labelled("Free Shipping Minimum", item.get("free_shipping_minimum")))
        return join_lines(lines)

    def _payment_content(self, item: RawItem) -> str:
        lines: List[Optional[str]] = []
        for gateway in item.get("gateways") or []:
            if not gateway.get("enabled"):
                continue
            lines.append(_labelled("Payment Method", gateway.get("title")))
            description = sanitize_content(gateway.get("description"))
            if description:
                lines.append(f"  Description: {description}")
        return join_lines(lines)

    def _tax_content(self, item: RawItem) -> str:
        if not item.get("enabled"):
            return "Tax Status: Disabled"
        return join_lines(
            [
                "Tax Status: Enabled",
                "Prices Include Tax: " + ("Yes" if item.get("prices_include_tax") else "No"),
                _labelled("Tax Display in Shop", item.get("display_shop")),
                _labelled("Tax Display in Cart", item.get("display_cart")),
            ]
        )


def _labelled(label: str, value: Any) -> Optional[str]:
    text = sanitize_content(str(value)) if value not in (None, "") else ""
    return f"{label}: {text}" if text else None


def _group_metadata(group: str, item: RawItem) -> Dict[str, Any]:
    if group == "store_info":
        return {"currency": item.get("currency") or ""}
    if group == "shipping":
        return {"zone_count": len(item.get("zones") or [])}
    if group == "payment":
        return {"gateway_count": sum(1 for gateway in item.get("gateways") or [] if gateway.get("enabled"))}
    return {"tax_enabled": bool(item.get("enabled"))}
