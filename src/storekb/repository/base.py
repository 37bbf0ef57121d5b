"""Read-only boundary to the host store's content.

Repositories return plain dictionaries shaped like the WordPress and
WooCommerce REST resources (``id``, ``name``/``title``, ``description``,
``date_modified`` and so on). Adapters own the mapping from these raw
items to chunk records.

Settings groups come back pre-assembled:

- ``store_info``: ``name, description, address, city, country, postcode,
  currency, currency_symbol``
- ``shipping``: ``zones`` (``name``, ``methods`` of ``title``/``cost``),
  ``free_shipping_minimum``
- ``payment``: ``gateways`` (``title``, ``description``, ``enabled``)
- ``tax``: ``enabled, prices_include_tax, display_shop, display_cart``

The multilingual config is ``None`` on single-language stores, otherwise
``{"plugin", "current", "default", "available"}``.
"""

from __future__ import annotations

from typing import Any, Collection, Dict, List, Optional, Protocol

from storekb.chunks.payloads import ItemId

RawItem = Dict[str, Any]

SETTINGS_GROUPS = ("store_info", "shipping", "payment", "tax")


class ContentRepository(Protocol):
    def catalog_available(self) -> bool: ...

    def list_products(
        self,
        *,
        limit: int,
        offset: int = 0,
        include_ids: Collection[ItemId] = (),
        exclude_ids: Collection[ItemId] = (),
        language: Optional[str] = None,
    ) -> List[RawItem]: ...

    def list_posts(
        self,
        post_type: str,
        *,
        limit: int,
        offset: int = 0,
        include_ids: Collection[ItemId] = (),
        exclude_ids: Collection[ItemId] = (),
        language: Optional[str] = None,
    ) -> List[RawItem]: ...

    def get_settings_group(self, group: str) -> Optional[RawItem]: ...

    def get_special_pages(self) -> Dict[str, int]: ...

    def taxonomy_exists(self, taxonomy: str) -> bool: ...

    def list_terms(self, taxonomy: str, *, language: Optional[str] = None) -> List[RawItem]: ...

    def get_multilingual_config(self) -> Optional[Dict[str, Any]]: ...
