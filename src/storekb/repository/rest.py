"""Repository backed by the WordPress and WooCommerce REST APIs."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Collection, Dict, List, Optional

import httpx

from storekb.chunks.payloads import ItemId
from storekb.config import settings
from storekb.errors import SourceUnavailable

from .base import RawItem

logger = logging.getLogger(__name__)

_MAX_PER_PAGE = 100

_TERM_ROUTES = {
    "product_cat": "/wc/v3/products/categories",
    "product_tag": "/wc/v3/products/tags",
}

_POST_ROUTES = {
    "page": "/wp/v2/pages",
    "post": "/wp/v2/posts",
}

_SPECIAL_PAGE_OPTIONS = {
    "shop": ("products", "woocommerce_shop_page_id"),
    "cart": ("advanced", "woocommerce_cart_page_id"),
    "checkout": ("advanced", "woocommerce_checkout_page_id"),
    "myaccount": ("advanced", "woocommerce_myaccount_page_id"),
    "terms": ("advanced", "woocommerce_terms_page_id"),
}


class WooCommerceRestRepository:
    """Reads store content over HTTP.

    WooCommerce routes authenticate with the consumer key/secret, WordPress
    routes with an application password. Transport failures surface as
    ``SourceUnavailable``.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        consumer_key: Optional[str] = None,
        consumer_secret: Optional[str] = None,
        wp_username: Optional[str] = None,
        wp_app_password: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url or settings.api_base,
            timeout=timeout if timeout is not None else settings.http_timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )
        key = consumer_key if consumer_key is not None else settings.wc_consumer_key
        secret = consumer_secret if consumer_secret is not None else settings.wc_consumer_secret
        user = wp_username if wp_username is not None else settings.wp_username
        password = wp_app_password if wp_app_password is not None else settings.wp_app_password
        self._wc_auth = httpx.BasicAuth(key, secret) if key else None
        self._wp_auth = httpx.BasicAuth(user, password) if user else None
        self._index: Optional[Dict[str, Any]] = None
        self._lock = Lock()

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "WooCommerceRestRepository":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -- discovery -----------------------------------------------------

    def _site_index(self) -> Dict[str, Any]:
        if self._index is not None:
            return self._index
        with self._lock:
            if self._index is None:
                index = self._get("/", source="site")
                self._index = index if isinstance(index, dict) else {}
        return self._index

    def _namespaces(self) -> List[str]:
        return list(self._site_index().get("namespaces", []))

    def catalog_available(self) -> bool:
        try:
            return "wc/v3" in self._namespaces()
        except SourceUnavailable:
            return False

    def _require_catalog(self, source: str) -> None:
        try:
            namespaces = self._namespaces()
        except SourceUnavailable as exc:
            raise SourceUnavailable(f"Store API unreachable: {exc}", source=source) from exc
        if "wc/v3" not in namespaces:
            raise SourceUnavailable("WooCommerce is not active", source=source)

    # -- products and posts --------------------------------------------

    def list_products(
        self,
        *,
        limit: int,
        offset: int = 0,
        include_ids: Collection[ItemId] = (),
        exclude_ids: Collection[ItemId] = (),
        language: Optional[str] = None,
    ) -> List[RawItem]:
        self._require_catalog("product")
        params = self._list_params(include_ids, exclude_ids, language)
        products = self._collect("/wc/v3/products", params, limit, offset, source="product", auth=self._wc_auth)
        for product in products:
            if product.get("type") == "variable" and product.get("variations"):
                product["variations"] = self._product_variations(product["id"])
        return products

    def _product_variations(self, product_id: ItemId) -> List[RawItem]:
        variations = self._get(
            f"/wc/v3/products/{product_id}/variations",
            params={"per_page": _MAX_PER_PAGE},
            source="product",
            auth=self._wc_auth,
        )
        return [
            {
                "id": variation.get("id"),
                "sku": variation.get("sku", ""),
                "price": variation.get("price", ""),
                "stock_status": variation.get("stock_status", ""),
                "attributes": {
                    attribute.get("name", ""): attribute.get("option", "")
                    for attribute in variation.get("attributes", [])
                },
            }
            for variation in variations or []
        ]

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
        route = _POST_ROUTES.get(post_type)
        if route is None:
            raise SourceUnavailable(f"Unsupported post type: {post_type}", source=post_type)
        params = self._list_params(include_ids, exclude_ids, language)
        params["_embed"] = "author,wp:term"
        posts = self._collect(route, params, limit, offset, source=post_type, auth=self._wp_auth)
        return [_flatten_post(post) for post in posts]

    @staticmethod
    def _list_params(
        include_ids: Collection[ItemId],
        exclude_ids: Collection[ItemId],
        language: Optional[str],
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"status": "publish"}
        if include_ids:
            params["include"] = ",".join(str(item_id) for item_id in include_ids)
        if exclude_ids:
            params["exclude"] = ",".join(str(item_id) for item_id in exclude_ids)
        if language:
            params["lang"] = language
        return params

    def _collect(
        self,
        route: str,
        params: Dict[str, Any],
        limit: int,
        offset: int,
        *,
        source: str,
        auth: Optional[httpx.Auth],
    ) -> List[RawItem]:
        """Page through ``route`` until ``limit`` items are gathered."""
        items: List[RawItem] = []
        while len(items) < limit:
            per_page = min(_MAX_PER_PAGE, limit - len(items))
            page_params = dict(params, per_page=per_page, offset=offset + len(items))
            page = self._get(route, params=page_params, source=source, auth=auth)
            if not isinstance(page, list):
                raise SourceUnavailable(f"Unexpected response from {route}", source=source)
            items.extend(page)
            if len(page) < per_page:
                break
        return items[:limit]

    # -- settings ------------------------------------------------------

    def get_settings_group(self, group: str) -> Optional[RawItem]:
        self._require_catalog("setting")
        builders = {
            "store_info": self._store_info,
            "shipping": self._shipping,
            "payment": self._payment,
            "tax": self._tax,
        }
        builder = builders.get(group)
        if builder is None:
            return None
        return builder()

    def _options(self, group: str) -> Dict[str, Any]:
        rows = self._get(f"/wc/v3/settings/{group}", source="setting", auth=self._wc_auth)
        return {row.get("id"): row.get("value") for row in rows or [] if isinstance(row, dict)}

    def _store_info(self) -> RawItem:
        index = self._site_index()
        general = self._options("general")
        currency = self._get("/wc/v3/data/currencies/current", source="setting", auth=self._wc_auth) or {}
        country = str(general.get("woocommerce_default_country") or "")
        return {
            "name": index.get("name", ""),
            "description": index.get("description", ""),
            "address": general.get("woocommerce_store_address", ""),
            "city": general.get("woocommerce_store_city", ""),
            "country": country.split(":", 1)[0],
            "postcode": general.get("woocommerce_store_postcode", ""),
            "currency": currency.get("code") or general.get("woocommerce_currency", ""),
            "currency_symbol": currency.get("symbol", ""),
            "calc_taxes": general.get("woocommerce_calc_taxes", "no"),
        }

    def _shipping(self) -> RawItem:
        zones = []
        free_minimum = ""
        for zone in self._get("/wc/v3/shipping/zones", source="setting", auth=self._wc_auth) or []:
            methods = self._get(
                f"/wc/v3/shipping/zones/{zone.get('id')}/methods", source="setting", auth=self._wc_auth
            ) or []
            zone_methods = []
            for method in methods:
                if not method.get("enabled", True):
                    continue
                method_settings = method.get("settings") or {}
                cost = (method_settings.get("cost") or {}).get("value", "")
                if method.get("method_id") == "free_shipping" and not free_minimum:
                    free_minimum = (method_settings.get("min_amount") or {}).get("value", "")
                zone_methods.append({"title": method.get("title", ""), "cost": cost})
            zones.append({"name": zone.get("name", ""), "methods": zone_methods})
        return {"zones": zones, "free_shipping_minimum": free_minimum}

    def _payment(self) -> RawItem:
        gateways = self._get("/wc/v3/payment_gateways", source="setting", auth=self._wc_auth) or []
        return {
            "gateways": [
                {
                    "title": gateway.get("title", ""),
                    "description": gateway.get("description", ""),
                    "enabled": bool(gateway.get("enabled")),
                }
                for gateway in gateways
            ]
        }

    def _tax(self) -> RawItem:
        general = self._options("general")
        tax = self._options("tax")
        return {
            "enabled": general.get("woocommerce_calc_taxes") == "yes",
            "prices_include_tax": tax.get("woocommerce_prices_include_tax") == "yes",
            "display_shop": tax.get("woocommerce_tax_display_shop", ""),
            "display_cart": tax.get("woocommerce_tax_display_cart", ""),
        }

    def get_special_pages(self) -> Dict[str, int]:
        pages: Dict[str, int] = {}
        if not self.catalog_available():
            return pages
        groups: Dict[str, Dict[str, Any]] = {}
        for name, (group, option) in _SPECIAL_PAGE_OPTIONS.items():
            try:
                if group not in groups:
                    groups[group] = self._options(group)
            except SourceUnavailable as exc:
                logger.debug("Settings group %s unavailable: %s", group, exc)
                groups[group] = {}
            value = groups[group].get(option)
            if value and str(value).isdigit() and int(value) > 0:
                pages[name] = int(value)
        return pages

    # -- taxonomy ------------------------------------------------------

    def taxonomy_exists(self, taxonomy: str) -> bool:
        return taxonomy in _TERM_ROUTES and self.catalog_available()

    def list_terms(self, taxonomy: str, *, language: Optional[str] = None) -> List[RawItem]:
        route = _TERM_ROUTES.get(taxonomy)
        if route is None:
            raise SourceUnavailable(f"Unknown taxonomy: {taxonomy}", source="category")

        terms: List[RawItem] = []
        page_number = 1
        while True:
            params: Dict[str, Any] = {"per_page": _MAX_PER_PAGE, "page": page_number, "hide_empty": False}
            if language:
                params["lang"] = language
            page = self._get(route, params=params, source="category", auth=self._wc_auth) or []
            for term in page:
                term.setdefault("taxonomy", taxonomy)
            terms.extend(page)
            if len(page) < _MAX_PER_PAGE:
                break
            page_number += 1
        return terms

    # -- multilingual --------------------------------------------------

    def get_multilingual_config(self) -> Optional[Dict[str, Any]]:
        if "pll/v1" not in self._namespaces():
            return None
        languages = self._get("/pll/v1/languages", source="language", auth=self._wp_auth) or []
        codes = [language.get("slug") for language in languages if language.get("slug")]
        if not codes:
            return None
        default = next(
            (language.get("slug") for language in languages if language.get("is_default")),
            codes[0],
        )
        return {"plugin": "polylang", "current": default, "default": default, "available": codes}

    # -- transport -----------------------------------------------------

    def _get(
        self,
        route: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        source: str,
        auth: Optional[httpx.Auth] = None,
    ) -> Any:
        try:
            response = self._client.get(route, params=params, auth=auth)
        except httpx.HTTPError as exc:
            logger.error("Request to %s failed: %s", route, exc)
            raise SourceUnavailable(f"Request to {route} failed: {exc}", source=source) from exc

        if response.status_code == 404:
            raise SourceUnavailable(f"Route {route} not found on store", source=source)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("Store returned %s for %s", response.status_code, route)
            raise SourceUnavailable(
                f"Store returned HTTP {response.status_code} for {route}", source=source
            ) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise SourceUnavailable(f"Invalid JSON from {route}", source=source) from exc


def _rendered(value: Any) -> str:
    if isinstance(value, dict):
        return str(value.get("rendered", ""))
    return str(value or "")


def _flatten_post(post: RawItem) -> RawItem:
    """Collapse a ``wp/v2`` resource into the flat shape adapters expect."""
    embedded = post.get("_embedded") or {}
    authors = embedded.get("author") or []
    categories: List[str] = []
    tags: List[str] = []
    for group in embedded.get("wp:term") or []:
        for term in group or []:
            if term.get("taxonomy") == "category":
                categories.append(term.get("name", ""))
            elif term.get("taxonomy") == "post_tag":
                tags.append(term.get("name", ""))

    return {
        "id": post.get("id"),
        "type": post.get("type", ""),
        "status": post.get("status", "publish"),
        "slug": post.get("slug", ""),
        "title": _rendered(post.get("title")),
        "content": _rendered(post.get("content")),
        "excerpt": _rendered(post.get("excerpt")),
        "link": post.get("link", ""),
        "date": post.get("date", ""),
        "modified": post.get("modified_gmt") or post.get("modified", ""),
        "parent": post.get("parent", 0),
        "author_name": authors[0].get("name", "") if authors else "",
        "categories": categories,
        "tags": tags,
        "lang": post.get("lang"),
    }
