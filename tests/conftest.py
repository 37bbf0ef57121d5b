"""
Shared fixtures for the storekb test suite.

Provides: a small store snapshot, a call-counting repository wrapper and a
scanner wired to an in-memory cache.
"""

import copy
import fnmatch
from collections import Counter

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from storekb.cache import InMemoryCacheStore
from storekb.repository import SnapshotRepository
from storekb.scanner import build_scanner

STORE_DATA = {
    "woocommerce": True,
    "products": [
        {
            "id": 101,
            "name": "Blue Mug",
            "type": "simple",
            "status": "publish",
            "sku": "MUG-BLUE",
            "price": "12.00",
            "regular_price": "15.00",
            "sale_price": "12.00",
            "on_sale": True,
            "manage_stock": True,
            "stock_quantity": 5,
            "stock_status": "instock",
            "short_description": "<p>A sturdy mug.</p>",
            "description": "<p>Stoneware mug, 350&nbsp;ml.</p>",
            "categories": [{"id": 11, "name": "Kitchen"}],
            "tags": [{"id": 21, "name": "ceramic"}],
            "attributes": [
                {"name": "Color", "options": ["Blue"], "visible": True},
                {"name": "Internal", "options": ["x"], "visible": False},
            ],
            "permalink": "https://shop.test/product/blue-mug/",
            "date_modified_gmt": "2024-05-01T10:00:00",
        },
        {
            "id": 102,
            "name": "Green Tea",
            "type": "simple",
            "status": "publish",
            "price": "8.50",
            "regular_price": "8.50",
            "stock_status": "outofstock",
            "description": "<p>Loose leaf &amp; organic</p>",
            "categories": [{"id": 12, "name": "Tea"}],
            "permalink": "https://shop.test/product/green-tea/",
            "date_modified": "2024-04-02T09:30:00",
        },
    ],
    "pages": [
        {
            "id": 5,
            "title": "Shop",
            "slug": "shop",
            "content": "<p>Browse all products</p>",
            "link": "https://shop.test/shop/",
            "modified": "2024-01-01T00:00:00",
        },
        {
            "id": 7,
            "title": "Privacy Policy",
            "slug": "privacy-policy",
            "content": "<h2>Who we are</h2><p>We keep your data safe.</p>",
            "link": "https://shop.test/privacy-policy/",
            "modified": "2024-01-02T00:00:00",
        },
        {
            "id": 8,
            "title": "Draft page",
            "status": "draft",
            "content": "Not ready",
        },
    ],
    "posts": [
        {
            "id": 201,
            "title": "Brewing tips",
            "slug": "brewing-tips",
            "content": "<p>Use water just off the boil.</p>",
            "link": "https://shop.test/brewing-tips/",
            "author_name": "Sam",
            "categories": ["Guides"],
            "tags": ["tea"],
            "modified": "2024-03-03T00:00:00",
        }
    ],
    "settings": {
        "store_info": {
            "name": "Tea House",
            "description": "Tea and teaware",
            "address": "1 Leaf Street",
            "city": "Portland",
            "country": "US",
            "currency": "USD",
            "currency_symbol": "$",
        },
        "shipping": {
            "zones": [{"name": "Domestic", "methods": [{"title": "Flat rate", "cost": "5.00"}]}],
            "free_shipping_minimum": "50",
        },
        "payment": {
            "gateways": [
                {"title": "Card", "description": "Pay by card", "enabled": True},
                {"title": "Cheque", "enabled": False},
            ]
        },
        "tax": {"enabled": False},
    },
    "special_pages": {"shop": 5, "privacy": 7},
    "terms": {
        "product_cat": [
            {"id": 11, "name": "Kitchen", "slug": "kitchen", "count": 1, "description": "Mugs and more"},
            {"id": 12, "name": "Tea", "slug": "tea", "count": 1, "parent": 11},
        ],
        "product_tag": [{"id": 21, "name": "ceramic", "slug": "ceramic", "count": 1}],
    },
    "multilingual": None,
}

MULTILINGUAL_CONFIG = {
    "plugin": "polylang",
    "current": "fr",
    "default": "en",
    "available": ["en", "fr"],
}


class CountingRepository:
    """Wraps a repository and counts calls per method name."""

    def __init__(self, inner):
        self.inner = inner
        self.calls = Counter()

    def __getattr__(self, name):
        attribute = getattr(self.inner, name)
        if not callable(attribute):
            return attribute

        def counted(*args, **kwargs):
            self.calls[name] += 1
            return attribute(*args, **kwargs)

        return counted


class FakeRedis:
    """Minimal in-process stand-in for the redis client calls the cache uses.

    Setting ``fail`` makes every call raise a connection error.
    """

    def __init__(self):
        self.store = {}
        self.ttls = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("redis down")

    def get(self, key):
        self._check()
        return self.store.get(key)

    def set(self, key, value):
        self._check()
        self.store[key] = value.encode("utf-8")

    def setex(self, key, ttl, value):
        self._check()
        self.ttls[key] = ttl
        self.set(key, value)

    def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    def scan_iter(self, match=None):
        self._check()
        return iter([key for key in list(self.store) if match is None or fnmatch.fnmatch(key, match)])


@pytest.fixture
def store_data():
    """
    Fresh copy of the sample store snapshot.

    Returns:
        dict: Snapshot payload tests may mutate freely
    """
    return copy.deepcopy(STORE_DATA)


@pytest.fixture
def repository(store_data):
    return CountingRepository(SnapshotRepository(store_data))


@pytest.fixture
def cache():
    return InMemoryCacheStore()


@pytest.fixture
def scanner(repository, cache):
    """
    Scanner over the sample snapshot with an in-memory cache.

    Returns:
        Scanner: Fresh instance per test
    """
    return build_scanner(repository=repository, cache=cache)
