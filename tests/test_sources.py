"""
Tests for the per-kind source adapters.

Validates:
1. Content and metadata produced for each kind
2. Kind-specific request flags (legal pages, settings sections, hierarchy)
3. Rejection of unusable items through ItemMappingError
"""

import pytest

from storekb.chunks.payloads import ScanRequest, SourceKind
from storekb.errors import ItemMappingError, SourceUnavailable
from storekb.language import LanguageResolver
from storekb.repository import SnapshotRepository
from storekb.sources import build_adapters
from storekb.sources.base import as_item_id, names

from tests.conftest import CountingRepository


@pytest.fixture
def adapters(store_data):
    repository = SnapshotRepository(store_data)
    resolver = LanguageResolver(repository, "en")
    return build_adapters(repository, resolver, store_url="https://shop.test/", max_content_length=200)


def _scan(adapter, request=None, limit=100):
    request = request or ScanRequest()
    return [adapter.map_item(item, request) for item in adapter.enumerate(request, limit)]


class TestProductAdapter:
    def test_sale_product_content(self, adapters):
        chunk = _scan(adapters[SourceKind.PRODUCT])[0]

        assert chunk.id == 101
        assert chunk.type == "product"
        assert chunk.url == "https://shop.test/product/blue-mug/"
        assert chunk.last_modified == "2024-05-01T10:00:00"
        assert "Product: Blue Mug" in chunk.content
        assert "Summary: A sturdy mug." in chunk.content
        assert "Price: $12.00" in chunk.content
        assert "Regular Price: $15.00" in chunk.content
        assert "Stock: 5 available" in chunk.content
        assert "Color: Blue" in chunk.content
        assert "Internal" not in chunk.content

    def test_product_metadata(self, adapters):
        metadata = _scan(adapters[SourceKind.PRODUCT])[0].metadata

        assert metadata["sku"] == "MUG-BLUE"
        assert metadata["on_sale"] is True
        assert metadata["stock_quantity"] == 5
        assert metadata["categories"] == ["Kitchen"]
        assert metadata["tags"] == ["ceramic"]
        assert metadata["attributes"] == {"Color": "Blue"}

    def test_unmanaged_stock_uses_status_label(self, adapters):
        chunk = _scan(adapters[SourceKind.PRODUCT])[1]

        assert "Stock Status: Out of stock" in chunk.content
        assert "Description: Loose leaf & organic" in chunk.content
        assert chunk.metadata["stock_quantity"] is None
        assert "Regular Price" not in chunk.content

    def test_exclude_ids(self, adapters):
        chunks = _scan(adapters[SourceKind.PRODUCT], ScanRequest(exclude_ids={"101"}))

        assert [chunk.id for chunk in chunks] == [102]

    def test_inactive_catalog(self, store_data):
        store_data["woocommerce"] = False
        repository = SnapshotRepository(store_data)
        adapter = build_adapters(repository, LanguageResolver(repository, "en"))[SourceKind.PRODUCT]

        with pytest.raises(SourceUnavailable):
            adapter.enumerate(ScanRequest(), 10)

    def test_enumerated_items_keep_their_currency_symbol(self, store_data):
        repository = CountingRepository(SnapshotRepository(store_data))
        symbols = iter(["$", "EUR "])
        repository.get_settings_group = lambda group: {"currency_symbol": next(symbols)}
        adapter = build_adapters(repository, LanguageResolver(repository, "en"))[SourceKind.PRODUCT]

        first = adapter.enumerate(ScanRequest(), 1)
        second = adapter.enumerate(ScanRequest(offset=1), 1)

        assert "Price: $12.00" in adapter.map_item(first[0], ScanRequest()).content
        assert "Price: EUR 8.50" in adapter.map_item(second[0], ScanRequest()).content

    def test_unpublished_product_is_rejected(self, adapters):
        with pytest.raises(ItemMappingError):
            adapters[SourceKind.PRODUCT].map_item({"id": 9, "name": "Hidden", "status": "private"}, ScanRequest())

    def test_long_content_is_truncated(self, adapters):
        item = {"id": 9, "name": "Essay", "description": "word " * 200}

        chunk = adapters[SourceKind.PRODUCT].map_item(item, ScanRequest())

        assert chunk.content.endswith("...")
        assert len(chunk.content) <= 203


class TestPageAdapter:
    def test_page_types(self, adapters):
        chunks = {chunk.id: chunk for chunk in _scan(adapters[SourceKind.PAGE])}

        assert chunks[5].metadata["page_type"] == "shop"
        assert chunks[7].metadata["page_type"] == "legal"
        assert chunks[7].content == "Who we are We keep your data safe."

    def test_legal_pages_can_be_excluded(self, adapters):
        chunks = _scan(adapters[SourceKind.PAGE], ScanRequest(include_legal_pages=False))

        assert [chunk.id for chunk in chunks] == [5]

    def test_legal_slug_without_special_page(self, store_data):
        store_data["special_pages"] = {}
        repository = SnapshotRepository(store_data)
        adapter = build_adapters(repository, LanguageResolver(repository, "en"))[SourceKind.PAGE]

        chunks = _scan(adapter, ScanRequest(include_legal_pages=False))

        assert [chunk.id for chunk in chunks] == [5]

    def test_enumerated_items_keep_their_page_type(self, store_data):
        repository = CountingRepository(SnapshotRepository(store_data))
        special_pages = iter([{"shop": 5, "privacy": 7}, {}])
        repository.get_special_pages = lambda: next(special_pages)
        adapter = build_adapters(repository, LanguageResolver(repository, "en"))[SourceKind.PAGE]

        first = adapter.enumerate(ScanRequest(), 10)
        second = adapter.enumerate(ScanRequest(), 10)

        assert adapter.map_item(first[0], ScanRequest()).metadata["page_type"] == "shop"
        assert adapter.map_item(second[0], ScanRequest()).metadata["page_type"] == "standard"

    def test_excluded_legal_pages_do_not_shorten_batches(self, store_data):
        store_data["pages"] += [
            {"id": 30, "title": "Returns", "slug": "refund_returns", "content": "30 days"},
            {"id": 31, "title": "About", "slug": "about", "content": "Our story"},
            {"id": 32, "title": "Contact", "slug": "contact", "content": "Write to us"},
        ]
        repository = SnapshotRepository(store_data)
        adapter = build_adapters(repository, LanguageResolver(repository, "en"))[SourceKind.PAGE]

        first = adapter.enumerate(ScanRequest(include_legal_pages=False), 2)
        second = adapter.enumerate(ScanRequest(include_legal_pages=False, offset=2), 2)

        assert [item["id"] for item in first] == [5, 31]
        assert [item["id"] for item in second] == [32]

    def test_empty_page_content_is_rejected(self, adapters):
        with pytest.raises(ItemMappingError):
            adapters[SourceKind.PAGE].map_item({"id": 3, "title": "Blank", "content": "<p> </p>"}, ScanRequest())


class TestPostAdapter:
    def test_post_metadata(self, adapters):
        chunk = _scan(adapters[SourceKind.POST])[0]

        assert chunk.type == "post"
        assert chunk.metadata["author"] == "Sam"
        assert chunk.metadata["categories"] == ["Guides"]
        assert chunk.metadata["tags"] == ["tea"]
        assert chunk.last_modified == "2024-03-03T00:00:00"


class TestSettingsAdapter:
    def test_one_chunk_per_group(self, adapters):
        chunks = _scan(adapters[SourceKind.SETTING])

        assert [chunk.id for chunk in chunks] == [
            "store_info",
            "shipping_settings",
            "payment_settings",
            "tax_settings",
        ]
        assert all(chunk.last_modified is None for chunk in chunks)

    def test_group_content(self, adapters):
        chunks = {chunk.id: chunk for chunk in _scan(adapters[SourceKind.SETTING])}

        assert "Store Name: Tea House" in chunks["store_info"].content
        assert "  Method: Flat rate - 5.00" in chunks["shipping_settings"].content
        assert "Free Shipping Minimum: 50" in chunks["shipping_settings"].content
        assert "Payment Method: Card" in chunks["payment_settings"].content
        assert "Cheque" not in chunks["payment_settings"].content
        assert chunks["tax_settings"].content == "Tax Status: Disabled"
        assert chunks["payment_settings"].metadata == {"setting_type": "payment", "gateway_count": 1}
        assert chunks["store_info"].url == "https://shop.test/wp-admin/admin.php?page=wc-settings"

    def test_sections_filter(self, adapters):
        chunks = _scan(adapters[SourceKind.SETTING], ScanRequest(settings_sections=["tax", "unknown"]))

        assert [chunk.id for chunk in chunks] == ["tax_settings"]

    def test_include_ids_filter(self, adapters):
        chunks = _scan(adapters[SourceKind.SETTING], ScanRequest(include_ids={"store_info"}))

        assert [chunk.id for chunk in chunks] == ["store_info"]

    def test_payment_without_enabled_gateways_is_rejected(self, adapters):
        item = {"group": "payment", "gateways": [{"title": "Cheque", "enabled": False}]}

        with pytest.raises(ItemMappingError):
            adapters[SourceKind.SETTING].map_item(item, ScanRequest())


class TestTaxonomyAdapter:
    def test_terms_and_hierarchy(self, adapters):
        chunks = {chunk.id: chunk for chunk in _scan(adapters[SourceKind.CATEGORY])}

        assert set(chunks) == {11, 12, 21}
        assert chunks[11].type == "taxonomy_term"
        assert chunks[11].content == "Mugs and more"
        assert chunks[12].content == "Tea"
        assert chunks[12].metadata["parent_name"] == "Kitchen"
        assert chunks[12].url == "https://shop.test/product-category/tea/"
        assert chunks[21].url == "https://shop.test/product-tag/ceramic/"

    def test_hierarchy_can_be_disabled(self, adapters):
        chunks = _scan(adapters[SourceKind.CATEGORY], ScanRequest(include_hierarchy=False))

        assert all("parent_name" not in chunk.metadata for chunk in chunks)

    def test_missing_taxonomy_is_skipped(self, adapters):
        chunks = _scan(adapters[SourceKind.CATEGORY], ScanRequest(taxonomies=["product_brand", "product_tag"]))

        assert [chunk.id for chunk in chunks] == [21]


class TestHelpers:
    @pytest.mark.parametrize("value, expected", [(5, 5), ("12", 12), (" store_info ", "store_info")])
    def test_as_item_id(self, value, expected):
        assert as_item_id(value) == expected

    @pytest.mark.parametrize("value", [None, "", True, 1.5])
    def test_as_item_id_rejects(self, value):
        with pytest.raises(ItemMappingError):
            as_item_id(value)

    def test_names(self):
        assert names([{"name": "A &amp; B"}, "C", {"id": 3}, None]) == ["A & B", "C"]
