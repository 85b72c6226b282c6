"""Tests for TTLCache and ContentEnricher."""
from unittest.mock import Mock

import pytest
import requests

from storefront_migration.api.cache import TTLCache
from storefront_migration.api.content_enricher import ContentEnricher


class FakeClock:
    """Manually advanced time source"""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(default_ttl=300, clock=clock)


@pytest.fixture
def content_response():
    """Strapi response for one product"""
    return {
        "data": [
            {
                "id": 7,
                "attributes": {
                    "medusaId": "prod_1",
                    "extendedDescription": "Long text",
                    "seoTitle": "Shirt",
                    "seoDescription": "Buy it",
                    "seoKeywords": "shirt, linen",
                    "features": ["Linen"],
                    "regionSpecificInfo": [
                        {"regionCode": "nl", "info": "Gratis verzending"},
                        {"regionCode": "de", "info": "Kostenloser Versand"},
                    ],
                },
            }
        ]
    }


@pytest.fixture
def client(content_response):
    client = Mock()
    client.get.return_value = content_response
    return client


class TestTTLCache:
    """Test expiry."""

    def test_put_and_get(self, cache):
        cache.put("a", {"x": 1})
        assert cache.get("a") == {"x": 1}
        assert len(cache) == 1

    def test_missing_key(self, cache):
        assert cache.get("nope") is None

    def test_expiry(self, cache, clock):
        cache.put("a", 1, ttl=10)

        clock.advance(9)
        assert cache.get("a") == 1

        clock.advance(1)
        assert cache.get("a") is None
        assert len(cache) == 0

    def test_default_ttl(self, cache, clock):
        cache.put("a", 1)
        clock.advance(299)
        assert cache.get("a") == 1
        clock.advance(1)
        assert cache.get("a") is None

    def test_delete_and_clear(self, cache):
        cache.put("a", 1)
        cache.put("b", 2)

        cache.delete("a")
        cache.delete("missing")
        assert cache.get("a") is None

        cache.clear()
        assert len(cache) == 0


class TestContentEnricher:
    """Test content enrichment."""

    def test_get_product_content(self, client, cache):
        enricher = ContentEnricher(client, cache)

        content = enricher.get_product_content("prod_1", "nl")

        assert content["seoTitle"] == "Shirt"
        client.get.assert_called_once_with(
            "/api/products",
            params={"filters[medusaId][$eq]": "prod_1", "locale": "nl", "populate": "deep"},
        )

    def test_content_is_cached(self, client, cache):
        enricher = ContentEnricher(client, cache)

        enricher.get_product_content("prod_1", "nl")
        enricher.get_product_content("prod_1", "nl")

        assert client.get.call_count == 1
        assert cache.get("product_prod_1_nl") is not None

    def test_cache_expiry_refetches(self, client, cache, clock):
        enricher = ContentEnricher(client, cache, ttl=60)

        enricher.get_product_content("prod_1", "nl")
        clock.advance(61)
        enricher.get_product_content("prod_1", "nl")

        assert client.get.call_count == 2

    def test_not_found(self, cache):
        client = Mock()
        client.get.return_value = {"data": []}

        assert ContentEnricher(client, cache).get_product_content("prod_2") is None

    def test_request_error(self, cache):
        client = Mock()
        client.get.side_effect = requests.ConnectionError("down")

        assert ContentEnricher(client, cache).get_product_content("prod_1") is None

    def test_enrich_product(self, client, cache):
        product = {"id": "prod_1", "title": "Shirt"}

        enriched = ContentEnricher(client, cache).enrich_product(product, "de")

        content = enriched["strapi_content"]
        assert content["extended_description"] == "Long text"
        assert content["seo"] == {"title": "Shirt", "description": "Buy it", "keywords": "shirt, linen"}
        assert content["features"] == ["Linen"]
        assert content["faq"] == []
        assert content["region_specific_info"] == [{"regionCode": "de", "info": "Kostenloser Versand"}]
        assert "strapi_content" not in product
        assert client.get.call_args.kwargs["params"]["locale"] == "de"

    def test_belgium_reads_dutch_content(self, client, cache):
        ContentEnricher(client, cache).enrich_product({"id": "prod_1"}, "be")
        assert client.get.call_args.kwargs["params"]["locale"] == "nl"

    def test_enrich_uses_original_id(self, client, cache):
        product = {"title": "Shirt", "metadata": {"original_id": "prod_1"}}
        assert "strapi_content" in ContentEnricher(client, cache).enrich_product(product)

    def test_enrich_without_content(self, cache):
        client = Mock()
        client.get.return_value = {"data": []}
        product = {"id": "prod_9"}

        assert ContentEnricher(client, cache).enrich_product(product) == product

    def test_enrich_products_keeps_order(self, cache):
        client = Mock()

        def fake_get(endpoint, params):
            product_id = params["filters[medusaId][$eq]"]
            if product_id == "missing":
                return {"data": []}
            return {"data": [{"attributes": {"seoTitle": product_id}}]}

        client.get.side_effect = fake_get
        products = [{"id": f"p{i}"} for i in range(5)] + [{"id": "missing"}]

        enriched = ContentEnricher(client, cache, max_workers=3).enrich_products(products, "nl")

        assert [p["id"] for p in enriched] == ["p0", "p1", "p2", "p3", "p4", "missing"]
        assert [p["strapi_content"]["seo"]["title"] for p in enriched[:5]] == ["p0", "p1", "p2", "p3", "p4"]
        assert "strapi_content" not in enriched[5]

    def test_clear_product_cache(self, client, cache):
        enricher = ContentEnricher(client, cache)
        enricher.get_product_content("prod_1", "nl")
        enricher.get_product_content("prod_1", "de")

        enricher.clear_product_cache("prod_1")

        assert len(cache) == 0
