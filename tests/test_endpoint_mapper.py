"""Tests for EndpointMapper."""
import pytest

from storefront_migration.api.endpoint_mapper import EndpointMapper


class TestEndpointMapper:
    """Test endpoint mapping."""

    def test_exact_match_products(self):
        """Test exact match for products."""
        assert EndpointMapper.get_endpoint("product", "medusa") == "/admin/products"
        assert EndpointMapper.get_endpoint("products", "medusa") == "/admin/products"
        assert EndpointMapper.get_endpoint("product", "strapi") == "/api/products"

    def test_exact_match_categories(self):
        """Test exact match for categories."""
        assert EndpointMapper.get_endpoint("category", "medusa") == "/admin/product-categories"
        assert EndpointMapper.get_endpoint("taxonomy", "strapi") == "/api/categories"

    def test_exact_match_navigation(self):
        """Test exact match for navigation."""
        assert EndpointMapper.get_endpoint("navigation", "strapi") == "/api/navigation-items"
        assert EndpointMapper.get_endpoint("menus", "strapi") == "/api/navigation-items"

    def test_system_without_entity(self):
        """Test entity types a system does not take."""
        assert EndpointMapper.get_endpoint("page", "medusa") is None
        assert EndpointMapper.get_endpoint("order", "strapi") is None

    def test_unknown_system(self):
        assert EndpointMapper.get_endpoint("product", "saleor") is None

    def test_fuzzy_match(self):
        """Test fuzzy matching for similar names."""
        assert EndpointMapper.get_endpoint("prodcts", "medusa") == "/admin/products"
        assert EndpointMapper.get_endpoint("custmer", "medusa") == "/admin/customers"

    def test_case_insensitive(self):
        """Test case insensitivity."""
        assert EndpointMapper.get_endpoint("CUSTOMERS", "medusa") == "/admin/customers"
        assert EndpointMapper.get_endpoint("Orders", "medusa") == "/admin/orders"

    def test_no_match(self):
        """Test when no match is found."""
        assert EndpointMapper.get_endpoint("warehouse_transfers", "medusa") is None

    def test_clean_name(self):
        """Test export name cleaning."""
        assert EndpointMapper._clean_name("statamic_products") == "products"
        assert EndpointMapper._clean_name("export_pages_entries") == "pages"
        assert EndpointMapper._clean_name("orders_data") == "orders"

    @pytest.mark.parametrize("name,expected", [
        ("product", "product"),
        ("Products", "product"),
        ("product-categories", "category"),
        ("statamic_pages", "page"),
        ("users_export", "customer"),
        ("coupons", None),
        ("", None),
    ])
    def test_normalize(self, name, expected):
        """Test resolving source names to entity types."""
        assert EndpointMapper.normalize(name) == expected

    def test_entity_types(self):
        assert EndpointMapper.entity_types() == [
            "category", "collection", "customer", "navigation", "order", "page", "product", "region"
        ]

    def test_systems_for(self):
        assert EndpointMapper.systems_for("product") == ["medusa", "strapi"]
        assert EndpointMapper.systems_for("page") == ["strapi"]

    def test_get_all_endpoints(self):
        """Test getting all endpoints."""
        endpoints = EndpointMapper.get_all_endpoints()

        assert "/admin/products" in endpoints
        assert "/api/pages" in endpoints
        assert len(endpoints) == len(set(endpoints))
        assert EndpointMapper.get_all_endpoints("strapi") == sorted(EndpointMapper.MAPPING["strapi"].values())

    def test_suggest_endpoints(self):
        """Test endpoint suggestions."""
        suggestions = EndpointMapper.suggest_endpoints("prod", "medusa")

        assert len(suggestions) > 0
        assert suggestions[0][0] == "/admin/products"
        assert suggestions[0][1].endswith("%")

    def test_suggest_endpoints_limit(self):
        suggestions = EndpointMapper.suggest_endpoints("c", "medusa", limit=2)
        assert len(suggestions) <= 2
