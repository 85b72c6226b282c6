"""Enrich commerce products with extended content from the content platform."""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import requests

from storefront_migration.transformer.field_transformer import get_nested
from .cache import TTLCache
from .client import DestinationClient, describe_error

logger = logging.getLogger(__name__)

PRODUCT_ENDPOINT = "/api/products"

# Region -> content locale (Belgium reads the Dutch content)
REGION_LOCALES = {
    "nl": "nl",
    "be": "nl",
    "de": "de",
}
DEFAULT_LOCALE = "nl"


class ContentEnricher:
    """Fetches Strapi product content, cached, and merges it into products."""

    def __init__(
        self,
        client: DestinationClient,
        cache: TTLCache,
        ttl: Optional[float] = None,
        max_workers: int = 8,
    ):
        """
        Initialize enricher.

        Args:
            client: Content platform client
            cache: Shared TTL cache
            ttl: Entry TTL in seconds (cache default when None)
            max_workers: Concurrent fetches in enrich_products()
        """
        self.client = client
        self.cache = cache
        self.ttl = ttl
        self.max_workers = max_workers

    @staticmethod
    def cache_key(product_id: Any, locale: str) -> str:
        return f"product_{product_id}_{locale}"

    def get_product_content(self, product_id: Any, locale: str = DEFAULT_LOCALE) -> Optional[Dict[str, Any]]:
        """
        Get content for a product by its commerce id.

        Returns:
            dict: Content attributes, or None when not found or on error
        """
        key = self.cache_key(product_id, locale)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        params = {
            "filters[medusaId][$eq]": product_id,
            "locale": locale,
            "populate": "deep",
        }

        try:
            response = self.client.get(PRODUCT_ENDPOINT, params=params)
        except requests.RequestException as e:
            logger.error(f"Error fetching content for product {product_id}: {describe_error(e)}")
            return None

        items = response.get("data") if isinstance(response, dict) else None
        if not items:
            return None

        item = items[0]
        content = item.get("attributes", item) if isinstance(item, dict) else None
        if content is None:
            return None

        self.cache.put(key, content, self.ttl)
        return content

    def enrich_product(self, product: Dict[str, Any], region: str = "nl") -> Dict[str, Any]:
        """Return a copy of the product with a strapi_content section."""
        if not product:
            return product

        product_id = product.get("id") or get_nested(product, "metadata.original_id")
        if product_id is None:
            return product

        locale = REGION_LOCALES.get(region, DEFAULT_LOCALE)
        content = self.get_product_content(product_id, locale)
        if not content:
            return product

        region_info = [
            info for info in content.get("regionSpecificInfo") or []
            if isinstance(info, dict) and info.get("regionCode") == region
        ]

        return {
            **product,
            "strapi_content": {
                "extended_description": content.get("extendedDescription"),
                "seo": {
                    "title": content.get("seoTitle"),
                    "description": content.get("seoDescription"),
                    "keywords": content.get("seoKeywords"),
                },
                "features": content.get("features") or [],
                "specifications": content.get("specifications") or [],
                "faq": content.get("faq") or [],
                "region_specific_info": region_info,
            },
        }

    def enrich_products(self, products: List[Dict[str, Any]], region: str = "nl") -> List[Dict[str, Any]]:
        """Enrich several products concurrently, keeping their order."""
        if not products:
            return products

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            enriched = list(executor.map(lambda p: self.enrich_product(p, region), products))

        logger.info(
            f"Enriched {sum(1 for p in enriched if 'strapi_content' in p)}/{len(products)} products"
        )
        return enriched

    def clear_product_cache(self, product_id: Any) -> None:
        """Drop cached content of a product for every locale."""
        for locale in set(REGION_LOCALES.values()):
            self.cache.delete(self.cache_key(product_id, locale))
