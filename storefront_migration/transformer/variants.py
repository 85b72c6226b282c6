"""
Variant Builder - Normalizes product variants for the commerce platform

A product without variants gets exactly one default variant carrying the
product price, so every product can be sold in its region.
"""

import logging
from typing import Any, Dict, List, Optional

from .registry import slugify, to_minor_units

logger = logging.getLogger(__name__)


class VariantBuilder:
    """Builds the destination variants list of one product."""

    def build(
        self,
        product: Dict[str, Any],
        region: str,
        currency: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Build variants for a product

        Args:
            product: Source product record
            region: Region code the variants are priced for
            currency: Lowercase currency code of that region
            options: Rule options (price_field, unit)

        Returns:
            List of variant dictionaries
        """
        options = options or {}
        price_field = options.get("price_field", "price")
        unit = options.get("unit")

        variants = product.get("variants")
        if not variants:
            logger.debug(f"Creating default variant for product {self._label(product)}")
            return [self._default_variant(product, region, currency, price_field, unit)]

        if not isinstance(variants, list):
            variants = [variants]

        return [
            self._normalize(variant, index, product, region, currency, price_field, unit)
            for index, variant in enumerate(variants)
        ]

    def _default_variant(
        self,
        product: Dict[str, Any],
        region: str,
        currency: str,
        price_field: str,
        unit: Optional[str],
    ) -> Dict[str, Any]:
        sku = product.get("sku") or f"{self._handle(product)}-{region}"
        stock = product.get("stock")

        return {
            "title": product.get("title") or "Default Variant",
            "sku": sku,
            "barcode": None,
            "inventory_quantity": stock if isinstance(stock, int) and not isinstance(stock, bool) else 0,
            "allow_backorder": False,
            "manage_inventory": True,
            "prices": [
                {
                    "amount": to_minor_units(product.get(price_field), unit),
                    "currency_code": currency,
                }
            ],
            "options": [],
            "metadata": {
                "is_default_variant": True,
                "region": region,
            },
        }

    def _normalize(
        self,
        variant: Any,
        index: int,
        product: Dict[str, Any],
        region: str,
        currency: str,
        price_field: str,
        unit: Optional[str],
    ) -> Dict[str, Any]:
        if not isinstance(variant, dict):
            logger.warning(
                f"Variant {index} of product {self._label(product)} is not an object, using it as the title"
            )
            variant = {"title": str(variant)}

        quantity = variant.get("inventory_quantity", variant.get("stock"))
        if not isinstance(quantity, int) or isinstance(quantity, bool):
            quantity = 0

        normalized = {
            "title": variant.get("title") or "Unnamed Variant",
            "sku": variant.get("sku") or f"{self._handle(product)}-{index + 1}",
            "barcode": variant.get("barcode"),
            "inventory_quantity": quantity,
            "allow_backorder": bool(variant.get("allow_backorder", False)),
            "manage_inventory": variant.get("manage_inventory") is not False,
            "prices": self._prices(variant, product, currency, price_field, unit),
            "options": self._variant_options(variant.get("options")),
            "metadata": {
                "region": region,
            },
        }

        if variant.get("id") is not None:
            normalized["metadata"]["original_id"] = variant["id"]

        return normalized

    @staticmethod
    def _prices(
        variant: Dict[str, Any],
        product: Dict[str, Any],
        currency: str,
        price_field: str,
        unit: Optional[str],
    ) -> List[Dict[str, Any]]:
        given = variant.get("prices")
        prices = [p for p in given if isinstance(p, dict)] if isinstance(given, list) else []
        if isinstance(given, list) and len(prices) < len(given):
            logger.warning(f"Skipping non-object price entries of variant {variant.get('title')!r}")
        if prices:
            result = []
            for price in prices:
                entry = {
                    "amount": to_minor_units(price.get("amount"), unit),
                    "currency_code": str(price.get("currency_code") or currency).lower(),
                }
                if price.get("region_id"):
                    entry["region_id"] = price["region_id"]
                result.append(entry)
            return result

        amount = variant.get(price_field)
        if amount is None:
            amount = product.get(price_field)

        return [{"amount": to_minor_units(amount, unit), "currency_code": currency}]

    @staticmethod
    def _variant_options(value: Any) -> List[Dict[str, Any]]:
        if not value:
            return []
        if isinstance(value, dict):
            return [{"option": k, "value": v} for k, v in value.items()]
        if isinstance(value, list):
            return [v if isinstance(v, dict) else {"value": v} for v in value]
        return [{"value": value}]

    @staticmethod
    def _handle(product: Dict[str, Any]) -> str:
        return product.get("handle") or slugify(product.get("slug") or product.get("title")) or "default"

    @staticmethod
    def _label(product: Dict[str, Any]) -> str:
        return str(product.get("title") or product.get("id") or "unknown")
