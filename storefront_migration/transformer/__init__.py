"""
Transformer Module

Applies declarative mapping rules to source records:
- Kind-keyed transformation functions (slugify, minor units, status maps, ...)
- Dot-path destinations and {locale} placeholders
- Default variant generation for products
"""

from .registry import TransformerRegistry, slugify, to_minor_units
from .field_transformer import FieldTransformer, get_nested, set_nested
from .variants import VariantBuilder

__all__ = [
    "TransformerRegistry",
    "FieldTransformer",
    "VariantBuilder",
    "slugify",
    "to_minor_units",
    "get_nested",
    "set_nested",
]
