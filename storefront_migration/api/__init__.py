"""Destination API access: clients, endpoints, import and content enrichment."""

from .cache import TTLCache
from .client import DestinationClient
from .content_enricher import ContentEnricher
from .data_importer import DataImporter, ImportResult
from .endpoint_mapper import EndpointMapper

__all__ = [
    "TTLCache",
    "DestinationClient",
    "ContentEnricher",
    "DataImporter",
    "ImportResult",
    "EndpointMapper",
]
