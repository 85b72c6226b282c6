"""Map entity types to destination API endpoints."""
from typing import Dict, List, Optional, Tuple
from difflib import SequenceMatcher


class EndpointMapper:
    """Maps entity types to Medusa and Strapi endpoints."""

    # Endpoint of each entity type per destination system
    MAPPING = {
        "medusa": {
            "product": "/admin/products",
            "category": "/admin/product-categories",
            "collection": "/admin/collections",
            "customer": "/admin/customers",
            "region": "/admin/regions",
            "order": "/admin/orders",
        },
        "strapi": {
            "product": "/api/products",
            "category": "/api/categories",
            "collection": "/api/collections",
            "customer": "/api/customers",
            "page": "/api/pages",
            "navigation": "/api/navigation-items",
        },
    }

    # Common names of source collections for each entity type
    ALIASES = {
        "products": "product",
        "categories": "category",
        "product_categories": "category",
        "taxonomy": "category",
        "collections": "collection",
        "customers": "customer",
        "users": "customer",
        "regions": "region",
        "markets": "region",
        "orders": "order",
        "pages": "page",
        "navigations": "navigation",
        "navigation_items": "navigation",
        "menu": "navigation",
        "menus": "navigation",
    }

    @staticmethod
    def normalize(name: str) -> Optional[str]:
        """
        Resolve a source name to an entity type.

        Uses exact match first, then aliases, then cleaned names.

        Args:
            name: Entity type or source collection name

        Returns:
            str: Entity type, or None if unknown
        """
        if not name:
            return None

        lowered = name.lower().strip().replace("-", "_")
        known = EndpointMapper.entity_types()

        if lowered in known:
            return lowered
        if lowered in EndpointMapper.ALIASES:
            return EndpointMapper.ALIASES[lowered]

        cleaned = EndpointMapper._clean_name(lowered)
        if cleaned in known:
            return cleaned
        return EndpointMapper.ALIASES.get(cleaned)

    @staticmethod
    def get_endpoint(entity_type: str, system: str) -> Optional[str]:
        """
        Get the endpoint for an entity type on a destination system.

        Falls back to fuzzy matching with high confidence.

        Args:
            entity_type: Entity type (or a source collection name)
            system: "medusa" or "strapi"

        Returns:
            str: API endpoint path, or None if the system does not take this type
        """
        endpoints = EndpointMapper.MAPPING.get(system)
        if not endpoints or not entity_type:
            return None

        resolved = EndpointMapper.normalize(entity_type)
        if resolved:
            return endpoints.get(resolved)

        best_match = None
        best_score = 0
        lowered = entity_type.lower().strip()

        for key, canonical in EndpointMapper._candidates():
            if canonical not in endpoints:
                continue
            similarity = SequenceMatcher(None, lowered, key).ratio()
            if similarity > best_score and similarity >= 0.7:  # 70% confidence threshold
                best_score = similarity
                best_match = endpoints[canonical]

        return best_match

    @staticmethod
    def _clean_name(name: str) -> str:
        """
        Remove common export prefixes/suffixes.

        Args:
            name: Name (lowercase)

        Returns:
            str: Cleaned name
        """
        prefixes = ["statamic_", "sc_", "export_", "src_", "tmp_"]
        for prefix in prefixes:
            if name.startswith(prefix):
                name = name[len(prefix):]

        suffixes = ["_export", "_data", "_list", "_entries"]
        for suffix in suffixes:
            if name.endswith(suffix):
                name = name[:-len(suffix)]

        return name

    @staticmethod
    def _candidates() -> List[Tuple[str, str]]:
        pairs = [(t, t) for t in EndpointMapper.entity_types()]
        pairs.extend(EndpointMapper.ALIASES.items())
        return pairs

    @staticmethod
    def entity_types() -> List[str]:
        """All entity types any destination accepts."""
        types = set()
        for endpoints in EndpointMapper.MAPPING.values():
            types.update(endpoints.keys())
        return sorted(types)

    @staticmethod
    def systems_for(entity_type: str) -> List[str]:
        """Destination systems that accept an entity type."""
        return [s for s, endpoints in EndpointMapper.MAPPING.items() if entity_type in endpoints]

    @staticmethod
    def get_all_endpoints(system: Optional[str] = None) -> List[str]:
        """
        Get list of all supported endpoints.

        Returns:
            list: Unique endpoints, optionally for one system
        """
        tables: Dict[str, Dict[str, str]] = EndpointMapper.MAPPING
        if system:
            tables = {system: tables.get(system, {})}
        return sorted({e for endpoints in tables.values() for e in endpoints.values()})

    @staticmethod
    def suggest_endpoints(name: str, system: str, limit: int = 5) -> List[Tuple[str, str]]:
        """
        Suggest possible endpoints for a name.

        Args:
            name: Source collection name
            system: Destination system
            limit: Maximum number of suggestions

        Returns:
            list: (endpoint, confidence) tuples, sorted by confidence
        """
        endpoints = EndpointMapper.MAPPING.get(system, {})
        if not name or not endpoints:
            return []

        lowered = name.lower().strip()
        suggestions = []

        for key, canonical in EndpointMapper._candidates():
            if canonical not in endpoints:
                continue
            similarity = SequenceMatcher(None, lowered, key).ratio()
            if similarity >= 0.6:  # 60% threshold for suggestions
                suggestions.append((endpoints[canonical], similarity))

        suggestions.sort(key=lambda x: x[1], reverse=True)

        seen = set()
        result = []
        for endpoint, score in suggestions:
            if endpoint not in seen:
                result.append((endpoint, f"{score:.1%}"))
                seen.add(endpoint)
                if len(result) >= limit:
                    break

        return result
