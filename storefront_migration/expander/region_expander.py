"""Per-region and per-language variants of source records."""
import logging
from typing import Any, Dict, Iterable, List, Optional

from storefront_migration.mapper.mapping import EntityMapping, MappingRule, MappingTable

logger = logging.getLogger(__name__)

DEFAULT_KEY = "default"
ALL_KEY = "all"


class RegionExpander:
    """Expands one source record into region/language buckets."""

    def __init__(self, mapping_table: Optional[MappingTable] = None):
        """
        Initialize expander.

        Args:
            mapping_table: Used to resolve "all" into every known region/language
        """
        self.mapping_table = mapping_table

    def expand(
        self,
        record: Dict[str, Any],
        entity_mapping: EntityMapping,
        regions: Iterable[str] = (),
        languages: Iterable[str] = (),
    ) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """
        Expand a source record.

        Suffixed fields override the plain ones: with region "be" a
        multi-region field "price" takes record["price_be"] when present.
        Buckets keep source field names, so the result can be passed
        straight to the transformer. Region and language codes are
        stripped and lowercased before they become keys, so ["NL"] yields
        the bucket "nl" and reads the field "price_nl".

        Returns:
            {region_key: {language_key: record}} with "default" keys included
        """
        region_keys = self.resolve_regions(regions)
        language_keys = self.resolve_languages(languages)

        region_fields = self._source_fields(entity_mapping.multi_region_rules)
        language_fields = self._source_fields(entity_mapping.multi_language_rules)

        expanded = {
            DEFAULT_KEY: self._language_buckets(dict(record), language_fields, language_keys)
        }

        for region in region_keys:
            regional = self._overlay(record, region_fields, region)
            expanded[region] = self._language_buckets(regional, language_fields, language_keys)

        return expanded

    def expand_batch(
        self,
        records: List[Dict[str, Any]],
        entity_mapping: EntityMapping,
        regions: Iterable[str] = (),
        languages: Iterable[str] = (),
    ) -> List[Dict[str, Dict[str, Dict[str, Any]]]]:
        """Expand every record of one entity type."""
        regions = list(regions)
        languages = list(languages)
        return [self.expand(r, entity_mapping, regions, languages) for r in records]

    def resolve_regions(self, regions: Iterable[str]) -> List[str]:
        """Lowercase region codes, dropping duplicates and expanding "all"."""
        known = list(self.mapping_table.regions.keys()) if self.mapping_table else []
        return self._resolve(regions, known)

    def resolve_languages(self, languages: Iterable[str]) -> List[str]:
        """Lowercase language codes, dropping duplicates and expanding "all"."""
        known = list(self.mapping_table.languages.keys()) if self.mapping_table else []
        return self._resolve(languages, known)

    @staticmethod
    def _resolve(codes: Iterable[str], known: List[str]) -> List[str]:
        resolved = []
        for code in codes or ():
            code = str(code).strip().lower()
            if not code or code == DEFAULT_KEY:
                continue
            if code == ALL_KEY:
                if not known:
                    logger.warning("'all' requested but the mapping table defines none")
                candidates = known
            else:
                candidates = [code]
            for candidate in candidates:
                if candidate not in resolved:
                    resolved.append(candidate)
        return resolved

    def _language_buckets(
        self,
        record: Dict[str, Any],
        language_fields: List[str],
        languages: List[str],
    ) -> Dict[str, Dict[str, Any]]:
        buckets = {DEFAULT_KEY: record}
        for language in languages:
            buckets[language] = self._overlay(record, language_fields, language)
        return buckets

    @staticmethod
    def _overlay(record: Dict[str, Any], fields: List[str], suffix: str) -> Dict[str, Any]:
        result = dict(record)
        for field_name in fields:
            value = record.get(f"{field_name}_{suffix}")
            if value is None:
                value = record.get(field_name)
            if value is not None:
                result[field_name] = value
        return result

    @staticmethod
    def _source_fields(rules: Iterable[MappingRule]) -> List[str]:
        fields = []
        for rule in rules:
            if rule.source_field not in fields:
                fields.append(rule.source_field)
        return fields
