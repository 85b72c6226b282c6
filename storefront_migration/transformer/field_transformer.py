"""
Field Transformer - Applies the mapping table to source records

Supports:
- Direct rules per target system (medusa, strapi)
- Dot-path destinations ("seo.title" -> {"seo": {"title": ...}})
- Multi-language rules with {locale} placeholders
- Record-level kinds (variants) built from the whole source record
"""

import copy
import logging
from typing import Any, Dict, List, Optional, Sequence

from storefront_migration.mapper.mapping import (
    RECORD_LEVEL_KINDS,
    EntityMapping,
    MappingRule,
    MappingTable,
    TransformationKind,
)
from .registry import TransformerRegistry
from .variants import VariantBuilder

logger = logging.getLogger(__name__)

LOCALE_PLACEHOLDER = "{locale}"

_MISSING = object()


def set_nested(target: Dict[str, Any], path: Sequence[str], value: Any) -> None:
    """Set a value at a dot-path, creating intermediate dicts."""
    current = target
    for key in path[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[path[-1]] = value


def get_nested(source: Any, path: str, default: Any = None) -> Any:
    """Resolve a dot-path field by field, returning default when any step is missing."""
    current = source
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


def original_id(record: Dict[str, Any]) -> Any:
    """Source identifier used for traceability: id, else handle."""
    if record.get("id") is not None:
        return record["id"]
    return record.get("handle")


class FieldTransformer:
    """Transforms source records into destination-shaped records."""

    def __init__(
        self,
        mapping_table: MappingTable,
        registry: Optional[TransformerRegistry] = None,
        default_region: str = "nl",
    ):
        """
        Initialize FieldTransformer

        Args:
            mapping_table: Loaded mapping table
            registry: Transformer registry (a new one when omitted)
            default_region: Region used for variants when none is given
        """
        self.mapping_table = mapping_table
        self.registry = registry or TransformerRegistry()
        self.variant_builder = VariantBuilder()
        self.default_region = default_region

    def transform(
        self,
        record: Dict[str, Any],
        entity_mapping: EntityMapping,
        target_system: str,
        region: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Transform one source record for one target system

        Args:
            record: Source record (never mutated)
            entity_mapping: Rules for the record's entity type
            target_system: "medusa" or "strapi"
            region: Region code (prices, currency, default variant sku)
            language: Language code for multi-language rules

        Returns:
            Destination record, always carrying metadata.original_id
        """
        region = region or self.default_region
        result: Dict[str, Any] = {}

        for rule in entity_mapping.rules_for(target_system):
            value = self._apply_rule(rule, record, target_system, region)
            set_nested(result, rule.destination_path, value)

        if language:
            self.localize(result, record, entity_mapping, target_system, language)

        set_nested(result, ["metadata", "original_id"], original_id(record))
        return result

    def localize(
        self,
        result: Dict[str, Any],
        record: Dict[str, Any],
        entity_mapping: EntityMapping,
        target_system: str,
        language: str,
    ) -> Dict[str, Any]:
        """Write the multi-language rules of one language into a destination record."""
        locale = self.mapping_table.locale_for(language)

        for rule in entity_mapping.multi_language_rules:
            if not rule.applies_to(target_system):
                continue

            value = record.get(f"{rule.source_field}_{language}")
            if value is None:
                value = record.get(rule.source_field)
            if value is None:
                continue

            value = self._run(rule, value, target_system, self.default_region, record)
            path = [p.replace(LOCALE_PLACEHOLDER, locale) for p in rule.destination_path]
            set_nested(result, path, value)

        return result

    def transform_entity(
        self,
        record: Dict[str, Any],
        entity_type: str,
        target_system: str,
        region: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Transform by entity type name; None when the target system has no rules for it."""
        entity_mapping = self.mapping_table.get(entity_type)
        if not entity_mapping.supports(target_system):
            return None
        return self.transform(record, entity_mapping, target_system, region, language)

    def transform_batch(
        self,
        records: List[Dict[str, Any]],
        entity_type: str,
        target_system: str,
        region: Optional[str] = None,
        languages: Sequence[str] = (),
    ) -> List[Dict[str, Any]]:
        """
        Transform a list of records

        Every requested language is localized into the same destination
        record. Records that fail are logged and skipped.
        """
        entity_mapping = self.mapping_table.get(entity_type)
        if not entity_mapping.supports(target_system):
            logger.info(f"{entity_type} has no {target_system} mapping, skipping")
            return []

        transformed = []
        for record in records:
            try:
                result = self.transform(record, entity_mapping, target_system, region)
                for language in languages:
                    self.localize(result, record, entity_mapping, target_system, language)
                transformed.append(result)
            except (TypeError, ValueError, AttributeError) as e:
                logger.error(f"Error transforming {entity_type} {original_id(record)}: {e}")
                continue

        logger.info(
            f"Transformed {len(transformed)}/{len(records)} {entity_type} records for {target_system}"
        )
        return transformed

    def _apply_rule(
        self,
        rule: MappingRule,
        record: Dict[str, Any],
        target_system: str,
        region: str,
    ) -> Any:
        if rule.kind in RECORD_LEVEL_KINDS:
            return self._run(rule, record.get(rule.source_field), target_system, region, record)

        value = record.get(rule.source_field, _MISSING)
        if value is _MISSING or value is None:
            return copy.deepcopy(rule.default_value)

        return self._run(rule, value, target_system, region, record)

    def _run(
        self,
        rule: MappingRule,
        value: Any,
        target_system: str,
        region: str,
        record: Dict[str, Any],
    ) -> Any:
        if rule.kind == TransformationKind.VARIANTS:
            currency = self.mapping_table.currency_for(region)
            return self.variant_builder.build(record, region, currency, rule.options)

        try:
            result = self.registry.transform(
                value,
                rule.kind,
                options=rule.options,
                target_system=target_system,
                region=region,
            )
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(
                f"Transformation {rule.kind.value} failed for '{rule.source_field}' "
                f"({e}), using default"
            )
            result = rule.default_value

        return copy.deepcopy(result)
