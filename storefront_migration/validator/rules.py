"""Validation rules model."""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from storefront_migration.errors import RulesError
from storefront_migration.mapper.mapping import DATA_DIR, read_document

logger = logging.getLogger(__name__)

DEFAULT_RULES_FILE = DATA_DIR / "validation-rules.json"


@dataclass
class RuleSet:
    """Checks applied to records of one entity type."""

    required_fields: List[str] = field(default_factory=list)
    formats: Dict[str, Any] = field(default_factory=dict)
    relationships: Dict[str, Dict[str, str]] = field(default_factory=dict)
    localized_fields: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RuleSet":
        localization = data.get("localization") or {}
        return cls(
            required_fields=list(data.get("required_fields") or []),
            formats=dict(data.get("formats") or {}),
            relationships=dict(data.get("relationships") or {}),
            localized_fields=list(localization.get("required_fields") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data: Dict[str, Any] = {
            "required_fields": list(self.required_fields),
            "formats": dict(self.formats),
            "relationships": dict(self.relationships),
        }
        if self.localized_fields:
            data["localization"] = {"required_fields": list(self.localized_fields)}
        return data


@dataclass
class RegionRules:
    """Fields a record must carry to be sold in one region."""

    required_fields: List[str] = field(default_factory=list)
    entities: Optional[List[str]] = None  # None means every entity type

    def applies_to(self, entity_type: str) -> bool:
        return self.entities is None or entity_type in self.entities


@dataclass
class ValidationRules:
    """The loaded validation rules document."""

    entities: Dict[str, RuleSet] = field(default_factory=dict)
    region_validations: Dict[str, RegionRules] = field(default_factory=dict)
    version: str = "1.0.0"

    def for_entity(self, entity_type: str) -> RuleSet:
        """Rule set of an entity type (empty when none is defined)."""
        return self.entities.get(entity_type, RuleSet())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidationRules":
        if not isinstance(data, dict) or "entities" not in data:
            raise RulesError("Validation rules must be an object with an 'entities' key")

        regions = {}
        for code, region in (data.get("region_validations") or {}).items():
            entities = region.get("entities")
            regions[code] = RegionRules(
                required_fields=list(region.get("required_fields") or []),
                entities=list(entities) if entities is not None else None,
            )

        return cls(
            entities={
                name: RuleSet.from_dict(rules or {})
                for name, rules in data["entities"].items()
            },
            region_validations=regions,
            version=str(data.get("version", "1.0.0")),
        )


def load_validation_rules(path: Optional[Union[str, Path]] = None) -> ValidationRules:
    """Load validation rules from a JSON or YAML file."""
    rules_path = Path(path) if path else DEFAULT_RULES_FILE

    try:
        data = read_document(rules_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise RulesError(f"Failed to load validation rules from {rules_path}: {e}")

    rules = ValidationRules.from_dict(data)
    logger.info(f"Validation rules loaded from {rules_path} ({len(rules.entities)} entity types)")
    return rules
