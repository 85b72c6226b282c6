"""Mapping table model: declarative source -> destination field rules."""
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from storefront_migration.errors import MappingError

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent / "data"
DEFAULT_MAPPING_FILE = DATA_DIR / "field-mapping.json"

TARGET_SYSTEMS = ("medusa", "strapi")


class TransformationKind(str, Enum):
    """Closed vocabulary of field transformations."""

    DIRECT = "direct"
    SLUGIFY = "slugify"
    LOWERCASE = "lowercase"
    UPPERCASE = "uppercase"
    MULTIPLY_BY_100 = "multiply_by_100"
    DIVISION_BY_100 = "division_by_100"
    STATUS_MAP = "status_map"
    NAME_SPLIT = "name_split"
    MEDIA_REFERENCE = "media_reference"
    RELATIONSHIP_ID = "relationship_id"
    BOOLEAN = "boolean"
    ARRAY = "array"
    JSON = "json"
    OPTIONS = "options"
    VARIANTS = "variants"

    @classmethod
    def parse(cls, value: Union[str, "TransformationKind"]) -> "TransformationKind":
        """Resolve a kind name, raising MappingError for unknown names."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            known = ", ".join(k.value for k in cls)
            raise MappingError(f"Unknown transformation kind '{value}' (known: {known})")


# Kinds that derive their value from the whole record, so they run even
# when the rule's source field is absent.
RECORD_LEVEL_KINDS = frozenset({TransformationKind.VARIANTS})


@dataclass(frozen=True)
class MappingRule:
    """Maps one source field to one destination dot-path."""

    source_field: str
    destination_field: str
    kind: TransformationKind = TransformationKind.DIRECT
    default_value: Any = None
    options: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)
    target: Optional[str] = None  # restrict to one target system
    notes: str = ""

    def __post_init__(self):
        if not self.source_field:
            raise MappingError("Mapping rule has an empty source field")
        segments = self.destination_field.split(".") if self.destination_field else [""]
        if any(not s.strip() for s in segments):
            raise MappingError(
                f"Invalid destination '{self.destination_field}' for source "
                f"'{self.source_field}': empty path segment"
            )
        object.__setattr__(self, "kind", TransformationKind.parse(self.kind))

    @property
    def destination_path(self) -> List[str]:
        return self.destination_field.split(".")

    def applies_to(self, target_system: str) -> bool:
        return self.target is None or self.target == target_system

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MappingRule":
        """Build a rule from its table entry."""
        if not isinstance(data, dict):
            raise MappingError(f"Mapping rule must be an object, got {type(data).__name__}")
        try:
            return cls(
                source_field=data["source"],
                destination_field=data["destination"],
                kind=data.get("kind", data.get("transformation", "direct")),
                default_value=data.get("default"),
                options=dict(data.get("options") or {}),
                target=data.get("target"),
                notes=data.get("notes", ""),
            )
        except KeyError as e:
            raise MappingError(f"Mapping rule is missing key {e}: {data}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = {
            "source": self.source_field,
            "destination": self.destination_field,
            "kind": self.kind.value,
        }
        if self.default_value is not None:
            data["default"] = self.default_value
        if self.options:
            data["options"] = dict(self.options)
        if self.target:
            data["target"] = self.target
        if self.notes:
            data["notes"] = self.notes
        return data


@dataclass(frozen=True)
class EntityMapping:
    """All rules for one entity type."""

    entity_type: str
    direct_rules: Dict[str, Tuple[MappingRule, ...]] = field(default_factory=dict, hash=False)
    multi_language_rules: Tuple[MappingRule, ...] = ()
    multi_region_rules: Tuple[MappingRule, ...] = ()

    def rules_for(self, target_system: str) -> Tuple[MappingRule, ...]:
        """Direct rules for a target system (empty when unsupported)."""
        return self.direct_rules.get(target_system, ())

    def supports(self, target_system: str) -> bool:
        return target_system in self.direct_rules

    @property
    def target_systems(self) -> List[str]:
        return list(self.direct_rules.keys())

    @classmethod
    def from_dict(cls, entity_type: str, data: Dict[str, Any]) -> "EntityMapping":
        targets = data.get("targets") or {}
        direct_rules = {}
        for system, rules in targets.items():
            if system not in TARGET_SYSTEMS:
                raise MappingError(f"Unknown target system '{system}' for entity '{entity_type}'")
            direct_rules[system] = tuple(MappingRule.from_dict(r) for r in rules)

        return cls(
            entity_type=entity_type,
            direct_rules=direct_rules,
            multi_language_rules=tuple(
                MappingRule.from_dict(r) for r in data.get("multi_language") or []
            ),
            multi_region_rules=tuple(
                MappingRule.from_dict(r) for r in data.get("multi_region") or []
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "targets": {
                system: [r.to_dict() for r in rules]
                for system, rules in self.direct_rules.items()
            }
        }
        if self.multi_language_rules:
            data["multi_language"] = [r.to_dict() for r in self.multi_language_rules]
        if self.multi_region_rules:
            data["multi_region"] = [r.to_dict() for r in self.multi_region_rules]
        return data


@dataclass(frozen=True)
class RegionInfo:
    """Market settings for one region."""

    code: str
    name: str = ""
    currency: str = "EUR"
    countries: Tuple[str, ...] = ()
    languages: Tuple[str, ...] = ()
    tax_rate: Optional[float] = None
    domain: str = ""

    @classmethod
    def from_dict(cls, code: str, data: Dict[str, Any]) -> "RegionInfo":
        return cls(
            code=code,
            name=data.get("name", code),
            currency=data.get("currency", "EUR"),
            countries=tuple(data.get("countries") or ()),
            languages=tuple(data.get("languages") or ()),
            tax_rate=data.get("tax_rate"),
            domain=data.get("domain", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "currency": self.currency,
            "countries": list(self.countries),
            "languages": list(self.languages),
            "tax_rate": self.tax_rate,
            "domain": self.domain,
        }


@dataclass(frozen=True)
class MappingTable:
    """The loaded mapping document."""

    entities: Dict[str, EntityMapping] = field(default_factory=dict, hash=False)
    regions: Dict[str, RegionInfo] = field(default_factory=dict, hash=False)
    languages: Dict[str, str] = field(default_factory=dict, hash=False)
    version: str = "1.0.0"
    description: str = ""

    def get(self, entity_type: str) -> EntityMapping:
        """Return the mapping for an entity type."""
        if entity_type not in self.entities:
            raise MappingError(f"No mapping found for entity type: {entity_type}")
        return self.entities[entity_type]

    @property
    def entity_types(self) -> List[str]:
        return list(self.entities.keys())

    def region(self, code: Optional[str]) -> Optional[RegionInfo]:
        return self.regions.get(code) if code else None

    def currency_for(self, region: Optional[str]) -> str:
        """Lowercase currency code for a region."""
        info = self.region(region)
        if info:
            return info.currency.lower()
        if region == "us":
            return "usd"
        return "eur"

    def locale_for(self, language: str) -> str:
        return self.languages.get(language, language)

    def region_supports_language(self, region: str, language: str) -> bool:
        info = self.region(region)
        return bool(info and language in info.languages)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MappingTable":
        if not isinstance(data, dict) or "entities" not in data:
            raise MappingError("Mapping table must be an object with an 'entities' key")

        entities = {
            name: EntityMapping.from_dict(name, entity)
            for name, entity in data["entities"].items()
        }
        regions = {
            code: RegionInfo.from_dict(code, region)
            for code, region in (data.get("regions") or {}).items()
        }
        return cls(
            entities=entities,
            regions=regions,
            languages=dict(data.get("languages") or {}),
            version=str(data.get("version", "1.0.0")),
            description=data.get("description", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "description": self.description,
            "regions": {code: r.to_dict() for code, r in self.regions.items()},
            "languages": dict(self.languages),
            "entities": {name: e.to_dict() for name, e in self.entities.items()},
        }


def read_document(path: Path) -> Any:
    """Read a JSON or YAML document."""
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() in (".yaml", ".yml"):
            return yaml.safe_load(f)
        return json.load(f)


def load_mapping_table(path: Optional[Union[str, Path]] = None) -> MappingTable:
    """
    Load and check the mapping table.

    Unknown transformation kinds and malformed destinations raise
    MappingError here, before any record is transformed.
    """
    mapping_path = Path(path) if path else DEFAULT_MAPPING_FILE

    try:
        data = read_document(mapping_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise MappingError(f"Failed to load field mapping from {mapping_path}: {e}")

    table = MappingTable.from_dict(data)
    logger.info(
        f"Field mapping loaded from {mapping_path} "
        f"({len(table.entities)} entity types, {len(table.regions)} regions)"
    )
    return table
