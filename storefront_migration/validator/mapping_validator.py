"""Check that the mapping table produces what the validation rules require."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Set

from storefront_migration.mapper.mapping import EntityMapping, MappingTable
from .rules import ValidationRules

logger = logging.getLogger(__name__)


@dataclass
class MappingValidationReport:
    """Coverage issues per entity type."""

    entity_reports: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def total_issues(self) -> int:
        return sum(len(r["issues"]) for r in self.entity_reports.values())

    @property
    def valid(self) -> bool:
        return self.total_issues == 0

    def add(self, entity_type: str, issues: List[str]) -> None:
        self.entity_reports[entity_type] = {
            "status": "valid" if not issues else "issues",
            "issues": list(issues),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        with_issues = sum(1 for r in self.entity_reports.values() if r["issues"])
        return {
            "title": "Field Mapping Validation Report",
            "created_at": self.created_at,
            "summary": {
                "total_entities": len(self.entity_reports),
                "valid_entities": len(self.entity_reports) - with_issues,
                "entities_with_issues": with_issues,
                "total_issues": self.total_issues,
            },
            "entity_reports": self.entity_reports,
        }


class MappingValidator:
    """Compares a mapping table against validation rules."""

    def __init__(self, mapping_table: MappingTable, rules: ValidationRules):
        self.mapping_table = mapping_table
        self.rules = rules

    def validate(self) -> MappingValidationReport:
        """Build the coverage report."""
        report = MappingValidationReport()

        for entity_type, rule_set in self.rules.entities.items():
            entity_mapping = self.mapping_table.entities.get(entity_type)
            if entity_mapping is None:
                report.add(entity_type, [f"Entity type '{entity_type}' is missing from the field mapping"])
                continue

            issues = []
            produced = self._produced_fields(entity_mapping)

            for field_name in rule_set.required_fields:
                if not self._is_produced(field_name, produced):
                    issues.append(f"Required field '{field_name}' is not produced by any mapping rule")

            for field_name in rule_set.formats:
                if not self._is_produced(field_name, produced):
                    issues.append(f"Field '{field_name}' has a format check but no mapping rule")

            for field_name in rule_set.relationships:
                if not self._is_produced(field_name, produced):
                    issues.append(f"Relationship field '{field_name}' has no mapping rule")

            if rule_set.localized_fields:
                localized = {r.source_field for r in entity_mapping.multi_language_rules}
                if not localized:
                    issues.append(f"Entity '{entity_type}' requires multi-language support but none is defined")
                for field_name in rule_set.localized_fields:
                    if localized and field_name not in localized:
                        issues.append(f"Localized field '{field_name}' is not covered by multi-language rules")

            report.add(entity_type, issues)

        region_issues = [
            f"Region '{code}' has validation rules but is not defined in the mapping table"
            for code in self.rules.region_validations
            if code not in self.mapping_table.regions
        ]
        if region_issues:
            report.add("regions", region_issues)

        logger.info(f"Mapping validation found {report.total_issues} issues")
        return report

    @staticmethod
    def _produced_fields(entity_mapping: EntityMapping) -> Set[str]:
        produced = {"metadata", "metadata.original_id"}
        for rules in entity_mapping.direct_rules.values():
            for rule in rules:
                path = rule.destination_path
                for i in range(1, len(path) + 1):
                    produced.add(".".join(path[:i]))
        return produced

    @staticmethod
    def _is_produced(field_name: str, produced: Set[str]) -> bool:
        return field_name in produced or field_name.split(".")[0] in produced
