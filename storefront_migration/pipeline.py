"""
Migration Pipeline - Expand, transform, validate and import source records

Data flow:
    source records -> RegionExpander -> FieldTransformer -> DataValidator -> DataImporter
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from storefront_migration.api.data_importer import DataImporter, ImportResult
from storefront_migration.expander.region_expander import RegionExpander
from storefront_migration.mapper.mapping import TARGET_SYSTEMS, MappingTable
from storefront_migration.transformer.field_transformer import FieldTransformer
from storefront_migration.validator.data_validator import DataValidator, RunReport
from storefront_migration.validator.rules import ValidationRules

logger = logging.getLogger(__name__)

# {system: {entity_type: [records]}}
Transformed = Dict[str, Dict[str, List[Dict[str, Any]]]]


@dataclass
class MigrationResult:
    """Everything one migrate run produced."""

    transformed: Dict[str, Transformed] = field(default_factory=dict)  # per region
    primary_region: str = "nl"
    report: Optional[RunReport] = None
    import_results: Dict[str, Dict[str, List[ImportResult]]] = field(default_factory=dict)
    import_skipped: bool = False

    @property
    def failed_imports(self) -> int:
        return sum(
            1
            for by_type in self.import_results.values()
            for batch in by_type.values()
            for r in batch
            if not r.success
        )


class MigrationPipeline:
    """Runs the migration stages over records grouped by entity type."""

    def __init__(
        self,
        mapping_table: MappingTable,
        rules: ValidationRules,
        importer: Optional[DataImporter] = None,
        default_region: str = "nl",
    ):
        """
        Initialize pipeline.

        Args:
            mapping_table: Loaded mapping table
            rules: Loaded validation rules
            importer: Importer used by run() (dry-run importer when omitted)
            default_region: Region used when none is requested
        """
        self.mapping_table = mapping_table
        self.rules = rules
        self.default_region = default_region
        self.expander = RegionExpander(mapping_table)
        self.transformer = FieldTransformer(mapping_table, default_region=default_region)
        self.validator = DataValidator(rules, locales=mapping_table.languages)
        self.importer = importer or DataImporter({})

    def transform(
        self,
        data_by_type: Dict[str, List[Dict[str, Any]]],
        systems: Sequence[str] = TARGET_SYSTEMS,
        region: Optional[str] = None,
        languages: Sequence[str] = (),
    ) -> Transformed:
        """
        Transform source records for each target system.

        Region-suffixed source fields are resolved first, then every
        requested language is localized into the same destination record.
        """
        languages = self.expander.resolve_languages(languages)
        result: Transformed = {}

        for entity_type, records in data_by_type.items():
            if entity_type not in self.mapping_table.entities:
                logger.warning(f"No mapping found for entity type: {entity_type}, skipping")
                continue

            entity_mapping = self.mapping_table.get(entity_type)
            if region:
                records = [
                    self.expander.expand(r, entity_mapping, [region])[region]["default"]
                    for r in records
                ]

            for system in systems:
                if not entity_mapping.supports(system):
                    continue
                result.setdefault(system, {})[entity_type] = self.transformer.transform_batch(
                    records, entity_type, system, region=region, languages=languages
                )

        return result

    def validate(
        self,
        transformed: Transformed,
        regions: Sequence[str] = (),
        languages: Sequence[str] = (),
    ) -> RunReport:
        """Validate every system's records; relationships resolve within one system."""
        regions = self.expander.resolve_regions(regions)
        languages = self.expander.resolve_languages(languages)

        report = RunReport()
        for system, by_type in transformed.items():
            system_report = self.validator.validate_batch(by_type, regions=regions, languages=languages)
            report.merge(system_report)
        return report

    def run(
        self,
        data_by_type: Dict[str, List[Dict[str, Any]]],
        regions: Sequence[str] = (),
        languages: Sequence[str] = (),
        dry_run: bool = False,
        validate_only: bool = False,
        skip_validation: bool = False,
        force_import: bool = False,
    ) -> MigrationResult:
        """
        Run every stage.

        Records are transformed for each requested region; the first region
        is the one validated and imported. Imports are skipped when
        validation finds issues, unless force_import is set.
        """
        region_codes = self.expander.resolve_regions(regions) or [self.default_region]
        result = MigrationResult(primary_region=region_codes[0])

        for region in region_codes:
            result.transformed[region] = self.transform(data_by_type, region=region, languages=languages)

        primary = result.transformed[result.primary_region]

        if not skip_validation:
            result.report = self.validate(primary, [result.primary_region], languages)

        if validate_only:
            return result

        if result.report is not None and not result.report.valid and not force_import:
            logger.warning(
                f"Validation found {result.report.total_issues} issues, skipping import "
                f"(set FORCE_IMPORT to import anyway)"
            )
            result.import_skipped = True
            return result

        result.import_results = self.importer.import_all(primary, dry_run=dry_run)
        return result
