"""Command implementations behind the storefront-migrate CLI."""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import click
from colorama import Fore, Style

from config import AppConfig, DestinationApiConfig, app_config
from storefront_migration.api.cache import TTLCache
from storefront_migration.api.client import DestinationClient
from storefront_migration.api.content_enricher import ContentEnricher
from storefront_migration.api.data_importer import DataImporter
from storefront_migration.api.endpoint_mapper import EndpointMapper
from storefront_migration.errors import MigrationError
from storefront_migration.exporter.json_exporter import JsonExporter, write_json
from storefront_migration.exporter.mapping_document import write_mapping_document
from storefront_migration.exporter.report_writer import ReportWriter
from storefront_migration.mapper.mapping import DEFAULT_MAPPING_FILE, TARGET_SYSTEMS, load_mapping_table
from storefront_migration.mapper.updater import MappingUpdater
from storefront_migration.parser.source_loader import SourceLoader
from storefront_migration.pipeline import MigrationPipeline
from storefront_migration.validator.data_validator import RunReport
from storefront_migration.validator.mapping_validator import MappingValidator
from storefront_migration.validator.rules import load_validation_rules

logger = logging.getLogger(__name__)


class CommandError(click.ClickException):
    """Fatal command error, shown in red with exit code 1."""

    def show(self, file=None):
        click.echo(f"{Fore.RED}❌ {self.format_message()}{Style.RESET_ALL}", file=file, err=True)


class MigrationCLI:
    """Runs the migration commands."""

    def __init__(self, config: Optional[AppConfig] = None):
        """Initialize CLI."""
        self.config = config or app_config

    def print_header(self, title: str):
        """Print a section header."""
        click.echo(f"\n{Fore.CYAN}{'━' * 45}")
        click.echo(f"{Fore.CYAN}{title}")
        click.echo(f"{Fore.CYAN}{'━' * 45}{Style.RESET_ALL}\n")

    # ------------------------------------------------------------------
    # transform
    # ------------------------------------------------------------------

    def transform(
        self,
        input_path: str,
        output_dir: Optional[str],
        entities: Sequence[str] = (),
        target: Optional[str] = None,
        region: Optional[str] = None,
        language: Optional[str] = None,
        mapping_file: Optional[str] = None,
    ) -> List[Path]:
        """Transform source records and write them as JSON."""
        self.print_header("Transform")

        pipeline = self._pipeline(mapping_file)
        data = self._load(input_path, entities)
        systems = [target] if target else list(TARGET_SYSTEMS)
        languages = [language] if language else []

        transformed = pipeline.transform(data, systems=systems, region=region, languages=languages)
        for system, by_type in transformed.items():
            for entity_type, records in by_type.items():
                click.echo(f"{Fore.GREEN}✓ {system:7s} {entity_type:12s} {len(records):6d} records")

        exporter = JsonExporter(output_dir or self.config.output_dir)
        written = exporter.export_all(transformed, region=region)
        click.echo(f"\n{Fore.GREEN}✅ Wrote {len(written)} files to {exporter.output_dir}")
        return written

    # ------------------------------------------------------------------
    # validate
    # ------------------------------------------------------------------

    def validate(
        self,
        input_path: str,
        entities: Sequence[str] = (),
        rules_file: Optional[str] = None,
        report_dir: Optional[str] = None,
        region: Optional[str] = None,
        language: Optional[str] = None,
        strict: bool = False,
        mapping_file: Optional[str] = None,
    ) -> bool:
        """
        Validate records as they are on disk.

        Returns:
            bool: False when strict mode found issues
        """
        self.print_header("Validate")

        pipeline = self._pipeline(mapping_file, rules_file)
        data = self._load(input_path, entities)

        report = pipeline.validator.validate_batch(
            data,
            regions=[region] if region else [],
            languages=[language] if language else [],
        )
        self._print_report(report)

        writer = ReportWriter(report_dir or self.config.report_dir)
        json_path, md_path = writer.write_validation_report(report)
        click.echo(f"{Fore.CYAN}Reports: {json_path}, {md_path}")

        return report.valid or not strict

    # ------------------------------------------------------------------
    # migrate
    # ------------------------------------------------------------------

    def migrate(
        self,
        input_path: Optional[str] = None,
        entities: Sequence[str] = (),
        regions: Sequence[str] = (),
        languages: Sequence[str] = (),
        dry_run: bool = False,
        strict: bool = False,
        validate_only: bool = False,
        skip_validation: bool = False,
        report_dir: Optional[str] = None,
        output_dir: Optional[str] = None,
        medusa_url: Optional[str] = None,
        strapi_url: Optional[str] = None,
        mapping_file: Optional[str] = None,
        rules_file: Optional[str] = None,
    ) -> bool:
        """
        Run the whole migration.

        Returns:
            bool: False when strict mode found validation issues
        """
        self.print_header("Migrate")

        importer = DataImporter({
            "medusa": DestinationClient(self._api_config(self.config.medusa, medusa_url), "medusa"),
            "strapi": DestinationClient(self._api_config(self.config.strapi, strapi_url), "strapi"),
        })
        pipeline = self._pipeline(mapping_file, rules_file, importer)
        data = self._load(input_path or self.config.input_dir, entities)

        result = pipeline.run(
            data,
            regions=list(regions) or self.config.regions,
            languages=list(languages) or self.config.languages,
            dry_run=dry_run,
            validate_only=validate_only,
            skip_validation=skip_validation,
            force_import=self.config.force_import,
        )

        exporter = JsonExporter(output_dir or self.config.output_dir)
        for region, transformed in result.transformed.items():
            exporter.export_all(transformed, region=region)
        click.echo(f"{Fore.GREEN}✓ Transformed records written to {exporter.output_dir}")

        writer = ReportWriter(report_dir or self.config.report_dir)
        if result.report is not None:
            self._print_report(result.report)
            writer.write_validation_report(result.report)

        if result.import_skipped:
            click.echo(f"{Fore.RED}❌ Import skipped: validation found {result.report.total_issues} issues")
            click.echo(f"{Fore.YELLOW}   Set FORCE_IMPORT=true to import anyway")
        elif result.import_results:
            json_path, _ = writer.write_import_report(result.import_results)
            click.echo(f"{Fore.CYAN}Import report: {json_path}")

        if result.report is not None and not result.report.valid and strict:
            return False
        return True

    # ------------------------------------------------------------------
    # mapping maintenance
    # ------------------------------------------------------------------

    def update_mapping(
        self,
        entity_type: str,
        section: str,
        source_field: str,
        destination: str,
        kind: str,
        notes: str = "",
        mapping_file: Optional[str] = None,
    ) -> None:
        """Add or replace one mapping rule."""
        self.print_header("Update Mapping")

        path = self._mapping_path(mapping_file)
        try:
            MappingUpdater(path).update(entity_type, section, source_field, destination, kind, notes)
        except MigrationError as e:
            raise CommandError(str(e))

        click.echo(f"{Fore.GREEN}✅ {entity_type}.{section}: {source_field} → {destination} ({kind})")

    def validate_mapping(
        self,
        mapping_file: Optional[str] = None,
        rules_file: Optional[str] = None,
        output: Optional[str] = None,
    ) -> bool:
        """Check mapping coverage; returns False when issues were found."""
        self.print_header("Validate Mapping")

        table, rules = self._load_config_files(mapping_file, rules_file)
        report = MappingValidator(table, rules).validate()

        writer = ReportWriter(self.config.report_dir)
        path = writer.write_mapping_report(report, output)

        for entity_type, entity_report in report.entity_reports.items():
            if entity_report["issues"]:
                click.echo(f"{Fore.RED}❌ {entity_type}")
                for issue in entity_report["issues"]:
                    click.echo(f"   - {issue}")
            else:
                click.echo(f"{Fore.GREEN}✅ {entity_type}")

        click.echo(f"\n{Fore.CYAN}Report: {path}")
        return report.valid

    def mapping_doc(self, mapping_file: Optional[str] = None, output: Optional[str] = None) -> Path:
        """Write the Markdown mapping document."""
        self.print_header("Mapping Document")

        path = self._mapping_path(mapping_file)
        table, _ = self._load_config_files(mapping_file, None, rules=False)
        target = Path(output) if output else Path(path).with_name("mapping-document.md")

        written = write_mapping_document(table, target)
        click.echo(f"{Fore.GREEN}✅ Mapping document written to {written}")
        return written

    # ------------------------------------------------------------------
    # enrich
    # ------------------------------------------------------------------

    def enrich(self, input_path: str, output: Optional[str] = None, region: str = "nl") -> Path:
        """Add content platform data to exported commerce products."""
        self.print_header("Enrich Products")

        products = SourceLoader.load_file(input_path, "product")
        if not products:
            raise CommandError(f"No products found in {input_path}")

        client = DestinationClient(self.config.strapi, "strapi")
        enricher = ContentEnricher(client, TTLCache(self.config.cache_ttl))
        enriched = enricher.enrich_products(products, region)

        found = sum(1 for p in enriched if "strapi_content" in p)
        target = Path(output) if output else Path(input_path).with_name(f"{Path(input_path).stem}-enriched.json")
        write_json(target, enriched)

        click.echo(f"{Fore.GREEN}✅ Enriched {found}/{len(products)} products → {target}")
        return target

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _mapping_path(self, mapping_file: Optional[str]) -> Path:
        return Path(mapping_file or self.config.mapping_file or DEFAULT_MAPPING_FILE)

    def _load_config_files(self, mapping_file: Optional[str], rules_file: Optional[str], rules: bool = True):
        try:
            table = load_mapping_table(mapping_file or self.config.mapping_file)
            loaded_rules = load_validation_rules(rules_file or self.config.rules_file) if rules else None
        except MigrationError as e:
            raise CommandError(str(e))
        return table, loaded_rules

    def _pipeline(
        self,
        mapping_file: Optional[str] = None,
        rules_file: Optional[str] = None,
        importer: Optional[DataImporter] = None,
    ) -> MigrationPipeline:
        table, rules = self._load_config_files(mapping_file, rules_file)
        return MigrationPipeline(table, rules, importer=importer, default_region=self.config.default_region)

    @staticmethod
    def _load(input_path: str, entities: Sequence[str]) -> Dict[str, List[Dict[str, Any]]]:
        path = Path(input_path)

        if path.is_file():
            entity_type = entities[0] if entities else EndpointMapper.normalize(path.stem)
            if not entity_type:
                raise CommandError(f"Cannot tell the entity type of {path}; pass --entity")
            records = SourceLoader.load_file(path, entity_type)
            data = {entity_type: records} if records else {}
        elif path.is_dir():
            data = SourceLoader.load_all(path, entities or None)
        else:
            raise CommandError(f"Input not found: {path}")

        if not data:
            raise CommandError(f"No records found in {path}")

        for entity_type, records in data.items():
            click.echo(f"{Fore.CYAN}📊 Loaded {len(records)} {entity_type} records")
        return data

    @staticmethod
    def _api_config(base: DestinationApiConfig, url: Optional[str]) -> DestinationApiConfig:
        if not url:
            return base
        return DestinationApiConfig(base_url=url, api_token=base.api_token, timeout=base.timeout)

    @staticmethod
    def _print_report(report: RunReport) -> None:
        color = Fore.GREEN if report.valid else Fore.RED
        click.echo(f"\n{color}Validated {report.total_entities} records: "
                   f"{report.valid_entities} valid, {report.invalid_entities} invalid, "
                   f"{report.total_issues} issues, {len(report.warnings)} warnings")
        for issue in report.issues[:20]:
            click.echo(f"{Fore.RED}   - {issue}")
        if report.total_issues > 20:
            click.echo(f"{Fore.RED}   ... and {report.total_issues - 20} more (see the report)")


