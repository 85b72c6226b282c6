#!/usr/bin/env python3
"""Storefront Migration Tool - Entry point."""
import logging
import sys

import click
from colorama import Fore, Style, init

from storefront_migration import __version__
from storefront_migration.cli.runner import MigrationCLI
from storefront_migration.mapper.mapping import TARGET_SYSTEMS
from storefront_migration.mapper.updater import RULE_SECTIONS

# Initialize colorama
init(autoreset=True)


def print_banner():
    """Print application banner."""
    click.echo(f"{Fore.CYAN}{'=' * 44}")
    click.echo(f"{Fore.CYAN}║   {Fore.WHITE}Storefront Migration Tool{Fore.CYAN}            ║")
    click.echo(f"{Fore.CYAN}║   {Fore.WHITE}CMS export → Medusa + Strapi{Fore.CYAN}         ║")
    click.echo(f"{Fore.CYAN}{'=' * 44}{Style.RESET_ALL}")
    click.echo()


def split_codes(values):
    """Flatten repeated and comma separated --regions/--languages values."""
    codes = []
    for value in values:
        codes += [code.strip() for code in value.split(",") if code.strip()]
    return codes


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose):
    """Storefront Migration Tool - Move a CMS export into Medusa and Strapi."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--input", "-i", "input_path", required=True, type=click.Path(exists=True), help="Source file or directory")
@click.option("--output", "-o", "output_dir", type=click.Path(), help="Output directory")
@click.option("--entity", "-e", "entities", multiple=True, help="Entity type(s) to transform")
@click.option("--target", "-t", type=click.Choice(TARGET_SYSTEMS), help="Only this destination system")
@click.option("--region", "-r", help="Region code")
@click.option("--language", "-l", help="Language code")
@click.option("--mapping", "-m", "mapping_file", type=click.Path(exists=True), help="Mapping table file")
def transform(input_path, output_dir, entities, target, region, language, mapping_file):
    """Transform source records into destination records."""
    print_banner()

    MigrationCLI().transform(input_path, output_dir, entities, target, region, language, mapping_file)


@cli.command()
@click.option("--input", "-i", "input_path", required=True, type=click.Path(exists=True), help="Records file or directory")
@click.option("--entity", "-e", "entities", multiple=True, help="Entity type(s) to validate")
@click.option("--rules", "rules_file", type=click.Path(exists=True), help="Validation rules file")
@click.option("--output", "-o", "report_dir", type=click.Path(), help="Report directory")
@click.option("--region", "-r", help="Region code")
@click.option("--language", "-l", help="Language code")
@click.option("--strict", is_flag=True, help="Exit with code 1 when issues are found")
def validate(input_path, entities, rules_file, report_dir, region, language, strict):
    """Validate destination records."""
    print_banner()

    if not MigrationCLI().validate(input_path, entities, rules_file, report_dir, region, language, strict):
        sys.exit(1)


@cli.command()
@click.option("--input", "-i", "input_path", type=click.Path(exists=True), help="Source directory")
@click.option("--entity", "-e", "entities", multiple=True, help="Entity type(s) to migrate")
@click.option("--regions", multiple=True, help="Region codes (comma separated or repeated, 'all')")
@click.option("--languages", multiple=True, help="Language codes (comma separated or repeated, 'all')")
@click.option("--dry-run", is_flag=True, help="Build payloads without calling the APIs")
@click.option("--strict", is_flag=True, help="Exit with code 1 when validation finds issues")
@click.option("--validate-only", is_flag=True, help="Stop after validation")
@click.option("--skip-validation", is_flag=True, help="Import without validating")
@click.option("--report-dir", type=click.Path(), help="Report directory")
@click.option("--output", "-o", "output_dir", type=click.Path(), help="Directory for transformed records")
@click.option("--medusa-url", help="Medusa API base URL")
@click.option("--strapi-url", help="Strapi API base URL")
def migrate(input_path, entities, regions, languages, dry_run, strict, validate_only,
            skip_validation, report_dir, output_dir, medusa_url, strapi_url):
    """Run the full migration."""
    print_banner()

    ok = MigrationCLI().migrate(
        input_path=input_path,
        entities=entities,
        regions=split_codes(regions),
        languages=split_codes(languages),
        dry_run=dry_run,
        strict=strict,
        validate_only=validate_only,
        skip_validation=skip_validation,
        report_dir=report_dir,
        output_dir=output_dir,
        medusa_url=medusa_url,
        strapi_url=strapi_url,
    )
    if not ok:
        sys.exit(1)


@cli.command("update-mapping")
@click.option("--entity", "-e", "entity_type", required=True, help="Entity type")
@click.option("--section", "-s", required=True, type=click.Choice(RULE_SECTIONS), help="Rule section")
@click.option("--field", "-f", "source_field", required=True, help="Source field")
@click.option("--destination", "-d", required=True, help="Destination field path")
@click.option("--kind", "-k", default="direct", show_default=True, help="Transformation kind")
@click.option("--notes", "-n", default="", help="Notes for the mapping document")
@click.option("--mapping", "-m", "mapping_file", type=click.Path(exists=True), help="Mapping table file")
def update_mapping(entity_type, section, source_field, destination, kind, notes, mapping_file):
    """Add or replace a mapping rule."""
    print_banner()

    MigrationCLI().update_mapping(entity_type, section, source_field, destination, kind, notes, mapping_file)


@cli.command("validate-mapping")
@click.option("--mapping", "-m", "mapping_file", type=click.Path(exists=True), help="Mapping table file")
@click.option("--rules", "rules_file", type=click.Path(exists=True), help="Validation rules file")
@click.option("--output", "-o", type=click.Path(), help="Markdown report file")
def validate_mapping(mapping_file, rules_file, output):
    """Check that the mapping produces every field the rules need."""
    print_banner()

    if not MigrationCLI().validate_mapping(mapping_file, rules_file, output):
        sys.exit(1)


@cli.command("mapping-doc")
@click.option("--mapping", "-m", "mapping_file", type=click.Path(exists=True), help="Mapping table file")
@click.option("--output", "-o", type=click.Path(), help="Markdown file to write")
def mapping_doc(mapping_file, output):
    """Generate the mapping document."""
    print_banner()

    MigrationCLI().mapping_doc(mapping_file, output)


@cli.command()
@click.option("--input", "-i", "input_path", required=True, type=click.Path(exists=True), help="Exported products JSON")
@click.option("--output", "-o", type=click.Path(), help="Enriched products JSON")
@click.option("--region", "-r", default="nl", show_default=True, help="Region code")
def enrich(input_path, output, region):
    """Enrich exported products with content platform data."""
    print_banner()

    MigrationCLI().enrich(input_path, output, region)


if __name__ == "__main__":
    cli()
