"""Render the mapping table as a Markdown mapping document."""
import json
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Union

from storefront_migration.mapper.mapping import MappingRule, MappingTable

SYSTEM_TITLES = {
    "medusa": "Medusa (commerce)",
    "strapi": "Strapi (content)",
}


def _cell(value) -> str:
    if value is None or value == "":
        return ""
    if not isinstance(value, str):
        value = json.dumps(value, ensure_ascii=False)
    return value.replace("|", "\\|")


def _rule_table(rules: Iterable[MappingRule], with_target: bool = False) -> List[str]:
    header = "| Source Field | Destination | Kind | Default | Notes |"
    divider = "|---|---|---|---|---|"
    if with_target:
        header = "| Source Field | Target | Destination | Kind | Default | Notes |"
        divider = "|---|---|---|---|---|---|"

    lines = [header, divider]
    for rule in rules:
        cells = [rule.source_field]
        if with_target:
            cells.append(rule.target or "all")
        cells += [
            rule.destination_field,
            rule.kind.value,
            _cell(rule.default_value),
            _cell(rule.notes or (rule.options if rule.options else "")),
        ]
        lines.append("| " + " | ".join(cells) + " |")
    return lines


def render_mapping_document(table: MappingTable) -> str:
    """Markdown document describing every rule of the mapping table."""
    lines = [
        "# Field Mapping Document",
        "",
        f"Version: {table.version}",
        "",
        f"Generated: {datetime.now().isoformat()}",
        "",
    ]
    if table.description:
        lines += [table.description, ""]

    if table.regions:
        lines += [
            "## Regions",
            "",
            "| Region | Name | Currency | Countries | Languages | Tax rate |",
            "|---|---|---|---|---|---|",
        ]
        for code, region in table.regions.items():
            lines.append(
                f"| {code} | {region.name} | {region.currency} | {', '.join(region.countries)} | "
                f"{', '.join(region.languages)} | {_cell(region.tax_rate)} |"
            )
        lines.append("")

    if table.languages:
        lines += ["## Languages", "", "| Language | Locale |", "|---|---|"]
        lines += [f"| {code} | {locale} |" for code, locale in table.languages.items()]
        lines.append("")

    for entity_type, entity in table.entities.items():
        title = entity_type.replace("_", " ").title()
        lines += [f"## {title} Mapping", ""]

        for system, rules in entity.direct_rules.items():
            lines += [f"### Source {title} → {SYSTEM_TITLES.get(system, system)}", ""]
            lines += _rule_table(rules) + [""]

        if entity.multi_language_rules:
            lines += [f"### Multi-Language {title} Fields", ""]
            lines += _rule_table(entity.multi_language_rules, with_target=True) + [""]

        if entity.multi_region_rules:
            lines += [f"### Region-Specific {title} Data", ""]
            lines += _rule_table(entity.multi_region_rules, with_target=True) + [""]

    return "\n".join(lines)


def write_mapping_document(table: MappingTable, output_file: Union[str, Path]) -> Path:
    """Write the mapping document, creating parent directories."""
    output_file = Path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(render_mapping_document(table), encoding="utf-8")
    return output_file
