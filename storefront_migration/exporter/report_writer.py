"""Write validation and import reports as JSON and Markdown."""
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Tuple, Union

from storefront_migration.api.data_importer import ImportResult
from storefront_migration.validator.data_validator import RunReport
from storefront_migration.validator.mapping_validator import MappingValidationReport
from .json_exporter import write_json

logger = logging.getLogger(__name__)

# Markdown lists are cut here; the JSON report keeps everything
MAX_LISTED = 200


def _timestamp() -> str:
    return datetime.now().strftime("%Y%m%d-%H%M%S")


def _write_text(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _bullets(lines: List[str]) -> List[str]:
    out = [f"- {line}" for line in lines[:MAX_LISTED]]
    if len(lines) > MAX_LISTED:
        out.append(f"- ... and {len(lines) - MAX_LISTED} more (see the JSON report)")
    return out


class ReportWriter:
    """Writes reports under one directory."""

    def __init__(self, report_dir: Union[str, Path]):
        self.report_dir = Path(report_dir)

    def write_validation_report(self, report: RunReport, name: str = "validation") -> Tuple[Path, Path]:
        """Write a RunReport; returns (json_path, markdown_path)."""
        stem = f"{name}-{_timestamp()}"
        json_path = write_json(self.report_dir / f"{stem}.json", report.to_dict())
        md_path = _write_text(self.report_dir / f"{stem}.md", self.render_validation(report))
        logger.info(f"Validation report written to {json_path}")
        return json_path, md_path

    def write_import_report(self, results: Dict[str, Dict[str, List[ImportResult]]]) -> Tuple[Path, Path]:
        """Write import results; returns (json_path, markdown_path)."""
        stem = f"import-{_timestamp()}"
        data = {
            "created_at": datetime.now().isoformat(),
            "results": {
                system: {t: [r.to_dict() for r in batch] for t, batch in by_type.items()}
                for system, by_type in results.items()
            },
        }
        json_path = write_json(self.report_dir / f"{stem}.json", data)
        md_path = _write_text(self.report_dir / f"{stem}.md", self.render_import(results))
        logger.info(f"Import report written to {json_path}")
        return json_path, md_path

    def write_mapping_report(
        self,
        report: MappingValidationReport,
        output_file: Union[str, Path, None] = None,
    ) -> Path:
        """Write the mapping coverage report as Markdown (JSON alongside)."""
        md_path = Path(output_file) if output_file else self.report_dir / "mapping-validation-report.md"
        write_json(md_path.with_suffix(".json"), report.to_dict())
        return _write_text(md_path, self.render_mapping_validation(report))

    @staticmethod
    def render_validation(report: RunReport) -> str:
        lines = [
            "# Migration Data Validation Report",
            "",
            f"Generated: {report.created_at}",
            "",
            "## Summary",
            "",
            f"- Total entities: {report.total_entities}",
            f"- Valid entities: {report.valid_entities}",
            f"- Invalid entities: {report.invalid_entities}",
            f"- Total issues: {report.total_issues}",
            f"- Warnings: {len(report.warnings)}",
            "",
            "## By Entity Type",
            "",
            "| Entity type | Total | Valid | Invalid | Issues |",
            "|---|---|---|---|---|",
        ]
        for entity_type, counts in report.by_entity_type.items():
            lines.append(
                f"| {entity_type} | {counts['total']} | {counts['valid']} | "
                f"{counts['invalid']} | {counts['issues']} |"
            )

        lines += ["", "## Issues", ""]
        lines += _bullets(report.issues) if report.issues else ["No issues found."]

        if report.warnings:
            lines += ["", "## Warnings", ""]
            lines += _bullets(report.warnings)

        return "\n".join(lines) + "\n"

    @staticmethod
    def render_import(results: Dict[str, Dict[str, List[ImportResult]]]) -> str:
        lines = [
            "# Migration Import Report",
            "",
            f"Generated: {datetime.now().isoformat()}",
            "",
            "| Destination | Entity type | Imported | Failed | Dry run |",
            "|---|---|---|---|---|",
        ]
        failures = []
        for system, by_type in results.items():
            for entity_type, batch in by_type.items():
                ok = sum(1 for r in batch if r.success)
                dry = any(r.dry_run for r in batch)
                lines.append(f"| {system} | {entity_type} | {ok} | {len(batch) - ok} | {'yes' if dry else 'no'} |")
                failures.extend(f"{system}:{entity_type}: {r.error}" for r in batch if not r.success)

        lines += ["", "## Failures", ""]
        lines += _bullets(failures) if failures else ["No failures."]
        return "\n".join(lines) + "\n"

    @staticmethod
    def render_mapping_validation(report: MappingValidationReport) -> str:
        summary = report.to_dict()["summary"]
        lines = [
            "# Field Mapping Validation Report",
            "",
            f"Generated: {report.created_at}",
            "",
            "## Summary",
            "",
            f"- Total entity types: {summary['total_entities']}",
            f"- Valid entity types: {summary['valid_entities']}",
            f"- Entity types with issues: {summary['entities_with_issues']}",
            f"- Total issues found: {summary['total_issues']}",
            "",
            "## Entity Validation Details",
            "",
        ]
        for entity_type, entity_report in report.entity_reports.items():
            status = "✅ Valid" if entity_report["status"] == "valid" else "❌ Issues found"
            lines += [f"### {entity_type}", "", f"Status: {status}", ""]
            if entity_report["issues"]:
                lines += ["Issues:"] + _bullets(entity_report["issues"]) + [""]
            else:
                lines += ["No issues found.", ""]
        return "\n".join(lines)
