"""
Unit tests for exporters and reports

Tests:
- JsonExporter: file layout and manifests
- ReportWriter: validation, import and mapping reports
- Mapping document rendering
- MappingValidator: coverage of the validation rules
"""

import json

import pytest

from storefront_migration.api.data_importer import ImportResult
from storefront_migration.exporter.json_exporter import JsonExporter, write_json
from storefront_migration.exporter.mapping_document import render_mapping_document, write_mapping_document
from storefront_migration.exporter.report_writer import MAX_LISTED, ReportWriter
from storefront_migration.mapper.mapping import MappingTable, load_mapping_table
from storefront_migration.validator.data_validator import RunReport, ValidationResult
from storefront_migration.validator.mapping_validator import MappingValidator
from storefront_migration.validator.rules import ValidationRules, load_validation_rules


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def run_report():
    report = RunReport()
    report.add("product", "p1", ValidationResult.from_issues(["Missing required field 'title'"]))
    report.add("product", "p2", ValidationResult.from_issues([], ["Variant 0 in product p2 has no SKU"]))
    return report


@pytest.fixture
def import_results():
    return {
        "medusa": {
            "product": [
                ImportResult(success=True, entity_type="product", destination="medusa", data={"id": 1}),
                ImportResult(success=False, entity_type="product", destination="medusa", error="400: bad"),
            ]
        }
    }


# ============================================================================
# TEST: JsonExporter
# ============================================================================


class TestJsonExporter:
    """Test JSON output."""

    def test_write_json(self, tmp_path):
        path = write_json(tmp_path / "deep" / "out.json", {"name": "Ü"})

        assert path.exists()
        assert "Ü" in path.read_text(encoding="utf-8")

    def test_path_layout(self, tmp_path):
        exporter = JsonExporter(tmp_path)

        assert exporter.path_for("medusa", "product") == tmp_path / "medusa" / "product.json"
        assert exporter.path_for("strapi", "page", "be") == tmp_path / "strapi" / "be" / "page.json"

    def test_export_all_writes_manifest(self, tmp_path):
        data = {"medusa": {"product": [{"title": "a"}, {"title": "b"}]}, "strapi": {"page": []}}

        written = JsonExporter(tmp_path).export_all(data, region="nl")

        assert len(written) == 3
        manifest = json.loads((tmp_path / "manifest-nl.json").read_text(encoding="utf-8"))
        assert manifest["region"] == "nl"
        assert manifest["systems"] == {"medusa": {"product": 2}, "strapi": {"page": 0}}
        products = json.loads((tmp_path / "medusa" / "nl" / "product.json").read_text(encoding="utf-8"))
        assert products == [{"title": "a"}, {"title": "b"}]


# ============================================================================
# TEST: ReportWriter
# ============================================================================


class TestReportWriter:
    """Test report files."""

    def test_validation_report(self, tmp_path, run_report):
        json_path, md_path = ReportWriter(tmp_path).write_validation_report(run_report)

        data = json.loads(json_path.read_text(encoding="utf-8"))
        assert data["summary"]["invalid_entities"] == 1
        assert data["issues"] == ["[product:p1] Missing required field 'title'"]

        markdown = md_path.read_text(encoding="utf-8")
        assert "# Migration Data Validation Report" in markdown
        assert "| product | 2 | 1 | 1 | 1 |" in markdown
        assert "## Warnings" in markdown

    def test_validation_report_without_issues(self):
        markdown = ReportWriter.render_validation(RunReport())
        assert "No issues found." in markdown

    def test_long_issue_lists_are_cut(self):
        report = RunReport()
        report.add("order", "o1", ValidationResult.from_issues([f"issue {i}" for i in range(MAX_LISTED + 5)]))

        markdown = ReportWriter.render_validation(report)

        assert "... and 5 more" in markdown
        assert f"issue {MAX_LISTED + 4}" not in markdown

    def test_import_report(self, tmp_path, import_results):
        json_path, md_path = ReportWriter(tmp_path).write_import_report(import_results)

        data = json.loads(json_path.read_text(encoding="utf-8"))
        assert data["results"]["medusa"]["product"][1]["error"] == "400: bad"
        markdown = md_path.read_text(encoding="utf-8")
        assert "| medusa | product | 1 | 1 | no |" in markdown
        assert "medusa:product: 400: bad" in markdown

    def test_mapping_report(self, tmp_path):
        report = MappingValidator(load_mapping_table(), load_validation_rules()).validate()
        output = tmp_path / "mapping-report.md"

        path = ReportWriter(tmp_path).write_mapping_report(report, output)

        assert path == output
        assert output.with_suffix(".json").exists()
        assert "# Field Mapping Validation Report" in output.read_text(encoding="utf-8")


# ============================================================================
# TEST: Mapping document
# ============================================================================


class TestMappingDocument:
    """Test the Markdown mapping document."""

    def test_render_bundled_table(self):
        document = render_mapping_document(load_mapping_table())

        assert "# Field Mapping Document" in document
        assert "## Product Mapping" in document
        assert "### Source Product → Medusa (commerce)" in document
        assert "### Source Page → Strapi (content)" in document
        assert "### Multi-Language Product Fields" in document
        assert "### Region-Specific Product Data" in document
        assert "| slug | handle | slugify |  |  |" in document
        assert "| nl | Netherlands | EUR | NL | nl, en | 21 |" in document

    def test_pipe_characters_escaped(self):
        table = MappingTable.from_dict({"entities": {"page": {"targets": {"strapi": [
            {"source": "title", "destination": "title", "notes": "a | b"}
        ]}}}})

        assert "a \\| b" in render_mapping_document(table)

    def test_write(self, tmp_path):
        path = write_mapping_document(load_mapping_table(), tmp_path / "docs" / "mapping.md")
        assert path.read_text(encoding="utf-8").startswith("# Field Mapping Document")


# ============================================================================
# TEST: MappingValidator
# ============================================================================


class TestMappingValidator:
    """Test mapping coverage checks."""

    def test_bundled_files_agree(self):
        """The bundled mapping produces everything the bundled rules check"""
        report = MappingValidator(load_mapping_table(), load_validation_rules()).validate()

        assert report.valid, report.entity_reports
        assert report.to_dict()["summary"]["entities_with_issues"] == 0

    def test_missing_required_field(self):
        table = MappingTable.from_dict({"entities": {"customer": {"targets": {"medusa": [
            {"source": "name", "destination": "first_name"}
        ]}}}})
        rules = ValidationRules.from_dict({"entities": {"customer": {"required_fields": ["email"]}}})

        report = MappingValidator(table, rules).validate()

        assert not report.valid
        assert report.entity_reports["customer"]["issues"] == [
            "Required field 'email' is not produced by any mapping rule"
        ]

    def test_missing_entity(self):
        table = MappingTable.from_dict({"entities": {}})
        rules = ValidationRules.from_dict({"entities": {"order": {}}})

        report = MappingValidator(table, rules).validate()

        assert report.entity_reports["order"]["status"] == "issues"

    def test_localization_without_rules(self):
        table = MappingTable.from_dict({"entities": {"page": {"targets": {"strapi": [
            {"source": "title", "destination": "title"}
        ]}}}})
        rules = ValidationRules.from_dict({"entities": {"page": {"localization": {"required_fields": ["title"]}}}})

        issues = MappingValidator(table, rules).validate().entity_reports["page"]["issues"]

        assert issues == ["Entity 'page' requires multi-language support but none is defined"]

    def test_unknown_region(self):
        table = MappingTable.from_dict({"entities": {}})
        rules = ValidationRules.from_dict({"entities": {}, "region_validations": {"fr": {"required_fields": ["title"]}}})

        report = MappingValidator(table, rules).validate()

        assert report.entity_reports["regions"]["issues"] == [
            "Region 'fr' has validation rules but is not defined in the mapping table"
        ]
