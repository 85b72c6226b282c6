"""Tests for SourceLoader."""
import json

import pytest
import yaml

from storefront_migration.parser.source_loader import SourceLoader


@pytest.fixture
def export_dir(tmp_path):
    """Export directory with one file per format"""
    (tmp_path / "products.json").write_text(
        json.dumps({"products": [{"id": "p1", "title": "Shirt"}, {"id": "p2", "title": "Cap"}]}),
        encoding="utf-8",
    )
    (tmp_path / "categories.yaml").write_text(
        yaml.safe_dump([{"id": "c1", "title": "Tops"}]), encoding="utf-8"
    )

    pages = tmp_path / "pages"
    pages.mkdir()
    (pages / "about-us.md").write_text(
        "---\ntitle: About us\nstatus: published\n---\n# About\n\nWe sell shirts.\n",
        encoding="utf-8",
    )
    (pages / "contact.md").write_text(
        "---\ntitle: Contact\nslug: contact-us\n---\n",
        encoding="utf-8",
    )

    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    return tmp_path


class TestLoadFile:
    """Test single files."""

    def test_wrapped_list(self, export_dir):
        records = SourceLoader.load_file(export_dir / "products.json", "product")
        assert [r["id"] for r in records] == ["p1", "p2"]

    def test_data_wrapper(self, tmp_path):
        path = tmp_path / "x.json"
        path.write_text(json.dumps({"data": [{"id": 1}]}), encoding="utf-8")

        assert SourceLoader.load_file(path) == [{"id": 1}]

    def test_single_object(self, tmp_path):
        path = tmp_path / "region.json"
        path.write_text(json.dumps({"name": "Netherlands"}), encoding="utf-8")

        assert SourceLoader.load_file(path, "region") == [{"name": "Netherlands"}]

    def test_yaml(self, export_dir):
        assert SourceLoader.load_file(export_dir / "categories.yaml") == [{"id": "c1", "title": "Tops"}]

    def test_markdown_front_matter(self, export_dir):
        """Front matter becomes the record, the body its content"""
        records = SourceLoader.load_file(export_dir / "pages" / "about-us.md", "page")

        assert len(records) == 1
        assert records[0]["title"] == "About us"
        assert records[0]["slug"] == "about-us"
        assert "We sell shirts." in records[0]["content"]

    def test_markdown_keeps_explicit_slug(self, export_dir):
        record = SourceLoader.load_file(export_dir / "pages" / "contact.md")[0]

        assert record["slug"] == "contact-us"
        assert "content" not in record

    def test_invalid_json_returns_empty(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{oops", encoding="utf-8")

        assert SourceLoader.load_file(path) == []

    def test_missing_file_returns_empty(self, tmp_path):
        assert SourceLoader.load_file(tmp_path / "missing.json") == []

    def test_unsupported_format(self, export_dir):
        assert SourceLoader.load_file(export_dir / "notes.txt") == []

    def test_non_object_entries_skipped(self, tmp_path):
        path = tmp_path / "mixed.json"
        path.write_text(json.dumps([{"id": 1}, "junk", 3]), encoding="utf-8")

        assert SourceLoader.load_file(path) == [{"id": 1}]

    def test_scalar_document(self, tmp_path):
        path = tmp_path / "scalar.json"
        path.write_text("42", encoding="utf-8")

        assert SourceLoader.load_file(path) == []


class TestLoadDirectory:
    """Test export directories."""

    def test_load_entity_by_alias(self, export_dir):
        assert len(SourceLoader.load_entity(export_dir, "product")) == 2

    def test_load_entity_from_folder(self, export_dir):
        pages = SourceLoader.load_entity(export_dir, "page")
        assert sorted(p["slug"] for p in pages) == ["about-us", "contact-us"]

    def test_load_entity_missing_dir(self, tmp_path):
        assert SourceLoader.load_entity(tmp_path / "nope", "product") == []

    def test_discover(self, export_dir):
        assert SourceLoader.discover(export_dir) == ["category", "page", "product"]

    def test_load_all(self, export_dir):
        data = SourceLoader.load_all(export_dir)

        assert set(data) == {"category", "page", "product"}
        assert len(data["page"]) == 2

    def test_load_all_selected_types(self, export_dir):
        data = SourceLoader.load_all(export_dir, ["product", "order"])

        assert list(data) == ["product"]
