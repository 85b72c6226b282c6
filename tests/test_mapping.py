"""
Unit tests for the mapping table model

Tests:
- TransformationKind: closed vocabulary, fail-fast parsing
- MappingRule: destination paths, target filtering, dict round trip
- MappingTable: bundled table, regions, currencies, locales
- load_mapping_table: JSON and YAML files, load errors
"""

import json

import pytest
import yaml

from storefront_migration.errors import MappingError
from storefront_migration.mapper.mapping import (
    DEFAULT_MAPPING_FILE,
    EntityMapping,
    MappingRule,
    MappingTable,
    TransformationKind,
    load_mapping_table,
)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def minimal_table_data():
    """Smallest useful mapping document"""
    return {
        "version": "2.0.0",
        "regions": {"us": {"name": "United States", "currency": "USD", "languages": ["en"]}},
        "languages": {"en": "en-US"},
        "entities": {
            "product": {
                "targets": {
                    "medusa": [
                        {"source": "title", "destination": "title"},
                        {"source": "meta_title", "destination": "seo.title", "kind": "direct"},
                    ]
                },
                "multi_language": [
                    {"source": "title", "destination": "metadata.translations.{locale}.title", "target": "medusa"}
                ],
            }
        },
    }


# ============================================================================
# TEST: TransformationKind
# ============================================================================


class TestTransformationKind:
    """Test kind parsing."""

    def test_parse_known_kind(self):
        """Kind names resolve case-insensitively"""
        assert TransformationKind.parse("slugify") == TransformationKind.SLUGIFY
        assert TransformationKind.parse(" Multiply_By_100 ") == TransformationKind.MULTIPLY_BY_100

    def test_parse_enum_member(self):
        """Enum members pass through"""
        assert TransformationKind.parse(TransformationKind.JSON) is TransformationKind.JSON

    def test_parse_unknown_kind_raises(self):
        """Unknown kinds fail fast"""
        with pytest.raises(MappingError, match="Unknown transformation kind 'reverse'"):
            TransformationKind.parse("reverse")


# ============================================================================
# TEST: MappingRule
# ============================================================================


class TestMappingRule:
    """Test single rules."""

    def test_from_dict_defaults_to_direct(self):
        """A rule without kind is a direct copy"""
        rule = MappingRule.from_dict({"source": "title", "destination": "title"})

        assert rule.kind == TransformationKind.DIRECT
        assert rule.default_value is None
        assert rule.target is None

    def test_legacy_transformation_key(self):
        """The older 'transformation' key is accepted"""
        rule = MappingRule.from_dict({"source": "slug", "destination": "handle", "transformation": "slugify"})
        assert rule.kind == TransformationKind.SLUGIFY

    def test_destination_path(self):
        """Dot-separated destinations become path segments"""
        rule = MappingRule.from_dict({"source": "meta_title", "destination": "seo.title"})
        assert rule.destination_path == ["seo", "title"]

    def test_empty_path_segment_rejected(self):
        """Destinations like 'seo..title' are malformed"""
        with pytest.raises(MappingError, match="empty path segment"):
            MappingRule.from_dict({"source": "meta_title", "destination": "seo..title"})

    def test_missing_key_rejected(self):
        """Rules need a source and a destination"""
        with pytest.raises(MappingError, match="missing key"):
            MappingRule.from_dict({"source": "title"})

    def test_unknown_kind_rejected(self):
        """Unknown kinds are rejected when the rule is built"""
        with pytest.raises(MappingError):
            MappingRule.from_dict({"source": "title", "destination": "title", "kind": "rot13"})

    def test_applies_to(self):
        """Targeted rules only apply to their system"""
        rule = MappingRule.from_dict({"source": "title", "destination": "title", "target": "strapi"})

        assert rule.applies_to("strapi")
        assert not rule.applies_to("medusa")

    def test_to_dict_round_trip(self):
        """to_dict keeps every non-empty attribute"""
        data = {
            "source": "price",
            "destination": "variants.prices.amount",
            "kind": "multiply_by_100",
            "default": 0,
            "options": {"unit": "major"},
            "notes": "Euro prices",
        }
        assert MappingRule.from_dict(data).to_dict() == data


# ============================================================================
# TEST: MappingTable
# ============================================================================


class TestMappingTable:
    """Test the loaded table."""

    def test_from_dict(self, minimal_table_data):
        """Entities, regions and languages are read"""
        table = MappingTable.from_dict(minimal_table_data)

        assert table.version == "2.0.0"
        assert table.entity_types == ["product"]
        assert table.regions["us"].currency == "USD"
        assert table.locale_for("en") == "en-US"

    def test_get_unknown_entity_raises(self, minimal_table_data):
        """Unknown entity types raise MappingError"""
        table = MappingTable.from_dict(minimal_table_data)

        with pytest.raises(MappingError, match="No mapping found for entity type: order"):
            table.get("order")

    def test_entity_mapping_supports(self, minimal_table_data):
        """Only systems with direct rules are supported"""
        mapping = MappingTable.from_dict(minimal_table_data).get("product")

        assert isinstance(mapping, EntityMapping)
        assert mapping.supports("medusa")
        assert not mapping.supports("strapi")
        assert mapping.rules_for("strapi") == ()

    def test_unknown_target_system_rejected(self):
        """Targets other than medusa and strapi are rejected"""
        data = {"entities": {"product": {"targets": {"saleor": []}}}}

        with pytest.raises(MappingError, match="Unknown target system 'saleor'"):
            MappingTable.from_dict(data)

    def test_missing_entities_rejected(self):
        """A document without entities is not a mapping table"""
        with pytest.raises(MappingError):
            MappingTable.from_dict({"regions": {}})

    def test_currency_for(self, minimal_table_data):
        """Region currency is lowercased; unknown regions fall back"""
        table = MappingTable.from_dict(minimal_table_data)

        assert table.currency_for("us") == "usd"
        assert table.currency_for("nl") == "eur"
        assert table.currency_for(None) == "eur"

    def test_to_dict_reloads(self, minimal_table_data):
        """to_dict produces a document from_dict accepts"""
        table = MappingTable.from_dict(minimal_table_data)
        again = MappingTable.from_dict(table.to_dict())

        assert again.to_dict() == table.to_dict()


# ============================================================================
# TEST: load_mapping_table
# ============================================================================


class TestLoadMappingTable:
    """Test loading from disk."""

    def test_bundled_table(self):
        """The bundled table covers every entity type"""
        table = load_mapping_table()

        assert DEFAULT_MAPPING_FILE.exists()
        for entity_type in ("product", "category", "collection", "customer", "order", "page", "region", "navigation"):
            assert entity_type in table.entities
        assert set(table.regions) == {"nl", "be", "de"}
        assert table.region_supports_language("be", "fr")
        assert not table.region_supports_language("de", "nl")

    def test_bundled_price_rules_declare_units(self):
        """Every price rule of the bundled table names its unit"""
        table = load_mapping_table()
        price_rules = [
            rule
            for entity in table.entities.values()
            for rules in list(entity.direct_rules.values()) + [entity.multi_region_rules]
            for rule in rules
            if rule.kind in (TransformationKind.MULTIPLY_BY_100, TransformationKind.VARIANTS)
        ]

        assert price_rules
        assert all(rule.options.get("unit") for rule in price_rules)

    def test_yaml_table(self, tmp_path, minimal_table_data):
        """YAML files are accepted"""
        path = tmp_path / "mapping.yaml"
        path.write_text(yaml.safe_dump(minimal_table_data), encoding="utf-8")

        table = load_mapping_table(path)
        assert table.get("product").rules_for("medusa")[1].destination_field == "seo.title"

    def test_unknown_kind_in_file_fails_at_load(self, tmp_path, minimal_table_data):
        """Unknown kinds fail before any record is transformed"""
        minimal_table_data["entities"]["product"]["targets"]["medusa"][0]["kind"] = "currency_format"
        path = tmp_path / "mapping.json"
        path.write_text(json.dumps(minimal_table_data), encoding="utf-8")

        with pytest.raises(MappingError, match="currency_format"):
            load_mapping_table(path)

    def test_missing_file(self, tmp_path):
        """Unreadable files raise MappingError"""
        with pytest.raises(MappingError, match="Failed to load field mapping"):
            load_mapping_table(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        """Malformed JSON raises MappingError"""
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(MappingError):
            load_mapping_table(path)
