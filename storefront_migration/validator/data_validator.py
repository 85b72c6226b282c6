"""Data validation."""
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from storefront_migration.transformer.field_transformer import get_nested
from .rules import RuleSet, ValidationRules

logger = logging.getLogger(__name__)

SUPPORTED_CURRENCIES = ("eur", "usd")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
PHONE_PATTERN = re.compile(r"^\+?[0-9\s\-().]{6,20}$")
SKU_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")

NAMED_FORMATS = (
    "email", "url", "slug", "phone", "numeric", "boolean",
    "string", "array", "object", "date", "enum",
)

_MISSING = object()

IndexType = Dict[str, Dict[str, Dict[str, Any]]]


@dataclass(frozen=True)
class ValidationResult:
    """Verdict for one record."""

    valid: bool
    issues: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @classmethod
    def from_issues(cls, issues: Iterable[str], warnings: Iterable[str] = ()) -> "ValidationResult":
        issues = tuple(issues)
        return cls(valid=not issues, issues=issues, warnings=tuple(warnings))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "valid": self.valid,
            "issues": list(self.issues),
            "warnings": list(self.warnings),
        }


@dataclass
class RunReport:
    """Aggregated validation results of one run."""

    total_entities: int = 0
    valid_entities: int = 0
    invalid_entities: int = 0
    issues: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    by_entity_type: Dict[str, Dict[str, int]] = field(default_factory=dict)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def total_issues(self) -> int:
        return len(self.issues)

    @property
    def valid(self) -> bool:
        return self.invalid_entities == 0

    def add(self, entity_type: str, record_id: Any, result: ValidationResult) -> None:
        """Record the verdict of one record."""
        counts = self.by_entity_type.setdefault(
            entity_type, {"total": 0, "valid": 0, "invalid": 0, "issues": 0}
        )
        counts["total"] += 1
        self.total_entities += 1

        if result.valid:
            counts["valid"] += 1
            self.valid_entities += 1
        else:
            counts["invalid"] += 1
            self.invalid_entities += 1

        counts["issues"] += len(result.issues)
        prefix = f"[{entity_type}:{record_id}]"
        self.issues.extend(f"{prefix} {issue}" for issue in result.issues)
        self.warnings.extend(f"{prefix} {warning}" for warning in result.warnings)

    def merge(self, other: "RunReport") -> None:
        """Fold another report's counts and messages into this one."""
        self.total_entities += other.total_entities
        self.valid_entities += other.valid_entities
        self.invalid_entities += other.invalid_entities
        self.issues.extend(other.issues)
        self.warnings.extend(other.warnings)
        for entity_type, counts in other.by_entity_type.items():
            mine = self.by_entity_type.setdefault(
                entity_type, {"total": 0, "valid": 0, "invalid": 0, "issues": 0}
            )
            for key, value in counts.items():
                mine[key] += value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "created_at": self.created_at,
            "summary": {
                "total_entities": self.total_entities,
                "valid_entities": self.valid_entities,
                "invalid_entities": self.invalid_entities,
                "total_issues": self.total_issues,
                "total_warnings": len(self.warnings),
            },
            "by_entity_type": self.by_entity_type,
            "issues": list(self.issues),
            "warnings": list(self.warnings),
        }


def record_label(record: Dict[str, Any]) -> str:
    """Identifier of a record for messages."""
    for key in ("id", "handle"):
        if record.get(key) not in (None, ""):
            return str(record[key])
    original = get_nested(record, "metadata.original_id")
    return str(original) if original not in (None, "") else "unknown"


class DataValidator:
    """Validates destination records against validation rules."""

    def __init__(self, rules: ValidationRules, locales: Optional[Dict[str, str]] = None):
        """
        Initialize validator.

        Args:
            rules: Loaded validation rules
            locales: Language code -> locale, used to find localized fields
        """
        self.rules = rules
        self.locales = locales or {}

    def validate(
        self,
        record: Dict[str, Any],
        entity_type: str,
        rule_set: Optional[RuleSet] = None,
        all_records_index: Optional[IndexType] = None,
        regions: Iterable[str] = (),
        languages: Iterable[str] = (),
    ) -> ValidationResult:
        """
        Validate one record.

        Every check runs; failures accumulate. Relationship checks only run
        when an index of the current batch is given.
        """
        rule_set = rule_set or self.rules.for_entity(entity_type)
        issues: List[str] = []
        warnings: List[str] = []

        if not isinstance(record, dict):
            return ValidationResult.from_issues([f"Record must be an object, got {type(record).__name__}"])

        self._check_required(record, rule_set.required_fields, issues)
        self._check_formats(record, rule_set.formats, issues)

        if all_records_index is not None:
            self._check_relationships(record, rule_set.relationships, all_records_index, issues)

        if entity_type == "product":
            self._check_product_variants(record, issues, warnings)

        for region in regions:
            self._check_region(record, entity_type, region, issues)

        for language in languages:
            self._check_localization(record, rule_set.localized_fields, language, issues)

        return ValidationResult.from_issues(issues, warnings)

    def validate_batch(
        self,
        data_by_type: Dict[str, List[Dict[str, Any]]],
        regions: Iterable[str] = (),
        languages: Iterable[str] = (),
    ) -> RunReport:
        """
        Validate every record of a batch.

        Args:
            data_by_type: {entity_type: [records]}
            regions: Regions whose required fields are checked
            languages: Languages whose localized fields are checked

        Returns:
            RunReport with issues prefixed "[entity_type:id]"
        """
        regions = list(regions)
        languages = list(languages)
        index = self.build_index(data_by_type)
        report = RunReport()

        for entity_type, records in data_by_type.items():
            rule_set = self.rules.for_entity(entity_type)
            if entity_type not in self.rules.entities:
                logger.warning(f"No validation rules found for entity type: {entity_type}")

            for record in records:
                result = self.validate(
                    record,
                    entity_type,
                    rule_set,
                    index,
                    regions=regions,
                    languages=languages,
                )
                report.add(entity_type, record_label(record) if isinstance(record, dict) else "unknown", result)

        logger.info(
            f"Validated {report.total_entities} records: "
            f"{report.valid_entities} valid, {report.invalid_entities} invalid"
        )
        return report

    @staticmethod
    def build_index(data_by_type: Dict[str, List[Dict[str, Any]]]) -> IndexType:
        """Index records by id, handle and metadata.original_id."""
        index: IndexType = {}
        for entity_type, records in data_by_type.items():
            entries = index.setdefault(entity_type, {})
            for record in records:
                if not isinstance(record, dict):
                    continue
                keys = (record.get("id"), record.get("handle"), get_nested(record, "metadata.original_id"))
                for key in keys:
                    if key not in (None, ""):
                        entries[str(key)] = record
        return index

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    @staticmethod
    def _check_required(record: Dict[str, Any], required: List[str], issues: List[str]) -> None:
        for field_name in required:
            value = get_nested(record, field_name, _MISSING)
            if value is _MISSING or value is None or value == "":
                issues.append(f"Missing required field '{field_name}'")

    def _check_formats(self, record: Dict[str, Any], formats: Dict[str, Any], issues: List[str]) -> None:
        for field_name, fmt in formats.items():
            value = get_nested(record, field_name)
            if value is None:
                continue
            self._check_format(value, fmt, field_name, issues)

    def _check_format(self, value: Any, fmt: Any, field_name: str, issues: List[str]) -> bool:
        """Check one value, appending an issue per failure."""
        if isinstance(fmt, str):
            if fmt in NAMED_FORMATS:
                return self._check_named(value, fmt, field_name, issues)
            return self._check_pattern(value, fmt, field_name, issues)

        if not isinstance(fmt, dict):
            logger.warning(f"Unsupported format rule for '{field_name}': {fmt!r}")
            return True

        kind = fmt.get("type")

        if kind == "enum":
            allowed = fmt.get("values") or []
            if value not in allowed:
                issues.append(f"Field '{field_name}' should be one of: {', '.join(map(str, allowed))} (got {value!r})")
                return False
            return True

        if kind == "numeric":
            if not self._check_named(value, "numeric", field_name, issues):
                return False
            number = float(value)
            if "min" in fmt and number < fmt["min"]:
                issues.append(f"Field '{field_name}' must be at least {fmt['min']} (got {value})")
                return False
            if "max" in fmt and number > fmt["max"]:
                issues.append(f"Field '{field_name}' must be at most {fmt['max']} (got {value})")
                return False
            return True

        if kind == "array" and fmt.get("items") is not None:
            if not isinstance(value, list):
                issues.append(f"Field '{field_name}' should be an array")
                return False
            valid = True
            for i, item in enumerate(value):
                if not self._check_nested(item, fmt["items"], f"{field_name}[{i}]", issues):
                    valid = False
            return valid

        if kind == "object" and fmt.get("properties") is not None:
            if not isinstance(value, dict):
                issues.append(f"Field '{field_name}' should be an object")
                return False
            return self._check_nested(value, fmt["properties"], field_name, issues)

        if fmt.get("pattern"):
            return self._check_pattern(value, fmt["pattern"], field_name, issues)

        if kind:
            return self._check_format(value, kind, field_name, issues)

        return True

    def _check_nested(self, value: Any, schema: Any, prefix: str, issues: List[str]) -> bool:
        """Check an object's properties, or a scalar against a plain format."""
        if not isinstance(schema, dict) or "type" in schema:
            return self._check_format(value, schema, prefix, issues)

        if not isinstance(value, dict):
            issues.append(f"Field '{prefix}' should be an object")
            return False

        valid = True
        for key, fmt in schema.items():
            if value.get(key) is None:
                continue
            if not self._check_format(value[key], fmt, f"{prefix}.{key}", issues):
                valid = False
        return valid

    @staticmethod
    def _check_named(value: Any, fmt: str, field_name: str, issues: List[str]) -> bool:
        if fmt == "email":
            ok = isinstance(value, str) and bool(EMAIL_PATTERN.match(value))
        elif fmt == "url":
            parsed = urlparse(value) if isinstance(value, str) else None
            ok = bool(parsed and parsed.scheme in ("http", "https") and parsed.netloc)
        elif fmt == "slug":
            ok = isinstance(value, str) and bool(SLUG_PATTERN.match(value))
        elif fmt == "phone":
            ok = isinstance(value, str) and bool(PHONE_PATTERN.match(value))
        elif fmt == "numeric":
            ok = _is_numeric(value)
        elif fmt == "boolean":
            ok = isinstance(value, bool) or value in ("true", "false")
        elif fmt == "string":
            ok = isinstance(value, str)
        elif fmt == "array":
            ok = isinstance(value, list)
        elif fmt == "object":
            ok = isinstance(value, dict)
        elif fmt == "date":
            ok = _is_date(value)
        else:
            ok = True

        if not ok:
            issues.append(f"Invalid {fmt} format for field '{field_name}': {value!r}")
        return ok

    @staticmethod
    def _check_pattern(value: Any, pattern: str, field_name: str, issues: List[str]) -> bool:
        try:
            matched = re.search(pattern, str(value))
        except re.error as e:
            logger.warning(f"Invalid pattern for '{field_name}': {pattern} ({e})")
            return True

        if not matched:
            issues.append(f"Field '{field_name}' does not match pattern {pattern}: {value!r}")
            return False
        return True

    @staticmethod
    def _check_relationships(
        record: Dict[str, Any],
        relationships: Dict[str, Dict[str, str]],
        index: IndexType,
        issues: List[str],
    ) -> None:
        for field_name, relation in relationships.items():
            value = get_nested(record, field_name)
            if value in (None, "", []):
                continue

            target = relation.get("entity")
            known = index.get(target, {})

            if relation.get("type") == "references":
                if not isinstance(value, list):
                    issues.append(f"Field '{field_name}' should be an array of references")
                    continue
                refs = value
            else:
                refs = [value]

            for ref in refs:
                if str(ref) not in known:
                    issues.append(
                        f"Invalid reference in field '{field_name}': "
                        f"{target} with ID {ref} does not exist"
                    )

    def _check_product_variants(self, record: Dict[str, Any], issues: List[str], warnings: List[str]) -> None:
        label = record_label(record)

        sku = record.get("sku")
        if isinstance(sku, str) and not SKU_PATTERN.match(sku):
            issues.append(f"Invalid SKU format for product {label}: {sku}")

        if "variants" not in record or record["variants"] is None:
            return

        variants = record["variants"]
        if not isinstance(variants, list):
            issues.append(f"Product {label} has invalid variants format - expected array")
            return

        if not variants:
            warnings.append(f"Product {label} has no variants - a default variant will be created")
            return

        for i, variant in enumerate(variants):
            if not isinstance(variant, dict):
                issues.append(f"Variant {i} in product {label} must be an object")
                continue
            self._check_variant(variant, i, label, issues, warnings)

    @staticmethod
    def _check_variant(
        variant: Dict[str, Any],
        i: int,
        label: str,
        issues: List[str],
        warnings: List[str],
    ) -> None:
        for field_name in ("title", "inventory_quantity"):
            if field_name not in variant:
                issues.append(f"Variant {i} in product {label} is missing required field: {field_name}")

        sku = variant.get("sku")
        if isinstance(sku, str) and sku:
            if not SKU_PATTERN.match(sku):
                issues.append(f"Invalid SKU format in variant {i} of product {label}: {sku}")
        else:
            warnings.append(f"Variant {i} in product {label} has no SKU")

        prices = variant.get("prices")
        if not isinstance(prices, list):
            issues.append(f"Variant {i} in product {label} has missing or invalid prices")
            return
        if not prices:
            issues.append(f"Variant {i} in product {label} has no prices defined")
            return

        currencies = set()
        for j, price in enumerate(prices):
            where = f"Price {j} in variant {i} of product {label}"
            if not isinstance(price, dict):
                issues.append(f"{where} must be an object")
                continue

            amount = price.get("amount")
            if amount is None:
                issues.append(f"{where} has no amount")
            elif isinstance(amount, bool) or not isinstance(amount, (int, float)):
                issues.append(f"{where} has invalid amount type: {type(amount).__name__}")
            elif amount < 0:
                issues.append(f"{where} has negative amount: {amount}")

            currency = price.get("currency_code")
            if not currency:
                issues.append(f"{where} has no currency code")
            elif not isinstance(currency, str):
                issues.append(f"{where} has invalid currency code type: {type(currency).__name__}")
            elif currency.lower() not in SUPPORTED_CURRENCIES:
                issues.append(f"{where} has unsupported currency code: {currency}")
            elif currency.lower() in currencies:
                warnings.append(f"Duplicate currency {currency} in variant {i} of product {label}")
            else:
                currencies.add(currency.lower())

    def _check_region(self, record: Dict[str, Any], entity_type: str, region: str, issues: List[str]) -> None:
        region_rules = self.rules.region_validations.get(region)
        if not region_rules or not region_rules.applies_to(entity_type):
            return

        for field_name in region_rules.required_fields:
            value = get_nested(record, field_name)
            if value is None or value == "":
                issues.append(f"Missing required field '{field_name}' for region {region}")

    def _check_localization(
        self,
        record: Dict[str, Any],
        localized_fields: List[str],
        language: str,
        issues: List[str],
    ) -> None:
        locale = self.locales.get(language, language)

        for field_name in localized_fields:
            candidates = (
                record.get(f"{field_name}_{language}"),
                get_nested(record, f"localizations.{locale}.{field_name}"),
                get_nested(record, f"metadata.translations.{locale}.{field_name}"),
            )
            if not any(c not in (None, "") for c in candidates):
                issues.append(
                    f"Missing required localized field '{field_name}_{language}' for language {language}"
                )


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return False
    try:
        return math.isfinite(float(value))
    except (ValueError, OverflowError):
        return False


def _is_date(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
        return True
    except ValueError:
        return False
