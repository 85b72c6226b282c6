"""Transformer registry."""
import json
import logging
import math
import re
from typing import Any, Dict, List, Optional, Union

from storefront_migration.mapper.mapping import TransformationKind

logger = logging.getLogger(__name__)

DEFAULT_STATUS_MAP = {
    "published": "published",
    "draft": "draft",
}
DEFAULT_STATUS = "draft"

MEDIA_BASE_PATH = "imports/assets"
ASSET_PREFIX = "asset::"
ENTRY_PREFIX = "entry::"

_CURRENCY_NOISE = re.compile(r"[^\d.,\-]")


def slugify(value: Any) -> str:
    """Lowercase, hyphenate whitespace and drop anything outside [a-z0-9-]."""
    if not value:
        return ""
    slug = re.sub(r"\s+", "-", str(value).lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


def parse_amount(value: Any) -> Optional[float]:
    """
    Parse a price that may carry a currency symbol or a decimal comma.

    Returns None when nothing numeric can be read or the number is not
    finite.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return _finite(float(value))
        except OverflowError:
            return None
    if isinstance(value, dict):
        return parse_amount(value.get("amount"))
    if not isinstance(value, str):
        return None

    clean = _CURRENCY_NOISE.sub("", value.strip())
    if "," in clean and "." in clean:
        if clean.rfind(",") > clean.rfind("."):
            # 1.299,95 -> 1299.95
            clean = clean.replace(".", "").replace(",", ".")
        else:
            clean = clean.replace(",", "")
    else:
        clean = clean.replace(",", ".")

    try:
        return _finite(float(clean))
    except ValueError:
        return None


def _finite(amount: float) -> Optional[float]:
    return amount if math.isfinite(amount) else None


def to_minor_units(value: Any, unit: Optional[str] = None) -> int:
    """
    Convert a price to minor units (cents).

    Args:
        value: Number, numeric string or {"amount": ...}
        unit: "minor" when the value is already in cents, "major" when it
            is in whole currency units, None for the legacy heuristic where
            an integral value of 100 or more is taken as cents already

    Returns:
        int: Amount in minor units, 0 when the value cannot be parsed
    """
    amount = parse_amount(value)
    if amount is None:
        if value not in (None, ""):
            logger.warning(f"Unparseable price {value!r}, using 0")
        return 0

    if unit == "minor":
        cents = amount
    elif unit == "major" or not (amount.is_integer() and amount >= 100):
        cents = amount * 100
    else:
        cents = amount

    if not math.isfinite(cents):
        logger.warning(f"Price {value!r} is out of range, using 0")
        return 0
    return int(round(cents))


class TransformerRegistry:
    """Registry of transformation kinds and their functions."""

    def __init__(self):
        """Initialize registry."""
        self.transformers = {
            TransformationKind.DIRECT: lambda x, **kw: x,
            TransformationKind.SLUGIFY: lambda x, **kw: slugify(x),
            TransformationKind.LOWERCASE: self._lowercase,
            TransformationKind.UPPERCASE: self._uppercase,
            TransformationKind.MULTIPLY_BY_100: self._multiply_by_100,
            TransformationKind.DIVISION_BY_100: self._division_by_100,
            TransformationKind.STATUS_MAP: self._status_map,
            TransformationKind.NAME_SPLIT: self._name_split,
            TransformationKind.MEDIA_REFERENCE: self._media_reference,
            TransformationKind.RELATIONSHIP_ID: self._relationship_id,
            TransformationKind.BOOLEAN: self._boolean,
            TransformationKind.ARRAY: self._array,
            TransformationKind.JSON: self._json,
            TransformationKind.OPTIONS: self._options,
        }

    def get(self, kind: Union[str, TransformationKind]):
        """Get transformer by kind, falling back to passthrough."""
        try:
            key = TransformationKind(kind)
        except ValueError:
            key = None

        if key not in self.transformers:
            logger.warning(f"No transformer registered for '{kind}', passing value through")
            return self.transformers[TransformationKind.DIRECT]

        return self.transformers[key]

    def register(self, kind: TransformationKind, func) -> None:
        """Register or replace the function for a kind."""
        self.transformers[kind] = func

    def transform(self, value: Any, kind: Union[str, TransformationKind], **context) -> Any:
        """Apply transformation."""
        transformer = self.get(kind)
        return transformer(value, **context)

    @staticmethod
    def _lowercase(value: Any, **context) -> Any:
        if isinstance(value, list):
            return [str(v).lower() for v in value]
        return str(value).lower() if value else value

    @staticmethod
    def _uppercase(value: Any, **context) -> Any:
        if isinstance(value, list):
            return [str(v).upper() for v in value]
        return str(value).upper() if value else value

    @staticmethod
    def _multiply_by_100(value: Any, options: Optional[Dict[str, Any]] = None, **context) -> int:
        """Convert price to minor units."""
        unit = (options or {}).get("unit")
        return to_minor_units(value, unit)

    @staticmethod
    def _division_by_100(value: Any, **context) -> Optional[float]:
        """Convert a percentage to a decimal."""
        if value is None or value == "":
            return None

        amount = parse_amount(value)
        if amount is None:
            logger.warning(f"Unparseable percentage {value!r}")
            return None

        return amount / 100

    @staticmethod
    def _status_map(value: Any, options: Optional[Dict[str, Any]] = None, **context) -> str:
        """Map a source status onto the destination's status enum."""
        options = options or {}
        table = options.get("map") or DEFAULT_STATUS_MAP
        default = options.get("default", DEFAULT_STATUS)

        if value is None:
            return default

        return table.get(str(value).strip().lower(), default)

    @staticmethod
    def _name_split(value: Any, options: Optional[Dict[str, Any]] = None, **context) -> str:
        """Take the first or the remaining whitespace tokens of a full name."""
        if not value:
            return ""

        parts = str(value).split()
        if not parts:
            return ""

        part = (options or {}).get("part", "first")
        if part == "last":
            return " ".join(parts[1:])
        return parts[0]

    def _media_reference(self, value: Any, target_system: str = "medusa", **context) -> Any:
        """Rewrite asset references to the destination's media shape."""
        if not value:
            return None

        if isinstance(value, list):
            return [self._single_media(item, target_system) for item in value]

        return self._single_media(value, target_system)

    @staticmethod
    def _single_media(value: Any, target_system: str) -> Any:
        path = None
        alt = ""

        if isinstance(value, str) and value.startswith(ASSET_PREFIX):
            path = value[len(ASSET_PREFIX):]
        elif isinstance(value, dict) and value.get("path"):
            path = value["path"]
            alt = value.get("alt") or ""

        if path is None:
            return value

        url = f"{MEDIA_BASE_PATH}/{path}"
        if target_system == "medusa":
            return {"url": url}

        return {
            "name": path.split("/")[-1],
            "alternativeText": alt,
            "url": url,
        }

    @staticmethod
    def _relationship_id(value: Any, options: Optional[Dict[str, Any]] = None, **context) -> Any:
        """Strip entry prefixes from one reference or a list of them."""
        if not value:
            return None

        prefixes = (options or {}).get("prefixes") or [ENTRY_PREFIX]

        def strip(ref):
            if not isinstance(ref, str):
                return ref
            for prefix in prefixes:
                if ref.startswith(prefix):
                    return ref[len(prefix):]
            return ref

        if isinstance(value, list):
            return [strip(v) for v in value]

        return strip(value)

    @staticmethod
    def _boolean(value: Any, **context) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes", "y", "on")
        return bool(value)

    @staticmethod
    def _array(value: Any, **context) -> List[Any]:
        if not value:
            return []
        if not isinstance(value, list):
            return [value]
        return list(value)

    @staticmethod
    def _json(value: Any, **context) -> Any:
        """Parse JSON strings, wrapping scalars that are not JSON."""
        if not value:
            return {}

        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                return {"value": value}

        if isinstance(value, (dict, list)):
            return value

        return {"value": value}

    @staticmethod
    def _options(value: Any, **context) -> List[Dict[str, Any]]:
        """Normalize product options to [{title, values}]."""
        if not value:
            return []

        if isinstance(value, dict):
            value = [{"title": k, "values": v} for k, v in value.items()]
        elif not isinstance(value, list):
            value = [value]

        options = []
        for option in value:
            if isinstance(option, str):
                options.append({"title": option, "values": []})
                continue

            title = option.get("title") or option.get("name") or "Option"
            values = option.get("values") or []
            if not isinstance(values, list):
                values = [values]
            options.append({
                "title": title,
                "values": [v.get("value", v) if isinstance(v, dict) else v for v in values],
            })

        return options
