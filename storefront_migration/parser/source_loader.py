"""Load source records from exported JSON, YAML and Markdown files."""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import frontmatter
import yaml

from storefront_migration.api.endpoint_mapper import EndpointMapper

logger = logging.getLogger(__name__)


class SourceLoader:
    """Reads source records of each entity type from an export directory."""

    # Map extensions to formats
    FORMATS = {
        ".json": "json",
        ".yaml": "yaml",
        ".yml": "yaml",
        ".md": "markdown",
    }

    @staticmethod
    def load_file(file_path: Union[str, Path], entity_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Load records from one file.

        A file may hold a list of records, a single record, or an object
        wrapping the list under "data", the entity type or its plural.
        Markdown files hold one record in their YAML front matter; the body
        becomes the record's "content".

        Args:
            file_path: Path to the file
            entity_type: Entity type, used to unwrap {"products": [...]}

        Returns:
            list: Records (empty when the file cannot be read)
        """
        path = Path(file_path)
        fmt = SourceLoader.FORMATS.get(path.suffix.lower())

        if fmt is None:
            logger.warning(f"Unsupported source format: {path}")
            return []

        try:
            if fmt == "markdown":
                post = frontmatter.load(str(path), encoding="utf-8")
                record = dict(post.metadata)
                if post.content.strip():
                    record.setdefault("content", post.content)
                record.setdefault("slug", path.stem)
                return [record]

            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) if fmt == "yaml" else json.load(f)

        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Failed to read {path}: {e}")
            return []

        return SourceLoader._records(data, entity_type, path)

    @staticmethod
    def load_entity(input_dir: Union[str, Path], entity_type: str) -> List[Dict[str, Any]]:
        """
        Load every record of an entity type.

        Looks for <name>.json/.yaml/.yml files and <name>/ directories, where
        name is the entity type or one of its aliases ("products").
        """
        base = Path(input_dir)
        if not base.is_dir():
            logger.error(f"Input directory not found: {base}")
            return []

        records: List[Dict[str, Any]] = []
        for name in SourceLoader._names(entity_type):
            for ext in SourceLoader.FORMATS:
                candidate = base / f"{name}{ext}"
                if candidate.is_file():
                    records.extend(SourceLoader.load_file(candidate, entity_type))

            folder = base / name
            if folder.is_dir():
                for candidate in sorted(folder.iterdir()):
                    if candidate.is_file() and candidate.suffix.lower() in SourceLoader.FORMATS:
                        records.extend(SourceLoader.load_file(candidate, entity_type))

        logger.info(f"Loaded {len(records)} {entity_type} records from {base}")
        return records

    @staticmethod
    def load_all(
        input_dir: Union[str, Path],
        entity_types: Optional[Iterable[str]] = None,
    ) -> Dict[str, List[Dict[str, Any]]]:
        """
        Load several entity types.

        Args:
            input_dir: Export directory
            entity_types: Types to load (every type found when None)

        Returns:
            {entity_type: [records]}, only types with records
        """
        types = list(entity_types) if entity_types else SourceLoader.discover(input_dir)
        data = {}
        for entity_type in types:
            records = SourceLoader.load_entity(input_dir, entity_type)
            if records:
                data[entity_type] = records
        return data

    @staticmethod
    def discover(input_dir: Union[str, Path]) -> List[str]:
        """Entity types present in an export directory."""
        base = Path(input_dir)
        if not base.is_dir():
            return []

        found = []
        for entry in sorted(base.iterdir()):
            if entry.is_file() and entry.suffix.lower() not in SourceLoader.FORMATS:
                continue
            entity_type = EndpointMapper.normalize(entry.stem if entry.is_file() else entry.name)
            if entity_type and entity_type not in found:
                found.append(entity_type)
        return found

    @staticmethod
    def _names(entity_type: str) -> List[str]:
        names = [entity_type]
        names.extend(a for a, t in EndpointMapper.ALIASES.items() if t == entity_type)
        return names

    @staticmethod
    def _records(data: Any, entity_type: Optional[str], path: Path) -> List[Dict[str, Any]]:
        if isinstance(data, dict):
            keys = ["data"]
            if entity_type:
                keys.extend(SourceLoader._names(entity_type))
            for key in keys:
                if isinstance(data.get(key), list):
                    data = data[key]
                    break
            else:
                data = [data]

        if not isinstance(data, list):
            logger.error(f"Unexpected content in {path}: expected records, got {type(data).__name__}")
            return []

        records = [r for r in data if isinstance(r, dict)]
        if len(records) != len(data):
            logger.warning(f"Skipped {len(data) - len(records)} non-object entries in {path}")
        return records
