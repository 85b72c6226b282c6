"""Patch single rules of the mapping table file."""
import json
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from storefront_migration.errors import MappingError
from storefront_migration.exporter.mapping_document import write_mapping_document
from .mapping import TARGET_SYSTEMS, MappingRule, MappingTable, load_mapping_table, read_document

logger = logging.getLogger(__name__)

RULE_SECTIONS = TARGET_SYSTEMS + ("multi_language", "multi_region")


class MappingUpdater:
    """Adds or replaces a rule, backing up the previous files first."""

    def __init__(
        self,
        mapping_file: Union[str, Path],
        document_file: Optional[Union[str, Path]] = None,
        backup_dir: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize updater.

        Args:
            mapping_file: Mapping table to patch (JSON or YAML)
            document_file: Markdown mapping document to regenerate
            backup_dir: Where backups go (<mapping dir>/backups by default)
        """
        self.mapping_file = Path(mapping_file)
        self.document_file = Path(document_file) if document_file else self.mapping_file.with_name("mapping-document.md")
        self.backup_dir = Path(backup_dir) if backup_dir else self.mapping_file.parent / "backups"

    def update(
        self,
        entity_type: str,
        section: str,
        source_field: str,
        destination: str,
        kind: str = "direct",
        notes: str = "",
        default: Any = None,
        target: Optional[str] = None,
    ) -> MappingTable:
        """
        Add or replace one rule.

        A rule with the same destination is replaced; otherwise a single rule
        with the same source is replaced; otherwise the rule is appended.

        Raises:
            MappingError: unknown section or kind, bad destination, unreadable file
        """
        if section not in RULE_SECTIONS:
            raise MappingError(f"Unknown section '{section}' (expected one of: {', '.join(RULE_SECTIONS)})")

        entry: Dict[str, Any] = {"source": source_field, "destination": destination, "kind": kind}
        if default is not None:
            entry["default"] = default
        if notes:
            entry["notes"] = notes
        if target:
            entry["target"] = target

        # Fails here, before anything is written, for unknown kinds or bad paths
        entry = MappingRule.from_dict(entry).to_dict()

        try:
            data = read_document(self.mapping_file)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise MappingError(f"Failed to load field mapping from {self.mapping_file}: {e}")

        entities = data.setdefault("entities", {})
        entity = entities.setdefault(entity_type, {})
        if section in TARGET_SYSTEMS:
            rules = entity.setdefault("targets", {}).setdefault(section, [])
        else:
            rules = entity.setdefault(section, [])

        action = self._upsert(rules, entry)

        self.backup()
        self._write(data)
        table = load_mapping_table(self.mapping_file)
        self._write_document(table)

        logger.info(f"{action} {entity_type}.{section}.{source_field} -> {destination} ({entry['kind']})")
        return table

    def backup(self) -> List[Path]:
        """Copy the mapping file and the document into the backup directory."""
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
        self.backup_dir.mkdir(parents=True, exist_ok=True)

        backups = []
        for path in (self.mapping_file, self.document_file):
            if path.exists():
                target = self.backup_dir / f"{path.stem}-{timestamp}{path.suffix}"
                shutil.copy2(path, target)
                backups.append(target)

        logger.info(f"Created {len(backups)} backups in {self.backup_dir}")
        return backups

    @staticmethod
    def _upsert(rules: List[Dict[str, Any]], entry: Dict[str, Any]) -> str:
        for i, rule in enumerate(rules):
            if rule.get("destination") == entry["destination"]:
                rules[i] = entry
                return "Updated"

        same_source = [i for i, rule in enumerate(rules) if rule.get("source") == entry["source"]]
        if len(same_source) == 1:
            rules[same_source[0]] = entry
            return "Updated"

        rules.append(entry)
        return "Added"

    def _write(self, data: Dict[str, Any]) -> None:
        with open(self.mapping_file, "w", encoding="utf-8") as f:
            if self.mapping_file.suffix.lower() in (".yaml", ".yml"):
                yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
            else:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write("\n")

    def _write_document(self, table: MappingTable) -> None:
        write_mapping_document(table, self.document_file)
