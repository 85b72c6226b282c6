"""JSON exporter."""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


def write_json(output_file: Union[str, Path], data: Any) -> Path:
    """Write a JSON document, creating parent directories."""
    output_file = Path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=str)

    return output_file


class JsonExporter:
    """Export transformed records to JSON files."""

    def __init__(self, output_dir: Union[str, Path]):
        self.output_dir = Path(output_dir)

    def path_for(self, system: str, entity_type: str, region: Optional[str] = None) -> Path:
        """<output>/<system>[/<region>]/<entity_type>.json"""
        folder = self.output_dir / system
        if region:
            folder = folder / region
        return folder / f"{entity_type}.json"

    def export(
        self,
        records: List[Dict[str, Any]],
        system: str,
        entity_type: str,
        region: Optional[str] = None,
    ) -> Path:
        """Export one entity type's records."""
        output_file = write_json(self.path_for(system, entity_type, region), records)
        logger.info(f"Wrote {len(records)} {entity_type} records to {output_file}")
        return output_file

    def export_all(
        self,
        data: Dict[str, Dict[str, List[Dict[str, Any]]]],
        region: Optional[str] = None,
    ) -> List[Path]:
        """Export {system: {entity_type: [records]}} plus a manifest."""
        written = []
        manifest = {
            "created_at": datetime.now().isoformat(),
            "region": region,
            "systems": {},
        }

        for system, by_type in data.items():
            manifest["systems"][system] = {}
            for entity_type, records in by_type.items():
                written.append(self.export(records, system, entity_type, region))
                manifest["systems"][system][entity_type] = len(records)

        name = f"manifest-{region}.json" if region else "manifest.json"
        written.append(write_json(self.output_dir / name, manifest))
        return written
