"""Writers for transformed records, reports and the mapping document."""

from .json_exporter import JsonExporter, write_json
from .mapping_document import render_mapping_document, write_mapping_document
from .report_writer import ReportWriter

__all__ = [
    "JsonExporter",
    "ReportWriter",
    "render_mapping_document",
    "write_json",
    "write_mapping_document",
]
