"""Mapping table loading and maintenance."""

from .mapping import (
    EntityMapping,
    MappingRule,
    MappingTable,
    RegionInfo,
    TransformationKind,
    load_mapping_table,
)

__all__ = [
    "EntityMapping",
    "MappingRule",
    "MappingTable",
    "RegionInfo",
    "TransformationKind",
    "load_mapping_table",
]
