"""Region/language expansion of source records."""

from .region_expander import RegionExpander

__all__ = ["RegionExpander"]
