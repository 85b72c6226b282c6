"""Source record loading."""

from .source_loader import SourceLoader

__all__ = ["SourceLoader"]
