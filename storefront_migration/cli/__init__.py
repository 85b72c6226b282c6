"""Command line layer of the storefront migration tool."""

from .runner import CommandError, MigrationCLI

__all__ = ["CommandError", "MigrationCLI"]
