"""Exceptions raised for configuration problems."""


class MigrationError(Exception):
    """Base error for the migration toolkit."""


class MappingError(MigrationError):
    """Mapping table or rule is invalid."""


class RulesError(MigrationError):
    """Validation rules file cannot be loaded."""
