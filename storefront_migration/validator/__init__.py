"""
Validator Module

Checks transformed records before import:
- Required fields, formats and batch-local relationships
- Product variant, SKU and price checks
- Region and localization requirements
- Mapping table coverage of the validation rules
"""

from .rules import RuleSet, ValidationRules, load_validation_rules
from .data_validator import DataValidator, RunReport, ValidationResult
from .mapping_validator import MappingValidationReport, MappingValidator

__all__ = [
    "RuleSet",
    "ValidationRules",
    "load_validation_rules",
    "DataValidator",
    "RunReport",
    "ValidationResult",
    "MappingValidator",
    "MappingValidationReport",
]
