"""
app/validators package marker.
"""

from app.validators.categorical_validator import (
    format_categorical_value,
    parse_categorical_value,
    validate_categorical_value,
    validate_categories,
    validate_category_config,
    validate_disaggregation_key,
)
from app.validators.timestamps import parse_reported_at

__all__ = [
    "format_categorical_value",
    "parse_categorical_value",
    "parse_reported_at",
    "validate_categorical_value",
    "validate_categories",
    "validate_category_config",
    "validate_disaggregation_key",
]
