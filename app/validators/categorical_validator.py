"""
app/validators/categorical_validator.py

Validation of category definitions, category configuration and categorical
submission values.

All failures raise ``app.errors.ValidationError`` with a stable code.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Sequence

from app import failure_codes as codes
from app.domain.categorical import (
    CategoryConfig,
    CategoryDefinition,
    DisaggregationDimension,
    ReportingFrequency,
)
from app.errors import ValidationError

OTHER_CATEGORY_ID = "other"
VALUE_SEPARATOR = ","


def validate_categories(categories: Any) -> list[CategoryDefinition]:
    """
    Validate raw category definitions and return them normalized.
    Empty ``color``/``description`` collapse to None.
    """

    if isinstance(categories, (str, bytes)) or not isinstance(categories, Sequence):
        raise ValidationError(codes.INVALID_CATEGORIES, "Categories must be an array")
    if len(categories) == 0:
        raise ValidationError(codes.EMPTY_CATEGORIES, "At least one category is required")

    seen_ids: set[str] = set()
    validated: list[CategoryDefinition] = []
    for index, category in enumerate(categories):
        if isinstance(category, CategoryDefinition):
            category = category.to_dict()
        if not isinstance(category, Mapping):
            raise ValidationError(
                codes.INVALID_CATEGORY, f"Category at index {index} must be an object"
            )

        category_id = category.get("id")
        if not isinstance(category_id, str) or not category_id:
            raise ValidationError(
                codes.INVALID_CATEGORY_ID, f"Category at index {index} must have a valid id"
            )
        label = category.get("label")
        if not isinstance(label, str) or not label:
            raise ValidationError(
                codes.INVALID_CATEGORY_LABEL,
                f"Category at index {index} must have a valid label",
            )
        if category_id in seen_ids:
            raise ValidationError(
                codes.DUPLICATE_CATEGORY_ID, f"Category ID '{category_id}' is duplicated"
            )
        seen_ids.add(category_id)

        validated.append(
            CategoryDefinition(
                id=category_id,
                label=label,
                color=category.get("color") or None,
                description=category.get("description") or None,
            )
        )
    return validated


def validate_category_config(config: Any) -> CategoryConfig:
    """
    Validate a raw category config mapping. Keys are camelCase as stored on
    the indicator. Booleans are never accepted where numbers are expected.
    """

    if isinstance(config, CategoryConfig):
        return config
    if not isinstance(config, Mapping):
        raise ValidationError(codes.INVALID_CATEGORY_CONFIG, "Category config must be an object")

    allow_multiple = _optional_bool(
        config, "allowMultiple", codes.INVALID_ALLOW_MULTIPLE, "allowMultiple must be a boolean"
    )
    required = _optional_bool(
        config, "required", codes.INVALID_REQUIRED, "required must be a boolean"
    )
    allow_other = _optional_bool(
        config, "allowOther", codes.INVALID_ALLOW_OTHER, "allowOther must be a boolean"
    )

    max_selections = config.get("maxSelections")
    if max_selections is not None and (not _is_number(max_selections) or max_selections < 1):
        raise ValidationError(
            codes.INVALID_MAX_SELECTIONS, "maxSelections must be a positive number"
        )

    dimensions: tuple[DisaggregationDimension, ...] = ()
    if config.get("disaggregationDimensions") is not None:
        dimensions = tuple(validate_disaggregation_dimensions(config["disaggregationDimensions"]))

    frequency = config.get("reportingFrequency")
    if frequency is not None and frequency not in ReportingFrequency.ALL:
        raise ValidationError(
            codes.INVALID_REPORTING_FREQUENCY,
            f"reportingFrequency must be one of: {', '.join(ReportingFrequency.ALL)}",
        )

    expected_entities = config.get("expectedReportingEntities")
    if expected_entities is not None and (
        not _is_number(expected_entities) or expected_entities <= 0
    ):
        raise ValidationError(
            codes.INVALID_EXPECTED_ENTITIES,
            "expectedReportingEntities must be a positive number",
        )

    return CategoryConfig(
        allow_multiple=bool(allow_multiple),
        max_selections=max_selections,
        required=required,
        allow_other=bool(allow_other),
        disaggregation_dimensions=dimensions,
        reporting_frequency=frequency,
        expected_reporting_entities=expected_entities,
    )


def validate_disaggregation_dimensions(dimensions: Any) -> list[DisaggregationDimension]:
    if isinstance(dimensions, (str, bytes)) or not isinstance(dimensions, Sequence):
        raise ValidationError(
            codes.INVALID_DISAGGREGATION, "Disaggregation dimensions must be an array"
        )

    validated: list[DisaggregationDimension] = []
    for index, dimension in enumerate(dimensions):
        if not isinstance(dimension, Mapping):
            raise ValidationError(
                codes.INVALID_DIMENSION, f"Dimension at index {index} must be an object"
            )
        key = dimension.get("key")
        if not isinstance(key, str) or not key:
            raise ValidationError(
                codes.INVALID_DIMENSION_KEY, f"Dimension at index {index} must have a valid key"
            )
        label = dimension.get("label")
        if not isinstance(label, str) or not label:
            raise ValidationError(
                codes.INVALID_DIMENSION_LABEL,
                f"Dimension at index {index} must have a valid label",
            )
        values = dimension.get("values")
        if isinstance(values, (str, bytes)) or not isinstance(values, Sequence) or not values:
            raise ValidationError(
                codes.INVALID_DIMENSION_VALUES,
                f"Dimension at index {index} must have at least one value",
            )
        required = dimension.get("required")
        if not isinstance(required, bool):
            raise ValidationError(
                codes.INVALID_DIMENSION_REQUIRED,
                f"Dimension at index {index} must specify if it's required",
            )
        validated.append(
            DisaggregationDimension(
                key=key,
                label=label,
                values=tuple(str(value) for value in values),
                required=required,
            )
        )
    return validated


def validate_categorical_value(
    value: Any,
    categories: Sequence[CategoryDefinition],
    config: CategoryConfig,
) -> list[str]:
    """
    Validate a submitted selection (a single id or comma-separated ids) and
    return the selected ids in input order.
    """

    if value is None:
        selected_ids: list[str] = []
    elif isinstance(value, (list, tuple)):
        selected_ids = [str(item).strip() for item in value if str(item).strip()]
    else:
        selected_ids = parse_categorical_value(str(value))

    if not selected_ids:
        if config.required is True:
            raise ValidationError(codes.REQUIRED_CATEGORY, "Category selection is required")
        return []

    if not config.allow_multiple and len(selected_ids) > 1:
        raise ValidationError(
            codes.MULTIPLE_NOT_ALLOWED, "Multiple category selections are not allowed"
        )

    if config.max_selections and len(selected_ids) > config.max_selections:
        raise ValidationError(
            codes.MAX_SELECTIONS_EXCEEDED,
            f"Maximum {_format_count(config.max_selections)} selections allowed",
        )

    known_ids = {category.id for category in categories}
    for category_id in selected_ids:
        if category_id == OTHER_CATEGORY_ID and config.allow_other:
            continue
        if category_id not in known_ids:
            raise ValidationError(
                codes.INVALID_CATEGORY_VALUE, f"Invalid category ID: {category_id}"
            )
    return selected_ids


def validate_disaggregation_key(key: str | None, config: CategoryConfig | None) -> bool:
    """
    Enforce the first required disaggregation dimension, if any. Without a
    required dimension every key (including none) is accepted.
    """

    if config is None or not config.disaggregation_dimensions:
        return True
    required_dimension = next(
        (dimension for dimension in config.disaggregation_dimensions if dimension.required),
        None,
    )
    if required_dimension is None:
        return True

    if not key:
        raise ValidationError(
            codes.MISSING_DISAGGREGATION,
            f"Disaggregation key is required for dimension: {required_dimension.label}",
        )
    if key not in required_dimension.values:
        preview = ", ".join(required_dimension.values[:5])
        raise ValidationError(
            codes.INVALID_DISAGGREGATION_VALUE,
            f"'{key}' is not a valid value for {required_dimension.label}. "
            f"Valid values: {preview}...",
        )
    return True


def format_categorical_value(selected_ids: Sequence[str]) -> str:
    return VALUE_SEPARATOR.join(selected_ids)


def parse_categorical_value(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(VALUE_SEPARATOR) if part.strip()]


def _optional_bool(config: Mapping[str, Any], key: str, code: str, message: str) -> bool | None:
    value = config.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ValidationError(code, message)
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _format_count(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
