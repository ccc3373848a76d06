"""
app/services/submission_normalizer.py

Converts raw submitted values into the canonical string stored on a
submission, enforcing the indicator's type and bounds.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any

from anomaly.statistics import format_number
from app import failure_codes as codes
from app.domain.indicator import IndicatorRules
from app.domain.submission import NormalizedValue
from app.errors import ValidationError
from app.validators.categorical_validator import (
    format_categorical_value,
    validate_categorical_value,
)

_TRUE_FALSE = {"true", "false"}


def parse_number(value: Any) -> float | None:
    """
    Parse ints, floats, Decimals and numeric strings. Booleans, blanks and
    non-finite results return None.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        # float() also accepts digit separators such as "1_000".
        if not stripped or "_" in stripped:
            return None
        try:
            number = float(stripped)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


class SubmissionNormalizer:
    """
    One ``normalize`` entry point dispatching on the indicator data type.
    """

    def normalize(self, rules: IndicatorRules, raw_value: Any) -> NormalizedValue:
        handler = {
            "NUMBER": self._normalize_number,
            "PERCENT": self._normalize_percent,
            "BOOLEAN": self._normalize_boolean,
            "TEXT": self._normalize_text,
            "CATEGORICAL": self._normalize_categorical,
        }.get(rules.data_type)
        if handler is None:
            raise ValidationError(codes.INVALID_VALUE, "Unsupported data type")
        return handler(rules, raw_value)

    def _normalize_number(self, rules: IndicatorRules, raw_value: Any) -> NormalizedValue:
        number = parse_number(raw_value)
        if number is None:
            raise ValidationError(codes.INVALID_VALUE, "Value must be numeric")
        if rules.min_value is not None and number < rules.min_value:
            raise ValidationError(
                codes.VALUE_TOO_LOW, f"Value must be >= {format_number(rules.min_value)}"
            )
        if rules.max_value is not None and number > rules.max_value:
            raise ValidationError(
                codes.VALUE_TOO_HIGH, f"Value must be <= {format_number(rules.max_value)}"
            )
        return NormalizedValue(value=format_number(number))

    def _normalize_percent(self, rules: IndicatorRules, raw_value: Any) -> NormalizedValue:
        number = parse_number(raw_value)
        if number is None:
            raise ValidationError(codes.INVALID_VALUE, "Value must be numeric")
        lower = 0.0 if rules.min_value is None else rules.min_value
        upper = 100.0 if rules.max_value is None else rules.max_value
        if number < lower or number > upper:
            raise ValidationError(
                codes.VALUE_OUT_OF_RANGE,
                f"Percent must be between {format_number(lower)} and {format_number(upper)}",
            )
        return NormalizedValue(value=format_number(number))

    def _normalize_boolean(self, rules: IndicatorRules, raw_value: Any) -> NormalizedValue:
        if isinstance(raw_value, bool):
            return NormalizedValue(value="true" if raw_value else "false")
        if isinstance(raw_value, str) and raw_value.strip().lower() in _TRUE_FALSE:
            return NormalizedValue(value=raw_value.strip().lower())
        raise ValidationError(codes.INVALID_VALUE, "Value must be boolean")

    def _normalize_text(self, rules: IndicatorRules, raw_value: Any) -> NormalizedValue:
        if raw_value is None:
            raise ValidationError(codes.INVALID_VALUE, "Value cannot be empty")
        return NormalizedValue(value=str(raw_value))

    def _normalize_categorical(self, rules: IndicatorRules, raw_value: Any) -> NormalizedValue:
        if not rules.categories:
            raise ValidationError(
                codes.NO_CATEGORIES, "Indicator has no categories defined"
            )
        selected = validate_categorical_value(raw_value, rules.categories, rules.category_config)
        joined = format_categorical_value(selected)
        return NormalizedValue(value=joined, category_value=joined)


_DEFAULT_NORMALIZER = SubmissionNormalizer()


def normalize_value(rules: IndicatorRules, raw_value: Any) -> NormalizedValue:
    return _DEFAULT_NORMALIZER.normalize(rules, raw_value)
