"""
app/validators/import_row_validator.py

Validates one template-transformed CSV row against indicator rules.

Issues are collected rather than raised, so a bad row never aborts its
batch. Out-of-bounds numbers are warnings; everything else that would stop
the value from being stored is an error.
"""

from __future__ import annotations

from typing import Any, Mapping

from anomaly.statistics import format_number
from app import failure_codes as codes
from app.domain.import_row import IssueSeverity, RowIssue, RowValidationResult
from app.domain.indicator import IndicatorRules
from app.errors import ValidationError
from app.services.submission_normalizer import parse_number
from app.validators.categorical_validator import (
    format_categorical_value,
    validate_categorical_value,
    validate_disaggregation_key,
)
from app.validators.timestamps import parse_reported_at

DATE_SUGGESTION = "Use format: YYYY-MM-DD"


class ImportRowValidator:
    """
    Validates and canonicalises transformed import rows.
    """

    def validate(self, normalized: Mapping[str, Any], rules: IndicatorRules) -> RowValidationResult:
        result = RowValidationResult(normalized=dict(normalized))
        data = result.normalized

        self._check_reported_at(data, result)
        if rules.is_categorical:
            self._check_category(data, rules, result)
        else:
            self._check_value(data, rules, result)
        self._check_disaggregation(data, rules, result)
        return result

    # ------------------------------------------------------------------
    # Field checks
    # ------------------------------------------------------------------

    def _check_reported_at(self, data: dict[str, Any], result: RowValidationResult) -> None:
        raw = data.get("reportedAt")
        if self._is_blank(raw):
            result.errors.append(RowIssue(field="reportedAt", message="Reporting date is required"))
            return
        parsed = parse_reported_at(raw)
        if parsed is None:
            result.errors.append(
                RowIssue(
                    field="reportedAt",
                    message="Invalid date format",
                    code=codes.INVALID_DATE,
                    suggestion=DATE_SUGGESTION,
                )
            )
            return
        result.reported_at = parsed
        data["reportedAt"] = parsed.isoformat()

    def _check_value(
        self,
        data: dict[str, Any],
        rules: IndicatorRules,
        result: RowValidationResult,
    ) -> None:
        raw = data.get("value")
        if raw is None:
            result.errors.append(RowIssue(field="value", message="Value is required"))
            return

        if rules.data_type in ("NUMBER", "PERCENT"):
            self._check_number(data, raw, rules, result)
        elif rules.data_type == "BOOLEAN":
            if isinstance(raw, bool):
                data["value"] = "true" if raw else "false"
            elif isinstance(raw, str) and raw.strip().lower() in ("true", "false"):
                data["value"] = raw.strip().lower()
            else:
                result.errors.append(
                    RowIssue(
                        field="value",
                        message="Value must be true or false",
                        code=codes.INVALID_VALUE,
                    )
                )
        elif rules.data_type == "TEXT":
            data["value"] = str(raw)
        else:
            result.errors.append(
                RowIssue(field="value", message="Unsupported data type", code=codes.INVALID_VALUE)
            )

    def _check_number(
        self,
        data: dict[str, Any],
        raw: Any,
        rules: IndicatorRules,
        result: RowValidationResult,
    ) -> None:
        number = parse_number(raw)
        if number is None:
            result.errors.append(
                RowIssue(field="value", message="Value must be a number", code=codes.INVALID_VALUE)
            )
            return
        data["value"] = format_number(number)

        lower, upper = rules.min_value, rules.max_value
        if rules.data_type == "PERCENT":
            lower = 0.0 if lower is None else lower
            upper = 100.0 if upper is None else upper
        if lower is not None and number < lower:
            result.warnings.append(
                RowIssue(
                    field="value",
                    message=f"Value {format_number(number)} is below minimum {format_number(lower)}",
                    severity=IssueSeverity.WARNING,
                    code=codes.VALUE_TOO_LOW,
                )
            )
        if upper is not None and number > upper:
            result.warnings.append(
                RowIssue(
                    field="value",
                    message=f"Value {format_number(number)} exceeds maximum {format_number(upper)}",
                    severity=IssueSeverity.WARNING,
                    code=codes.VALUE_TOO_HIGH,
                )
            )

    def _check_category(
        self,
        data: dict[str, Any],
        rules: IndicatorRules,
        result: RowValidationResult,
    ) -> None:
        raw = data.get("categoryValue")
        if self._is_blank(raw):
            raw = data.get("value")

        if not rules.categories:
            result.errors.append(
                RowIssue(
                    field="categoryValue",
                    message="Indicator has no categories defined",
                    code=codes.NO_CATEGORIES,
                )
            )
            return

        # Imports treat an unset "required" as required.
        required = rules.category_config.required
        if self._is_blank(raw):
            if required is None or required:
                result.errors.append(
                    RowIssue(
                        field="categoryValue",
                        message="Category is required",
                        code=codes.REQUIRED_CATEGORY,
                    )
                )
            else:
                data["value"] = ""
                data["categoryValue"] = None
            return

        try:
            selected = validate_categorical_value(str(raw), rules.categories, rules.category_config)
        except ValidationError as exc:
            result.errors.append(RowIssue(field="categoryValue", message=exc.message, code=exc.code))
            return
        joined = format_categorical_value(selected)
        data["value"] = joined
        data["categoryValue"] = joined

    def _check_disaggregation(
        self,
        data: dict[str, Any],
        rules: IndicatorRules,
        result: RowValidationResult,
    ) -> None:
        key = data.get("disaggregationKey")
        key = "" if key is None else str(key).strip()
        data["disaggregationKey"] = key
        result.disaggregation_key = key
        try:
            validate_disaggregation_key(key, rules.category_config)
        except ValidationError as exc:
            result.errors.append(
                RowIssue(field="disaggregationKey", message=exc.message, code=exc.code)
            )

    @staticmethod
    def _is_blank(value: Any) -> bool:
        return value is None or str(value).strip() == ""
