"""
app/mappers/template_mapper.py

Applies an import template's column definitions to a raw CSV row.

Column definitions are stored on ``ImportTemplate.column_mapping`` as
``{"columns": [{"csvHeader", "fieldName", "dataType", "required",
"defaultValue", "transform": {...}}]}``. Values that cannot be converted are
passed through unchanged so the row validator can report them.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Sequence

DEFAULT_DATE_FORMAT = "yyyy-MM-dd"

# Template date patterns use Unicode tokens (yyyy-MM-dd); strptime needs %-codes.
_DATE_TOKENS: tuple[tuple[str, str], ...] = (
    ("yyyy", "%Y"),
    ("yy", "%y"),
    ("MM", "%m"),
    ("dd", "%d"),
    ("HH", "%H"),
    ("mm", "%M"),
    ("ss", "%S"),
)
_DATE_TOKEN_RE = re.compile("|".join(token for token, _ in _DATE_TOKENS))


def normalize_header(header: str) -> str:
    """
    Normalize a column name for flexible matching.
    """

    return "".join(ch for ch in header.strip().lower() if ch.isalnum())


def to_strptime_format(pattern: str) -> str:
    if "%" in pattern:
        return pattern
    tokens = dict(_DATE_TOKENS)
    return _DATE_TOKEN_RE.sub(lambda match: tokens[match.group(0)], pattern)


@dataclass(frozen=True)
class ColumnTransform:
    trim: bool = False
    date_format: str | None = None
    remove_commas: bool = False
    category_mapping: dict[str, str] = field(default_factory=dict)
    boolean_values: dict[str, tuple[str, ...]] = field(default_factory=dict)
    max_length: int | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> "ColumnTransform":
        payload = payload or {}
        boolean_values = {
            str(key).lower(): tuple(str(item).lower() for item in values)
            for key, values in (payload.get("booleanValues") or {}).items()
        }
        max_length = payload.get("maxLength")
        return cls(
            trim=bool(payload.get("trim", False)),
            date_format=payload.get("dateFormat"),
            remove_commas=bool(payload.get("removeCommas", False)),
            category_mapping={
                str(key): str(value) for key, value in (payload.get("categoryMapping") or {}).items()
            },
            boolean_values=boolean_values,
            max_length=int(max_length) if isinstance(max_length, (int, float)) else None,
        )


@dataclass(frozen=True)
class ColumnDefinition:
    csv_header: str
    field_name: str
    data_type: str = "text"
    required: bool = False
    default_value: Any = None
    transform: ColumnTransform = ColumnTransform()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ColumnDefinition":
        return cls(
            csv_header=str(payload["csvHeader"]),
            field_name=str(payload["fieldName"]),
            data_type=str(payload.get("dataType") or "text"),
            required=bool(payload.get("required", False)),
            default_value=payload.get("defaultValue"),
            transform=ColumnTransform.from_payload(payload.get("transform")),
        )


class TemplateMapper:
    """
    Maps raw CSV rows (header -> text) to named fields using column
    definitions. Without definitions the raw row is returned unchanged.
    """

    def __init__(self, columns: Sequence[ColumnDefinition] = ()) -> None:
        self._columns = tuple(columns)

    @classmethod
    def from_column_mapping(cls, column_mapping: Mapping[str, Any] | None) -> "TemplateMapper":
        if not column_mapping or not column_mapping.get("columns"):
            return cls()
        return cls(ColumnDefinition.from_payload(column) for column in column_mapping["columns"])

    @property
    def columns(self) -> tuple[ColumnDefinition, ...]:
        return self._columns

    def transform_row(self, raw_row: Mapping[str, Any]) -> dict[str, Any]:
        if not self._columns:
            return dict(raw_row)

        lookup = {normalize_header(str(header)): header for header in raw_row if header is not None}
        normalized: dict[str, Any] = {}
        for column in self._columns:
            header = column.csv_header
            if header not in raw_row:
                header = lookup.get(normalize_header(header), header)
            value = raw_row.get(header)

            if value is None or value == "":
                normalized[column.field_name] = column.default_value or None
                continue
            normalized[column.field_name] = self._transform_value(column, value)
        return normalized

    def _transform_value(self, column: ColumnDefinition, value: Any) -> Any:
        transform = column.transform
        text = str(value)
        if transform.trim:
            text = text.strip()

        if column.data_type == "date":
            return self._parse_date(text, transform.date_format or DEFAULT_DATE_FORMAT)
        if column.data_type == "number":
            return self._parse_number(text, remove_commas=transform.remove_commas)
        if column.data_type == "category":
            return self._map_categories(text, transform.category_mapping)
        if column.data_type == "boolean":
            return self._parse_boolean(text, transform.boolean_values)

        if transform.max_length is not None and len(text) > transform.max_length:
            return text[: transform.max_length]
        return text

    @staticmethod
    def _parse_date(text: str, pattern: str) -> str:
        try:
            return datetime.strptime(text.strip(), to_strptime_format(pattern)).date().isoformat()
        except ValueError:
            return text

    @staticmethod
    def _parse_number(text: str, *, remove_commas: bool) -> float | str:
        candidate = text.replace(",", "") if remove_commas else text
        try:
            number = float(candidate)
        except ValueError:
            return text
        return number if math.isfinite(number) else text

    @staticmethod
    def _map_categories(text: str, mapping: Mapping[str, str]) -> str:
        parts = [part.strip() for part in text.split(",") if part.strip()]
        return ",".join(mapping.get(part) or part.lower() for part in parts)

    @staticmethod
    def _parse_boolean(text: str, boolean_values: Mapping[str, Sequence[str]]) -> bool | str:
        lowered = text.strip().lower()
        if lowered in boolean_values.get("true", ("true",)):
            return True
        if lowered in boolean_values.get("false", ("false",)):
            return False
        return text
