"""
app/domain/categorical.py

Typed category definitions, configuration and statistics results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class ReportingFrequency:
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"

    ALL = (DAILY, WEEKLY, MONTHLY, QUARTERLY, YEARLY)


@dataclass(frozen=True)
class CategoryDefinition:
    id: str
    label: str
    color: str | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id, "label": self.label}
        if self.color:
            payload["color"] = self.color
        if self.description:
            payload["description"] = self.description
        return payload


@dataclass(frozen=True)
class DisaggregationDimension:
    key: str
    label: str
    values: tuple[str, ...]
    required: bool


@dataclass(frozen=True)
class CategoryConfig:
    """
    ``required`` stays None when unset so callers can apply their own
    default (direct submissions treat it as optional, imports as required).
    """

    allow_multiple: bool = False
    max_selections: float | None = None
    required: bool | None = None
    allow_other: bool = False
    disaggregation_dimensions: tuple[DisaggregationDimension, ...] = ()
    reporting_frequency: str | None = None
    expected_reporting_entities: float | None = None


@dataclass(frozen=True)
class CategoryStats:
    category_id: str
    label: str
    count: int
    percentage: float


@dataclass(frozen=True)
class CategoryTrend:
    current: str | None
    previous: str | None
    is_changing: bool


@dataclass(frozen=True)
class DisaggregatedCategoryStats:
    disaggregation_key: str
    disaggregation_label: str
    category_distribution: list[CategoryStats]
    total_submissions: int
    last_reported_at: datetime | None


@dataclass(frozen=True)
class EntityCompliance:
    expected: int
    received: int
    rate: float
    last_reported_at: datetime | None


@dataclass(frozen=True)
class ReportingComplianceStats:
    expected_reports: int = 0
    received_reports: int = 0
    compliance_rate: float = 0.0
    on_time_reports: int = 0
    late_reports: int = 0
    missing_reports: int = 0
    by_disaggregation: dict[str, EntityCompliance] = field(default_factory=dict)
