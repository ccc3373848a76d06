"""
app/domain/import_row.py

Per-row validation results collected during the import validate phase.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from db.models.import_job import RowValidationStatus


class IssueSeverity:
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class RowIssue:
    """
    One error or warning attached to a staged row.
    """

    field: str
    message: str
    severity: str = IssueSeverity.ERROR
    code: str | None = None
    suggestion: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "field": self.field,
            "message": self.message,
            "severity": self.severity,
        }
        if self.code:
            payload["code"] = self.code
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        return payload


@dataclass
class RowValidationResult:
    """
    ``normalized`` holds the transformed row with canonical ``value``,
    ``categoryValue`` and ``reportedAt`` filled in when they validated.
    """

    normalized: dict[str, Any]
    errors: list[RowIssue] = field(default_factory=list)
    warnings: list[RowIssue] = field(default_factory=list)
    reported_at: datetime | None = None
    disaggregation_key: str = ""

    @property
    def status(self) -> str:
        if self.errors:
            return RowValidationStatus.ERROR
        if self.warnings:
            return RowValidationStatus.WARNING
        return RowValidationStatus.VALID


@dataclass(frozen=True)
class StageSummary:
    job_id: Any
    total_rows: int


@dataclass(frozen=True)
class ValidationSummary:
    valid: int
    warnings: int
    errors: int

    @property
    def total(self) -> int:
        return self.valid + self.warnings + self.errors


@dataclass(frozen=True)
class CommitSummary:
    job_id: Any
    imported: int
    anomalies: int = 0
