"""
app/schemas/submission.py

Inbound payload and response schemas for submissions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SubmissionCreate(BaseModel):
    """
    Payload for a direct submission. ``reportedAt`` stays loosely typed so
    the service can report unparseable dates with its own error code.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    reported_at: datetime | str = Field(..., alias="reportedAt")
    value: Any = None
    evidence: str | None = None
    disaggregation_key: str | None = Field(default=None, alias="disaggregationKey")


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    indicator_id: UUID
    reported_at: datetime
    value: str
    category_value: str | None = None
    disaggregation_key: str = ""
    evidence: str | None = None
    created_by_user_id: str | None = None
    source_import_job_id: UUID | None = None
    is_anomaly: bool = False
    anomaly_reason: str | None = None
    anomaly_status: str | None = None
    anomaly_reviewed_by: str | None = None
    anomaly_reviewed_at: datetime | None = None
    anomaly_notes: str | None = None
