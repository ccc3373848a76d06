"""
Schemas for import job upload, commit trigger and status responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ImportRowIssue(BaseModel):
    field: str
    message: str
    severity: str
    code: str | None = None
    suggestion: str | None = None


class ImportRowPreview(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    row_number: int = Field(..., ge=1)
    raw_data: dict[str, Any]
    normalized_data: dict[str, Any] | None = None
    validation_status: str
    errors: list[ImportRowIssue] = Field(default_factory=list)
    warnings: list[ImportRowIssue] = Field(default_factory=list)


class ImportValidationSummary(BaseModel):
    total_rows: int = Field(..., ge=0)
    valid_rows: int = Field(..., ge=0)
    warning_rows: int = Field(..., ge=0)
    error_rows: int = Field(..., ge=0)


class ImportUploadResponse(BaseModel):
    job_id: UUID
    status: str
    summary: ImportValidationSummary
    preview: list[ImportRowPreview] = Field(default_factory=list)


class ImportCommitAcceptedResponse(BaseModel):
    job_id: UUID
    status: str
    message: str = "Import started"


class ImportJobStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    indicator_id: UUID | None = None
    template_id: UUID | None = None
    status: str
    import_mode: str
    file_name: str
    file_size: int
    total_rows: int
    processed_rows: int
    successful_rows: int
    failed_rows: int
    warning_rows: int
    error_message: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    row_counts: dict[str, int] = Field(default_factory=dict)
