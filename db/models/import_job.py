"""
db/models/import_job.py

CSV import job and its staged rows.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, JSONType, TimestampMixin, UTCDateTime


class ImportJobStatus:
    PENDING = "PENDING"
    VALIDATING = "VALIDATING"
    VALIDATED = "VALIDATED"
    IMPORTING = "IMPORTING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    TRANSITIONS: dict[str, frozenset[str]] = {
        PENDING: frozenset({VALIDATING, FAILED, CANCELLED}),
        VALIDATING: frozenset({VALIDATED, FAILED, CANCELLED}),
        VALIDATED: frozenset({VALIDATING, IMPORTING, FAILED, CANCELLED}),
        IMPORTING: frozenset({COMPLETED, FAILED, CANCELLED}),
        COMPLETED: frozenset({CANCELLED}),
        FAILED: frozenset({CANCELLED}),
        CANCELLED: frozenset(),
    }

    @classmethod
    def can_transition(cls, current: str, target: str) -> bool:
        return target in cls.TRANSITIONS.get(current, frozenset())


class ImportMode:
    CREATE_ONLY = "CREATE_ONLY"
    UPSERT = "UPSERT"

    ALL = frozenset({CREATE_ONLY, UPSERT})


class RowValidationStatus:
    PENDING = "PENDING"
    VALID = "VALID"
    WARNING = "WARNING"
    ERROR = "ERROR"
    IMPORTED = "IMPORTED"

    COMMITTABLE = (VALID, WARNING)


class ImportJob(Base, TimestampMixin):
    __tablename__ = "import_jobs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    indicator_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("indicators.id", ondelete="CASCADE"),
        nullable=True,
    )
    template_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("import_templates.id", ondelete="SET NULL"),
        nullable=True,
    )
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=ImportJobStatus.PENDING,
    )
    import_mode: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=ImportMode.CREATE_ONLY,
    )
    file_name: Mapped[str] = mapped_column(String(512), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processed_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    successful_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    warning_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime,
        nullable=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime,
        nullable=True,
    )

    __table_args__ = (
        Index("ix_import_jobs_indicator_id", "indicator_id"),
        Index("ix_import_jobs_status", "status"),
        Index("ix_import_jobs_created_at", "created_at"),
    )


class ImportJobRow(Base, TimestampMixin):
    __tablename__ = "import_job_rows"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("import_jobs.id", ondelete="CASCADE"),
        nullable=False,
    )
    row_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="1-based file line; the first data row is 2",
    )
    raw_data: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    normalized_data: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType,
        nullable=True,
    )
    validation_status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=RowValidationStatus.PENDING,
    )
    errors: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONType, nullable=True)
    warnings: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONType, nullable=True)

    __table_args__ = (
        Index("ix_import_job_rows_job_id_row_number", "job_id", "row_number"),
        Index("ix_import_job_rows_job_id_status", "job_id", "validation_status"),
    )
