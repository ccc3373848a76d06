"""
db/models/submission.py

Time-stamped indicator values with their persisted anomaly verdict.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin, UTCDateTime


class AnomalyStatus:
    DETECTED = "DETECTED"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    RESOLVED = "RESOLVED"
    FALSE_POSITIVE = "FALSE_POSITIVE"

    ALL = frozenset({DETECTED, ACKNOWLEDGED, RESOLVED, FALSE_POSITIVE})


class Submission(Base, TimestampMixin):
    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    indicator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("indicators.id", ondelete="CASCADE"),
        nullable=False,
    )
    reported_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
    )
    value: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Canonical string form of the normalized value",
    )
    category_value: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Comma-joined category ids for CATEGORICAL indicators",
    )
    disaggregation_key: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
    )
    evidence: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    source_import_job_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("import_jobs.id", ondelete="SET NULL"),
        nullable=True,
    )
    is_anomaly: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    anomaly_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    anomaly_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    anomaly_reviewed_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    anomaly_reviewed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime,
        nullable=True,
    )
    anomaly_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "indicator_id",
            "reported_at",
            "disaggregation_key",
            name="uq_submissions_indicator_reported_disaggregation",
        ),
        Index("ix_submissions_indicator_reported_at", "indicator_id", "reported_at"),
        Index("ix_submissions_source_import_job_id", "source_import_job_id"),
        Index("ix_submissions_anomaly_status", "anomaly_status"),
    )
