"""
db/models/import_template.py

Column mapping templates applied to staged CSV rows.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, JSONType, TimestampMixin


class ImportTemplate(Base, TimestampMixin):
    __tablename__ = "import_templates"

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
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    column_mapping: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        comment='{"columns": [ColumnDefinition, ...]}',
    )
    created_by_user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    __table_args__ = (
        Index("ix_import_templates_indicator_default", "indicator_id", "is_default"),
    )
