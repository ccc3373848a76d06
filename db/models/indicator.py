"""
db/models/indicator.py

Indicator definition read by the submission and import flows.
Indicators are owned by logframe nodes managed elsewhere.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Float, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, JSONType, TimestampMixin


class IndicatorDataType:
    NUMBER = "NUMBER"
    PERCENT = "PERCENT"
    BOOLEAN = "BOOLEAN"
    TEXT = "TEXT"
    CATEGORICAL = "CATEGORICAL"

    ALL = frozenset({NUMBER, PERCENT, BOOLEAN, TEXT, CATEGORICAL})
    NUMERIC = frozenset({NUMBER, PERCENT})


class Indicator(Base, TimestampMixin):
    __tablename__ = "indicators"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    logframe_node_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    unit: Mapped[str | None] = mapped_column(String(64), nullable=True)
    data_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=IndicatorDataType.NUMBER,
        comment="NUMBER, PERCENT, BOOLEAN, TEXT, CATEGORICAL",
    )
    baseline_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    target_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    min_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    categories: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="Category definitions for CATEGORICAL indicators",
    )
    category_config: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType,
        nullable=True,
    )
    anomaly_config: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="Partial anomaly config merged over defaults",
    )
