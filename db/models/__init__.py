"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.import_job import (
    ImportJob,
    ImportJobRow,
    ImportJobStatus,
    ImportMode,
    RowValidationStatus,
)
from db.models.import_template import ImportTemplate
from db.models.indicator import Indicator, IndicatorDataType
from db.models.submission import AnomalyStatus, Submission

__all__ = [
    "AnomalyStatus",
    "ImportJob",
    "ImportJobRow",
    "ImportJobStatus",
    "ImportMode",
    "ImportTemplate",
    "Indicator",
    "IndicatorDataType",
    "RowValidationStatus",
    "Submission",
]
