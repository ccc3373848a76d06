"""
app/domain package marker.
"""

from app.domain.categorical import (
    CategoryConfig,
    CategoryDefinition,
    CategoryStats,
    CategoryTrend,
    DisaggregatedCategoryStats,
    DisaggregationDimension,
    ReportingComplianceStats,
)
from app.domain.import_row import (
    CommitSummary,
    RowIssue,
    RowValidationResult,
    StageSummary,
    ValidationSummary,
)
from app.domain.submission import IndicatorStatistics, NormalizedValue, SubmissionSnapshot

__all__ = [
    "CategoryConfig",
    "CategoryDefinition",
    "CategoryStats",
    "CategoryTrend",
    "CommitSummary",
    "DisaggregatedCategoryStats",
    "DisaggregationDimension",
    "IndicatorStatistics",
    "NormalizedValue",
    "ReportingComplianceStats",
    "RowIssue",
    "RowValidationResult",
    "StageSummary",
    "SubmissionSnapshot",
    "ValidationSummary",
]
