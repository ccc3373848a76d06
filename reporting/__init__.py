"""
Reporting cadence checks for indicator submissions.
"""

from reporting.gap_detector import (
    ReportingCadence,
    ReportingGap,
    ReportingGapDetector,
    detect_reporting_gaps,
)

__all__ = [
    "ReportingCadence",
    "ReportingGap",
    "ReportingGapDetector",
    "detect_reporting_gaps",
]
