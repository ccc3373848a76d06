"""
Anomaly detection for indicator submissions.
"""

from anomaly.config import (
    AnomalyConfig,
    OutlierConfig,
    OutlierMethod,
    TrendConfig,
    TrendMethod,
    history_window,
    merge_anomaly_config,
)
from anomaly.detector import (
    AnomalyAssessment,
    SeriesAnomalyDetector,
    assess_range,
    assess_series,
    detect_anomaly_for_new_value,
)

__all__ = [
    "AnomalyAssessment",
    "AnomalyConfig",
    "OutlierConfig",
    "OutlierMethod",
    "SeriesAnomalyDetector",
    "TrendConfig",
    "TrendMethod",
    "assess_range",
    "assess_series",
    "detect_anomaly_for_new_value",
    "history_window",
    "merge_anomaly_config",
]
