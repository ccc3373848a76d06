"""
anomaly/outlier.py

Point outlier checks evaluated against a trailing window of prior values.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

from anomaly.config import OutlierConfig, OutlierMethod
from anomaly.statistics import format_number, median_absolute_deviation, quartiles

# Scales MAD so the modified z-score is comparable to a standard z-score.
MAD_CONSISTENCY = 0.6745


class BaseOutlierCheck(ABC):
    """A single outlier rule: window of prior values in, reason (or None) out."""

    method: str = ""

    def __init__(self, threshold: float) -> None:
        self.threshold = threshold

    @abstractmethod
    def evaluate(self, window: np.ndarray, value: float) -> str | None:
        raise NotImplementedError("Subclasses must implement evaluate()")


class MADOutlierCheck(BaseOutlierCheck):
    """
    Modified z-score test:

        z = 0.6745 * (x - median) / MAD

    A window with zero spread (MAD == 0) never flags.
    """

    method = OutlierMethod.MAD

    def evaluate(self, window: np.ndarray, value: float) -> str | None:
        centre, mad = median_absolute_deviation(window)
        if mad <= 0:
            return None
        z_score = MAD_CONSISTENCY * (value - centre) / mad
        if abs(z_score) < self.threshold:
            return None
        return (
            f"Outlier (MAD): value {format_number(value)} deviates from median "
            f"{format_number(centre)} (modified z-score {z_score:.2f}, "
            f"threshold {format_number(self.threshold)})"
        )


class IQROutlierCheck(BaseOutlierCheck):
    """
    Tukey fences: flag values outside ``[Q1 - k*IQR, Q3 + k*IQR]``.
    A window with zero IQR never flags.
    """

    method = OutlierMethod.IQR

    def evaluate(self, window: np.ndarray, value: float) -> str | None:
        q1, q3 = quartiles(window)
        iqr = q3 - q1
        if iqr <= 0:
            return None
        lower = q1 - self.threshold * iqr
        upper = q3 + self.threshold * iqr
        if lower <= value <= upper:
            return None
        return (
            f"Outlier (IQR): value {format_number(value)} outside expected range "
            f"[{lower:.2f}, {upper:.2f}]"
        )


_OUTLIER_CHECKS: dict[str, type[BaseOutlierCheck]] = {
    OutlierMethod.MAD: MADOutlierCheck,
    OutlierMethod.IQR: IQROutlierCheck,
}


def build_outlier_check(config: OutlierConfig) -> BaseOutlierCheck:
    return _OUTLIER_CHECKS[config.method](config.threshold)
