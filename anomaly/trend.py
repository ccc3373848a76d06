"""
anomaly/trend.py

Trend-shift checks comparing the latest window against the one before it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

from anomaly.config import TrendConfig, TrendMethod
from anomaly.statistics import format_number, mean, ols_slope

# Keeps the slope ratio finite when the previous slope is flat.
SLOPE_EPSILON = 1e-6


class BaseTrendCheck(ABC):
    """
    A trend rule over two adjacent equal-length windows. ``current`` ends with
    the value under evaluation; ``previous`` immediately precedes it.
    """

    method: str = ""

    def __init__(self, threshold: float) -> None:
        self.threshold = threshold

    @abstractmethod
    def evaluate(self, previous: np.ndarray, current: np.ndarray) -> str | None:
        raise NotImplementedError("Subclasses must implement evaluate()")


class SlopeShiftCheck(BaseTrendCheck):
    """
    Relative change in least-squares slope:

        ratio = |slope_current - slope_previous| / (|slope_previous| + 1e-6)
    """

    method = TrendMethod.SLOPE_SHIFT

    def evaluate(self, previous: np.ndarray, current: np.ndarray) -> str | None:
        previous_slope = ols_slope(previous)
        current_slope = ols_slope(current)
        ratio = abs(current_slope - previous_slope) / (abs(previous_slope) + SLOPE_EPSILON)
        if ratio < self.threshold:
            return None
        return (
            f"Trend shift (SLOPE_SHIFT): slope moved from {previous_slope:.2f} to "
            f"{current_slope:.2f} (ratio {ratio:.2f}, threshold "
            f"{format_number(self.threshold)})"
        )


class MeanShiftCheck(BaseTrendCheck):
    """
    Relative distance of the newest value from the previous window mean.
    When that mean is exactly zero the absolute difference is used instead.
    """

    method = TrendMethod.MEAN_SHIFT

    def evaluate(self, previous: np.ndarray, current: np.ndarray) -> str | None:
        previous_mean = mean(previous)
        value = float(current[-1])
        difference = abs(value - previous_mean)
        ratio = difference / abs(previous_mean) if previous_mean != 0 else difference
        if ratio < self.threshold:
            return None
        return (
            f"Trend shift (MEAN_SHIFT): value {format_number(value)} moved away from "
            f"previous mean {previous_mean:.2f} (ratio {ratio:.2f}, threshold "
            f"{format_number(self.threshold)})"
        )


_TREND_CHECKS: dict[str, type[BaseTrendCheck]] = {
    TrendMethod.SLOPE_SHIFT: SlopeShiftCheck,
    TrendMethod.MEAN_SHIFT: MeanShiftCheck,
}


def build_trend_check(config: TrendConfig) -> BaseTrendCheck:
    return _TREND_CHECKS[config.method](config.threshold)
