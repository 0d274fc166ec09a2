"""
Correlation Math Tool
Pearson correlation and the classification helpers used by the correlation engine
"""

import math
from typing import Optional, Sequence

from config import AnalyticsConfig, analytics_config
from models import ConfidenceLevel, ImpactDirection


def calculate_pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson correlation coefficient of two paired series

    r = (n*Sxy - Sx*Sy) / sqrt((n*Sxx - Sx^2) * (n*Syy - Sy^2))

    Returns 0.0 for mismatched or too-short input and when either series
    has no variance. The result is clamped to [-1, 1].
    """
    n = len(x)
    if n != len(y) or n < 2:
        return 0.0

    if max(x) == min(x) or max(y) == min(y):
        return 0.0

    sum_x = sum(x)
    sum_y = sum(y)
    sum_xy = sum(xi * yi for xi, yi in zip(x, y))
    sum_x2 = sum(xi * xi for xi in x)
    sum_y2 = sum(yi * yi for yi in y)

    var_x = n * sum_x2 - sum_x * sum_x
    var_y = n * sum_y2 - sum_y * sum_y
    if var_x <= 0 or var_y <= 0:
        return 0.0

    r = (n * sum_xy - sum_x * sum_y) / math.sqrt(var_x * var_y)
    if math.isnan(r):
        return 0.0
    return max(-1.0, min(1.0, r))


def calculate_average(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def determine_confidence(
    data_points: int,
    correlation_coefficient: float,
    config: Optional[AnalyticsConfig] = None
) -> ConfidenceLevel:
    """
    Classify how far a correlation can be trusted.

    Both the sample size and the strength must reach a tier; a strong
    coefficient on few points is always LOW.
    """
    config = config or analytics_config
    strength = abs(correlation_coefficient)

    if data_points >= config.high_confidence_points and strength >= config.high_confidence_strength:
        return ConfidenceLevel.HIGH
    if data_points >= config.medium_confidence_points and strength >= config.medium_confidence_strength:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def determine_impact_direction(
    correlation_coefficient: float,
    config: Optional[AnalyticsConfig] = None
) -> ImpactDirection:
    """Sign of the coefficient, NONE within epsilon of zero"""
    config = config or analytics_config
    if correlation_coefficient > config.direction_epsilon:
        return ImpactDirection.POSITIVE
    if correlation_coefficient < -config.direction_epsilon:
        return ImpactDirection.NEGATIVE
    return ImpactDirection.NONE


def describe_strength(
    correlation_coefficient: float,
    config: Optional[AnalyticsConfig] = None
) -> str:
    """Label for |r|: strong, moderate, weak or negligible"""
    config = config or analytics_config
    strength = abs(correlation_coefficient)

    if strength >= config.high_confidence_strength:
        return "strong"
    if strength >= config.medium_confidence_strength:
        return "moderate"
    if strength >= config.weak_correlation_strength:
        return "weak"
    return "negligible"
