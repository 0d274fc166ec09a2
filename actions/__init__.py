"""
Actions Module
Rule engines that act on computed adherence data
"""

from .insights_engine import (
    InsightsEngine,
    insights_engine,
    SEVERITY_RANK,
    TIME_LABELS
)


__all__ = [
    # Insights Engine
    "InsightsEngine",
    "insights_engine",
    "SEVERITY_RANK",
    "TIME_LABELS"
]
