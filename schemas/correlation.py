"""
Correlation Schemas
Pydantic models for medication/metric correlation results
"""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict

from models import ConfidenceLevel, ImpactDirection, MetricType


class CorrelationAnalysis(BaseModel):
    """Freshly computed correlation between a medication and a metric"""
    user_id: int
    medication_id: int
    medication_name: str
    metric: MetricType
    correlation_coefficient: float = Field(..., ge=-1, le=1)
    impact_direction: ImpactDirection
    confidence_level: ConfidenceLevel
    data_points: int
    observations: List[str] = Field(..., min_length=1)
    sample_period_days: int


class CorrelationInsight(BaseModel):
    """Persisted correlation result, enriched for display"""
    id: int
    user_id: int
    medication_id: int
    medication_name: Optional[str] = None
    metric: MetricType
    correlation_coefficient: float = Field(..., ge=-1, le=1)
    impact_direction: ImpactDirection
    confidence_level: ConfidenceLevel
    data_points: int
    observations: List[str] = Field(default_factory=list)
    sample_period_days: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
