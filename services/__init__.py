"""
Services Module
Business logic layer for the AdherenceLens application
"""

from services.medication_service import MedicationService, medication_service
from services.metric_service import MetricService, metric_service
from services.adherence_service import AdherenceService, adherence_service
from services.correlation_service import CorrelationService, correlation_service
from services.analysis_service import AnalysisService, analysis_service


__all__ = [
    # Service classes
    "MedicationService",
    "MetricService",
    "AdherenceService",
    "CorrelationService",
    "AnalysisService",
    # Singleton instances
    "medication_service",
    "metric_service",
    "adherence_service",
    "correlation_service",
    "analysis_service",
]
