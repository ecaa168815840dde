"""
Engagement analytics: event recording, performance and SEO metrics, reports.
"""

from .models import (
    AnalyticsEvent, EngagementWeights, EventType, PerformanceMetrics, PerformanceSample,
    Report, SEOImpact, SearchMetrics, VitalRating, VitalReading,
)
from .store import EventStore, EventStoreError, InMemoryEventStore, JsonFileEventStore
from .recorder import EngagementScorer, EventRecorder
from .aggregator import MetricsAggregator, QualityWeights, SeoWeights, VitalsBaselines, grade_for
from .reports import CSV_HEADER, ReportGenerator

__all__ = [
    'AnalyticsEvent', 'EngagementWeights', 'EventType', 'PerformanceMetrics',
    'PerformanceSample', 'Report', 'SEOImpact', 'SearchMetrics', 'VitalRating',
    'VitalReading', 'EventStore', 'EventStoreError', 'InMemoryEventStore',
    'JsonFileEventStore', 'EngagementScorer', 'EventRecorder', 'MetricsAggregator',
    'QualityWeights', 'SeoWeights', 'VitalsBaselines', 'grade_for',
    'CSV_HEADER', 'ReportGenerator',
]
