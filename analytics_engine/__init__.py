"""Real-time analytics and trend detection engine"""

from .errors import (
    AnalyticsEngineError, SubscriberDeliveryError, TrendAnalysisError, UnknownMetricError,
)
from .models import (
    AggregationType, Alert, AlertLevel, AnalyticsSnapshot, MetricDataPoint, MetricDefinition,
    MetricThreshold, Momentum, TimeFrame, TrendAlert, TrendAnalysis, TrendDataPoint, TrendRecord,
)
from .realtime_core import RealTimeAnalyticsEngine, create_realtime_analytics_engine
from .trend_analyzer import TrendAnalyzer
from .trend_detector import TrendDetector
from .trend_store import TrendRecordStore

__all__ = [
    "AggregationType",
    "Alert",
    "AlertLevel",
    "AnalyticsEngineError",
    "AnalyticsSnapshot",
    "MetricDataPoint",
    "MetricDefinition",
    "MetricThreshold",
    "Momentum",
    "RealTimeAnalyticsEngine",
    "SubscriberDeliveryError",
    "TimeFrame",
    "TrendAlert",
    "TrendAnalysis",
    "TrendAnalysisError",
    "TrendDataPoint",
    "TrendDetector",
    "TrendRecord",
    "TrendRecordStore",
    "UnknownMetricError",
    "TrendAnalyzer",
    "create_realtime_analytics_engine",
]
