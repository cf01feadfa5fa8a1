"""Data models for the analytics engine"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, Any, List, Optional, Union
from datetime import datetime, timedelta
from enum import Enum

from .utils import to_naive_utc


class TimeFrame(str, Enum):
    """Snapshot window widths"""
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    ONE_HOUR = "1h"
    SIX_HOURS = "6h"
    ONE_DAY = "24h"
    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"


TIME_FRAME_DURATIONS: Dict[TimeFrame, timedelta] = {
    TimeFrame.FIVE_MINUTES: timedelta(minutes=5),
    TimeFrame.FIFTEEN_MINUTES: timedelta(minutes=15),
    TimeFrame.ONE_HOUR: timedelta(hours=1),
    TimeFrame.SIX_HOURS: timedelta(hours=6),
    TimeFrame.ONE_DAY: timedelta(hours=24),
    TimeFrame.SEVEN_DAYS: timedelta(days=7),
    TimeFrame.THIRTY_DAYS: timedelta(days=30),
}


def parse_time_frame(value: Union[str, TimeFrame]) -> TimeFrame:
    """Resolve a time frame name, raising ValueError for unknown names"""
    try:
        return TimeFrame(value)
    except ValueError:
        allowed = ", ".join(tf.value for tf in TimeFrame)
        raise ValueError(f"Unknown time frame {value!r} (expected one of: {allowed})")


def frame_duration(value: Union[str, TimeFrame]) -> timedelta:
    return TIME_FRAME_DURATIONS[parse_time_frame(value)]


class AggregationType(str, Enum):
    """How a window of raw points is reduced to one value"""
    RATIO = "ratio"
    COUNT = "count"
    SUM = "sum"
    DISTINCT = "distinct"
    MEAN = "mean"


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class MetricStatus(str, Enum):
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class AlertLevel(str, Enum):
    """Alert severity levels"""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class MetricThreshold(BaseModel):
    """Lower-is-worse thresholds for a metric"""
    model_config = ConfigDict(frozen=True)

    warning: float
    critical: float
    target: Optional[float] = None


class MetricDefinition(BaseModel):
    """Registered metric definition"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    unit: str = ""
    threshold: MetricThreshold
    is_real_time: bool = False
    aggregation: AggregationType = AggregationType.MEAN
    # Event tags counted or summed; the numerator for ratio metrics
    events: List[str] = []
    denominator_events: List[str] = []
    distinct_key: str = "user_id"


class MetricDataPoint(BaseModel):
    """Single timestamped observation of a metric"""
    timestamp: datetime
    value: float
    metadata: Dict[str, Any] = {}

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @property
    def event(self) -> Optional[str]:
        return self.metadata.get("event")


class Alert(BaseModel):
    """Threshold alert raised by an ingested data point"""
    id: str
    level: AlertLevel
    metric_id: str
    message: str
    value: float
    threshold: float
    timestamp: datetime
    acknowledged: bool = False
    resolved_at: Optional[datetime] = None


class MetricSnapshot(BaseModel):
    """Current vs previous period comparison for one metric"""
    current: float = 0.0
    previous: float = 0.0
    change: float = 0.0
    change_percent: float = 0.0
    trend: TrendDirection = TrendDirection.STABLE
    status: MetricStatus = MetricStatus.GOOD


class PerformanceStats(BaseModel):
    total_events: int = 0
    throughput: float = 0.0
    processing_latency_ms: float = 0.0


class AnalyticsSnapshot(BaseModel):
    """Point-in-time view of every registered metric"""
    timestamp: datetime
    time_frame: TimeFrame
    metrics: Dict[str, MetricSnapshot] = {}
    alerts: List[Alert] = []
    performance: PerformanceStats = PerformanceStats()


class TrendCategory(str, Enum):
    TECHNOLOGY = "technology"
    BUSINESS = "business"
    MARKETING = "marketing"
    INDUSTRY = "industry"
    SOCIAL = "social"
    GENERAL = "general"


class Momentum(str, Enum):
    EMERGING = "emerging"
    RISING = "rising"
    STABLE = "stable"
    DECLINING = "declining"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Recommendation(str, Enum):
    MONITOR = "monitor"
    ACT_NOW = "act_now"
    WAIT = "wait"
    IGNORE = "ignore"


class Relationship(str, Enum):
    CAUSAL = "causal"
    RELATED = "related"
    COMPETITIVE = "competitive"
    COMPLEMENTARY = "complementary"


class TrendDataPoint(BaseModel):
    """Mention sample for a keyword"""
    timestamp: datetime
    mentions: float = 0
    engagement: float = 0.0
    sentiment: float = Field(default=0.0, ge=-1.0, le=1.0)
    sources: List[str] = []
    context: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class TrendRecord(BaseModel):
    """Per-keyword mention series"""
    id: str
    keyword: str
    topic: str
    category: TrendCategory = TrendCategory.GENERAL
    data_points: List[TrendDataPoint] = []
    first_detected: datetime
    last_updated: datetime
    is_active: bool = True
    confidence: float = Field(default=0.7, ge=0.0, le=1.0)


class TrendStatistics(BaseModel):
    total_mentions: float = 0
    avg_mentions: float = 0.0
    peak_mentions: float = 0
    avg_engagement: float = 0.0
    sentiment_score: float = 0.0
    volatility: float = 0.0
    seasonality: float = 0.0


class TrendPatterns(BaseModel):
    is_spike: bool = False
    is_sustained: bool = False
    is_recurring: bool = False
    peak_days: List[str] = []
    peak_hours: List[int] = []
    cycle_period: Optional[int] = None


class TrendPredictions(BaseModel):
    next_peak_date: Optional[datetime] = None
    expected_growth: float = 0.0
    risk_level: RiskLevel = RiskLevel.LOW
    recommendation: Recommendation = Recommendation.MONITOR


class RelatedTrend(BaseModel):
    keyword: str
    correlation: float
    relationship: Relationship


class TrendContext(BaseModel):
    trigger_events: List[str] = []
    key_influencers: List[str] = []


class TrendAnalysis(BaseModel):
    """Derived view of one trend record"""
    trend_id: str
    keyword: str
    topic: str
    category: TrendCategory = TrendCategory.GENERAL
    analysis_timestamp: datetime
    statistics: TrendStatistics
    patterns: TrendPatterns
    trend_strength: float = Field(ge=0.0, le=100.0)
    growth_rate: float
    momentum: Momentum
    velocity: float
    predictions: TrendPredictions
    related_trends: List[RelatedTrend] = []
    context: TrendContext = TrendContext()
    confidence_score: float = Field(ge=0.0, le=1.0)


class TrendAlertType(str, Enum):
    EMERGING = "emerging"
    SPIKING = "spiking"
    DECLINING = "declining"
    OPPORTUNITY = "opportunity"
    THREAT = "threat"


class Severity(str, Enum):
    """Trend alert severity levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TrendAlert(BaseModel):
    id: str
    trend_id: str
    alert_type: TrendAlertType
    severity: Severity
    message: str
    timestamp: datetime
    action_required: bool
    recommendations: List[str] = []


class TopTrend(BaseModel):
    keyword: str
    strength: float
    momentum: Momentum
    growth: float


class CategoryCount(BaseModel):
    category: str
    count: int


class TrendingSummary(BaseModel):
    timeframe: str
    total_trends: int = 0
    emerging_trends: int = 0
    rising_trends: int = 0
    top_trends: List[TopTrend] = []
    categories: List[CategoryCount] = []
    insights: List[str] = []
