"""Statistical trend analysis over per-keyword mention series"""

from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from datetime import datetime, timedelta
import numpy as np
import pandas as pd
import structlog

from .config import settings
from .models import (
    Momentum, RelatedTrend, Recommendation, Relationship, RiskLevel, TrendAnalysis,
    TrendContext, TrendDataPoint, TrendPatterns, TrendPredictions, TrendRecord,
    TrendStatistics,
)
from .utils import clamp, utcnow

logger = structlog.get_logger(__name__)

SPIKE_FACTOR = 3.0
SUSTAINED_FACTOR = 1.2
PEAK_FACTOR = 1.5
RISING_THRESHOLD = 10.0
DECLINING_THRESHOLD = -10.0
MIN_POINTS_SEASONALITY = 14
MIN_POINTS_RECURRING = 14
MIN_POINTS_CYCLE = 21
MIN_RECURRING_PEAKS = 3
MIN_CORRELATION_BUCKETS = 3


def classify_momentum(growth_rate: float, emerging_threshold: float = 50.0) -> Momentum:
    if growth_rate > emerging_threshold:
        return Momentum.EMERGING
    if growth_rate > RISING_THRESHOLD:
        return Momentum.RISING
    if growth_rate < DECLINING_THRESHOLD:
        return Momentum.DECLINING
    return Momentum.STABLE


def determine_relationship(keyword: str, other: str) -> Relationship:
    k1, k2 = keyword.lower(), other.lower()
    if k1 in k2 or k2 in k1:
        return Relationship.RELATED
    if "vs" in k1 or "vs" in k2:
        return Relationship.COMPETITIVE
    if "ai" in k1 and "automation" in k2:
        return Relationship.COMPLEMENTARY
    return Relationship.RELATED


def daily_mentions(points: Sequence[TrendDataPoint]) -> pd.Series:
    """Mention totals per calendar day"""
    if not points:
        return pd.Series(dtype=float)
    index = pd.DatetimeIndex([p.timestamp for p in points]).floor("D")
    values = pd.Series([float(p.mentions) for p in points], index=index)
    return values.groupby(level=0).sum()


def mention_correlation(a: Sequence[TrendDataPoint], b: Sequence[TrendDataPoint]) -> Optional[float]:
    """Pearson correlation of daily mention totals, zero-filled over the union of days.

    None when there are too few buckets or either side is constant.
    """
    joined = pd.concat(
        [daily_mentions(a).rename("a"), daily_mentions(b).rename("b")], axis=1
    ).fillna(0.0)
    if len(joined) < MIN_CORRELATION_BUCKETS:
        return None
    x = joined["a"].to_numpy()
    y = joined["b"].to_numpy()
    if np.std(x) == 0 or np.std(y) == 0:
        return None
    return float(np.corrcoef(x, y)[0, 1])


def _mean(values: np.ndarray) -> float:
    return float(values.mean()) if values.size else 0.0


def _point_frame(points: Sequence[TrendDataPoint]) -> pd.DataFrame:
    return pd.DataFrame({
        "timestamp": pd.to_datetime([p.timestamp for p in points]),
        "mentions": np.array([p.mentions for p in points], dtype=float),
    })


def _top_buckets(frame: pd.DataFrame, keys: pd.Series, limit: int = 3) -> list:
    if frame.empty:
        return []
    totals = frame["mentions"].groupby(keys, sort=False).sum()
    return list(totals.sort_values(ascending=False, kind="stable").head(limit).index)


def _seasonality(points: Sequence[TrendDataPoint]) -> float:
    if len(points) < MIN_POINTS_SEASONALITY:
        return 0.0
    weekdays = [p.timestamp.weekday() for p in points]
    totals = np.bincount(weekdays, weights=[p.mentions for p in points], minlength=7)
    avg = totals.mean()
    if avg == 0:
        return 0.0
    return round(float(totals.std() / avg), 2)


def _cycle_period(mentions: np.ndarray, avg: float) -> Optional[int]:
    if mentions.size < MIN_POINTS_CYCLE:
        return None

    peaks = []
    last = mentions.size - 1
    for i, m in enumerate(mentions):
        if (m > avg * PEAK_FACTOR
                and (i == 0 or mentions[i - 1] < m)
                and (i == last or mentions[i + 1] < m)):
            peaks.append(i)

    if len(peaks) < 2:
        return None
    return int(round(float(np.diff(peaks).mean())))


def _velocity(mentions: np.ndarray) -> float:
    if mentions.size < 3:
        return 0.0
    return float(np.diff(mentions[-3:]).mean())


def _short_term_direction(mentions: np.ndarray) -> float:
    if mentions.size < 2:
        return 0.0
    first, last = mentions[0], mentions[-1]
    return float((last - first) / first) if first > 0 else 0.0


def _median_spacing(points: Sequence[TrendDataPoint]) -> Optional[timedelta]:
    if len(points) < 2:
        return None
    gaps = [(b.timestamp - a.timestamp).total_seconds() for a, b in zip(points, points[1:])]
    median = float(np.median(gaps))
    return timedelta(seconds=median) if median > 0 else None


class TrendAnalyzer:
    """Compute statistics, patterns, momentum, predictions and confidence for a trend record"""

    def __init__(
        self,
        sustained_period: Optional[int] = None,
        emerging_threshold: Optional[float] = None,
        correlation_threshold: Optional[float] = None,
        max_related: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.sustained_period = (
            sustained_period if sustained_period is not None else settings.trend_sustained_period
        )
        self.emerging_threshold = (
            emerging_threshold if emerging_threshold is not None else settings.trend_emerging_threshold
        )
        self.correlation_threshold = (
            correlation_threshold if correlation_threshold is not None
            else settings.trend_correlation_threshold
        )
        self.max_related = max_related if max_related is not None else settings.trend_max_related
        self.clock = clock

    def analyze(self, record: TrendRecord, peers: Iterable[TrendRecord] = ()) -> TrendAnalysis:
        points = sorted(record.data_points, key=lambda dp: dp.timestamp)
        mentions = np.array([p.mentions for p in points], dtype=float)

        statistics = self.calculate_statistics(points)
        patterns = self.detect_patterns(points)
        trend_strength, growth_rate, momentum, velocity = self.calculate_trend_metrics(mentions)
        predictions = self.generate_predictions(points, patterns)
        related = self.find_related_trends(record, peers)

        return TrendAnalysis(
            trend_id=record.id,
            keyword=record.keyword,
            topic=record.topic,
            category=record.category,
            analysis_timestamp=self.clock(),
            statistics=statistics,
            patterns=patterns,
            trend_strength=trend_strength,
            growth_rate=growth_rate,
            momentum=momentum,
            velocity=velocity,
            predictions=predictions,
            related_trends=related,
            context=self.extract_context(points),
            confidence_score=self.calculate_confidence(
                statistics, patterns, trend_strength, len(points)),
        )

    def calculate_statistics(self, points: Sequence[TrendDataPoint]) -> TrendStatistics:
        if not points:
            return TrendStatistics()

        mentions = np.array([p.mentions for p in points], dtype=float)
        avg = float(mentions.mean())
        volatility = float(mentions.std() / avg) if avg > 0 else 0.0

        return TrendStatistics(
            total_mentions=float(mentions.sum()),
            avg_mentions=round(avg, 2),
            peak_mentions=float(mentions.max()),
            avg_engagement=round(float(np.mean([p.engagement for p in points])), 2),
            sentiment_score=round(float(np.mean([p.sentiment for p in points])), 2),
            volatility=round(volatility, 2),
            seasonality=_seasonality(points),
        )

    def detect_patterns(self, points: Sequence[TrendDataPoint]) -> TrendPatterns:
        if not points:
            return TrendPatterns()

        mentions = np.array([p.mentions for p in points], dtype=float)
        avg = _mean(mentions)

        recent = mentions[-min(self.sustained_period, mentions.size):]
        peaks = int((mentions > avg * PEAK_FACTOR).sum())
        frame = _point_frame(points)

        return TrendPatterns(
            is_spike=bool((mentions > avg * SPIKE_FACTOR).any()),
            is_sustained=bool(_mean(recent) > avg * SUSTAINED_FACTOR),
            is_recurring=mentions.size >= MIN_POINTS_RECURRING and peaks >= MIN_RECURRING_PEAKS,
            peak_days=[str(day) for day in _top_buckets(frame, frame["timestamp"].dt.day_name())],
            peak_hours=[int(hour) for hour in _top_buckets(frame, frame["timestamp"].dt.hour)],
            cycle_period=_cycle_period(mentions, avg),
        )

    def calculate_trend_metrics(self, mentions: np.ndarray) -> Tuple[float, float, Momentum, float]:
        """Returns (trend_strength, growth_rate, momentum, velocity)"""
        if mentions.size < 2:
            return 0.0, 0.0, Momentum.STABLE, 0.0

        mid = mentions.size // 2
        old_avg = _mean(mentions[:mid])
        new_avg = _mean(mentions[mid:])

        growth_rate = (new_avg - old_avg) / old_avg * 100 if old_avg > 0 else 0.0
        velocity = _velocity(mentions)
        momentum = classify_momentum(growth_rate, self.emerging_threshold)
        trend_strength = clamp(50 + growth_rate / 2 + velocity * 10, 0.0, 100.0)

        return float(round(trend_strength)), round(growth_rate, 2), momentum, round(velocity, 2)

    def generate_predictions(
        self, points: Sequence[TrendDataPoint], patterns: TrendPatterns
    ) -> TrendPredictions:
        mentions = np.array([p.mentions for p in points], dtype=float)
        direction = _short_term_direction(mentions[-self.sustained_period:])

        if patterns.is_spike and patterns.is_sustained:
            growth, risk, action = 25.0, RiskLevel.HIGH, Recommendation.ACT_NOW
        elif patterns.is_sustained:
            growth, risk, action = 15.0, RiskLevel.MEDIUM, Recommendation.MONITOR
        elif direction > 0:
            growth, risk, action = 10.0, RiskLevel.LOW, Recommendation.MONITOR
        else:
            growth, risk, action = -5.0, RiskLevel.LOW, Recommendation.WAIT

        next_peak = None
        if patterns.is_recurring and patterns.cycle_period:
            spacing = _median_spacing(points)
            if spacing is not None:
                next_peak = points[-1].timestamp + spacing * patterns.cycle_period

        return TrendPredictions(
            next_peak_date=next_peak,
            expected_growth=growth,
            risk_level=risk,
            recommendation=action,
        )

    def find_related_trends(self, record: TrendRecord, peers: Iterable[TrendRecord]) -> List[RelatedTrend]:
        scored: List[Tuple[float, TrendRecord]] = []
        for peer in peers:
            if peer.id == record.id or peer.category != record.category:
                continue
            correlation = mention_correlation(record.data_points, peer.data_points)
            if correlation is not None and correlation > self.correlation_threshold:
                scored.append((correlation, peer))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [
            RelatedTrend(
                keyword=peer.keyword,
                correlation=round(correlation, 3),
                relationship=determine_relationship(record.keyword, peer.keyword),
            )
            for correlation, peer in scored[:self.max_related]
        ]

    def extract_context(self, points: Sequence[TrendDataPoint]) -> TrendContext:
        triggers = [p.context or "General interest" for p in points if p.mentions > 0][:3]
        sources: Dict[str, None] = {}
        for p in points:
            for source in p.sources:
                sources.setdefault(source, None)
        return TrendContext(trigger_events=triggers, key_influencers=list(sources)[:5])

    def calculate_confidence(
        self,
        statistics: TrendStatistics,
        patterns: TrendPatterns,
        trend_strength: float,
        point_count: int,
    ) -> float:
        confidence = 0.5
        confidence += min(0.3, point_count / 100)
        confidence += clamp(trend_strength, 0.0, 100.0) / 100 * 0.2
        if patterns.is_sustained:
            confidence += 0.1
        if patterns.is_recurring:
            confidence += 0.1
        if statistics.volatility < 0.5:
            confidence += 0.1
        return clamp(confidence, 0.0, 1.0)
