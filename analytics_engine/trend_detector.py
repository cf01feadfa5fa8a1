"""Trend detection: batch analysis, alerting and trending summaries"""

from typing import Callable, Deque, Dict, Iterable, List, Optional
from datetime import datetime, timedelta
from collections import Counter, deque
import numpy as np
import structlog

from .config import settings
from .errors import TrendAnalysisError
from .metrics import record_trend_analysis
from .models import (
    CategoryCount, Momentum, TopTrend, TrendAlert, TrendAnalysis, TrendingSummary,
)
from .trend_alerts import TrendAlertGenerator
from .trend_analyzer import TrendAnalyzer
from .trend_store import TrendRecordStore
from .utils import utcnow

logger = structlog.get_logger(__name__)

TIMEFRAME_DAYS = {"day": 1, "week": 7, "month": 30}
HIGH_CONFIDENCE = 0.8
STRONG_AVERAGE_GROWTH = 20


class TrendDetector:
    """Analyze stored trend records and keep a bounded history of accepted analyses"""

    def __init__(
        self,
        store: Optional[TrendRecordStore] = None,
        analyzer: Optional[TrendAnalyzer] = None,
        alert_generator: Optional[TrendAlertGenerator] = None,
        confidence_threshold: Optional[float] = None,
        history_size: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.clock = clock
        self.store = store if store is not None else TrendRecordStore()
        self.analyzer = analyzer or TrendAnalyzer(clock=clock)
        self.alert_generator = alert_generator or TrendAlertGenerator(clock=clock)
        self.confidence_threshold = (
            confidence_threshold if confidence_threshold is not None
            else settings.trend_confidence_threshold
        )
        self.history: Deque[TrendAnalysis] = deque(
            maxlen=history_size if history_size is not None else settings.trend_history_size)

    def detect_trends(self, keywords: Optional[Iterable[str]] = None) -> List[TrendAnalysis]:
        """Analyze every stored record (or only `keywords`).

        A record whose analysis fails is logged and skipped; analyses below the
        confidence threshold are dropped.
        """
        records = self.store.list(keywords)
        peers = self.store.list()
        accepted: List[TrendAnalysis] = []
        filtered = 0

        for record in records:
            try:
                analysis = self.analyzer.analyze(record, peers)
            except Exception as e:
                error = TrendAnalysisError(record.id, e)
                record_trend_analysis("failed")
                logger.error("Trend analysis failed", trend_id=record.id, error=str(error))
                continue

            if analysis.confidence_score < self.confidence_threshold:
                filtered += 1
                record_trend_analysis("filtered")
                continue

            record_trend_analysis("accepted")
            accepted.append(analysis)

        self.history.extend(accepted)
        logger.info("Trend detection completed",
                    analyzed=len(records), accepted=len(accepted), filtered=filtered)
        return accepted

    def generate_trend_alerts(self, analyses: Iterable[TrendAnalysis]) -> List[TrendAlert]:
        return self.alert_generator.generate(analyses)

    def get_trending_summary(self, timeframe: str = "week") -> TrendingSummary:
        if timeframe not in TIMEFRAME_DAYS:
            raise ValueError(f"Unknown timeframe {timeframe!r} (expected day, week or month)")

        since = self.clock() - timedelta(days=TIMEFRAME_DAYS[timeframe])
        analyses = [a for a in self.history if a.analysis_timestamp >= since]
        ranked = sorted(analyses, key=lambda a: a.trend_strength, reverse=True)

        return TrendingSummary(
            timeframe=timeframe,
            total_trends=len(analyses),
            emerging_trends=sum(1 for a in analyses if a.momentum == Momentum.EMERGING),
            rising_trends=sum(1 for a in analyses if a.momentum == Momentum.RISING),
            top_trends=[
                TopTrend(keyword=a.keyword, strength=a.trend_strength,
                         momentum=a.momentum, growth=a.growth_rate)
                for a in ranked[:10]
            ],
            categories=self._categorize(analyses),
            insights=self._insights(analyses),
        )

    @staticmethod
    def _categorize(analyses: List[TrendAnalysis]) -> List[CategoryCount]:
        counts = Counter(a.category.value for a in analyses)
        return [CategoryCount(category=c, count=n) for c, n in counts.most_common(5)]

    @staticmethod
    def _insights(analyses: List[TrendAnalysis]) -> List[str]:
        insights = []
        if not analyses:
            return insights

        emerging = sum(1 for a in analyses if a.momentum == Momentum.EMERGING)
        if emerging:
            insights.append(f"{emerging} emerging trends detected requiring immediate attention")

        confident = sum(1 for a in analyses if a.confidence_score > HIGH_CONFIDENCE)
        if confident:
            insights.append(f"{confident} trends with high confidence scores")

        avg_growth = float(np.mean([a.growth_rate for a in analyses]))
        if avg_growth > STRONG_AVERAGE_GROWTH:
            insights.append(f"Overall trend momentum is strong with {round(avg_growth)}% average growth")

        return insights

    def health_check(self) -> Dict[str, object]:
        return {
            "status": "healthy",
            "trend_records": len(self.store),
            "analyses_in_history": len(self.history),
        }
