"""Point-in-time snapshot computation"""

import time
from typing import Callable, Dict, List, Optional, Union
from datetime import datetime, timedelta
import numpy as np
import structlog

from .alert_manager import AlertManager, classify_status
from .config import settings
from .metric_registry import MetricRegistry
from .metrics import record_snapshot
from .models import (
    AggregationType, AnalyticsSnapshot, MetricDataPoint, MetricDefinition,
    MetricSnapshot, PerformanceStats, TimeFrame, TrendDirection, parse_time_frame,
)
from .time_series import TimeSeriesStore
from .utils import utcnow

logger = structlog.get_logger(__name__)


def _count_events(points: List[MetricDataPoint], events: List[str]) -> int:
    if not events:
        return len(points)
    return sum(1 for p in points if p.event in events)


def aggregate_window(definition: MetricDefinition, points: List[MetricDataPoint]) -> float:
    """Reduce a window of raw points to the metric's scalar value"""
    if definition.aggregation == AggregationType.RATIO:
        denominator = _count_events(points, definition.denominator_events)
        if denominator == 0:
            return 0.0
        return _count_events(points, definition.events) / denominator * 100

    if definition.aggregation == AggregationType.COUNT:
        return float(_count_events(points, definition.events))

    if definition.aggregation == AggregationType.SUM:
        matching = [p.value for p in points if not definition.events or p.event in definition.events]
        return float(sum(matching))

    if definition.aggregation == AggregationType.DISTINCT:
        users = {p.metadata.get(definition.distinct_key) for p in points}
        users.discard(None)
        return float(len(users))

    if not points:
        return 0.0
    return float(np.mean([p.value for p in points]))


def compare_periods(definition: MetricDefinition, current: float, previous: float) -> MetricSnapshot:
    change = current - previous
    change_percent = change / previous * 100 if previous > 0 else 0.0

    if change > 0:
        trend = TrendDirection.UP
    elif change < 0:
        trend = TrendDirection.DOWN
    else:
        trend = TrendDirection.STABLE

    return MetricSnapshot(
        current=current,
        previous=previous,
        change=change,
        change_percent=change_percent,
        trend=trend,
        status=classify_status(definition, current),
    )


class SnapshotCalculator:
    """Compute current vs previous period views of every registered metric"""

    def __init__(
        self,
        registry: MetricRegistry,
        store: TimeSeriesStore,
        alerts: AlertManager,
        throughput_window: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.registry = registry
        self.store = store
        self.alerts = alerts
        self.throughput_window = (
            throughput_window if throughput_window is not None
            else timedelta(seconds=settings.throughput_window_seconds)
        )
        self.clock = clock

    def get_snapshot(self, time_frame: Union[str, TimeFrame] = TimeFrame.ONE_HOUR) -> AnalyticsSnapshot:
        frame = parse_time_frame(time_frame)
        started = time.perf_counter()
        now = self.clock()

        metrics: Dict[str, MetricSnapshot] = {}
        for definition in self.registry.all():
            metrics[definition.id] = self._metric_snapshot(definition, frame, now)

        elapsed = time.perf_counter() - started
        record_snapshot(frame.value, elapsed)

        return AnalyticsSnapshot(
            timestamp=now,
            time_frame=frame,
            metrics=metrics,
            alerts=[a.model_copy() for a in self.alerts.get_active_alerts()],
            performance=PerformanceStats(
                total_events=self.store.total_points(),
                throughput=self._throughput(now),
                processing_latency_ms=round(elapsed * 1000, 3),
            ),
        )

    def _metric_snapshot(self, definition: MetricDefinition, frame: TimeFrame, now: datetime) -> MetricSnapshot:
        try:
            current = aggregate_window(
                definition, self.store.get_window(definition.id, frame, 0, now=now))
            previous = aggregate_window(
                definition, self.store.get_window(definition.id, frame, 1, now=now))
            return compare_periods(definition, current, previous)
        except Exception as e:
            logger.error("Metric snapshot failed", metric_id=definition.id, error=str(e))
            return MetricSnapshot()

    def _throughput(self, now: datetime) -> float:
        seconds = self.throughput_window.total_seconds()
        if seconds <= 0:
            return 0.0
        return self.store.count_since(now - self.throughput_window) / seconds
