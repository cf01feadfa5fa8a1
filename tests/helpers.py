"""Builders shared by the test modules"""

from datetime import datetime, timedelta

from analytics_engine.models import (
    AggregationType, MetricDataPoint, MetricDefinition, MetricThreshold, TrendDataPoint, TrendRecord,
)


class FakeClock:
    """Manually advanced clock"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def make_point(timestamp: datetime, value: float = 1.0, **metadata) -> MetricDataPoint:
    return MetricDataPoint(timestamp=timestamp, value=value, metadata=metadata)


def make_metric(metric_id: str, aggregation=AggregationType.MEAN, real_time=False, **kwargs) -> MetricDefinition:
    return MetricDefinition(
        id=metric_id,
        name=metric_id.title(),
        threshold=MetricThreshold(warning=kwargs.pop("warning", -1.0), critical=kwargs.pop("critical", -2.0)),
        is_real_time=real_time,
        aggregation=aggregation,
        **kwargs,
    )


def make_trend(keyword: str, mentions, start: datetime = datetime(2024, 1, 1),
               step: timedelta = timedelta(days=1), category: str = "general", **point_kwargs) -> TrendRecord:
    points = [
        TrendDataPoint(timestamp=start + step * i, mentions=m, **point_kwargs)
        for i, m in enumerate(mentions)
    ]
    return TrendRecord(
        id=f"trend-{keyword}",
        keyword=keyword,
        topic=keyword,
        category=category,
        data_points=points,
        first_detected=points[0].timestamp if points else start,
        last_updated=points[-1].timestamp if points else start,
    )
