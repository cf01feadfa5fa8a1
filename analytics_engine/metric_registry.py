"""Metric definitions registry"""

from typing import Dict, List
import structlog

from .errors import UnknownMetricError
from .models import AggregationType, MetricDefinition, MetricThreshold

logger = structlog.get_logger(__name__)


class MetricRegistry:
    """Holds metric definitions keyed by id, in registration order"""

    def __init__(self):
        self._definitions: Dict[str, MetricDefinition] = {}

    def register(self, definition: MetricDefinition) -> bool:
        """Insert or overwrite a definition. Returns True when the id was new."""
        is_new = definition.id not in self._definitions
        self._definitions[definition.id] = definition
        logger.info("Metric registered", metric_id=definition.id, overwritten=not is_new)
        return is_new

    def get(self, metric_id: str) -> MetricDefinition:
        try:
            return self._definitions[metric_id]
        except KeyError:
            raise UnknownMetricError(metric_id) from None

    def all(self) -> List[MetricDefinition]:
        return list(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)


def default_metric_definitions() -> List[MetricDefinition]:
    """Stock marketing dashboard metrics"""
    return [
        MetricDefinition(
            id="ctr",
            name="Click-Through Rate",
            unit="%",
            threshold=MetricThreshold(warning=2.0, critical=1.0, target=3.5),
            is_real_time=True,
            aggregation=AggregationType.RATIO,
            events=["click"],
            denominator_events=["impression"],
        ),
        MetricDefinition(
            id="engagement_rate",
            name="Engagement Rate",
            unit="%",
            threshold=MetricThreshold(warning=3.0, critical=1.5, target=6.0),
            is_real_time=True,
            aggregation=AggregationType.RATIO,
            events=["like", "comment", "share", "save"],
            denominator_events=["reach"],
        ),
        MetricDefinition(
            id="conversions",
            name="Conversions",
            unit="count",
            threshold=MetricThreshold(warning=10, critical=5, target=50),
            is_real_time=True,
            aggregation=AggregationType.COUNT,
            events=["conversion"],
        ),
        MetricDefinition(
            id="revenue",
            name="Revenue",
            unit="EUR",
            threshold=MetricThreshold(warning=1000, critical=500, target=5000),
            is_real_time=False,
            aggregation=AggregationType.SUM,
            events=["purchase"],
        ),
        MetricDefinition(
            id="reach",
            name="Reach",
            unit="users",
            threshold=MetricThreshold(warning=1000, critical=500, target=10000),
            is_real_time=False,
            aggregation=AggregationType.DISTINCT,
            distinct_key="user_id",
        ),
    ]
