"""In-memory time series storage"""

from typing import Callable, Dict, List, Optional, Union
from datetime import datetime, timedelta
import structlog

from .config import settings
from .errors import UnknownMetricError
from .models import MetricDataPoint, TimeFrame, frame_duration
from .utils import utcnow

logger = structlog.get_logger(__name__)


class TimeSeriesStore:
    """Per-metric timestamp-ordered point series, bounded by length and retention"""

    def __init__(
        self,
        max_points: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.max_points = max_points if max_points is not None else settings.max_points_per_metric
        self.clock = clock
        self._series: Dict[str, List[MetricDataPoint]] = {}

    def create_series(self, metric_id: str):
        """Create an empty series; an existing one is kept"""
        self._series.setdefault(metric_id, [])

    def append(self, metric_id: str, point: MetricDataPoint) -> int:
        """Insert a point, keep the series sorted and capped. Returns the number of points dropped."""
        series = self._get_series(metric_id)
        series.append(point)
        # Stable sort: points sharing a timestamp keep arrival order
        series.sort(key=lambda p: p.timestamp)

        overflow = len(series) - self.max_points
        if overflow > 0:
            del series[:overflow]
            return overflow
        return 0

    def points(self, metric_id: str) -> List[MetricDataPoint]:
        return list(self._get_series(metric_id))

    def get_window(
        self,
        metric_id: str,
        time_frame: Union[str, TimeFrame],
        periods_back: int = 0,
        now: Optional[datetime] = None,
    ) -> List[MetricDataPoint]:
        """Points with timestamp in [now - (k+1)*frame, now - k*frame)"""
        duration = frame_duration(time_frame)
        series = self._get_series(metric_id)
        if now is None:
            now = self.clock()

        end = now - duration * periods_back
        start = end - duration
        return [p for p in series if start <= p.timestamp < end]

    def count_since(self, since: datetime) -> int:
        """Number of points across all series at or after `since`"""
        total = 0
        for series in self._series.values():
            total += sum(1 for p in series if p.timestamp >= since)
        return total

    def total_points(self) -> int:
        return sum(len(series) for series in self._series.values())

    def cleanup(self, retention: timedelta, now: Optional[datetime] = None) -> int:
        """Drop points older than the retention window. Returns the number removed."""
        if now is None:
            now = self.clock()
        cutoff = now - retention
        removed = 0
        for metric_id, series in self._series.items():
            kept = [p for p in series if p.timestamp >= cutoff]
            removed += len(series) - len(kept)
            self._series[metric_id] = kept

        if removed:
            logger.debug("Expired data points removed", count=removed, cutoff=cutoff.isoformat())
        return removed

    def _get_series(self, metric_id: str) -> List[MetricDataPoint]:
        try:
            return self._series[metric_id]
        except KeyError:
            raise UnknownMetricError(metric_id) from None
