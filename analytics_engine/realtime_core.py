"""Real-time analytics core: ingestion, snapshots, alerting and push updates"""

from typing import Any, Callable, Dict, List, Optional, Union
from datetime import datetime, timedelta
import structlog

from .alert_manager import AlertManager
from .config import settings
from .metric_registry import MetricRegistry, default_metric_definitions
from .metrics import record_data_point
from .models import (
    Alert, AnalyticsSnapshot, MetricDataPoint, MetricDefinition, TimeFrame, parse_time_frame,
)
from .scheduler import DebouncedTask, PeriodicTask
from .snapshot_calculator import SnapshotCalculator
from .subscriptions import SnapshotCallback, SubscriptionDispatcher
from .time_series import TimeSeriesStore
from .utils import utcnow

logger = structlog.get_logger(__name__)


class RealTimeAnalyticsEngine:
    """Owns metric state and the two timers that push snapshots to subscribers.

    The periodic tick runs retention cleanup and broadcasts a snapshot for the
    default time frame. Ingesting a real-time metric while the engine runs
    schedules a debounced broadcast for the finer real-time frame.
    """

    def __init__(
        self,
        max_points: Optional[int] = None,
        retention: Optional[timedelta] = None,
        update_interval: Optional[float] = None,
        debounce: Optional[float] = None,
        default_time_frame: Union[str, TimeFrame, None] = None,
        realtime_time_frame: Union[str, TimeFrame, None] = None,
        clock: Callable[[], datetime] = utcnow,
        register_defaults: bool = False,
    ):
        self.clock = clock
        self.retention = retention if retention is not None else timedelta(hours=settings.retention_hours)
        self.default_time_frame = parse_time_frame(default_time_frame or settings.default_time_frame)
        self.realtime_time_frame = parse_time_frame(realtime_time_frame or settings.realtime_time_frame)

        self.registry = MetricRegistry()
        self.store = TimeSeriesStore(max_points=max_points, clock=clock)
        self.alert_manager = AlertManager(clock=clock)
        self.calculator = SnapshotCalculator(self.registry, self.store, self.alert_manager, clock=clock)
        self.dispatcher = SubscriptionDispatcher()

        interval = update_interval if update_interval is not None else settings.update_interval_seconds
        delay = debounce if debounce is not None else settings.debounce_ms / 1000
        self._ticker = PeriodicTask(interval, self._tick, name="analytics-tick")
        self._realtime_push = DebouncedTask(delay, self._push_realtime, name="analytics-realtime-push")

        self.running = False
        self.events_processed = 0

        if register_defaults:
            for definition in default_metric_definitions():
                self.register_metric(definition)

    # Metric registration and ingestion

    def register_metric(self, definition: MetricDefinition):
        self.registry.register(definition)
        self.store.create_series(definition.id)

    def get_metrics(self) -> List[MetricDefinition]:
        return self.registry.all()

    def add_data_point(self, metric_id: str, point: MetricDataPoint) -> Optional[Alert]:
        """Ingest one point. Raises UnknownMetricError for unregistered metrics."""
        definition = self.registry.get(metric_id)

        dropped = self.store.append(metric_id, point)
        self.events_processed += 1
        record_data_point(metric_id)
        if dropped:
            logger.debug("Series capped", metric_id=metric_id, dropped=dropped)

        alert = self.alert_manager.evaluate(definition, point)

        if definition.is_real_time and self.running:
            self._realtime_push.trigger()

        return alert

    def get_window(
        self,
        metric_id: str,
        time_frame: Union[str, TimeFrame],
        periods_back: int = 0,
    ) -> List[MetricDataPoint]:
        self.registry.get(metric_id)
        return self.store.get_window(metric_id, time_frame, periods_back)

    def cleanup(self, retention: Optional[timedelta] = None) -> int:
        """Apply the retention window to every series and to resolved alerts"""
        if retention is None:
            retention = self.retention
        now = self.clock()
        removed = self.store.cleanup(retention, now=now)
        self.alert_manager.cleanup(now - retention)
        return removed

    # Snapshots and alerts

    def get_snapshot(self, time_frame: Union[str, TimeFrame, None] = None) -> AnalyticsSnapshot:
        return self.calculator.get_snapshot(time_frame or self.default_time_frame)

    def get_active_alerts(self) -> List[Alert]:
        return self.alert_manager.get_active_alerts()

    def acknowledge_alert(self, alert_id: str) -> bool:
        return self.alert_manager.acknowledge_alert(alert_id)

    def resolve_alert(self, alert_id: str) -> bool:
        return self.alert_manager.resolve_alert(alert_id)

    # Subscriptions and lifecycle

    def subscribe(self, subscriber_id: str, callback: SnapshotCallback):
        self.dispatcher.subscribe(subscriber_id, callback)

    def unsubscribe(self, subscriber_id: str) -> bool:
        return self.dispatcher.unsubscribe(subscriber_id)

    async def start(self):
        """Start the periodic tick on the running event loop"""
        if self.running:
            return
        self.running = True
        self._ticker.start()
        logger.info("Analytics engine started",
                    interval=self._ticker.interval, metrics=len(self.registry))

    async def stop(self):
        """Cancel the tick and any pending real-time push. Safe to call repeatedly."""
        was_running = self.running
        self.running = False
        self._realtime_push.cancel()
        await self._ticker.stop()
        self.dispatcher.cancel_pending()
        if was_running:
            logger.info("Analytics engine stopped")

    def _tick(self):
        self.cleanup()
        if not self.dispatcher.has_subscribers():
            return
        self.dispatcher.broadcast(self.get_snapshot(self.default_time_frame))

    def _push_realtime(self):
        if not self.running or not self.dispatcher.has_subscribers():
            return
        self.dispatcher.broadcast(self.get_snapshot(self.realtime_time_frame))

    def health_check(self) -> Dict[str, Any]:
        return {
            "status": "healthy" if self.running else "stopped",
            "metrics": len(self.registry),
            "events_processed": self.events_processed,
            "stored_points": self.store.total_points(),
            "active_alerts": len(self.get_active_alerts()),
            "subscribers": len(self.dispatcher.subscribers),
        }


def create_realtime_analytics_engine(**kwargs) -> RealTimeAnalyticsEngine:
    """Engine preloaded with the stock dashboard metrics"""
    kwargs.setdefault("register_defaults", True)
    return RealTimeAnalyticsEngine(**kwargs)
