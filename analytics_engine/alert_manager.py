"""Threshold alerting for ingested metric points"""

from typing import Callable, Deque, List, Optional
from datetime import datetime
from collections import deque
from uuid import uuid4
import structlog

from .config import settings
from .metrics import record_alert
from .models import Alert, AlertLevel, MetricDataPoint, MetricDefinition, MetricStatus
from .utils import utcnow

logger = structlog.get_logger(__name__)


def classify_status(definition: MetricDefinition, value: float) -> MetricStatus:
    """Lower-is-worse status of a value against the metric thresholds"""
    if value <= definition.threshold.critical:
        return MetricStatus.CRITICAL
    if value <= definition.threshold.warning:
        return MetricStatus.WARNING
    return MetricStatus.GOOD


class AlertManager:
    """Raise, acknowledge, resolve and expire metric alerts"""

    def __init__(
        self,
        max_alerts: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.clock = clock
        self.alerts: Deque[Alert] = deque(
            maxlen=max_alerts if max_alerts is not None else settings.max_alerts)

    def evaluate(self, definition: MetricDefinition, point: MetricDataPoint) -> Optional[Alert]:
        """Check one ingested point. Every breaching point yields a new alert."""
        status = classify_status(definition, point.value)

        if status == MetricStatus.GOOD:
            self._resolve_metric(definition.id, point.timestamp)
            return None

        if status == MetricStatus.CRITICAL:
            level = AlertLevel.CRITICAL
            threshold = definition.threshold.critical
        else:
            level = AlertLevel.WARNING
            threshold = definition.threshold.warning

        alert = Alert(
            id=str(uuid4()),
            level=level,
            metric_id=definition.id,
            message=(
                f"{definition.name} is {level.value}: {point.value:g}{definition.unit} "
                f"(threshold {threshold:g}{definition.unit})"
            ),
            value=point.value,
            threshold=threshold,
            timestamp=point.timestamp,
        )
        self.alerts.append(alert)
        record_alert(level.value)

        logger.info("Alert raised", alert_id=alert.id, metric_id=definition.id,
                    level=level.value, value=point.value, threshold=threshold)
        return alert

    def get_active_alerts(self) -> List[Alert]:
        return [a for a in self.alerts if a.resolved_at is None]

    def get_alerts(self, metric_id: Optional[str] = None, active_only: bool = False) -> List[Alert]:
        alerts = self.get_active_alerts() if active_only else list(self.alerts)
        if metric_id:
            alerts = [a for a in alerts if a.metric_id == metric_id]
        return alerts

    def acknowledge_alert(self, alert_id: str) -> bool:
        alert = self._find(alert_id)
        if alert is None:
            return False
        alert.acknowledged = True
        logger.info("Alert acknowledged", alert_id=alert_id)
        return True

    def resolve_alert(self, alert_id: str) -> bool:
        alert = self._find(alert_id)
        if alert is None:
            return False
        if alert.resolved_at is None:
            alert.resolved_at = self.clock()
        return True

    def cleanup(self, cutoff: datetime) -> int:
        """Forget resolved alerts resolved before the cutoff"""
        kept = [a for a in self.alerts if a.resolved_at is None or a.resolved_at >= cutoff]
        removed = len(self.alerts) - len(kept)
        if removed:
            self.alerts = deque(kept, maxlen=self.alerts.maxlen)
        return removed

    def _resolve_metric(self, metric_id: str, recovered_at: datetime):
        # A backfilled healthy point only clears alerts raised at or before it
        now = self.clock()
        for alert in self.alerts:
            if (alert.metric_id == metric_id and alert.resolved_at is None
                    and alert.timestamp <= recovered_at):
                alert.resolved_at = now
                logger.info("Alert resolved", alert_id=alert.id, metric_id=metric_id)

    def _find(self, alert_id: str) -> Optional[Alert]:
        for alert in self.alerts:
            if alert.id == alert_id:
                return alert
        return None
