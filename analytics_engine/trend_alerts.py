"""Discrete alerts derived from trend analyses"""

from typing import Callable, Dict, Iterable, List
from datetime import datetime
from uuid import uuid4
import structlog

from .metrics import record_trend_alert
from .models import Momentum, Recommendation, Severity, TrendAlert, TrendAlertType, TrendAnalysis
from .utils import utcnow

logger = structlog.get_logger(__name__)

EMERGING_MIN_STRENGTH = 70
SPIKING_MIN_STRENGTH = 80

RECOMMENDATIONS: Dict[TrendAlertType, List[str]] = {
    TrendAlertType.EMERGING: [
        "Consider creating content around this trending topic",
        "Monitor competitor response to this trend",
        "Evaluate market opportunity",
    ],
    TrendAlertType.SPIKING: [
        "Act immediately to capitalize on trending topic",
        "Prepare rapid response content",
        "Monitor social media channels",
    ],
    TrendAlertType.OPPORTUNITY: [
        "Consider content strategy around this topic",
        "Research target audience interest",
        "Evaluate competitive landscape",
    ],
}


class TrendAlertGenerator:
    """Emerging, spiking and opportunity alerts. Source analyses are left untouched."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock

    def generate(self, analyses: Iterable[TrendAnalysis]) -> List[TrendAlert]:
        alerts: List[TrendAlert] = []
        for analysis in analyses:
            if analysis.momentum == Momentum.EMERGING and analysis.trend_strength > EMERGING_MIN_STRENGTH:
                alerts.append(self._alert(
                    analysis, TrendAlertType.EMERGING, Severity.HIGH, True,
                    f'Emerging trend detected: "{analysis.keyword}" showing {analysis.growth_rate}% growth',
                ))

            if analysis.patterns.is_spike and analysis.trend_strength > SPIKING_MIN_STRENGTH:
                alerts.append(self._alert(
                    analysis, TrendAlertType.SPIKING, Severity.CRITICAL, True,
                    f'Viral spike detected: "{analysis.keyword}" experiencing rapid growth',
                ))

            if analysis.predictions.recommendation == Recommendation.ACT_NOW:
                alerts.append(self._alert(
                    analysis, TrendAlertType.OPPORTUNITY, Severity.MEDIUM, False,
                    f'Market opportunity identified: "{analysis.keyword}" trending upward',
                ))

        if alerts:
            logger.info("Trend alerts generated", count=len(alerts))
        return alerts

    def _alert(
        self,
        analysis: TrendAnalysis,
        alert_type: TrendAlertType,
        severity: Severity,
        action_required: bool,
        message: str,
    ) -> TrendAlert:
        record_trend_alert(alert_type.value)
        return TrendAlert(
            id=f"alert-{alert_type.value}-{analysis.trend_id}-{uuid4().hex[:8]}",
            trend_id=analysis.trend_id,
            alert_type=alert_type,
            severity=severity,
            message=message,
            timestamp=self.clock(),
            action_required=action_required,
            recommendations=list(RECOMMENDATIONS[alert_type]),
        )
