"""Error types raised or logged by the analytics engine"""


class AnalyticsEngineError(Exception):
    """Base class for analytics engine errors"""


class UnknownMetricError(AnalyticsEngineError, KeyError):
    """Raised when a data point or window references an unregistered metric"""

    def __init__(self, metric_id: str):
        self.metric_id = metric_id
        super().__init__(metric_id)

    def __str__(self) -> str:
        return f"Unknown metric: {self.metric_id}"


class SubscriberDeliveryError(AnalyticsEngineError):
    """A subscriber callback failed while receiving a snapshot.

    Built for logging only, never propagated out of a broadcast.
    """

    def __init__(self, subscriber_id: str, cause: BaseException):
        self.subscriber_id = subscriber_id
        self.cause = cause
        super().__init__(f"Delivery to subscriber {subscriber_id} failed: {cause!r}")


class TrendAnalysisError(AnalyticsEngineError):
    """Analysis of a single trend record failed"""

    def __init__(self, trend_id: str, cause: BaseException):
        self.trend_id = trend_id
        self.cause = cause
        super().__init__(f"Trend analysis failed for {trend_id}: {cause!r}")
