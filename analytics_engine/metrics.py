from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Analytics engine metrics
data_points_ingested_total = Counter('analytics_data_points_ingested_total', 'Total data points ingested', ['metric_id'])
alerts_raised_total = Counter('analytics_alerts_raised_total', 'Threshold alerts raised', ['level'])
snapshot_duration_seconds = Histogram('analytics_snapshot_duration_seconds', 'Snapshot computation duration', ['time_frame'])
subscriber_deliveries_total = Counter('analytics_subscriber_deliveries_total', 'Snapshot deliveries to subscribers', ['status'])
active_subscribers = Gauge('analytics_active_subscribers', 'Number of registered snapshot subscribers')
trend_analyses_total = Counter('analytics_trend_analyses_total', 'Trend analyses performed', ['outcome'])
trend_alerts_total = Counter('analytics_trend_alerts_total', 'Trend alerts generated', ['alert_type'])

def record_data_point(metric_id: str):
    """Record an ingested data point"""
    data_points_ingested_total.labels(metric_id=metric_id).inc()

def record_alert(level: str):
    alerts_raised_total.labels(level=level).inc()

def record_snapshot(time_frame: str, duration: float):
    """Record snapshot computation time"""
    snapshot_duration_seconds.labels(time_frame=time_frame).observe(duration)

def record_delivery(status: str):
    subscriber_deliveries_total.labels(status=status).inc()

def update_subscribers(count: int):
    active_subscribers.set(count)

def record_trend_analysis(outcome: str):
    """Record a trend analysis outcome (accepted, filtered, failed)"""
    trend_analyses_total.labels(outcome=outcome).inc()

def record_trend_alert(alert_type: str):
    trend_alerts_total.labels(alert_type=alert_type).inc()

async def metrics_endpoint():
    """Prometheus metrics endpoint"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
