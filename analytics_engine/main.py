"""
Analytics Engine Service
Real-time metric snapshots, threshold alerts and trend detection for dashboards
"""

from typing import Any, Dict, List, Optional
from uuid import uuid4
from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import structlog

from .config import settings
from .errors import UnknownMetricError
from .metrics import metrics_endpoint
from .models import AnalyticsSnapshot, MetricDataPoint, MetricDefinition
from .realtime_core import create_realtime_analytics_engine
from .trend_detector import TrendDetector

logger = structlog.get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting Analytics Engine service")

    app.state.engine = create_realtime_analytics_engine()
    app.state.trend_detector = TrendDetector()
    await app.state.engine.start()

    logger.info("Analytics Engine service initialized")

    yield

    logger.info("Shutting down Analytics Engine service")
    await app.state.engine.stop()

app = FastAPI(
    title="Analytics Engine",
    description="Real-time analytics snapshots and trend detection",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.post("/metrics/definitions")
async def register_metric(definition: MetricDefinition):
    """Register or overwrite a metric definition"""
    app.state.engine.register_metric(definition)
    return {"status": "registered", "metric_id": definition.id}

@app.get("/metrics/definitions")
async def list_metrics():
    metrics = app.state.engine.get_metrics()
    return {"metrics": metrics, "count": len(metrics)}

@app.post("/metrics/{metric_id}/points")
async def add_data_point(metric_id: str, point: MetricDataPoint):
    """Ingest a data point for a registered metric"""
    try:
        alert = app.state.engine.add_data_point(metric_id, point)
    except UnknownMetricError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"status": "tracked", "metric_id": metric_id, "alert": alert}

@app.get("/snapshot", response_model=AnalyticsSnapshot)
async def get_snapshot(time_frame: str = Query(default=settings.default_time_frame)):
    """Get the current analytics snapshot"""
    try:
        return app.state.engine.get_snapshot(time_frame)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/alerts")
async def get_alerts(metric_id: Optional[str] = None, active_only: bool = True):
    alerts = app.state.engine.alert_manager.get_alerts(metric_id=metric_id, active_only=active_only)
    return {"alerts": alerts, "count": len(alerts)}

@app.post("/alerts/{alert_id}/acknowledge")
async def acknowledge_alert(alert_id: str):
    """Acknowledge an alert"""
    if not app.state.engine.acknowledge_alert(alert_id):
        raise HTTPException(status_code=404, detail="Alert not found")
    return {"status": "acknowledged", "alert_id": alert_id}

@app.post("/trends/content")
async def ingest_content(records: List[Dict[str, Any]]):
    """Harvest trend samples from scraped content records"""
    added = app.state.trend_detector.store.ingest_content_records(records)
    return {"status": "ingested", "samples": added, "trends": len(app.state.trend_detector.store)}

@app.get("/trends")
async def detect_trends(keywords: Optional[List[str]] = Query(default=None)):
    """Run trend detection"""
    analyses = app.state.trend_detector.detect_trends(keywords)
    return {"trends": analyses, "count": len(analyses)}

@app.get("/trends/alerts")
async def get_trend_alerts(keywords: Optional[List[str]] = Query(default=None)):
    detector = app.state.trend_detector
    alerts = detector.generate_trend_alerts(detector.detect_trends(keywords))
    return {"alerts": alerts, "count": len(alerts)}

@app.delete("/trends/{keyword}")
async def remove_trend(keyword: str):
    """Forget a keyword's trend record"""
    if not app.state.trend_detector.store.remove(keyword):
        raise HTTPException(status_code=404, detail="Trend not found")
    return {"status": "removed", "keyword": keyword}

@app.get("/trends/summary")
async def get_trending_summary(timeframe: str = "week"):
    """Get trending summary for a timeframe (day, week, month)"""
    try:
        return app.state.trend_detector.get_trending_summary(timeframe)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.websocket("/ws/snapshots")
async def snapshot_stream(websocket: WebSocket):
    """Push every broadcast snapshot to the connected client"""
    await websocket.accept()
    subscriber_id = f"ws-{uuid4()}"

    async def send_snapshot(snapshot: AnalyticsSnapshot):
        await websocket.send_json(snapshot.model_dump(mode="json"))

    app.state.engine.subscribe(subscriber_id, send_snapshot)
    try:
        await send_snapshot(app.state.engine.get_snapshot())
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Snapshot stream closed", subscriber_id=subscriber_id)
    finally:
        app.state.engine.unsubscribe(subscriber_id)

@app.get("/metrics")
async def get_prometheus_metrics():
    """Get service metrics in Prometheus format"""
    return await metrics_endpoint()

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "analytics-engine",
        "components": {
            "engine": app.state.engine.health_check(),
            "trends": app.state.trend_detector.health_check(),
        }
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
