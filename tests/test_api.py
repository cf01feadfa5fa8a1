"""
HTTP and WebSocket facade tests.
"""
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from analytics_engine.main import app
from analytics_engine.utils import utcnow


@pytest.fixture
def client():
    with TestClient(app) as client:
        yield client


def _point(value, **metadata):
    timestamp = utcnow() - timedelta(seconds=1)
    return {"timestamp": timestamp.isoformat(), "value": value, "metadata": metadata}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["components"]["engine"]["metrics"] == 5


def test_default_metric_definitions(client):
    body = client.get("/metrics/definitions").json()
    assert body["count"] == 5
    assert body["metrics"][0]["id"] == "ctr"


def test_register_metric(client):
    response = client.post("/metrics/definitions", json={
        "id": "bounce_rate",
        "name": "Bounce Rate",
        "threshold": {"warning": 40, "critical": 20},
    })

    assert response.status_code == 200
    assert client.get("/metrics/definitions").json()["count"] == 6


def test_breaching_point_returns_critical_alert(client):
    response = client.post("/metrics/ctr/points", json=_point(0.5))

    assert response.status_code == 200
    assert response.json()["alert"]["level"] == "critical"

    alerts = client.get("/alerts").json()
    assert alerts["count"] == 1

    alert_id = alerts["alerts"][0]["id"]
    assert client.post(f"/alerts/{alert_id}/acknowledge").status_code == 200
    assert client.get("/alerts").json()["alerts"][0]["acknowledged"]


def test_unknown_metric_returns_404(client):
    response = client.post("/metrics/bogus/points", json=_point(1.0))
    assert response.status_code == 404


def test_unknown_alert_returns_404(client):
    assert client.post("/alerts/missing/acknowledge").status_code == 404


def test_snapshot(client):
    client.post("/metrics/conversions/points", json=_point(1.0, event="conversion"))

    response = client.get("/snapshot", params={"time_frame": "15m"})

    assert response.status_code == 200
    body = response.json()
    assert body["time_frame"] == "15m"
    assert list(body["metrics"]) == ["ctr", "engagement_rate", "conversions", "revenue", "reach"]
    assert body["metrics"]["conversions"]["current"] == 1


def test_bad_time_frame_returns_400(client):
    assert client.get("/snapshot", params={"time_frame": "2h"}).status_code == 400


def test_trend_ingestion_and_detection(client):
    response = client.post("/trends/content", json=[
        {"id": 1, "created_at": utcnow().isoformat(), "title": "Brand tips"},
    ])
    assert response.json()["samples"] == 2

    trends = client.get("/trends").json()
    assert sorted(t["keyword"] for t in trends["trends"]) == ["brand", "tips"]

    filtered = client.get("/trends", params={"keywords": ["brand"]}).json()
    assert filtered["count"] == 1

    assert client.get("/trends/alerts").status_code == 200
    assert client.get("/trends/summary", params={"timeframe": "day"}).json()["total_trends"] >= 2


def test_remove_trend(client):
    client.post("/trends/content", json=[
        {"id": 1, "created_at": utcnow().isoformat(), "title": "Webinar recap"},
    ])

    assert client.delete("/trends/webinar").status_code == 200
    assert client.delete("/trends/webinar").status_code == 404
    assert [t["keyword"] for t in client.get("/trends").json()["trends"]] == ["recap"]


def test_bad_summary_timeframe_returns_400(client):
    assert client.get("/trends/summary", params={"timeframe": "decade"}).status_code == 400


def test_prometheus_metrics(client):
    client.post("/metrics/ctr/points", json=_point(3.0))

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "analytics_data_points_ingested_total" in response.text


def test_websocket_sends_initial_snapshot(client):
    with client.websocket_connect("/ws/snapshots") as websocket:
        snapshot = websocket.receive_json()

    assert set(snapshot["metrics"]) == {"ctr", "engagement_rate", "conversions", "revenue", "reach"}
    assert snapshot["time_frame"] == "1h"
