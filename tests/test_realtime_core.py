"""
Engine lifecycle, ingestion and push-delivery tests.
"""
import asyncio
from datetime import timedelta

import pytest

from analytics_engine.errors import UnknownMetricError
from analytics_engine.models import MetricDataPoint, TimeFrame
from analytics_engine.realtime_core import RealTimeAnalyticsEngine, create_realtime_analytics_engine
from tests.helpers import make_metric, make_point


def test_ctr_breach_yields_single_critical_alert(clock, ctr_definition):
    engine = RealTimeAnalyticsEngine(clock=clock)
    engine.register_metric(ctr_definition)
    engine.add_data_point("ctr", make_point(clock.now, value=0.5))

    alerts = engine.get_active_alerts()
    assert len(alerts) == 1
    assert alerts[0].level == "critical"


def test_reregistration_overwrites(clock, ctr_definition):
    engine = RealTimeAnalyticsEngine(clock=clock)
    engine.register_metric(ctr_definition)
    engine.add_data_point("ctr", make_point(clock.now - timedelta(minutes=1), value=3))
    engine.register_metric(ctr_definition.model_copy(update={"name": "CTR"}))

    assert len(engine.get_metrics()) == 1
    assert engine.get_metrics()[0].name == "CTR"
    assert len(engine.get_window("ctr", "1h")) == 1


def test_unknown_metric_is_rejected(clock):
    engine = RealTimeAnalyticsEngine(clock=clock)
    with pytest.raises(UnknownMetricError) as exc:
        engine.add_data_point("nope", make_point(clock.now))
    assert exc.value.metric_id == "nope"


def test_ingestion_keeps_order_and_cap(clock):
    engine = RealTimeAnalyticsEngine(max_points=10, clock=clock)
    engine.register_metric(make_metric("m"))
    for i in [5, 3, 17, 1, 9, 12, 0, 4, 8, 2, 15, 6, 11, 7]:
        engine.add_data_point("m", make_point(clock.now - timedelta(minutes=i), value=i))

    points = engine.store.points("m")
    assert len(points) == 10
    assert [p.timestamp for p in points] == sorted(p.timestamp for p in points)
    assert engine.events_processed == 14


def test_cleanup_applies_retention(clock):
    engine = RealTimeAnalyticsEngine(retention=timedelta(hours=1), clock=clock)
    engine.register_metric(make_metric("m"))
    engine.add_data_point("m", make_point(clock.now - timedelta(hours=2)))
    engine.add_data_point("m", make_point(clock.now - timedelta(minutes=2)))

    assert engine.cleanup() == 1
    assert engine.health_check()["stored_points"] == 1


def test_cleanup_with_zero_retention_drops_past_points(clock):
    engine = RealTimeAnalyticsEngine(clock=clock)
    engine.register_metric(make_metric("m"))
    engine.add_data_point("m", make_point(clock.now - timedelta(hours=2)))
    engine.add_data_point("m", make_point(clock.now))

    assert engine.cleanup(timedelta(0)) == 1
    assert engine.store.total_points() == 1


def test_default_metrics_factory():
    engine = create_realtime_analytics_engine()
    assert [m.id for m in engine.get_metrics()] == ["ctr", "engagement_rate", "conversions", "revenue", "reach"]


@pytest.mark.asyncio
async def test_start_and_stop_are_idempotent(clock):
    engine = RealTimeAnalyticsEngine(update_interval=60, clock=clock)

    await engine.stop()
    await engine.start()
    await engine.start()
    assert engine.running

    await engine.stop()
    await engine.stop()
    assert not engine.running


@pytest.mark.asyncio
async def test_periodic_tick_broadcasts_default_frame(clock):
    engine = RealTimeAnalyticsEngine(update_interval=0.01, clock=clock)
    engine.register_metric(make_metric("m"))
    received = []
    engine.subscribe("dashboard", received.append)

    await engine.start()
    await asyncio.sleep(0.1)
    await engine.stop()

    assert received
    assert all(s.time_frame == TimeFrame.ONE_HOUR for s in received)
    assert "m" in received[0].metrics


@pytest.mark.asyncio
async def test_tick_without_subscribers_still_cleans_up(clock):
    engine = RealTimeAnalyticsEngine(update_interval=0.01, retention=timedelta(hours=1), clock=clock)
    engine.register_metric(make_metric("m"))
    engine.add_data_point("m", make_point(clock.now - timedelta(hours=3)))

    await engine.start()
    await asyncio.sleep(0.05)
    await engine.stop()

    assert engine.store.total_points() == 0


@pytest.mark.asyncio
async def test_realtime_ingestion_burst_coalesces_into_one_push(clock):
    engine = RealTimeAnalyticsEngine(update_interval=60, debounce=0.02, clock=clock)
    engine.register_metric(make_metric("clicks", real_time=True))
    received = []
    engine.subscribe("live", received.append)

    await engine.start()
    for i in range(5):
        engine.add_data_point("clicks", make_point(clock.now - timedelta(seconds=i)))
    await asyncio.sleep(0.1)
    await engine.stop()

    assert len(received) == 1
    assert received[0].time_frame == TimeFrame.FIVE_MINUTES


@pytest.mark.asyncio
async def test_non_realtime_metric_does_not_push(clock):
    engine = RealTimeAnalyticsEngine(update_interval=60, debounce=0.01, clock=clock)
    engine.register_metric(make_metric("revenue"))
    received = []
    engine.subscribe("live", received.append)

    await engine.start()
    engine.add_data_point("revenue", make_point(clock.now))
    await asyncio.sleep(0.05)
    await engine.stop()

    assert received == []


@pytest.mark.asyncio
async def test_stop_cancels_pending_push(clock):
    engine = RealTimeAnalyticsEngine(update_interval=60, debounce=0.05, clock=clock)
    engine.register_metric(make_metric("clicks", real_time=True))
    received = []
    engine.subscribe("live", received.append)

    await engine.start()
    engine.add_data_point("clicks", make_point(clock.now))
    await engine.stop()
    await asyncio.sleep(0.1)

    assert received == []


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_block_others(clock):
    engine = RealTimeAnalyticsEngine(update_interval=0.01, clock=clock)
    engine.register_metric(make_metric("m"))

    def broken(snapshot):
        raise RuntimeError("consumer crashed")

    async def broken_async(snapshot):
        raise RuntimeError("async consumer crashed")

    received = []
    engine.subscribe("broken", broken)
    engine.subscribe("broken-async", broken_async)
    engine.subscribe("healthy", received.append)

    await engine.start()
    await asyncio.sleep(0.05)
    await engine.stop()

    assert received


@pytest.mark.asyncio
async def test_async_subscriber_receives_snapshot(clock):
    engine = RealTimeAnalyticsEngine(update_interval=60, clock=clock)
    engine.register_metric(make_metric("m"))
    received = []

    async def consumer(snapshot):
        received.append(snapshot)

    engine.subscribe("async", consumer)
    assert engine.dispatcher.broadcast(engine.get_snapshot()) == 1
    await engine.dispatcher.drain()

    assert len(received) == 1


def test_unsubscribe_stops_delivery(clock):
    engine = RealTimeAnalyticsEngine(clock=clock)
    received = []
    engine.subscribe("a", received.append)

    assert engine.unsubscribe("a")
    assert not engine.unsubscribe("a")
    assert engine.dispatcher.broadcast(engine.get_snapshot()) == 0
    assert received == []


def test_data_point_accepts_aware_timestamps(clock):
    point = MetricDataPoint.model_validate({"timestamp": "2024-03-04T13:00:00+01:00", "value": 1})
    assert point.timestamp == clock.now
    assert point.timestamp.tzinfo is None
