"""
Tests for monitoring sessions and the event service
"""
import asyncio
import json
from datetime import datetime, timezone

import pytest

from conftest import FakeClock
from command_center.schemas.command import ExecutionResult
from command_center.schemas.history import HistoryEntry
from command_center.schemas.monitoring import InsightPriority, InsightType, MonitoringKind
from command_center.services.event_service import EventService
from command_center.services.monitoring import MonitoringController


def record(history, success=True, pattern="tasks.list", user_id="u1"):
    result = ExecutionResult.ok("tamam") if success else ExecutionResult.error("hata")
    history.record(HistoryEntry(command="görevleri listele", pattern=pattern, result=result, success=success, user_id=user_id))


@pytest.fixture
def received():
    return []


@pytest.fixture
def controller(history, events):
    return MonitoringController(history=history, events=events, realtime_interval=0.01, proactive_interval=0.01)


@pytest.fixture
async def subscribed(events, received):
    async def callback(event):
        received.append(event)

    events.subscribe("u1", callback)
    yield callback
    events.unsubscribe("u1", callback)


@pytest.mark.asyncio
async def test_start_is_idempotent(controller):
    assert await controller.start("u1", MonitoringKind.REALTIME) is True
    assert await controller.start("u1", MonitoringKind.REALTIME) is False
    assert controller.is_active("u1", MonitoringKind.REALTIME)
    assert len(controller.sessions("u1")) == 1

    await controller.shutdown()
    assert controller.sessions("u1") == []


@pytest.mark.asyncio
async def test_kinds_run_side_by_side(controller, subscribed, received):
    assert await controller.start("u1", MonitoringKind.REALTIME) is True
    assert await controller.start("u1", MonitoringKind.PROACTIVE) is True
    assert {session.kind for session in controller.sessions("u1")} == {MonitoringKind.REALTIME, MonitoringKind.PROACTIVE}

    assert await controller.stop("u1", MonitoringKind.REALTIME) is True

    assert not controller.is_active("u1", MonitoringKind.REALTIME)
    assert controller.is_active("u1", MonitoringKind.PROACTIVE)
    assert [session.kind for session in controller.sessions("u1")] == [MonitoringKind.PROACTIVE]

    delivered = len(received)
    await asyncio.sleep(0.05)
    assert all(json.loads(event["data"])["kind"] == "proactive" for event in received[delivered:])

    await controller.shutdown()


@pytest.mark.asyncio
async def test_stop_without_session(controller):
    assert await controller.stop("u1", MonitoringKind.PROACTIVE) is False


@pytest.mark.asyncio
async def test_insights_have_increasing_sequence(controller, subscribed, received):
    await controller.start("u1", MonitoringKind.REALTIME)
    await controller.start("u1", MonitoringKind.REALTIME)
    await asyncio.sleep(0.1)
    await controller.stop("u1", MonitoringKind.REALTIME)

    assert received
    insights = [json.loads(event["data"]) for event in received]
    sequences = [insight["sequence"] for insight in insights]
    assert sequences == list(range(1, len(sequences) + 1))
    assert all(event["type"] == "insight" for event in received)
    assert all(insight["kind"] == "realtime" for insight in insights)
    assert received[0]["id"] == insights[0]["id"]


@pytest.mark.asyncio
async def test_no_insights_after_stop(controller, subscribed, received):
    await controller.start("u1", MonitoringKind.REALTIME)
    await asyncio.sleep(0.05)
    assert await controller.stop("u1", MonitoringKind.REALTIME) is True

    delivered = len(received)
    await asyncio.sleep(0.05)

    assert len(received) == delivered
    assert not controller.is_active("u1", MonitoringKind.REALTIME)


def test_realtime_without_history(controller):
    insights = controller.realtime_insights("u1")

    assert len(insights) == 1
    assert insights[0].type == InsightType.STATUS


def test_realtime_consecutive_failures(controller, history):
    record(history, success=True)
    for _ in range(3):
        record(history, success=False)

    insights = controller.realtime_insights("u1")

    assert insights[-1].type == InsightType.WARNING
    assert insights[-1].priority == InsightPriority.HIGH


def test_realtime_low_success_rate(controller, history):
    record(history, success=True)
    record(history, success=True)
    record(history, success=False)

    insights = controller.realtime_insights("u1")

    assert insights[-1].type == InsightType.WARNING
    assert insights[-1].priority == InsightPriority.MEDIUM


def test_realtime_healthy(controller, history):
    for _ in range(5):
        record(history, success=True)

    insights = controller.realtime_insights("u1")

    assert [insight.type for insight in insights] == [InsightType.STATUS]


def test_proactive_morning_and_frequent_pattern(history, events):
    controller = MonitoringController(
        history=history,
        events=events,
        clock=FakeClock(datetime(2026, 10, 19, 9, 15, tzinfo=timezone.utc)),
    )
    for _ in range(6):
        record(history, success=True, pattern="tasks.list")
    record(history, success=True, pattern="donations.list")

    insights = controller.proactive_insights("u1")

    assert insights[0].description == "Günlük rapor oluştur"
    assert len(insights) == 2
    assert "tasks.list" in insights[1].description


def test_proactive_quiet_hour(history, events):
    controller = MonitoringController(
        history=history,
        events=events,
        clock=FakeClock(datetime(2026, 10, 19, 14, 0, tzinfo=timezone.utc)),
    )
    assert controller.proactive_insights("u1") == []


@pytest.mark.asyncio
async def test_event_service_delivery():
    service = EventService()
    first, second = [], []

    async def broken(event):
        raise RuntimeError("client gone")

    async def collect_first(event):
        first.append(event)

    async def collect_second(event):
        second.append(event)

    service.subscribe("u1", collect_first)
    service.subscribe("u1", broken)
    service.subscribe("u1", collect_second)

    delivered = await service.publish("u1", "insight", {"title": "x"}, event_id="e1")

    assert delivered == 2
    assert first[0]["id"] == "e1"
    assert json.loads(second[0]["data"]) == {"title": "x"}
    assert await service.publish("u2", "insight", {}) == 0
    assert service.get_subscriber_count("u1") == 3
    assert service.get_subscriber_count() == 3

    service.unsubscribe("u1", broken)
    assert service.get_subscriber_count("u1") == 2
