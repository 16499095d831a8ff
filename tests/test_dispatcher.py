"""
Tests for the execution dispatcher
"""
import pytest

from conftest import FailingHandler, RecordingHandler, SlowHandler, make_command
from command_center.exceptions import HandlerError
from command_center.handlers.registry import HandlerRegistry
from command_center.schemas.command import ExecutionStatus
from command_center.services.dispatcher import ExecutionDispatcher


def _dispatcher(*handlers, timeout_seconds=1.0):
    registry = HandlerRegistry()
    for handler in handlers:
        registry.add(handler)
    return ExecutionDispatcher(registry=registry, timeout_seconds=timeout_seconds)


@pytest.mark.asyncio
async def test_execute_success():
    handler = RecordingHandler("tasks")
    dispatcher = _dispatcher(handler)
    command = make_command(parameters={"assignee": "Ali"}, next_steps=["Görevleri listele"])

    result = await dispatcher.execute(command, user_id="u1")

    assert result.status == ExecutionStatus.OK
    assert result.success
    assert result.message == "tasks delete ok"
    assert result.data == {"action": "delete"}
    assert result.next_steps == ["Görevleri listele"]
    assert handler.calls == [("delete", {"assignee": "Ali"})]


@pytest.mark.asyncio
async def test_unsupported_module():
    dispatcher = _dispatcher()

    result = await dispatcher.execute(make_command(target_module="donations"))

    assert result.status == ExecutionStatus.ERROR
    assert result.message == "unsupported module: donations"


@pytest.mark.asyncio
async def test_handler_exception_becomes_error_result():
    dispatcher = _dispatcher(FailingHandler("tasks", HandlerError("tasks request failed: row locked")))

    result = await dispatcher.execute(make_command())

    assert not result.success
    assert result.message == "tasks request failed: row locked"


@pytest.mark.asyncio
async def test_handler_error_is_sanitized():
    dispatcher = _dispatcher(FailingHandler("tasks", RuntimeError("login failed password=hunter2")))

    result = await dispatcher.execute(make_command())

    assert not result.success
    assert "hunter2" not in result.message
    assert "password=[REDACTED]" in result.message


@pytest.mark.asyncio
async def test_slow_handler_times_out():
    dispatcher = _dispatcher(SlowHandler("tasks", delay=1.0), timeout_seconds=0.05)

    result = await dispatcher.execute(make_command())

    assert not result.success
    assert result.message == "tasks did not respond within 0.05 seconds"
