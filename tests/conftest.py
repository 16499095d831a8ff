"""
Shared fixtures for the command center tests
"""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, List, Tuple

import pytest

from command_center.handlers.base import BaseHandler, HandlerResult
from command_center.handlers.registry import HandlerRegistry, builtin_handlers
from command_center.schemas.command import RiskLevel, StructuredCommand
from command_center.services.assistant import CommandAssistant
from command_center.services.command_resolver import CommandResolver
from command_center.services.confirmation_gate import ConfirmationGate
from command_center.services.dispatcher import ExecutionDispatcher
from command_center.services.event_service import EventService
from command_center.services.history_store import HistoryStore
from command_center.services.monitoring import MonitoringController
from command_center.services.text_analyzer import TextAnalyzer

DOMAIN_MODULES = ("donations", "beneficiaries", "tasks", "messages", "reports")


class FakeClock:
    """Settable clock for TTL and trend tests"""

    def __init__(self, now: datetime = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class RecordingHandler(BaseHandler):
    """Handler that remembers every call and reports success"""

    def __init__(self, module: str, name: str = "Recording", description: str = ""):
        super().__init__(module=module, name=name, description=description)
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    async def handle(self, action: str, parameters: Dict[str, Any]) -> HandlerResult:
        self.calls.append((action, parameters))
        return HandlerResult(message=f"{self.module} {action} ok", data={"action": action})


class FailingHandler(BaseHandler):
    def __init__(self, module: str, error: Exception):
        super().__init__(module=module, name="Failing")
        self.error = error

    async def handle(self, action: str, parameters: Dict[str, Any]) -> HandlerResult:
        raise self.error


class SlowHandler(BaseHandler):
    def __init__(self, module: str, delay: float):
        super().__init__(module=module, name="Slow")
        self.delay = delay

    async def handle(self, action: str, parameters: Dict[str, Any]) -> HandlerResult:
        await asyncio.sleep(self.delay)
        return HandlerResult(message="too late")


def make_command(
    intent: str = "delete_task",
    target_module: str = "tasks",
    action_type: str = "delete",
    requires_confirmation: bool = True,
    risk_level: RiskLevel = RiskLevel.HIGH,
    **kwargs,
) -> StructuredCommand:
    return StructuredCommand(
        intent=intent,
        action_type=action_type,
        target_module=target_module,
        requires_confirmation=requires_confirmation,
        risk_level=risk_level,
        description=kwargs.pop("description", "Görevi sil"),
        **kwargs,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def handlers():
    return {module: RecordingHandler(module) for module in DOMAIN_MODULES}


@pytest.fixture
def registry(handlers):
    registry = HandlerRegistry()
    registry.include(builtin_handlers)
    for handler in handlers.values():
        registry.add(handler)
    return registry


@pytest.fixture
def events():
    return EventService()


@pytest.fixture
def history():
    return HistoryStore(capacity=50)


@pytest.fixture
def assistant(registry, history, events, clock):
    return CommandAssistant(
        analyzer=TextAnalyzer(),
        resolver=CommandResolver(),
        gate=ConfirmationGate(ttl_seconds=120, clock=clock),
        dispatcher=ExecutionDispatcher(registry=registry, timeout_seconds=1.0),
        history=history,
        monitoring=MonitoringController(
            history=history,
            events=events,
            realtime_interval=60.0,
            proactive_interval=60.0,
        ),
    )
