"""
End-to-end tests for the command assistant facade
"""
import asyncio
from typing import Any, Dict, List

import pytest

from conftest import FailingHandler, RecordingHandler
from command_center.handlers.base import BaseHandler, HandlerResult
from command_center.handlers.registry import HandlerRegistry, builtin_handlers
from command_center.schemas.command import ConfirmKind, SessionContext, SubmitKind
from command_center.schemas.monitoring import MonitoringKind
from command_center.services.assistant import CANCELLED_MESSAGE
from command_center.services.dispatcher import ExecutionDispatcher


@pytest.mark.asyncio
async def test_risky_command_waits_for_confirmation(assistant, handlers, history):
    """Test the submit -> confirm -> execute -> record flow"""
    submitted = await assistant.submit_command("s1", "u1", "Yeni bağış ekle: 1000 TL")

    assert submitted.kind == SubmitKind.NEEDS_CONFIRMATION
    assert submitted.ticket is not None
    assert submitted.command.intent == "add_donation"
    assert handlers["donations"].calls == []
    assert assistant.pending_confirmation("s1") == submitted.ticket

    confirmed = await assistant.confirm("s1", submitted.ticket.id)

    assert confirmed.kind == ConfirmKind.EXECUTED
    assert confirmed.result.success
    action, parameters = handlers["donations"].calls[0]
    assert action == "create"
    assert parameters["amount"] == {"amount": 1000.0, "currency": "TL"}
    assert parameters["acting_user"] == "u1"

    entries = assistant.get_history(user_id="u1")
    assert len(entries) == 1
    assert entries[0].command == "yeni bağış ekle: 1000 tl"
    assert entries[0].pattern == "donations.create"
    assert entries[0].success
    assert entries[0].session_id == "s1"


@pytest.mark.asyncio
async def test_rejected_confirmation_runs_nothing(assistant, handlers):
    submitted = await assistant.submit_command("s1", "u1", "Yeni bağış ekle: 1000 TL")

    rejected = await assistant.confirm("s1", submitted.ticket.id, accept=False)

    assert rejected.kind == ConfirmKind.CANCELLED
    assert rejected.result.success
    assert rejected.result.message == CANCELLED_MESSAGE
    assert handlers["donations"].calls == []
    assert assistant.get_history() == []


@pytest.mark.asyncio
async def test_safe_command_runs_immediately(assistant, handlers):
    submitted = await assistant.submit_command("s1", "u1", "Bağışları listele")

    assert submitted.kind == SubmitKind.RESOLVED
    assert submitted.result.success
    assert handlers["donations"].calls[0][0] == "list"
    assert assistant.get_analytics(user_id="u1").total_commands == 1


@pytest.mark.asyncio
async def test_help_lists_commands(assistant):
    submitted = await assistant.submit_command("s1", "u1", "Yardım")

    assert submitted.kind == SubmitKind.RESOLVED
    intents = [command["intent"] for command in submitted.result.data["commands"]]
    assert "add_donation" in intents
    assert "help" not in intents


@pytest.mark.asyncio
async def test_unrecognized_text(assistant, history):
    submitted = await assistant.submit_command("s1", "u1", "asdkjasd")

    assert submitted.kind == SubmitKind.UNRECOGNIZED
    assert submitted.suggestions
    assert submitted.result is None
    assert len(history) == 0


@pytest.mark.asyncio
async def test_blank_text_is_rejected(assistant):
    submitted = await assistant.submit_command("s1", "u1", "   ")

    assert submitted.kind == SubmitKind.UNRECOGNIZED
    assert submitted.message == "Input cannot be empty"


@pytest.mark.asyncio
async def test_missing_amount_asks_for_clarification(assistant, history):
    submitted = await assistant.submit_command("s1", "u1", "Yeni bağış ekle")

    assert submitted.kind == SubmitKind.NEEDS_CLARIFICATION
    assert submitted.missing_slots == ["amount"]
    assert "amount" in submitted.message
    assert len(history) == 0


@pytest.mark.asyncio
async def test_new_submission_supersedes_pending_ticket(assistant, handlers):
    first = await assistant.submit_command("s1", "u1", "Yeni bağış ekle: 1000 TL")
    await assistant.submit_command("s1", "u1", "Bağışları listele")

    stale = await assistant.confirm("s1", first.ticket.id)

    assert stale.kind == ConfirmKind.NO_MATCH
    assert [call[0] for call in handlers["donations"].calls] == ["list"]


@pytest.mark.asyncio
async def test_late_confirmation_expires(assistant, clock, handlers):
    submitted = await assistant.submit_command("s1", "u1", "Yeni bağış ekle: 1000 TL")
    clock.advance(121)

    late = await assistant.confirm("s1", submitted.ticket.id)
    again = await assistant.confirm("s1", submitted.ticket.id)

    assert late.kind == ConfirmKind.EXPIRED
    assert again.kind == ConfirmKind.NO_MATCH
    assert handlers["donations"].calls == []


@pytest.mark.asyncio
async def test_ticket_cannot_be_confirmed_from_another_session(assistant, handlers):
    submitted = await assistant.submit_command("s1", "u1", "Yeni bağış ekle: 1000 TL")

    other = await assistant.confirm("s2", submitted.ticket.id)

    assert other.kind == ConfirmKind.NO_MATCH
    assert assistant.pending_confirmation("s1") is not None


@pytest.mark.asyncio
async def test_unsupported_module_is_recorded_as_failure(assistant, history):
    registry = HandlerRegistry()
    registry.include(builtin_handlers)
    registry.add(RecordingHandler("donations"))
    assistant.dispatcher = ExecutionDispatcher(registry=registry)

    submitted = await assistant.submit_command("s1", "u1", "0532 123 45 67 numarasına SMS gönder")
    confirmed = await assistant.confirm("s1", submitted.ticket.id)

    assert confirmed.kind == ConfirmKind.EXECUTED
    assert not confirmed.result.success
    assert confirmed.result.message == "unsupported module: messages"
    assert history.entries()[0].success is False


@pytest.mark.asyncio
async def test_context_defaults_reach_handler(assistant, handlers):
    context = SessionContext(acting_user="Operatör", defaults={"donor": "Anonim"})
    submitted = await assistant.submit_command("s1", "u1", "Yeni bağış ekle: 250 TL", context)
    await assistant.confirm("s1", submitted.ticket.id)

    parameters = handlers["donations"].calls[0][1]
    assert parameters["donor"] == "Anonim"
    assert parameters["acting_user"] == "Operatör"


@pytest.mark.asyncio
async def test_suggestions_prefer_most_used(assistant):
    await assistant.submit_command("s1", "u1", "Bağışları listele")

    suggestions = assistant.suggest_commands("bağış", user_id="u1")

    assert suggestions[0] == "bağışları listele"
    assert "Bağışları listele" not in suggestions
    assert all("bağış" in suggestion.lower() for suggestion in suggestions)


def test_suggestions_are_capped(assistant):
    assert len(assistant.suggest_commands("")) == assistant.max_suggestions


@pytest.mark.asyncio
async def test_history_search_and_scope(assistant):
    await assistant.submit_command("s1", "u1", "Bağışları listele")
    await assistant.submit_command("s2", "u1", "Görevleri listele")
    await assistant.submit_command("s3", "u2", "Yardım")

    assert len(assistant.get_history(user_id="u1")) == 2
    assert [e.command for e in assistant.get_history(user_id="u1", session_id="s2")] == ["görevleri listele"]
    assert [e.command for e in assistant.get_history(search="yardım")] == ["yardım"]
    assert assistant.get_analytics(user_id="u2").success_rate == 1.0


@pytest.mark.asyncio
async def test_monitoring_through_facade(assistant):
    assert await assistant.start_monitoring("u1", MonitoringKind.PROACTIVE) is True
    assert [session.kind for session in assistant.monitoring_status("u1")] == [MonitoringKind.PROACTIVE]
    assert await assistant.stop_monitoring("u1", MonitoringKind.PROACTIVE) is True
    assert assistant.monitoring_status("u1") == []


class TrackingHandler(BaseHandler):
    """Logs when each call starts and ends, pausing in between"""

    def __init__(self, module: str, log: List[str], delay: float = 0.05):
        super().__init__(module=module, name="Tracking")
        self.log = log
        self.delay = delay

    async def handle(self, action: str, parameters: Dict[str, Any]) -> HandlerResult:
        self.log.append("start")
        await asyncio.sleep(self.delay)
        self.log.append("end")
        return HandlerResult(message="ok")


def use_handlers(assistant, *handlers):
    registry = HandlerRegistry()
    registry.include(builtin_handlers)
    for handler in handlers:
        registry.add(handler)
    assistant.dispatcher = ExecutionDispatcher(registry=registry, timeout_seconds=1.0)


@pytest.mark.asyncio
async def test_ticket_cannot_be_confirmed_by_another_user(assistant, handlers):
    submitted = await assistant.submit_command("s1", "alice", "Yeni bağış ekle: 1000 TL")

    hijacked = await assistant.confirm("s1", submitted.ticket.id, user_id="mallory")
    rejected = await assistant.confirm("s1", submitted.ticket.id, accept=False, user_id="mallory")

    assert hijacked.kind == ConfirmKind.NO_MATCH
    assert rejected.kind == ConfirmKind.NO_MATCH
    assert handlers["donations"].calls == []
    assert assistant.pending_confirmation("s1") == submitted.ticket

    confirmed = await assistant.confirm("s1", submitted.ticket.id, user_id="alice")
    assert confirmed.kind == ConfirmKind.EXECUTED
    assert handlers["donations"].calls[0][1]["acting_user"] == "alice"


@pytest.mark.asyncio
async def test_internal_confirm_error_does_not_claim_execution(assistant, handlers):
    submitted = await assistant.submit_command("s1", "u1", "Yeni bağış ekle: 1000 TL")

    def broken_accept(*args, **kwargs):
        raise RuntimeError("gate unavailable")

    assistant.gate.accept = broken_accept
    answered = await assistant.confirm("s1", submitted.ticket.id)

    assert answered.kind == ConfirmKind.FAILED
    assert not answered.result.success
    assert answered.message == "gate unavailable"
    assert handlers["donations"].calls == []


@pytest.mark.asyncio
async def test_same_session_submissions_do_not_interleave(assistant):
    log: List[str] = []
    use_handlers(assistant, TrackingHandler("donations", log))

    await asyncio.gather(
        assistant.submit_command("s1", "u1", "Bağışları listele"),
        assistant.submit_command("s1", "u1", "Bağışları listele"),
    )

    assert log == ["start", "end", "start", "end"]


@pytest.mark.asyncio
async def test_different_sessions_run_concurrently(assistant):
    log: List[str] = []
    use_handlers(assistant, TrackingHandler("donations", log))

    await asyncio.gather(
        assistant.submit_command("s1", "u1", "Bağışları listele"),
        assistant.submit_command("s2", "u1", "Bağışları listele"),
    )

    assert log == ["start", "start", "end", "end"]


@pytest.mark.asyncio
async def test_concurrent_sessions_lose_no_history_entries(assistant, history):
    submissions = [
        assistant.submit_command(f"s{index % 5}", "u1", "Bağışları listele")
        for index in range(20)
    ]

    results = await asyncio.gather(*submissions)

    assert all(result.result.success for result in results)
    assert len(history) == 20
    assert {entry.session_id for entry in history.entries(limit=20)} == {f"s{index}" for index in range(5)}


@pytest.mark.asyncio
async def test_session_locks_are_released(assistant):
    for index in range(500):
        await assistant.submit_command(f"s{index}", "u1", "Yardım")

    await asyncio.gather(*(assistant.submit_command(f"c{index}", "u1", "Yardım") for index in range(50)))

    assert len(assistant._session_locks) == 0


@pytest.mark.asyncio
async def test_batch_runs_every_command_in_order(assistant, handlers):
    results = await assistant.submit_batch("s1", "u1", ["Bağışları listele", "Görevleri listele"])

    assert [result.kind for result in results] == [SubmitKind.RESOLVED, SubmitKind.RESOLVED]
    assert [result.intent for result in results] == ["list_donations", "list_tasks"]
    assert [entry.command for entry in assistant.get_history()] == ["görevleri listele", "bağışları listele"]


@pytest.mark.asyncio
async def test_batch_stops_at_pending_confirmation(assistant, handlers):
    results = await assistant.submit_batch(
        "s1", "u1", ["Bağışları listele", "Yeni bağış ekle: 1000 TL", "Görevleri listele"]
    )

    assert [result.kind for result in results] == [SubmitKind.RESOLVED, SubmitKind.NEEDS_CONFIRMATION]
    assert handlers["tasks"].calls == []
    assert assistant.pending_confirmation("s1") == results[1].ticket


@pytest.mark.asyncio
async def test_batch_stops_at_first_failure(assistant, handlers):
    use_handlers(assistant, FailingHandler("donations", RuntimeError("veritabanı kapalı")), handlers["tasks"])

    results = await assistant.submit_batch(
        "s1", "u1", ["Görevleri listele", "Bağışları listele", "Görevleri listele"]
    )

    assert len(results) == 2
    assert results[0].result.success
    assert not results[1].result.success
    assert len(handlers["tasks"].calls) == 1


@pytest.mark.asyncio
async def test_batch_stops_at_unrecognized_text(assistant, handlers):
    results = await assistant.submit_batch("s1", "u1", ["asdkjasd", "Bağışları listele"])

    assert [result.kind for result in results] == [SubmitKind.UNRECOGNIZED]
    assert handlers["donations"].calls == []
