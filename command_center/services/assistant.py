"""
Command Assistant - Public facade over the conversational command pipeline.

Flow for one submission:
1. Clean and validate the text
2. Analyze it (intent, entities, signals)
3. Resolve it into a structured command
4. Gate risky commands behind a confirmation ticket
5. Dispatch to the domain handler
6. Record the outcome in history

Steps 1-6 run under a per-session lock, so submissions and confirmations
of one session are serialized while different sessions interleave.
"""
from typing import Optional, List
import asyncio
import weakref
import structlog

from command_center.config import Settings
from command_center.handlers import build_handler_registry
from command_center.schemas.command import (
    CommandRequest,
    ConfirmationTicket,
    ConfirmKind,
    ConfirmResult,
    ExecutionResult,
    ResolutionKind,
    SessionContext,
    StructuredCommand,
    SubmitKind,
    SubmitResult,
)
from command_center.schemas.history import AnalyticsSnapshot, HistoryEntry
from command_center.schemas.monitoring import MonitoringKind, MonitoringSession
from command_center.services.command_resolver import CommandResolver
from command_center.services.confirmation_gate import ConfirmationGate, DecisionKind
from command_center.services.dispatcher import ExecutionDispatcher
from command_center.services.event_service import EventService
from command_center.services.history_store import HistoryStore
from command_center.services.monitoring import MonitoringController
from command_center.services.policy_service import PolicyService
from command_center.services.text_analyzer import TextAnalyzer, normalize_text

logger = structlog.get_logger()

UNRECOGNIZED_MESSAGE = "Komut anlaşılamadı, lütfen farklı bir şekilde ifade edin"
CANCELLED_MESSAGE = "Komut iptal edildi"
EXPIRED_MESSAGE = "Onay süresi doldu, komutu yeniden gönderin"
NO_MATCH_MESSAGE = "Bekleyen bir onay bulunamadı"


class CommandAssistant:
    """Entry point for clients; no method raises across this boundary"""

    def __init__(
        self,
        analyzer: TextAnalyzer,
        resolver: CommandResolver,
        gate: ConfirmationGate,
        dispatcher: ExecutionDispatcher,
        history: HistoryStore,
        monitoring: MonitoringController,
        max_input_length: int = 1000,
        max_suggestions: int = 8,
    ):
        self.analyzer = analyzer
        self.resolver = resolver
        self.gate = gate
        self.dispatcher = dispatcher
        self.history = history
        self.monitoring = monitoring
        self.max_input_length = max_input_length
        self.max_suggestions = max_suggestions
        self._session_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        # Weakly held: a lock disappears once no submission of its session holds or awaits it
        lock = self._session_locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._session_locks[session_id] = lock
        return lock

    async def submit_command(
        self,
        session_id: str,
        user_id: str,
        text: str,
        context: Optional[SessionContext] = None,
    ) -> SubmitResult:
        request = self._request(session_id, user_id, text, context)
        async with self._lock_for(session_id):
            return await self._submit_safely(request)

    async def submit_batch(
        self,
        session_id: str,
        user_id: str,
        texts: List[str],
        context: Optional[SessionContext] = None,
    ) -> List[SubmitResult]:
        """
        Submit several commands in order within one session.

        Processing stops at the first command that does not run successfully:
        a failed execution, a pending confirmation, a clarification request or
        unrecognized text. Results are returned for the commands processed.
        """
        results: List[SubmitResult] = []
        async with self._lock_for(session_id):
            for text in texts:
                result = await self._submit_safely(self._request(session_id, user_id, text, context))
                results.append(result)
                if result.kind != SubmitKind.RESOLVED or not result.result.success:
                    logger.info(
                        "Command batch stopped",
                        session_id=session_id,
                        processed=len(results),
                        total=len(texts),
                        kind=result.kind.value,
                    )
                    break
        return results

    @staticmethod
    def _request(session_id: str, user_id: str, text: str, context: Optional[SessionContext]) -> CommandRequest:
        return CommandRequest(
            raw_text=text or "",
            user_id=user_id,
            session_id=session_id,
            context=context or SessionContext(),
        )

    async def _submit_safely(self, request: CommandRequest) -> SubmitResult:
        try:
            return await self._submit(request)
        except Exception as e:
            sanitized_error = PolicyService.sanitize_error_message(e)
            logger.error(
                "Command submission failed",
                session_id=request.session_id,
                user_id=request.user_id,
                error=sanitized_error,
                exc_info=True,
            )
            return SubmitResult(kind=SubmitKind.RESOLVED, result=ExecutionResult.error(sanitized_error))

    async def _submit(self, request: CommandRequest) -> SubmitResult:
        # A new submission always supersedes a pending confirmation
        self.gate.cancel(request.session_id)

        cleaned = PolicyService.sanitize_user_input(request.raw_text, self.max_input_length)
        is_valid, reason = PolicyService.validate_user_input(cleaned)
        if not is_valid:
            logger.info("Command rejected by input validation", session_id=request.session_id, reason=reason)
            return SubmitResult(kind=SubmitKind.UNRECOGNIZED, message=reason, suggestions=self.suggest_commands(""))

        analysis = self.analyzer.analyze(cleaned)
        resolution = self.resolver.resolve(analysis, request.context, request.user_id)

        if resolution.kind == ResolutionKind.UNRECOGNIZED:
            return SubmitResult(
                kind=SubmitKind.UNRECOGNIZED,
                intent=resolution.intent,
                message=UNRECOGNIZED_MESSAGE,
                suggestions=analysis.suggestions,
            )

        if resolution.kind == ResolutionKind.NEEDS_CLARIFICATION:
            return SubmitResult(
                kind=SubmitKind.NEEDS_CLARIFICATION,
                intent=resolution.intent,
                missing_slots=resolution.missing_slots,
                message=f"Eksik bilgi: {', '.join(resolution.missing_slots)}",
                suggestions=analysis.suggestions,
            )

        command = resolution.command
        ticket = self.gate.submit(request.session_id, command, user_id=request.user_id)
        if ticket is not None:
            return SubmitResult(
                kind=SubmitKind.NEEDS_CONFIRMATION,
                intent=command.intent,
                ticket=ticket,
                command=command,
                message=f"'{command.description}' işlemi onay bekliyor",
            )

        result = await self._execute(command, request.user_id, request.session_id)
        return SubmitResult(kind=SubmitKind.RESOLVED, intent=command.intent, command=command, result=result)

    async def confirm(
        self,
        session_id: str,
        ticket_id: str,
        accept: bool = True,
        user_id: Optional[str] = None,
    ) -> ConfirmResult:
        """
        Answer the session's pending ticket. With user_id, only the user who
        submitted the command can answer it. An internal error is reported as
        'failed' with an error result.
        """
        async with self._lock_for(session_id):
            try:
                if accept:
                    decision = self.gate.accept(session_id, ticket_id, user_id=user_id)
                else:
                    decision = self.gate.reject(session_id, ticket_id, user_id=user_id)

                if decision.kind == DecisionKind.CONFIRMED:
                    ticket = decision.ticket
                    result = await self._execute(ticket.command, ticket.user_id, session_id)
                    return ConfirmResult(kind=ConfirmKind.EXECUTED, result=result)
                if decision.kind == DecisionKind.CANCELLED:
                    return ConfirmResult(
                        kind=ConfirmKind.CANCELLED,
                        result=ExecutionResult.ok(CANCELLED_MESSAGE),
                        message=CANCELLED_MESSAGE,
                    )
                if decision.kind == DecisionKind.EXPIRED:
                    return ConfirmResult(kind=ConfirmKind.EXPIRED, message=EXPIRED_MESSAGE)
                return ConfirmResult(kind=ConfirmKind.NO_MATCH, message=NO_MATCH_MESSAGE)
            except Exception as e:
                sanitized_error = PolicyService.sanitize_error_message(e)
                logger.error("Confirmation failed", session_id=session_id, ticket_id=ticket_id, error=sanitized_error, exc_info=True)
                return ConfirmResult(
                    kind=ConfirmKind.FAILED,
                    result=ExecutionResult.error(sanitized_error),
                    message=sanitized_error,
                )

    async def _execute(self, command: StructuredCommand, user_id: Optional[str], session_id: str) -> ExecutionResult:
        result = await self.dispatcher.execute(command, user_id)
        self.history.record(HistoryEntry(
            command=command.source_text or command.description,
            pattern=command.pattern,
            result=result,
            success=result.success,
            user_id=user_id,
            session_id=session_id,
        ))
        return result

    def pending_confirmation(self, session_id: str) -> Optional[ConfirmationTicket]:
        return self.gate.pending(session_id)

    def get_history(
        self,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        limit: int = 20,
        search: Optional[str] = None,
    ) -> List[HistoryEntry]:
        return self.history.entries(user_id=user_id, session_id=session_id, limit=limit, search=search)

    def get_analytics(self, user_id: Optional[str] = None, session_id: Optional[str] = None) -> AnalyticsSnapshot:
        return self.history.snapshot(user_id=user_id, session_id=session_id)

    async def start_monitoring(self, user_id: str, kind: MonitoringKind) -> bool:
        return await self.monitoring.start(user_id, kind)

    async def stop_monitoring(self, user_id: str, kind: MonitoringKind) -> bool:
        return await self.monitoring.stop(user_id, kind)

    def monitoring_status(self, user_id: str) -> List[MonitoringSession]:
        return self.monitoring.sessions(user_id)

    def suggest_commands(self, partial_text: str, user_id: Optional[str] = None) -> List[str]:
        """
        Complete a partially typed command from the user's most used
        commands first, then from catalog examples.
        """
        needle = normalize_text(partial_text or "")
        candidates: List[str] = []
        if user_id is not None:
            candidates.extend(usage.command for usage in self.history.snapshot(user_id=user_id).most_used_commands)
        for spec in self.analyzer.catalog:
            candidates.extend(spec.examples)

        suggestions: List[str] = []
        seen = set()
        for candidate in candidates:
            key = normalize_text(candidate)
            if key in seen or (needle and needle not in key):
                continue
            seen.add(key)
            suggestions.append(candidate)
            if len(suggestions) >= self.max_suggestions:
                break
        return suggestions

    async def shutdown(self) -> None:
        await self.monitoring.shutdown()


def build_assistant(settings: Settings, events: Optional[EventService] = None) -> CommandAssistant:
    """Wire the pipeline from configuration"""
    history = HistoryStore(
        capacity=settings.HISTORY_CAPACITY,
        trend_days=settings.TREND_DAYS,
        max_most_used=settings.MAX_MOST_USED,
    )
    return CommandAssistant(
        analyzer=TextAnalyzer(max_input_length=settings.MAX_INPUT_LENGTH),
        resolver=CommandResolver(
            confidence_floor=settings.INTENT_CONFIDENCE_FLOOR,
            confirmation_threshold=settings.CONFIRMATION_CONFIDENCE_THRESHOLD,
            duration_per_parameter=settings.DURATION_PER_PARAMETER_SECONDS,
        ),
        gate=ConfirmationGate(ttl_seconds=settings.CONFIRMATION_TTL_SECONDS),
        dispatcher=ExecutionDispatcher(
            registry=build_handler_registry(settings),
            timeout_seconds=settings.HANDLER_TIMEOUT_SECONDS,
        ),
        history=history,
        monitoring=MonitoringController(
            history=history,
            events=events or EventService(),
            realtime_interval=settings.REALTIME_INTERVAL_SECONDS,
            proactive_interval=settings.PROACTIVE_INTERVAL_SECONDS,
            low_success_threshold=settings.LOW_SUCCESS_RATE_THRESHOLD,
        ),
        max_input_length=settings.MAX_INPUT_LENGTH,
        max_suggestions=settings.MAX_SUGGESTIONS,
    )
