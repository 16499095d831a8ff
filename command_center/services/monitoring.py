"""
Monitoring Controller - Background sessions that push unsolicited insights.

At most one session runs per (user, kind). Realtime sessions report on the
health of recent commands; proactive sessions suggest what to do next.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple
import asyncio
import contextlib
import structlog

from command_center.schemas.command import utc_now
from command_center.schemas.monitoring import (
    Insight,
    InsightPriority,
    InsightType,
    MonitoringKind,
    MonitoringSession,
)
from command_center.services.event_service import EventService
from command_center.services.history_store import HistoryStore

logger = structlog.get_logger()

RECENT_WINDOW = 10
CONSECUTIVE_FAILURE_ALERT = 3
FREQUENT_PATTERN_MIN_USAGE = 5
FREQUENT_PATTERN_MIN_SUCCESS = 0.8
# hour of day -> suggested command
TIME_OF_DAY_SUGGESTIONS = {
    9: ("Günlük rapor", "Günlük rapor oluştur"),
    18: ("Gün sonu", "Günlük özet al"),
}

SessionKey = Tuple[str, MonitoringKind]


@dataclass
class InsightDraft:
    type: InsightType
    title: str
    description: str
    priority: InsightPriority = InsightPriority.LOW


class MonitoringController:
    """Starts, stops and runs monitoring sessions as asyncio tasks"""

    def __init__(
        self,
        history: HistoryStore,
        events: EventService,
        realtime_interval: float = 30.0,
        proactive_interval: float = 300.0,
        low_success_threshold: float = 0.8,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.history = history
        self.events = events
        self.intervals = {
            MonitoringKind.REALTIME: realtime_interval,
            MonitoringKind.PROACTIVE: proactive_interval,
        }
        self.low_success_threshold = low_success_threshold
        self.clock = clock
        self._sessions: Dict[SessionKey, MonitoringSession] = {}
        self._tasks: Dict[SessionKey, asyncio.Task] = {}

    async def start(self, user_id: str, kind: MonitoringKind) -> bool:
        """Start a session. Returns False if one is already active."""
        key = (user_id, kind)
        task = self._tasks.get(key)
        if task is not None and not task.done():
            logger.debug("Monitoring already active", user_id=user_id, kind=kind.value)
            return False

        session = MonitoringSession(user_id=user_id, kind=kind, started_at=self.clock())
        self._sessions[key] = session
        self._tasks[key] = asyncio.create_task(self._run(session))
        logger.info("Monitoring started", user_id=user_id, kind=kind.value, interval_seconds=self.intervals[kind])
        return True

    async def stop(self, user_id: str, kind: MonitoringKind) -> bool:
        """
        Stop a session. Returns False if none was active.
        Once this returns, the session delivers no further insights.
        """
        key = (user_id, kind)
        task = self._tasks.pop(key, None)
        session = self._sessions.pop(key, None)
        if task is None:
            return False

        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        if session is not None:
            session.active = False
        logger.info("Monitoring stopped", user_id=user_id, kind=kind.value)
        return True

    def is_active(self, user_id: str, kind: MonitoringKind) -> bool:
        task = self._tasks.get((user_id, kind))
        return task is not None and not task.done()

    def sessions(self, user_id: Optional[str] = None) -> List[MonitoringSession]:
        return [
            session for (owner, _), session in self._sessions.items()
            if user_id is None or owner == user_id
        ]

    async def shutdown(self) -> None:
        """Stop every session"""
        for user_id, kind in list(self._tasks):
            await self.stop(user_id, kind)

    async def _run(self, session: MonitoringSession) -> None:
        interval = self.intervals[session.kind]
        sequence = 0
        while True:
            await asyncio.sleep(interval)
            try:
                drafts = self.generate(session.user_id, session.kind)
            except Exception as e:
                logger.error("Insight generation failed", user_id=session.user_id, kind=session.kind.value, error=str(e))
                continue

            for draft in drafts:
                sequence += 1
                insight = Insight(
                    user_id=session.user_id,
                    kind=session.kind,
                    sequence=sequence,
                    type=draft.type,
                    title=draft.title,
                    description=draft.description,
                    priority=draft.priority,
                    created_at=self.clock(),
                )
                await self.events.publish(
                    session.user_id,
                    "insight",
                    insight.model_dump(mode="json"),
                    event_id=insight.id,
                )

    def generate(self, user_id: str, kind: MonitoringKind) -> List[InsightDraft]:
        if kind == MonitoringKind.REALTIME:
            return self.realtime_insights(user_id)
        return self.proactive_insights(user_id)

    def realtime_insights(self, user_id: str) -> List[InsightDraft]:
        """Health of the user's most recent commands"""
        recent = self.history.entries(user_id=user_id, limit=RECENT_WINDOW)
        if not recent:
            return [InsightDraft(
                type=InsightType.STATUS,
                title="İzleme aktif",
                description="Henüz komut geçmişi yok",
            )]

        success_rate = sum(1 for entry in recent if entry.success) / len(recent)
        insights = [InsightDraft(
            type=InsightType.STATUS,
            title="Komut durumu",
            description=f"Son {len(recent)} komutta başarı oranı %{success_rate * 100:.0f}",
        )]

        consecutive_failures = 0
        for entry in recent:
            if entry.success:
                break
            consecutive_failures += 1

        if consecutive_failures >= CONSECUTIVE_FAILURE_ALERT:
            insights.append(InsightDraft(
                type=InsightType.WARNING,
                title="Art arda hatalar",
                description=f"Son {consecutive_failures} komut başarısız oldu",
                priority=InsightPriority.HIGH,
            ))
        elif success_rate < self.low_success_threshold:
            insights.append(InsightDraft(
                type=InsightType.WARNING,
                title="Düşük başarı oranı",
                description=f"Başarı oranı %{self.low_success_threshold * 100:.0f} eşiğinin altında",
                priority=InsightPriority.MEDIUM,
            ))
        return insights

    def proactive_insights(self, user_id: str) -> List[InsightDraft]:
        """Time-of-day suggestions and frequently used, reliable patterns"""
        now = self.clock()
        insights: List[InsightDraft] = []

        suggestion = TIME_OF_DAY_SUGGESTIONS.get(now.hour)
        if suggestion is not None:
            title, command = suggestion
            insights.append(InsightDraft(
                type=InsightType.SUGGESTION,
                title=title,
                description=command,
                priority=InsightPriority.MEDIUM,
            ))

        snapshot = self.history.snapshot(user_id=user_id, now=now)
        for pattern in snapshot.learned_patterns:
            if pattern.usage_count > FREQUENT_PATTERN_MIN_USAGE and pattern.success_rate > FREQUENT_PATTERN_MIN_SUCCESS:
                insights.append(InsightDraft(
                    type=InsightType.SUGGESTION,
                    title="Sık kullanılan komut",
                    description=f"{pattern.pattern} komutunu {pattern.usage_count} kez başarıyla kullandınız",
                ))
        return insights
