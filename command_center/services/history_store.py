"""
History & Analytics Store - Bounded command history with derived analytics
"""
from collections import Counter, deque
from datetime import datetime, timedelta
from typing import Dict, Optional, List
import threading
import structlog

from command_center.schemas.command import utc_now
from command_center.schemas.history import (
    AnalyticsSnapshot,
    CommandUsage,
    DailyCount,
    HistoryEntry,
    LearnedPattern,
)

logger = structlog.get_logger()


class HistoryStore:
    """
    Append-only FIFO ring buffer of executed commands.

    Once capacity is reached, recording a new entry evicts the oldest one.
    All analytics are computed over the retained window only.
    """

    def __init__(self, capacity: int = 50, trend_days: int = 7, max_most_used: int = 5):
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self.capacity = capacity
        self.trend_days = trend_days
        self.max_most_used = max_most_used
        self._entries: deque = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def record(self, entry: HistoryEntry) -> HistoryEntry:
        with self._lock:
            evicted = len(self._entries) == self.capacity
            self._entries.append(entry)
        logger.debug("History entry recorded", entry_id=entry.id, pattern=entry.pattern, success=entry.success, evicted=evicted)
        return entry

    def __len__(self) -> int:
        return len(self._entries)

    def entries(
        self,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> List[HistoryEntry]:
        """Retained entries, most recent first"""
        with self._lock:
            snapshot = list(self._entries)
        entries = [entry for entry in reversed(snapshot) if _matches(entry, user_id, session_id)]
        if search:
            needle = search.lower()
            entries = [
                entry for entry in entries
                if needle in entry.command.lower() or needle in entry.result.message.lower()
            ]
        if limit is not None:
            entries = entries[:limit]
        return entries

    def snapshot(
        self,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AnalyticsSnapshot:
        """Compute analytics over the retained window"""
        now = now or utc_now()
        entries = self.entries(user_id=user_id, session_id=session_id)
        total = len(entries)
        if total == 0:
            trend = self._daily_trend([], now)
            return AnalyticsSnapshot(daily_trend=trend)

        successes = sum(1 for entry in entries if entry.success)
        trend = self._daily_trend(entries, now)
        weekly_total = sum(day.count for day in trend)

        return AnalyticsSnapshot(
            total_commands=total,
            success_rate=successes / total,
            most_used_commands=self._most_used(entries),
            learned_patterns=self._learned_patterns(entries),
            daily_trend=trend,
            weekly_total=weekly_total,
            daily_average=round(weekly_total / self.trend_days, 2),
        )

    def _most_used(self, entries: List[HistoryEntry]) -> List[CommandUsage]:
        """
        Frequency of command text, ties broken by most recent occurrence.
        `entries` is newest first, so the first index seen is the latest use.
        """
        counts = Counter(entry.command for entry in entries)
        latest_index: Dict[str, int] = {}
        for index, entry in enumerate(entries):
            latest_index.setdefault(entry.command, index)
        ranked = sorted(counts, key=lambda command: (-counts[command], latest_index[command]))
        return [CommandUsage(command=command, count=counts[command]) for command in ranked[: self.max_most_used]]

    @staticmethod
    def _learned_patterns(entries: List[HistoryEntry]) -> List[LearnedPattern]:
        grouped: Dict[str, List[HistoryEntry]] = {}
        for entry in entries:
            grouped.setdefault(entry.pattern, []).append(entry)

        patterns = [
            LearnedPattern(
                pattern=pattern,
                success_rate=sum(1 for entry in group if entry.success) / len(group),
                usage_count=len(group),
                last_used=max(entry.timestamp for entry in group),
            )
            for pattern, group in grouped.items()
        ]
        patterns.sort(key=lambda item: (-item.usage_count, -item.last_used.timestamp()))
        return patterns

    def _daily_trend(self, entries: List[HistoryEntry], now: datetime) -> List[DailyCount]:
        """Counts for the trailing calendar days, oldest first, zero-filled"""
        today = now.date()
        days = [today - timedelta(days=offset) for offset in range(self.trend_days - 1, -1, -1)]
        counts = Counter(entry.timestamp.date() for entry in entries)
        return [DailyCount(day=day, count=counts.get(day, 0)) for day in days]


def _matches(entry: HistoryEntry, user_id: Optional[str], session_id: Optional[str]) -> bool:
    if user_id is not None and entry.user_id != user_id:
        return False
    if session_id is not None and entry.session_id != session_id:
        return False
    return True
