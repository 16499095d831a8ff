"""
Pydantic schemas for the command center
"""
from command_center.schemas.analysis import Analysis, Intent, Sentiment, Entities, ContextSignals
from command_center.schemas.command import (
    SessionContext,
    CommandRequest,
    StructuredCommand,
    Resolution,
    ExecutionResult,
    ConfirmationTicket,
    SubmitResult,
    ConfirmResult,
)
from command_center.schemas.history import HistoryEntry, AnalyticsSnapshot
from command_center.schemas.monitoring import MonitoringKind, MonitoringSession, Insight

__all__ = [
    # Analysis
    "Analysis",
    "Intent",
    "Sentiment",
    "Entities",
    "ContextSignals",
    # Commands
    "SessionContext",
    "CommandRequest",
    "StructuredCommand",
    "Resolution",
    "ExecutionResult",
    "ConfirmationTicket",
    "SubmitResult",
    "ConfirmResult",
    # History
    "HistoryEntry",
    "AnalyticsSnapshot",
    # Monitoring
    "MonitoringKind",
    "MonitoringSession",
    "Insight",
]
