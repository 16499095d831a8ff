"""
History and analytics schemas
"""
from datetime import datetime, date
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from uuid import uuid4
from command_center.schemas.command import ExecutionResult, utc_now


class HistoryEntry(BaseModel):
    """One executed command, as recorded in the history ring buffer"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    command: str = Field(..., description="Human-readable command text")
    pattern: str = Field(..., description="Coarse pattern key, '<module>.<action_type>'")
    timestamp: datetime = Field(default_factory=utc_now)
    result: ExecutionResult
    success: bool
    user_id: Optional[str] = None
    session_id: Optional[str] = None


class CommandUsage(BaseModel):
    command: str
    count: int


class LearnedPattern(BaseModel):
    pattern: str
    success_rate: float = Field(..., ge=0.0, le=1.0)
    usage_count: int
    last_used: datetime


class DailyCount(BaseModel):
    day: date
    count: int


class AnalyticsSnapshot(BaseModel):
    """Aggregates derived from the retained history window"""
    total_commands: int = 0
    success_rate: float = Field(0.0, ge=0.0, le=1.0)
    most_used_commands: List[CommandUsage] = Field(default_factory=list)
    learned_patterns: List[LearnedPattern] = Field(default_factory=list)
    daily_trend: List[DailyCount] = Field(default_factory=list)
    weekly_total: int = 0
    daily_average: float = 0.0
