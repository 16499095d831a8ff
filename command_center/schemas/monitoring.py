"""
Monitoring schemas
"""
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field
from uuid import uuid4
from command_center.schemas.command import utc_now


class MonitoringKind(str, Enum):
    REALTIME = "realtime"
    PROACTIVE = "proactive"


class InsightType(str, Enum):
    STATUS = "status"
    WARNING = "warning"
    SUGGESTION = "suggestion"


class InsightPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class MonitoringSession(BaseModel):
    user_id: str
    kind: MonitoringKind
    active: bool = True
    started_at: datetime = Field(default_factory=utc_now)


class Insight(BaseModel):
    """Unsolicited event produced by a monitoring session"""
    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    kind: MonitoringKind
    sequence: int = Field(..., ge=1, description="Position in the emitting session's stream")
    type: InsightType
    title: str
    description: str
    priority: InsightPriority = InsightPriority.LOW
    created_at: datetime = Field(default_factory=utc_now)
