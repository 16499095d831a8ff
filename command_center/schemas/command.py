"""
Command pipeline schemas: requests, structured commands, tickets and results
"""
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any, List
from uuid import uuid4


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RiskLevel(str, Enum):
    NONE = "none"
    LOW = "low"
    HIGH = "high"


class SessionContext(BaseModel):
    """Per-session context supplied by the identity/session provider"""
    acting_user: Optional[str] = Field(None, description="Display name or id of the acting operator")
    locale: str = "tr"
    defaults: Dict[str, Any] = Field(default_factory=dict, description="Default values for optional slots")


class CommandRequest(BaseModel):
    """One submitted piece of user text"""
    model_config = ConfigDict(frozen=True)

    raw_text: str
    user_id: str
    session_id: str
    context: SessionContext = Field(default_factory=SessionContext)
    submitted_at: datetime = Field(default_factory=utc_now)


class StructuredCommand(BaseModel):
    """A resolved, executable command"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    intent: str
    action_type: str
    target_module: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    requires_confirmation: bool = False
    estimated_duration_seconds: float = Field(0.0, ge=0.0)
    risk_level: RiskLevel = RiskLevel.NONE
    description: str = ""
    next_steps: List[str] = Field(default_factory=list)
    source_text: str = Field("", description="Normalized text the command was resolved from")

    @property
    def pattern(self) -> str:
        """Coarse key used to learn usage patterns"""
        return f"{self.target_module}.{self.action_type}"


class ResolutionKind(str, Enum):
    RESOLVED = "resolved"
    NEEDS_CLARIFICATION = "needs_clarification"
    UNRECOGNIZED = "unrecognized"


class Resolution(BaseModel):
    """Outcome of resolving an analysis into a command"""
    model_config = ConfigDict(frozen=True)

    kind: ResolutionKind
    command: Optional[StructuredCommand] = None
    intent: Optional[str] = None
    missing_slots: List[str] = Field(default_factory=list)
    reason: Optional[str] = None


class ExecutionStatus(str, Enum):
    OK = "ok"
    ERROR = "error"


class ExecutionResult(BaseModel):
    """The only execution shape handed back to callers"""
    model_config = ConfigDict(frozen=True)

    status: ExecutionStatus
    message: str
    data: Optional[Any] = None
    next_steps: List[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status == ExecutionStatus.OK

    @classmethod
    def ok(cls, message: str, data: Optional[Any] = None, next_steps: Optional[List[str]] = None) -> "ExecutionResult":
        return cls(status=ExecutionStatus.OK, message=message, data=data, next_steps=next_steps or [])

    @classmethod
    def error(cls, message: str) -> "ExecutionResult":
        return cls(status=ExecutionStatus.ERROR, message=message)


class ConfirmationTicket(BaseModel):
    """A pending confirmation for one session"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    session_id: str
    user_id: Optional[str] = None
    command: StructuredCommand
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class SubmitKind(str, Enum):
    RESOLVED = "resolved"
    NEEDS_CONFIRMATION = "needs_confirmation"
    NEEDS_CLARIFICATION = "needs_clarification"
    UNRECOGNIZED = "unrecognized"


class SubmitResult(BaseModel):
    """Tagged outcome of submitting a command"""
    kind: SubmitKind
    result: Optional[ExecutionResult] = None
    ticket: Optional[ConfirmationTicket] = None
    command: Optional[StructuredCommand] = None
    intent: Optional[str] = None
    missing_slots: List[str] = Field(default_factory=list)
    message: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)


class ConfirmKind(str, Enum):
    EXECUTED = "executed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    NO_MATCH = "no_match"
    # Internal error while answering; nothing is claimed to have run
    FAILED = "failed"


class ConfirmResult(BaseModel):
    """Tagged outcome of answering a confirmation ticket"""
    kind: ConfirmKind
    result: Optional[ExecutionResult] = None
    message: Optional[str] = None


class SubmitCommandRequest(BaseModel):
    """Request body for submitting a command"""
    text: str = Field(..., max_length=10000, description="Free-form command text")
    context: Optional[SessionContext] = None


class SubmitBatchRequest(BaseModel):
    """Request body for submitting several commands in order"""
    texts: List[str] = Field(..., min_length=1, max_length=20)
    context: Optional[SessionContext] = None


class ConfirmRequest(BaseModel):
    """Request body for answering a confirmation ticket"""
    ticket_id: str = Field(..., min_length=1)
    accept: bool = True
