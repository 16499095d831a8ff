"""
History and analytics API endpoints
"""
from enum import Enum
from fastapi import APIRouter, Depends, Query
from typing import List, Optional, Tuple

from command_center.api.dependencies import Identity, get_assistant, get_current_identity
from command_center.schemas.history import AnalyticsSnapshot, HistoryEntry
from command_center.services.assistant import CommandAssistant

router = APIRouter()


class Scope(str, Enum):
    USER = "user"
    SESSION = "session"


def _scope_filter(identity: Identity, scope: Scope) -> Tuple[Optional[str], Optional[str]]:
    """(user_id, session_id) filter for the requested scope"""
    if scope == Scope.SESSION:
        return identity.user_id, identity.session_id
    return identity.user_id, None


@router.get("/history", response_model=List[HistoryEntry])
async def get_history(
    scope: Scope = Query(Scope.USER),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=200),
    identity: Identity = Depends(get_current_identity),
    assistant: CommandAssistant = Depends(get_assistant),
):
    """Recorded commands, most recent first"""
    user_id, session_id = _scope_filter(identity, scope)
    return assistant.get_history(user_id=user_id, session_id=session_id, limit=limit, search=search)


@router.get("/analytics", response_model=AnalyticsSnapshot)
async def get_analytics(
    scope: Scope = Query(Scope.USER),
    identity: Identity = Depends(get_current_identity),
    assistant: CommandAssistant = Depends(get_assistant),
):
    """Success rate, most used commands, learned patterns and daily trend"""
    user_id, session_id = _scope_filter(identity, scope)
    return assistant.get_analytics(user_id=user_id, session_id=session_id)
