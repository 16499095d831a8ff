"""
Commands API endpoints
"""
from fastapi import APIRouter, Depends, Query
from typing import List, Optional
import structlog

from command_center.api.dependencies import Identity, get_assistant, get_current_identity
from command_center.schemas.command import (
    ConfirmationTicket,
    ConfirmRequest,
    ConfirmResult,
    SubmitBatchRequest,
    SubmitCommandRequest,
    SubmitResult,
)
from command_center.services.assistant import CommandAssistant

logger = structlog.get_logger()

router = APIRouter()


@router.post("", response_model=SubmitResult)
async def submit_command(
    body: SubmitCommandRequest,
    identity: Identity = Depends(get_current_identity),
    assistant: CommandAssistant = Depends(get_assistant),
):
    """
    Submit free-form command text.
    The outcome is one of: resolved, needs_confirmation, needs_clarification, unrecognized.
    """
    result = await assistant.submit_command(identity.session_id, identity.user_id, body.text, body.context)
    logger.info("Command submitted", user_id=identity.user_id, session_id=identity.session_id, kind=result.kind.value)
    return result


@router.post("/batch", response_model=List[SubmitResult])
async def submit_batch(
    body: SubmitBatchRequest,
    identity: Identity = Depends(get_current_identity),
    assistant: CommandAssistant = Depends(get_assistant),
):
    """Submit commands in order, stopping at the first one that does not run successfully"""
    results = await assistant.submit_batch(identity.session_id, identity.user_id, body.texts, body.context)
    logger.info("Command batch submitted", user_id=identity.user_id, submitted=len(body.texts), processed=len(results))
    return results


@router.post("/confirm", response_model=ConfirmResult)
async def confirm_command(
    body: ConfirmRequest,
    identity: Identity = Depends(get_current_identity),
    assistant: CommandAssistant = Depends(get_assistant),
):
    """Accept or reject the session's pending confirmation ticket"""
    return await assistant.confirm(identity.session_id, body.ticket_id, body.accept, user_id=identity.user_id)


@router.get("/pending", response_model=Optional[ConfirmationTicket])
async def pending_confirmation(
    identity: Identity = Depends(get_current_identity),
    assistant: CommandAssistant = Depends(get_assistant),
):
    """Current pending confirmation of the session, or null"""
    return assistant.pending_confirmation(identity.session_id)


@router.get("/suggestions")
async def command_suggestions(
    q: str = Query("", max_length=200, description="Partially typed command"),
    identity: Identity = Depends(get_current_identity),
    assistant: CommandAssistant = Depends(get_assistant),
):
    """Complete a partially typed command"""
    return {"suggestions": assistant.suggest_commands(q, user_id=identity.user_id)}
