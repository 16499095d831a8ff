"""
Monitoring API endpoints
"""
from fastapi import APIRouter, Depends
from typing import List
import structlog

from command_center.api.dependencies import Identity, get_assistant, get_current_identity
from command_center.schemas.monitoring import MonitoringKind, MonitoringSession
from command_center.services.assistant import CommandAssistant

logger = structlog.get_logger()

router = APIRouter()


@router.get("", response_model=List[MonitoringSession])
async def monitoring_status(
    identity: Identity = Depends(get_current_identity),
    assistant: CommandAssistant = Depends(get_assistant),
):
    """Active monitoring sessions of the current user"""
    return assistant.monitoring_status(identity.user_id)


@router.post("/{kind}/start")
async def start_monitoring(
    kind: MonitoringKind,
    identity: Identity = Depends(get_current_identity),
    assistant: CommandAssistant = Depends(get_assistant),
):
    """Start a monitoring session. Starting an active session is a no-op."""
    started = await assistant.start_monitoring(identity.user_id, kind)
    logger.info("Monitoring start requested", user_id=identity.user_id, kind=kind.value, started=started)
    return {"kind": kind.value, "active": True, "started": started}


@router.post("/{kind}/stop")
async def stop_monitoring(
    kind: MonitoringKind,
    identity: Identity = Depends(get_current_identity),
    assistant: CommandAssistant = Depends(get_assistant),
):
    """Stop a monitoring session. Stopping an inactive session is a no-op."""
    stopped = await assistant.stop_monitoring(identity.user_id, kind)
    logger.info("Monitoring stop requested", user_id=identity.user_id, kind=kind.value, stopped=stopped)
    return {"kind": kind.value, "active": False, "stopped": stopped}
