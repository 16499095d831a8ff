"""
SSE Events API endpoint
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
import asyncio
import json
import structlog

from command_center.api.dependencies import Identity, get_assistant, get_current_identity, get_event_service
from command_center.config import settings
from command_center.services.assistant import CommandAssistant
from command_center.services.event_service import EventService

logger = structlog.get_logger()

router = APIRouter()


def _sse(event: dict) -> str:
    return f"id: {event.get('id', '')}\nevent: {event.get('type', 'message')}\ndata: {event.get('data', '{}')}\n\n"


@router.get("/stream")
async def stream_events(
    request: Request,
    identity: Identity = Depends(get_current_identity),
    event_service: EventService = Depends(get_event_service),
    assistant: CommandAssistant = Depends(get_assistant),
):
    """
    Server-Sent Events (SSE) stream of monitoring insights.
    Insights only flow while a monitoring session is active; see /monitoring.
    """
    user_id = identity.user_id
    ping_interval = settings.SSE_PING_INTERVAL_SECONDS

    async def event_generator():
        event_queue: asyncio.Queue = asyncio.Queue()

        async def enqueue(event: dict):
            await event_queue.put(event)

        event_service.subscribe(user_id, enqueue)
        active = [session.kind.value for session in assistant.monitoring_status(user_id)]

        try:
            yield f"data: {json.dumps({'type': 'connected', 'monitoring': active})}\n\n"

            loop = asyncio.get_running_loop()
            last_ping = loop.time()
            while not await request.is_disconnected():
                wait = max(1.0, ping_interval - (loop.time() - last_ping))
                try:
                    yield _sse(await asyncio.wait_for(event_queue.get(), timeout=wait))
                except asyncio.TimeoutError:
                    last_ping = loop.time()
                    yield f"data: {json.dumps({'type': 'ping', 'timestamp': last_ping})}\n\n"
            logger.info("Event stream client disconnected", user_id=user_id)
        finally:
            event_service.unsubscribe(user_id, enqueue)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        }
    )
