"""
API v1 routes
"""
from fastapi import APIRouter
from command_center.api.v1 import commands, history, monitoring, events

router = APIRouter()

# Include route modules
router.include_router(commands.router, prefix="/commands", tags=["commands"])
router.include_router(history.router, tags=["history"])
router.include_router(monitoring.router, prefix="/monitoring", tags=["monitoring"])
router.include_router(events.router, prefix="/events", tags=["events"])
