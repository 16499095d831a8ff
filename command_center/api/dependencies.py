"""
FastAPI dependencies for identity and the shared command pipeline
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional
from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import httpx
import structlog

from command_center.config import settings
from command_center.exceptions import AuthenticationError
from command_center.services.assistant import CommandAssistant, build_assistant
from command_center.services.event_service import EventService
from command_center.services.supabase_auth import SupabaseAuthService

logger = structlog.get_logger()

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)

DEFAULT_SESSION = "default"


def session_key(user_id: str, x_session_id: Optional[str]) -> str:
    """Conversation key owned by the caller; a client header can only pick among its own sessions"""
    return f"{user_id}:{x_session_id or DEFAULT_SESSION}"


@dataclass
class Identity:
    """Who is calling, and which conversation the call belongs to"""
    user_id: str
    session_id: str
    email: Optional[str] = None


@lru_cache
def get_event_service() -> EventService:
    return EventService()


@lru_cache
def get_assistant() -> CommandAssistant:
    return build_assistant(settings, events=get_event_service())


@lru_cache
def get_auth_service() -> SupabaseAuthService:
    return SupabaseAuthService(settings)


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_session_id: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None),
    auth_service: SupabaseAuthService = Depends(get_auth_service),
) -> Identity:
    """
    Dependency resolving the caller from a Supabase access token.
    The session is the X-Session-Id header scoped to the user, or the
    user's default session when no header is sent.
    Returns 401 if the token is missing or rejected.
    """
    if settings.AUTH_DISABLED:
        if not x_user_id:
            raise AuthenticationError("X-User-Id header required")
        return Identity(user_id=x_user_id, session_id=session_key(x_user_id, x_session_id))

    if credentials is None:
        raise AuthenticationError("Missing bearer token")
    if not auth_service.configured:
        logger.error("Authentication requested but Supabase is not configured")
        raise AuthenticationError("Identity provider is not configured")

    try:
        user = await auth_service.get_user(credentials.credentials)
    except httpx.HTTPError as e:
        logger.error("Authentication failed", error=str(e))
        raise AuthenticationError("Could not validate credentials")

    if not user or not user.get("id"):
        raise AuthenticationError("Could not validate credentials")

    user_id = str(user["id"])
    return Identity(user_id=user_id, session_id=session_key(user_id, x_session_id), email=user.get("email"))
