"""
Event Service for pushing insights to connected clients via SSE
"""
from typing import Dict, Any, Optional, Callable, Awaitable, List
import json
import structlog
from datetime import datetime, timezone

logger = structlog.get_logger()

EventCallback = Callable[[Dict[str, Any]], Awaitable[None]]


class EventService:
    """In-memory per-user publish/subscribe"""

    def __init__(self):
        self._subscribers: Dict[str, List[EventCallback]] = {}  # user_id -> list of callbacks

    def subscribe(self, user_id: str, callback: EventCallback) -> None:
        """Subscribe a user to events"""
        if user_id not in self._subscribers:
            self._subscribers[user_id] = []
        self._subscribers[user_id].append(callback)
        logger.info("User subscribed to events", user_id=user_id, subscribers=len(self._subscribers[user_id]))

    def unsubscribe(self, user_id: str, callback: EventCallback) -> None:
        """Unsubscribe a user from events"""
        callbacks = self._subscribers.get(user_id)
        if not callbacks or callback not in callbacks:
            return
        callbacks.remove(callback)
        if not callbacks:
            del self._subscribers[user_id]
        logger.info("User unsubscribed from events", user_id=user_id)

    async def publish(
        self,
        user_id: str,
        event_type: str,
        data: Dict[str, Any],
        event_id: Optional[str] = None
    ) -> int:
        """
        Publish an event to a specific user.

        Args:
            user_id: Target user ID
            event_type: Event type (e.g., 'insight')
            data: JSON-serializable event payload
            event_id: Optional event ID for SSE

        Returns the number of subscribers the event was delivered to.
        """
        now = datetime.now(timezone.utc)
        event = {
            "id": event_id or f"{int(now.timestamp() * 1000)}",
            "type": event_type,
            "data": json.dumps(data),
            "timestamp": now.isoformat(),
        }

        delivered = 0
        for callback in list(self._subscribers.get(user_id, [])):
            try:
                await callback(event)
                delivered += 1
            except Exception as e:
                logger.error("Error sending event to subscriber", error=str(e), user_id=user_id)

        logger.debug("Event published", user_id=user_id, event_type=event_type, delivered=delivered)
        return delivered

    def get_subscriber_count(self, user_id: Optional[str] = None) -> int:
        """Get number of subscribers (for a user or total)"""
        if user_id:
            return len(self._subscribers.get(user_id, []))
        return sum(len(callbacks) for callbacks in self._subscribers.values())
