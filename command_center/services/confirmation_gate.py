"""
Confirmation Gate - Per-session approval state machine for risky commands.

    Idle -> PendingConfirmation -> {Confirmed, Cancelled, Expired} -> Idle

Each session holds at most one live ticket. Expiry is evaluated lazily
whenever the session's state is observed; there are no timers.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Dict, Optional
import structlog

from command_center.schemas.command import ConfirmationTicket, StructuredCommand, utc_now

logger = structlog.get_logger()


class GateState(str, Enum):
    IDLE = "idle"
    PENDING_CONFIRMATION = "pending_confirmation"


class DecisionKind(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    NO_MATCH = "no_match"


@dataclass
class GateDecision:
    """Outcome of answering a ticket"""
    kind: DecisionKind
    ticket: Optional[ConfirmationTicket] = None

    @property
    def command(self) -> Optional[StructuredCommand]:
        return self.ticket.command if self.ticket is not None else None


class ConfirmationGate:
    """Holds the pending confirmation ticket of every session"""

    def __init__(self, ttl_seconds: int = 120, clock: Callable[[], datetime] = utc_now):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock
        self._pending: Dict[str, ConfirmationTicket] = {}
        # Last ticket that expired per session, so a late answer reports
        # 'expired'; forgotten one TTL after its expiry
        self._expired: Dict[str, ConfirmationTicket] = {}

    def submit(
        self,
        session_id: str,
        command: StructuredCommand,
        user_id: Optional[str] = None,
    ) -> Optional[ConfirmationTicket]:
        """
        Route a freshly resolved command through the gate.

        Any pending ticket of the session is cancelled first. Returns the new
        ticket when the command needs confirmation, None when it may proceed.
        """
        self.cancel(session_id)
        self.sweep()

        if not command.requires_confirmation:
            return None

        now = self.clock()
        ticket = ConfirmationTicket(
            session_id=session_id,
            user_id=user_id,
            command=command,
            created_at=now,
            expires_at=now + self.ttl,
        )
        self._pending[session_id] = ticket
        logger.info(
            "Confirmation requested",
            session_id=session_id,
            ticket_id=ticket.id,
            intent=command.intent,
            risk_level=command.risk_level.value,
        )
        return ticket

    def accept(self, session_id: str, ticket_id: str, user_id: Optional[str] = None) -> GateDecision:
        """
        Consume the ticket and release its command exactly once.
        When user_id is given it must be the user who submitted the command.
        """
        decision = self._answer(session_id, ticket_id, user_id)
        if decision is not None:
            return decision
        ticket = self._pending.pop(session_id)
        logger.info("Confirmation accepted", session_id=session_id, ticket_id=ticket_id)
        return GateDecision(kind=DecisionKind.CONFIRMED, ticket=ticket)

    def reject(self, session_id: str, ticket_id: str, user_id: Optional[str] = None) -> GateDecision:
        decision = self._answer(session_id, ticket_id, user_id)
        if decision is not None:
            return decision
        ticket = self._pending.pop(session_id)
        logger.info("Confirmation rejected", session_id=session_id, ticket_id=ticket_id)
        return GateDecision(kind=DecisionKind.CANCELLED, ticket=ticket)

    def cancel(self, session_id: str) -> bool:
        """Drop the session's pending ticket, if any"""
        self._expired.pop(session_id, None)
        previous = self._pending.pop(session_id, None)
        if previous is None:
            return False
        logger.info("Pending confirmation superseded", session_id=session_id, ticket_id=previous.id)
        return True

    def pending(self, session_id: str) -> Optional[ConfirmationTicket]:
        """Current live ticket of the session, if any"""
        self._observe(session_id)
        return self._pending.get(session_id)

    def state(self, session_id: str) -> GateState:
        if self.pending(session_id) is not None:
            return GateState.PENDING_CONFIRMATION
        return GateState.IDLE

    def sweep(self) -> None:
        """Expire overdue tickets of every session and forget stale expiry notices"""
        now = self.clock()
        for session_id in [sid for sid, ticket in self._pending.items() if ticket.is_expired(now)]:
            self._observe(session_id)
        for session_id in [sid for sid, ticket in self._expired.items() if now - ticket.expires_at >= self.ttl]:
            del self._expired[session_id]

    def _answer(self, session_id: str, ticket_id: str, user_id: Optional[str]) -> Optional[GateDecision]:
        """Shared checks for accept/reject; None means the ticket is live and matches"""
        self._observe(session_id)
        current = self._pending.get(session_id)
        if current is not None and current.id == ticket_id and _owned_by(current, user_id):
            return None
        expired = self._expired.get(session_id)
        if expired is not None and expired.id == ticket_id and _owned_by(expired, user_id):
            del self._expired[session_id]
            logger.info("Confirmation answered after expiry", session_id=session_id, ticket_id=ticket_id)
            return GateDecision(kind=DecisionKind.EXPIRED)
        logger.warning(
            "Confirmation does not match a pending ticket",
            session_id=session_id,
            ticket_id=ticket_id,
            user_id=user_id,
        )
        return GateDecision(kind=DecisionKind.NO_MATCH)

    def _observe(self, session_id: str) -> None:
        current = self._pending.get(session_id)
        if current is not None and current.is_expired(self.clock()):
            del self._pending[session_id]
            self._expired[session_id] = current
            logger.info("Confirmation expired", session_id=session_id, ticket_id=current.id)


def _owned_by(ticket: ConfirmationTicket, user_id: Optional[str]) -> bool:
    return user_id is None or ticket.user_id == user_id
