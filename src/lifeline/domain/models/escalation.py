"""
Escalation Models

Emergency contacts, contact attempts and escalation sessions.

ARCHITECTURE: Sessions and attempts are mutated only by the
EscalationEngine. Everything handed to observers is a deep copy.

LEGAL_REVIEW_REQUIRED: Retention of archived sessions and their
timelines is in-memory only; no persistence is implied.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

from lifeline.domain.enums.escalation import (
    AttemptStatus,
    ContactChannel,
    ContactRole,
    EscalationState,
    SessionOutcome,
    TimelineKind,
    TriggerSource,
)
from lifeline.domain.enums.tiers import RiskTier


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class EmergencyContact:
    """
    Emergency contact supplied by the profile store.

    Attributes:
        id: Contact identifier
        name: Display name
        channel: Delivery channel
        role: Role in the notification protocol
        priority: 1 is the highest priority
        address: Phone number / handle / email (never logged)
        is_default: Contact used for low-tier escalations
    """

    id: str
    name: str
    channel: ContactChannel = ContactChannel.SMS
    role: ContactRole = ContactRole.FAMILY
    priority: int = 1
    address: str = ""
    is_default: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "channel": self.channel.value,
            "role": self.role.value,
            "priority": self.priority,
            "is_default": self.is_default,
        }


@dataclass(frozen=True)
class DispatchResult:
    """
    Outcome reported by the notification dispatcher.

    Attributes:
        delivered: Whether the notification reached the contact
        detail: Transport-specific detail or error description
    """

    delivered: bool
    detail: str = ""

    @classmethod
    def failure(cls, detail: str) -> "DispatchResult":
        return cls(delivered=False, detail=detail)


@dataclass
class ContactAttempt:
    """
    One dispatch try sequence to one contact via one channel.

    Retries reuse the same attempt record and bump retry_count.

    Attributes:
        contact_id: Target contact
        channel: Delivery channel
        status: Current delivery status
        retry_count: Retries performed so far (never above 2)
        terminal: No further retries will be scheduled
        timestamp: Last status change
        last_error: Detail of the latest failure
    """

    contact_id: str
    channel: ContactChannel
    attempt_id: UUID = field(default_factory=uuid4)
    status: AttemptStatus = AttemptStatus.PENDING
    retry_count: int = 0
    terminal: bool = False
    dispatch_count: int = 0
    timestamp: datetime = field(default_factory=_utcnow)
    last_error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "attempt_id": str(self.attempt_id),
            "contact_id": self.contact_id,
            "channel": self.channel.value,
            "status": self.status.value,
            "retry_count": self.retry_count,
            "terminal": self.terminal,
            "dispatch_count": self.dispatch_count,
            "timestamp": self.timestamp.isoformat(),
            "last_error": self.last_error,
        }


@dataclass(frozen=True)
class TimelineEntry:
    """Append-only record of a transition or attempt status change."""

    kind: TimelineKind
    timestamp: datetime = field(default_factory=_utcnow)
    detail: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "timestamp": self.timestamp.isoformat(),
            "detail": self.detail,
        }


@dataclass
class EscalationSession:
    """
    One complete trigger -> notification -> resolution lifecycle.

    Attributes:
        session_id: Unique identifier (keys the timer table)
        state: Current lifecycle state
        severity: Highest tier seen for this session
        trigger: What started the session
        started_at: Trigger time
        activated_at: Entry into ACTIVE
        resolved_at: Resolve or cancel time
        outcome: How the session ended (archived sessions only)
        attempts: Contact attempts in creation order
        timeline: Append-only event log
    """

    severity: RiskTier
    trigger: TriggerSource
    session_id: UUID = field(default_factory=uuid4)
    state: EscalationState = EscalationState.ESCALATING
    started_at: datetime = field(default_factory=_utcnow)
    activated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    outcome: Optional[SessionOutcome] = None
    attempts: list[ContactAttempt] = field(default_factory=list)
    timeline: list[TimelineEntry] = field(default_factory=list)

    def attempt_for(self, contact_id: str) -> Optional[ContactAttempt]:
        for attempt in self.attempts:
            if attempt.contact_id == contact_id:
                return attempt
        return None

    def attempt_by_id(self, attempt_id: UUID) -> Optional[ContactAttempt]:
        for attempt in self.attempts:
            if attempt.attempt_id == attempt_id:
                return attempt
        return None

    @property
    def hard_failures(self) -> list[ContactAttempt]:
        return [
            a for a in self.attempts
            if a.terminal and a.status == AttemptStatus.FAILED
        ]

    def to_dict(self) -> dict:
        return {
            "session_id": str(self.session_id),
            "state": self.state.value,
            "severity": self.severity.label,
            "trigger": self.trigger.value,
            "started_at": self.started_at.isoformat(),
            "activated_at": self.activated_at.isoformat() if self.activated_at else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "outcome": self.outcome.value if self.outcome else None,
            "attempts": [a.to_dict() for a in self.attempts],
            "timeline": [e.to_dict() for e in self.timeline],
        }


@dataclass(frozen=True)
class EscalationSnapshot:
    """Read-only view of the engine for observers."""

    state: EscalationState
    session: Optional[EscalationSession]
    pending_timers: int = 0

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "session": self.session.to_dict() if self.session else None,
            "pending_timers": self.pending_timers,
        }
