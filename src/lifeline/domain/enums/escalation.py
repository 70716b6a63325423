"""
Escalation Enumerations

States, triggers, contact roles/channels and attempt statuses
for the contact-notification protocol.
"""

from enum import StrEnum


class EscalationState(StrEnum):
    """
    Escalation lifecycle states.

    STANDBY -> ESCALATING -> ACTIVE -> RESOLVED -> STANDBY
    ESCALATING -> STANDBY on cancel (false alarm).
    """

    STANDBY = "standby"
    """Resting state; ready for a new trigger."""

    ESCALATING = "escalating"
    """Countdown running; may still be cancelled."""

    ACTIVE = "active"
    """
    Contacts are being notified.

    SAFETY_NOTE: Only an explicit operator resolve leaves this state.
    """

    RESOLVED = "resolved"
    """Session closed by the operator; all timers cancelled."""

    @property
    def is_open(self) -> bool:
        """Whether a session in this state blocks a competing session."""
        return self in (EscalationState.ESCALATING, EscalationState.ACTIVE)


class TriggerSource(StrEnum):
    """What started an escalation session."""

    RISK = "risk"
    MANUAL_SOS = "manual_sos"


class SessionOutcome(StrEnum):
    """How an archived session ended."""

    RESOLVED = "resolved"
    CANCELLED = "cancelled"


class ContactChannel(StrEnum):
    """Delivery channel of an emergency contact."""

    CALL = "call"
    SMS = "sms"
    PUSH = "push"
    EMAIL = "email"


class ContactRole(StrEnum):
    """Role of a contact in the notification protocol."""

    MEDICAL = "medical"
    PRIMARY = "primary"
    FAMILY = "family"
    BACKUP = "backup"


class AttemptStatus(StrEnum):
    """Delivery status of a contact attempt."""

    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"
    ACKNOWLEDGED = "acknowledged"


class TimelineKind(StrEnum):
    """Kinds of entries in the append-only escalation timeline."""

    STATE_CHANGED = "state_changed"
    SEVERITY_UPGRADED = "severity_upgraded"
    TRIGGER_MERGED = "trigger_merged"
    STAGE_SCHEDULED = "stage_scheduled"
    ATTEMPT_CREATED = "attempt_created"
    ATTEMPT_DISPATCHED = "attempt_dispatched"
    ATTEMPT_STATUS = "attempt_status"
    RETRY_SCHEDULED = "retry_scheduled"
    HARD_FAILURE = "hard_failure"
    TIMERS_CANCELLED = "timers_cancelled"
