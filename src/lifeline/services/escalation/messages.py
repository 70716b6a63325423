"""
Notification Messages

Text sent to emergency contacts, keyed by severity tier.

LEGAL_REVIEW_REQUIRED: Messages state that an alert was raised and
ask the contact to check in. They never describe a diagnosis or
instruct medical action.
"""

from lifeline.domain.enums.escalation import TriggerSource
from lifeline.domain.enums.tiers import RiskTier
from lifeline.domain.models.escalation import EmergencyContact, EscalationSession


MESSAGE_TEMPLATES: dict[RiskTier, str] = {
    RiskTier.CRITICAL: (
        "EMERGENCY: {contact_name}, a critical {reason} was raised at "
        "{started}. Please respond immediately and contact emergency services if "
        "you cannot reach them."
    ),
    RiskTier.HIGH: (
        "URGENT: {contact_name}, a high-risk {reason} was raised at "
        "{started}. Please check in as soon as possible."
    ),
    RiskTier.MEDIUM: (
        "{contact_name}, an elevated {reason} was raised at {started}. "
        "Please check in when you can."
    ),
    RiskTier.LOW: (
        "{contact_name}, a {reason} was raised at {started}. "
        "No immediate action is required."
    ),
}


def render_message(session: EscalationSession, contact: EmergencyContact) -> str:
    """
    Message for one contact in a session.

    Args:
        session: Escalation session (severity and trigger)
        contact: Recipient

    Returns:
        Message text
    """
    reason = "manual SOS" if session.trigger == TriggerSource.MANUAL_SOS else "health alert"
    return MESSAGE_TEMPLATES[session.severity].format(
        contact_name=contact.name,
        reason=reason,
        started=session.started_at.strftime("%H:%M UTC"),
    )
