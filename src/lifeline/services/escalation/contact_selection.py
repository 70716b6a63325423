"""
Contact Selection

Tiered choice of which contacts to notify immediately and which
to hold back for a timed follow-up stage.

SAFETY_NOTE: Critical escalations reach medical contacts and the
highest-priority contact first; nobody is dropped, lower-priority
contacts only wait for the follow-up stage.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from lifeline.config.settings import EscalationSettings
from lifeline.domain.enums.escalation import ContactRole
from lifeline.domain.enums.tiers import RiskTier
from lifeline.domain.models.escalation import EmergencyContact


@dataclass(frozen=True)
class ContactPlan:
    """
    Contacts to notify for one severity.

    Attributes:
        immediate: Notified on activation, in dispatch order
        followup: Notified when the follow-up stage elapses
        followup_delay: Seconds until the follow-up stage (None without one)
    """

    immediate: tuple[EmergencyContact, ...] = ()
    followup: tuple[EmergencyContact, ...] = ()
    followup_delay: Optional[float] = None


def _dispatch_order(contact: EmergencyContact) -> tuple[int, int]:
    return (contact.priority, 0 if contact.role == ContactRole.MEDICAL else 1)


def by_priority(contacts: Iterable[EmergencyContact]) -> list[EmergencyContact]:
    """Contacts sorted highest priority first (medical wins ties)."""
    return sorted(contacts, key=_dispatch_order)


def select_contacts(
    contacts: Iterable[EmergencyContact],
    tier: RiskTier,
    settings: EscalationSettings,
) -> ContactPlan:
    """
    Build the notification plan for a severity tier.

    - critical: medical contacts and the top-priority contact now,
      everyone else after the critical follow-up delay
    - high: all non-backup contacts now, backups after the backup delay
    - medium: primary contacts only (top-priority contact if none)
    - low: default contacts only (top-priority contact if none)

    Args:
        contacts: Available emergency contacts
        tier: Session severity
        settings: Escalation settings (follow-up delays)

    Returns:
        ContactPlan
    """
    ordered = by_priority(contacts)
    if not ordered:
        return ContactPlan()

    top = ordered[0]

    if tier >= RiskTier.CRITICAL:
        immediate = [c for c in ordered if c.role == ContactRole.MEDICAL or c is top]
        rest = [c for c in ordered if c not in immediate]
        return ContactPlan(
            immediate=tuple(immediate),
            followup=tuple(rest),
            followup_delay=settings.critical_followup_seconds if rest else None,
        )

    if tier == RiskTier.HIGH:
        immediate = [c for c in ordered if c.role != ContactRole.BACKUP]
        backups = [c for c in ordered if c.role == ContactRole.BACKUP]
        if not immediate:
            immediate, backups = backups, []
        return ContactPlan(
            immediate=tuple(immediate),
            followup=tuple(backups),
            followup_delay=settings.backup_followup_seconds if backups else None,
        )

    if tier == RiskTier.MEDIUM:
        primary = [c for c in ordered if c.role == ContactRole.PRIMARY]
        return ContactPlan(immediate=tuple(primary or [top]))

    defaults = [c for c in ordered if c.is_default]
    return ContactPlan(immediate=tuple(defaults or [top]))
