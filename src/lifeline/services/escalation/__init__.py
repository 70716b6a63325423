"""
Escalation Service

Risk-triggered state machine and staged contact notification.
"""

from lifeline.services.escalation.contact_selection import ContactPlan, select_contacts
from lifeline.services.escalation.escalation_engine import EscalationEngine
from lifeline.services.escalation.messages import render_message
from lifeline.services.escalation.scheduler import (
    AsyncioScheduler,
    Scheduler,
    TimerHandle,
)
from lifeline.services.escalation.timer_table import TimerTable

__all__ = [
    "ContactPlan",
    "select_contacts",
    "EscalationEngine",
    "render_message",
    "AsyncioScheduler",
    "Scheduler",
    "TimerHandle",
    "TimerTable",
]
