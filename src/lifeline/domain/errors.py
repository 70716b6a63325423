"""
Domain Errors

Exceptions raised by the core services. The signal processor
never raises on bad input; these cover command misuse and
infrastructure failures.
"""

from typing import Optional

from lifeline.domain.enums.escalation import EscalationState


class LifelineError(Exception):
    """Base exception for LifeLine core errors."""


class InvalidTransitionError(LifelineError):
    """A command is not valid in the current escalation state."""

    def __init__(
        self,
        command: str,
        state: EscalationState,
    ) -> None:
        super().__init__(f"Cannot {command} while escalation is {state.value}")
        self.command = command
        self.state = state


class DispatchError(LifelineError):
    """Notification dispatcher failed to send."""

    def __init__(
        self,
        message: str,
        channel: str,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.channel = channel
        self.original_error = original_error


class SourceUnavailableError(LifelineError):
    """No sample source could be selected."""

    def __init__(self, source: str, reason: str = "") -> None:
        super().__init__(f"Sample source {source} unavailable: {reason}".rstrip(": "))
        self.source = source
        self.reason = reason


class UnknownContactError(LifelineError):
    """No contact attempt exists for the given contact."""

    def __init__(self, contact_id: str) -> None:
        super().__init__(f"No contact attempt for contact {contact_id}")
        self.contact_id = contact_id
