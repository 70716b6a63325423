"""
Notification Dispatcher Interface

Defines the contract for delivering emergency notifications.
Transports (SMS gateway, push, telephony) live outside this
package and implement NotificationDispatcher.

ARCHITECTURE: The escalation engine only awaits send() through its
scheduler. A dispatcher may raise; the engine records any exception
as a failed delivery.
"""

from abc import ABC, abstractmethod
from enum import StrEnum
from typing import Optional

from lifeline.config.logging_config import get_logger
from lifeline.domain.enums.escalation import ContactChannel
from lifeline.domain.errors import DispatchError
from lifeline.domain.models.escalation import DispatchResult, EmergencyContact

logger = get_logger(__name__)


class DispatcherType(StrEnum):
    """Built-in dispatcher choices."""

    LOGGING = "logging"
    NONE = "none"


class NotificationDispatcher(ABC):
    """
    Abstract notification transport.

    Implementations must not block the event loop; long-running
    network calls belong in awaited I/O.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Dispatcher name for logging/tracking."""
        pass

    @abstractmethod
    async def send(
        self,
        contact: EmergencyContact,
        channel: ContactChannel,
        message: str,
    ) -> DispatchResult:
        """
        Deliver a message to a contact.

        Args:
            contact: Recipient
            channel: Delivery channel
            message: Message text

        Returns:
            DispatchResult

        Raises:
            DispatchError: If the transport fails
        """
        pass


class LoggingDispatcher(NotificationDispatcher):
    """
    Dispatcher that records notifications in the log and reports delivery.

    SAFETY_NOTE: Nothing leaves the process. Use only in development
    or where a real transport is wired in elsewhere.
    """

    def __init__(self) -> None:
        self.sent: list[tuple[str, ContactChannel]] = []

    @property
    def name(self) -> str:
        return "logging"

    async def send(
        self,
        contact: EmergencyContact,
        channel: ContactChannel,
        message: str,
    ) -> DispatchResult:
        self.sent.append((contact.id, channel))
        logger.warning(
            "Notification dispatched",
            dispatcher=self.name,
            contact_id=contact.id,
            channel=channel.value,
            address=contact.address,
            message_body=message,
        )
        return DispatchResult(delivered=True, detail="logged")


class UnavailableDispatcher(NotificationDispatcher):
    """Dispatcher whose transport is down; every send raises."""

    def __init__(self, reason: str = "transport unavailable") -> None:
        self.reason = reason

    @property
    def name(self) -> str:
        return "unavailable"

    async def send(
        self,
        contact: EmergencyContact,
        channel: ContactChannel,
        message: str,
    ) -> DispatchResult:
        raise DispatchError(self.reason, channel=channel.value)


def create_dispatcher(dispatcher_type: str) -> Optional[NotificationDispatcher]:
    """
    Build a dispatcher from its configured type.

    Returns:
        Dispatcher instance, or None when notifications are disabled

    Raises:
        ValueError: If unknown dispatcher type
    """
    kind = DispatcherType(dispatcher_type)
    if kind == DispatcherType.LOGGING:
        return LoggingDispatcher()

    logger.warning("Notification dispatch disabled; contact attempts will fail")
    return None
