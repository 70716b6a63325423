"""
Escalation Endpoints

Operator commands for the escalation engine and read-only views
of the current and archived sessions.

SAFETY-CRITICAL: Commands that are not valid in the current state
return 409 rather than being silently ignored, except resolve,
which is idempotent.
"""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator

from lifeline.api.dependencies import get_monitoring_service
from lifeline.config.logging_config import get_logger
from lifeline.domain.enums.escalation import ContactChannel, ContactRole
from lifeline.domain.models.escalation import EmergencyContact
from lifeline.services.monitoring import MonitoringService

logger = get_logger(__name__)
router = APIRouter()


# Request Models

class ContactModel(BaseModel):
    """Emergency contact as supplied by the profile store."""

    id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=120)
    channel: ContactChannel = ContactChannel.SMS
    role: ContactRole = ContactRole.FAMILY
    priority: int = Field(default=1, ge=1, le=100, description="1 is the highest priority")
    address: str = Field(default="", max_length=256)
    is_default: bool = False

    def to_contact(self) -> EmergencyContact:
        return EmergencyContact(
            id=self.id,
            name=self.name,
            channel=self.channel,
            role=self.role,
            priority=self.priority,
            address=self.address,
            is_default=self.is_default,
        )


class ContactsRequest(BaseModel):
    contacts: list[ContactModel] = Field(default_factory=list)

    @field_validator("contacts")
    @classmethod
    def unique_ids(cls, value: list[ContactModel]) -> list[ContactModel]:
        ids = [c.id for c in value]
        if len(ids) != len(set(ids)):
            raise ValueError("Contact ids must be unique")
        return value


# Endpoints

@router.get("/escalation", summary="Current escalation state")
async def get_escalation(
    service: MonitoringService = Depends(get_monitoring_service),
) -> dict:
    return service.escalation().to_dict()


@router.get("/escalation/history", summary="Archived escalation sessions")
async def get_history(
    service: MonitoringService = Depends(get_monitoring_service),
) -> list[dict]:
    return [session.to_dict() for session in service.escalation_history()]


@router.post("/contacts", summary="Replace emergency contacts")
async def set_contacts(
    request: ContactsRequest,
    service: MonitoringService = Depends(get_monitoring_service),
) -> dict:
    contacts = [c.to_contact() for c in request.contacts]
    service.set_contacts(contacts)
    return {"contacts": [c.to_dict() for c in contacts]}


@router.post(
    "/escalation/sos",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Manual SOS",
)
async def trigger_sos(
    service: MonitoringService = Depends(get_monitoring_service),
) -> dict:
    """
    Trigger a critical escalation immediately.

    No countdown: contacts are notified at once, highest priority first.
    """
    logger.warning("Manual SOS received")
    return service.trigger_sos().to_dict()


@router.post("/escalation/cancel", summary="Cancel during countdown")
async def cancel_escalation(
    service: MonitoringService = Depends(get_monitoring_service),
) -> dict:
    return service.cancel().to_dict()


@router.post("/escalation/resolve", summary="Resolve the active session")
async def resolve_escalation(
    service: MonitoringService = Depends(get_monitoring_service),
) -> dict:
    return service.resolve().to_dict()


@router.post(
    "/escalation/acknowledge/{contact_id}",
    summary="Record a contact acknowledgement",
)
async def acknowledge_contact(
    contact_id: str,
    service: MonitoringService = Depends(get_monitoring_service),
) -> dict:
    return service.acknowledge(contact_id).to_dict()


@router.post("/escalation/escalate", summary="Notify all remaining contacts now")
async def escalate_remaining(
    service: MonitoringService = Depends(get_monitoring_service),
) -> dict:
    return service.escalate_remaining().to_dict()
