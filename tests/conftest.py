"""Tests configuration and fixtures."""

import pytest

from lifeline.config import EscalationSettings, RiskSettings, Settings, SignalSettings
from lifeline.domain.enums.escalation import ContactChannel, ContactRole
from lifeline.domain.models.escalation import EmergencyContact

from support import FakeDispatcher, ManualScheduler


@pytest.fixture
def test_settings() -> Settings:
    """Application settings with defaults, independent of any .env file."""
    return Settings(
        env="development",
        use_synthetic_fallback=True,
        _env_file=None,
    )


@pytest.fixture
def signal_settings() -> SignalSettings:
    return SignalSettings()


@pytest.fixture
def risk_settings() -> RiskSettings:
    return RiskSettings()


@pytest.fixture
def escalation_settings() -> EscalationSettings:
    return EscalationSettings()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def dispatcher(scheduler: ManualScheduler) -> FakeDispatcher:
    return FakeDispatcher(scheduler)


@pytest.fixture
def contacts() -> list[EmergencyContact]:
    """Four contacts covering every role, priority 1 (highest) to 4."""
    return [
        EmergencyContact(
            id="primary", name="Sam", role=ContactRole.PRIMARY, priority=1,
            address="+15550001", is_default=True,
        ),
        EmergencyContact(
            id="medical", name="Dr. Lee", role=ContactRole.MEDICAL, priority=2,
            channel=ContactChannel.CALL, address="+15550002",
        ),
        EmergencyContact(
            id="family", name="Alex", role=ContactRole.FAMILY, priority=3,
            address="+15550003",
        ),
        EmergencyContact(
            id="backup", name="Robin", role=ContactRole.BACKUP, priority=4,
            channel=ContactChannel.EMAIL, address="robin@example.com",
        ),
    ]
