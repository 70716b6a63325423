"""
Unit Tests for Contact Selection

Tests which contacts are notified immediately and which wait for
the follow-up stage at each severity tier.
"""

from lifeline.domain.enums.escalation import ContactRole
from lifeline.domain.enums.tiers import RiskTier
from lifeline.domain.models.escalation import EmergencyContact
from lifeline.services.escalation.contact_selection import by_priority, select_contacts


def _ids(contacts) -> list[str]:
    return [c.id for c in contacts]


class TestSelectContacts:
    """Tests for the tiered notification plan."""

    def test_critical_notifies_medical_and_top_first(self, contacts, escalation_settings):
        plan = select_contacts(contacts, RiskTier.CRITICAL, escalation_settings)

        assert _ids(plan.immediate) == ["primary", "medical"]
        assert _ids(plan.followup) == ["family", "backup"]
        assert plan.followup_delay == escalation_settings.critical_followup_seconds

    def test_high_holds_back_backups(self, contacts, escalation_settings):
        plan = select_contacts(contacts, RiskTier.HIGH, escalation_settings)

        assert _ids(plan.immediate) == ["primary", "medical", "family"]
        assert _ids(plan.followup) == ["backup"]
        assert plan.followup_delay == escalation_settings.backup_followup_seconds

    def test_high_with_only_backups(self, escalation_settings):
        backup = EmergencyContact(id="b", name="B", role=ContactRole.BACKUP)

        plan = select_contacts([backup], RiskTier.HIGH, escalation_settings)

        assert _ids(plan.immediate) == ["b"]
        assert plan.followup == ()
        assert plan.followup_delay is None

    def test_medium_notifies_primary_only(self, contacts, escalation_settings):
        plan = select_contacts(contacts, RiskTier.MEDIUM, escalation_settings)

        assert _ids(plan.immediate) == ["primary"]
        assert plan.followup == ()

    def test_medium_without_primary_uses_top_contact(self, contacts, escalation_settings):
        others = [c for c in contacts if c.role != ContactRole.PRIMARY]

        plan = select_contacts(others, RiskTier.MEDIUM, escalation_settings)

        assert _ids(plan.immediate) == ["medical"]

    def test_low_notifies_default_contacts(self, contacts, escalation_settings):
        plan = select_contacts(contacts, RiskTier.LOW, escalation_settings)
        assert _ids(plan.immediate) == ["primary"]

    def test_no_contacts_yields_empty_plan(self, escalation_settings):
        plan = select_contacts([], RiskTier.CRITICAL, escalation_settings)

        assert plan.immediate == ()
        assert plan.followup_delay is None

    def test_medical_wins_priority_ties(self):
        family = EmergencyContact(id="f", name="F", role=ContactRole.FAMILY, priority=1)
        medical = EmergencyContact(id="m", name="M", role=ContactRole.MEDICAL, priority=1)

        assert _ids(by_priority([family, medical])) == ["m", "f"]
