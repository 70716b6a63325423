"""
Integration Tests - Monitoring Flow

Tests the complete frames -> vitals -> risk -> escalation pipeline.
Verifies that vitals, events and environmental inputs drive the
escalation engine and that operator commands close the loop.
"""

import asyncio

import pytest

from lifeline.config import EscalationSettings, Settings
from lifeline.domain.enums.escalation import AttemptStatus, EscalationState, SessionOutcome
from lifeline.domain.enums.tiers import EnvironmentalTier, RiskTier
from lifeline.domain.enums.vitals import ArrhythmiaFlag
from lifeline.domain.errors import SourceUnavailableError
from lifeline.domain.models.escalation import DispatchResult
from lifeline.domain.models.risk import EnvironmentalFactor, EventCode, SymptomEvent
from lifeline.infrastructure.dispatch import NotificationDispatcher
from lifeline.services.monitoring import MonitoringService
from lifeline.services.signal import CaptureSource

from support import sine_frames


@pytest.fixture
def service(test_settings, dispatcher, scheduler, contacts):
    return MonitoringService(
        test_settings,
        dispatcher=dispatcher,
        scheduler=scheduler,
        contacts=contacts,
    )


def _process(service: MonitoringService, frames) -> None:
    for frame in frames:
        service.process_frame(frame)


class TestMonitoringFlow:
    """Integration tests for the synchronous pipeline."""

    def test_defaults_before_any_frame(self, service):
        vitals = service.latest_vitals()

        assert vitals.heart_rate == 70.0
        assert vitals.stale
        assert service.latest_risk().tier == RiskTier.LOW
        assert service.status()["running"] is False
        assert service.status()["escalation_state"] == "standby"

    def test_healthy_pulse_stays_in_standby(self, service):
        _process(service, sine_frames(1.2, seconds=10))

        assert service.latest_vitals().heart_rate == pytest.approx(72.0, abs=3.0)
        assert service.latest_risk().tier == RiskTier.LOW
        assert service.escalation().state == EscalationState.STANDBY

    def test_bradycardia_is_medium_without_escalation(self, service):
        """HR ~45 raises risk to medium, below the escalation trigger."""
        _process(service, sine_frames(0.75, seconds=20))

        vitals = service.latest_vitals()
        assert vitals.has_flag(ArrhythmiaFlag.BRADYCARDIA)
        assert service.latest_risk().tier == RiskTier.MEDIUM
        assert service.escalation().state == EscalationState.STANDBY

    def test_fall_event_escalates_after_countdown(self, service, scheduler, dispatcher):
        score = service.report_event(SymptomEvent(code=EventCode.FALL, confidence=0.9))

        assert score.tier == RiskTier.HIGH
        assert service.escalation().state == EscalationState.ESCALATING

        scheduler.advance(10.0)

        assert service.escalation().state == EscalationState.ACTIVE
        assert dispatcher.order()[0] == "primary"

    def test_false_alarm_cancel(self, service, scheduler, dispatcher):
        service.report_event(SymptomEvent(code=EventCode.FALL))

        service.cancel()
        scheduler.advance(60.0)

        assert service.escalation().state == EscalationState.STANDBY
        assert service.escalation_history()[-1].outcome == SessionOutcome.CANCELLED
        assert dispatcher.calls == []

    def test_critical_environment_activates_immediately(self, service, dispatcher):
        service.update_environment([
            EnvironmentalFactor(kind="gas", value=950.0, tier=EnvironmentalTier.CRITICAL),
        ])

        assert service.escalation().state == EscalationState.ACTIVE
        assert dispatcher.order() == ["primary"]

    def test_sos_then_resolve(self, service, scheduler, dispatcher):
        snapshot = service.trigger_sos()

        assert snapshot.state == EscalationState.ACTIVE
        assert service.latest_risk().tier == RiskTier.CRITICAL
        assert len(service.escalation_history()) == 0

        service.resolve()

        assert service.escalation().state == EscalationState.STANDBY
        assert service.latest_risk().tier == RiskTier.LOW
        assert service.escalation_history()[-1].outcome == SessionOutcome.RESOLVED

        scheduler.advance(300.0)
        assert dispatcher.order() == ["primary"]

    def test_crash_after_resolved_sos_escalates(self, service, dispatcher):
        service.trigger_sos()
        service.resolve()

        service.report_event(SymptomEvent(code=EventCode.CRASH))

        snapshot = service.escalation()
        assert snapshot.state == EscalationState.ACTIVE
        assert snapshot.session.trigger.value == "risk"
        assert dispatcher.order() == ["primary", "primary"]

    def test_second_fall_after_resolve_escalates(self, service, scheduler):
        service.report_event(SymptomEvent(code=EventCode.FALL))
        scheduler.advance(10.0)
        service.resolve()

        service.report_event(SymptomEvent(code=EventCode.FALL))

        assert service.escalation().state == EscalationState.ESCALATING

    def test_crash_after_false_alarm_escalates(self, service, dispatcher):
        service.report_event(SymptomEvent(code=EventCode.FALL))
        service.cancel()

        assert service.latest_risk().tier == RiskTier.LOW

        service.report_event(SymptomEvent(code=EventCode.CRASH))

        assert service.escalation().state == EscalationState.ACTIVE
        assert dispatcher.order() == ["primary"]

    def test_acknowledge_and_escalate(self, service, scheduler, dispatcher):
        service.trigger_sos()
        service.acknowledge("primary")
        service.escalate_remaining()
        scheduler.advance(10.0)

        session = service.escalation().session
        assert session.attempt_for("primary").status.value == "acknowledged"
        assert set(dispatcher.order()) == {"primary", "medical", "family", "backup"}


class TestSamplingLoop:
    """Integration tests for the asyncio sampling loop."""

    async def test_falls_back_to_synthetic_source(self, test_settings):
        service = MonitoringService(test_settings)

        await service.start()
        try:
            assert service.is_running
            assert service.simulated
            assert service.status()["source"] == "synthetic"
            await asyncio.sleep(0.1)
            assert len(service.processor.buffer) > 0
            assert service.latest_vitals().simulated
        finally:
            await service.stop()

        assert not service.is_running

    async def test_capture_source_when_available(self, test_settings):
        capture = CaptureSource()
        capture.available = True
        for frame in sine_frames(1.2, seconds=1):
            capture.push(frame)
        service = MonitoringService(test_settings, capture_source=capture)

        await service.start()
        try:
            assert not service.simulated
            await asyncio.sleep(0.1)
            assert len(service.processor.buffer) > 0
        finally:
            await service.stop()

    async def test_no_source_raises(self):
        settings = Settings(use_synthetic_fallback=False, _env_file=None)
        service = MonitoringService(settings)

        with pytest.raises(SourceUnavailableError):
            await service.start()
        assert not service.is_running

    async def test_stop_waits_for_inflight_notifications(self, test_settings, contacts):
        dispatcher = _DelayedDispatcher(delay=0.05)
        service = MonitoringService(test_settings, dispatcher=dispatcher, contacts=contacts[:1])

        await service.start()
        service.trigger_sos()
        await service.stop()

        attempt = service.escalation().session.attempt_for("primary")
        assert dispatcher.completed == 1
        assert attempt.status == AttemptStatus.DELIVERED

    async def test_stop_gives_up_after_drain_timeout(self, contacts):
        settings = Settings(
            escalation=EscalationSettings(drain_timeout_seconds=0.05),
            _env_file=None,
        )
        dispatcher = _DelayedDispatcher(delay=60.0)
        service = MonitoringService(settings, dispatcher=dispatcher, contacts=contacts[:1])

        await service.start()
        service.trigger_sos()
        await asyncio.wait_for(service.stop(), timeout=2.0)

        assert dispatcher.completed == 0
        assert service.escalation().session.attempt_for("primary").status == AttemptStatus.FAILED


class _DelayedDispatcher(NotificationDispatcher):
    """Delivers every notification after a fixed delay."""

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self.completed = 0

    @property
    def name(self) -> str:
        return "delayed"

    async def send(self, contact, channel, message) -> DispatchResult:
        await asyncio.sleep(self.delay)
        self.completed += 1
        return DispatchResult(delivered=True)
