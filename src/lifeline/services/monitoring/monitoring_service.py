"""
Monitoring Service

Coordinates the complete pipeline from acquisition frames to
contact notification.

ARCHITECTURE: This is the single owner of the processor, scorer and
engine. It connects:
Source -> SignalProcessor -> RiskScorer -> EscalationEngine

ingest/recompute run only inside the sampling task. Readers get
immutable readings, scores and deep-copied escalation snapshots.
"""

import asyncio
from contextlib import suppress
from typing import Iterable, Optional

from lifeline.config.logging_config import get_logger
from lifeline.config.settings import Settings, get_settings
from lifeline.domain.enums.escalation import EscalationState
from lifeline.domain.models.escalation import (
    EmergencyContact,
    EscalationSession,
    EscalationSnapshot,
)
from lifeline.domain.models.risk import (
    EnvironmentalFactor,
    EventCode,
    RiskScore,
    SymptomEvent,
)
from lifeline.domain.models.signal import SampleFrame
from lifeline.domain.models.vitals import VitalReading
from lifeline.infrastructure.dispatch import NotificationDispatcher, create_dispatcher
from lifeline.infrastructure.metrics import track_source
from lifeline.services.escalation import EscalationEngine, Scheduler
from lifeline.services.risk import RiskScorer
from lifeline.services.signal import (
    CaptureSource,
    SampleSource,
    SignalProcessor,
    SyntheticSource,
    select_source,
)

logger = get_logger(__name__)


class MonitoringService:
    """
    Vital monitoring and escalation coordinator.

    Usage:
        service = MonitoringService(settings)
        await service.start()
        service.trigger_sos()
        await service.stop()
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        capture_source: Optional[CaptureSource] = None,
        fallback_source: Optional[SampleSource] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        scheduler: Optional[Scheduler] = None,
        contacts: Iterable[EmergencyContact] = (),
    ) -> None:
        """
        Initialize monitoring service.

        Args:
            settings: Application settings
            capture_source: Source fed by the capture shim
            fallback_source: Substitute when the capture source is unavailable
            dispatcher: Notification transport (defaults to the configured one)
            scheduler: Engine clock and timers (defaults to asyncio)
            contacts: Initial emergency contacts
        """
        self._settings = settings or get_settings()
        signal_settings = self._settings.signal

        self.capture_source = capture_source or CaptureSource()
        if fallback_source is None and self._settings.use_synthetic_fallback:
            fallback_source = SyntheticSource(
                heart_rate=signal_settings.synthetic_heart_rate,
                sample_rate_hz=signal_settings.sample_rate_hz,
                seed=signal_settings.synthetic_seed,
            )
        self._fallback_source = fallback_source

        if dispatcher is None:
            dispatcher = create_dispatcher(self._settings.dispatcher)

        self.processor = SignalProcessor(signal_settings)
        self.scorer = RiskScorer(self._settings.risk)
        self.engine = EscalationEngine(
            self._settings.escalation,
            dispatcher=dispatcher,
            scheduler=scheduler,
            contacts=contacts,
        )

        self._source: Optional[SampleSource] = None
        self._task: Optional[asyncio.Task] = None

    # =========================================================================
    # SAMPLING LOOP
    # =========================================================================

    @property
    def source(self) -> Optional[SampleSource]:
        return self._source

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def simulated(self) -> bool:
        return bool(self._source and self._source.simulated)

    async def start(self) -> None:
        """
        Select a source and start the sampling task.

        Raises:
            SourceUnavailableError: No source is available
        """
        if self.is_running:
            return

        self._source = await select_source(self.capture_source, self._fallback_source)
        self.processor.reset()
        self.processor.simulated = self._source.simulated
        track_source(self._source.simulated)

        self._task = asyncio.create_task(self._run(), name="lifeline-sampling")
        logger.info(
            "Monitoring started",
            source=self._source.name,
            simulated=self._source.simulated,
            sample_rate_hz=self._settings.signal.sample_rate_hz,
        )

    async def stop(self) -> None:
        """Stop the sampling task and wait for in-flight notifications."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        await self.engine.drain()
        if task is not None:
            logger.info("Monitoring stopped")

    async def _run(self) -> None:
        period = self._settings.signal.period_seconds
        while True:
            try:
                frame = await self._source.read()
                if frame is not None:
                    self.process_frame(frame)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # The loop must outlive any single bad cycle
                logger.exception("Sampling cycle failed", error_type=type(e).__name__)
            await asyncio.sleep(period)

    def process_frame(self, frame: SampleFrame) -> Optional[VitalReading]:
        """
        Run one frame through the pipeline.

        Returns:
            New VitalReading when a recompute ran, else None
        """
        reading = self.processor.ingest(frame)
        if reading is not None:
            score = self.scorer.update_vitals(reading)
            self.engine.on_risk(score)
        return reading

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def report_event(self, event: SymptomEvent) -> RiskScore:
        """Record a discrete event and feed the new score to the engine."""
        score = self.scorer.record_event(event)
        self.engine.on_risk(score)
        return score

    def update_environment(self, factors: Iterable[EnvironmentalFactor]) -> RiskScore:
        score = self.scorer.update_environment(factors)
        self.engine.on_risk(score)
        return score

    def trigger_sos(self) -> EscalationSnapshot:
        """Manual SOS: immediate critical escalation."""
        snapshot = self.engine.trigger_manual_sos()
        score = self.scorer.record_event(SymptomEvent(
            code=EventCode.MANUAL_SOS,
            description="Manual SOS",
        ))
        self.engine.on_risk(score)
        return snapshot

    def cancel(self) -> EscalationSnapshot:
        """
        Cancel a countdown as a false alarm.

        Events behind the false alarm are dropped and the new score is
        fed back so the engine can re-arm once risk falls below the
        trigger tier.
        """
        self.engine.cancel()
        return self._feed_cleared_score()

    def resolve(self) -> EscalationSnapshot:
        """
        Resolve the active session.

        Clears recorded events so a resolved emergency does not keep
        the score at its trigger tier, then feeds the new score back
        to the engine.
        """
        was_active = self.engine.state == EscalationState.ACTIVE
        snapshot = self.engine.resolve()
        if was_active:
            snapshot = self._feed_cleared_score()
        return snapshot

    def _feed_cleared_score(self) -> EscalationSnapshot:
        return self.engine.on_risk(self.scorer.clear_events())

    def acknowledge(self, contact_id: str) -> EscalationSnapshot:
        return self.engine.acknowledge(contact_id)

    def escalate_remaining(self) -> EscalationSnapshot:
        return self.engine.escalate_remaining()

    def set_contacts(self, contacts: Iterable[EmergencyContact]) -> None:
        self.engine.set_contacts(contacts)

    # =========================================================================
    # SNAPSHOTS
    # =========================================================================

    def latest_vitals(self) -> VitalReading:
        """Latest reading, or the default reading before the first recompute."""
        return self.processor.latest or VitalReading.default(simulated=self.simulated)

    def latest_risk(self) -> RiskScore:
        return self.scorer.current()

    def escalation(self) -> EscalationSnapshot:
        return self.engine.snapshot()

    def escalation_history(self) -> list[EscalationSession]:
        return self.engine.history()

    def status(self) -> dict:
        """Sampling loop and source status for the readiness check."""
        return {
            "running": self.is_running,
            "source": self._source.name if self._source else None,
            "simulated": self.simulated,
            "buffered_samples": len(self.processor.buffer),
            "escalation_state": self.engine.state.value,
        }
