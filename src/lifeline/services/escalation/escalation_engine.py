"""
Escalation Engine

Turns risk into a staged contact-notification protocol.

States:
    STANDBY -> ESCALATING -> ACTIVE -> RESOLVED -> STANDBY
    ESCALATING -> STANDBY on cancel (false alarm)

SAFETY-CRITICAL:
- At most one session is open; further triggers merge into it
- Critical triggers skip the countdown
- Dispatches start at least `stagger_seconds` apart, in FIFO order
- Failed deliveries retry after a backoff, at most `max_retries` times
- Resolve cancels every timer of the session exactly once; no
  contact attempt is started after resolve

ARCHITECTURE: The engine never sleeps or blocks. Time passes only
through its Scheduler; all timers live in its TimerTable.
"""

import asyncio
from collections import deque
from copy import deepcopy
from datetime import datetime, timezone
from typing import Iterable, Optional
from uuid import UUID

from lifeline.config.logging_config import get_logger
from lifeline.config.settings import EscalationSettings, get_settings
from lifeline.domain.enums.escalation import (
    AttemptStatus,
    EscalationState,
    SessionOutcome,
    TimelineKind,
    TriggerSource,
)
from lifeline.domain.enums.tiers import RiskTier
from lifeline.domain.errors import InvalidTransitionError, UnknownContactError
from lifeline.domain.models.escalation import (
    ContactAttempt,
    DispatchResult,
    EmergencyContact,
    EscalationSession,
    EscalationSnapshot,
    TimelineEntry,
)
from lifeline.domain.models.risk import RiskScore
from lifeline.infrastructure.dispatch import NotificationDispatcher
from lifeline.infrastructure.metrics import (
    track_contact_attempt,
    track_escalation_session,
    track_escalation_transition,
    track_hard_failure,
)
from lifeline.services.escalation.contact_selection import (
    ContactPlan,
    by_priority,
    select_contacts,
)
from lifeline.services.escalation.messages import render_message
from lifeline.services.escalation.scheduler import AsyncioScheduler, Scheduler
from lifeline.services.escalation.timer_table import TimerTable

logger = get_logger(__name__)


# Timer names within a session
COUNTDOWN_TIMER = "countdown"
FOLLOWUP_TIMER = "stage:followup"
PUMP_TIMER = "pump"
RETRY_TIMER_PREFIX = "retry:"

# Floating-point slack when comparing scheduler times
_EPSILON = 1e-9


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _retry_timer(attempt_id: UUID) -> str:
    return f"{RETRY_TIMER_PREFIX}{attempt_id}"


class EscalationEngine:
    """
    Escalation state machine and notification protocol.

    Single-threaded: call it from the event loop that runs its
    scheduler. Observers receive deep copies via snapshot() and
    history().

    Usage:
        engine = EscalationEngine(settings.escalation, dispatcher, contacts=contacts)
        engine.on_risk(score)
        engine.resolve()
    """

    def __init__(
        self,
        settings: Optional[EscalationSettings] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        scheduler: Optional[Scheduler] = None,
        contacts: Iterable[EmergencyContact] = (),
    ) -> None:
        """
        Initialize escalation engine.

        Args:
            settings: Escalation settings (defaults to application settings)
            dispatcher: Notification transport; None records every attempt as failed
            scheduler: Clock and timers (defaults to the running asyncio loop)
            contacts: Initial emergency contacts
        """
        self._settings = settings or get_settings().escalation
        self._trigger_tier = RiskTier.from_label(self._settings.trigger_tier)
        self._dispatcher = dispatcher
        self._scheduler = scheduler or AsyncioScheduler()
        self._timers = TimerTable(self._scheduler)
        self._contacts: list[EmergencyContact] = list(contacts)

        self._session: Optional[EscalationSession] = None
        self._history: deque[EscalationSession] = deque(maxlen=self._settings.history_size)
        self._queue: deque[UUID] = deque()
        self._followup: list[EmergencyContact] = []
        self._last_dispatch_at: Optional[float] = None
        # Severity of the last closed session while risk has not yet dropped
        # below the trigger tier; only a higher tier may reopen before then
        self._rearm_ceiling: Optional[RiskTier] = None

    # =========================================================================
    # READ-ONLY VIEWS
    # =========================================================================

    @property
    def state(self) -> EscalationState:
        return self._session.state if self._session else EscalationState.STANDBY

    @property
    def timers(self) -> TimerTable:
        return self._timers

    @property
    def contacts(self) -> list[EmergencyContact]:
        return list(self._contacts)

    def snapshot(self) -> EscalationSnapshot:
        """Deep copy of the current state and session."""
        session = self._session
        return EscalationSnapshot(
            state=self.state,
            session=deepcopy(session),
            pending_timers=self._timers.pending(session.session_id) if session else 0,
        )

    def history(self) -> list[EscalationSession]:
        """Deep copies of archived sessions, oldest first."""
        return [deepcopy(s) for s in self._history]

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def set_contacts(self, contacts: Iterable[EmergencyContact]) -> None:
        """Replace the contact list used by future selections."""
        self._contacts = list(contacts)
        logger.info("Emergency contacts updated", count=len(self._contacts))

    def on_risk(self, score: RiskScore) -> EscalationSnapshot:
        """
        Feed a new risk score.

        Opens a session when the tier reaches the trigger tier, or
        merges into the open session when the tier is higher than
        its current severity. After a session closes, the same tier
        only reopens once risk has dropped below the trigger tier; a
        higher tier reopens immediately.

        Args:
            score: Latest risk score

        Returns:
            EscalationSnapshot after handling the score
        """
        tier = score.tier
        if tier < self._trigger_tier:
            if self._session is None:
                self._rearm_ceiling = None
            return self.snapshot()

        if self._session is None:
            if self._rearm_ceiling is not None and tier <= self._rearm_ceiling:
                logger.debug(
                    "Risk trigger suppressed until re-armed",
                    tier=tier.label,
                    ceiling=self._rearm_ceiling.label,
                )
                return self.snapshot()
            self._open_session(tier, TriggerSource.RISK, factors=[
                f.name for f in score.contributing_factors if f.tier >= self._trigger_tier
            ])
        elif tier > self._session.severity:
            self._merge_trigger(tier, TriggerSource.RISK)

        return self.snapshot()

    def trigger_manual_sos(self) -> EscalationSnapshot:
        """
        Manual SOS: critical severity, no countdown.

        Merges into an open session, upgrading it to critical.
        """
        if self._session is None:
            self._open_session(RiskTier.CRITICAL, TriggerSource.MANUAL_SOS)
        else:
            self._merge_trigger(RiskTier.CRITICAL, TriggerSource.MANUAL_SOS)
        return self.snapshot()

    def cancel(self) -> EscalationSnapshot:
        """
        Cancel during the countdown (false alarm).

        Raises:
            InvalidTransitionError: If not escalating
        """
        session = self._session
        if session is None or session.state != EscalationState.ESCALATING:
            raise InvalidTransitionError("cancel", self.state)

        self._cancel_timers(session)
        self._transition(session, EscalationState.STANDBY, reason="cancelled")
        self._close(session, SessionOutcome.CANCELLED)
        return self.snapshot()

    def resolve(self) -> EscalationSnapshot:
        """
        Close an active session.

        Idempotent: outside ACTIVE this is a no-op.
        """
        session = self._session
        if session is None or session.state != EscalationState.ACTIVE:
            logger.debug("Resolve ignored", state=self.state.value)
            return self.snapshot()

        self._cancel_timers(session)
        self._transition(session, EscalationState.RESOLVED, reason="operator_resolved")
        self._close(session, SessionOutcome.RESOLVED)
        session.timeline.append(TimelineEntry(
            kind=TimelineKind.STATE_CHANGED,
            detail={"from": EscalationState.RESOLVED.value, "to": EscalationState.STANDBY.value},
        ))
        track_escalation_transition(EscalationState.RESOLVED.value, EscalationState.STANDBY.value)
        return self.snapshot()

    def acknowledge(self, contact_id: str) -> EscalationSnapshot:
        """
        Record that a contact acknowledged the alert.

        Cancels any pending retry for that contact.

        Raises:
            InvalidTransitionError: If not active
            UnknownContactError: If the contact has no attempt
        """
        session = self._require_active("acknowledge")
        attempt = session.attempt_for(contact_id)
        if attempt is None:
            raise UnknownContactError(contact_id)

        self._timers.cancel(session.session_id, _retry_timer(attempt.attempt_id))
        if attempt.attempt_id in self._queue:
            self._queue.remove(attempt.attempt_id)
        attempt.terminal = True
        self._set_status(session, attempt, AttemptStatus.ACKNOWLEDGED)
        logger.info("Contact acknowledged", session_id=str(session.session_id), contact_id=contact_id)
        return self.snapshot()

    def escalate_remaining(self) -> EscalationSnapshot:
        """
        Notify every contact not yet attempted, now.

        Cancels the pending follow-up stage.

        Raises:
            InvalidTransitionError: If not active
        """
        session = self._require_active("escalate")
        self._timers.cancel(session.session_id, FOLLOWUP_TIMER)
        self._followup = []
        remaining = [c for c in by_priority(self._contacts) if session.attempt_for(c.id) is None]
        logger.warning(
            "Escalating to remaining contacts",
            session_id=str(session.session_id),
            count=len(remaining),
        )
        self._start_attempts(session, remaining)
        return self.snapshot()

    async def drain(self) -> None:
        """
        Wait for in-flight dispatches, bounded by `drain_timeout_seconds`.

        Dispatches still running at the deadline are cancelled and
        recorded as failures.
        """
        timeout = self._settings.drain_timeout_seconds
        try:
            await asyncio.wait_for(self._scheduler.drain(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Dispatches still in flight at shutdown", timeout_seconds=timeout)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def _open_session(
        self,
        tier: RiskTier,
        trigger: TriggerSource,
        factors: Optional[list[str]] = None,
    ) -> None:
        session = EscalationSession(severity=tier, trigger=trigger)
        self._session = session
        self._rearm_ceiling = None
        self._queue.clear()
        self._followup = []
        self._last_dispatch_at = None

        self._transition(
            session,
            EscalationState.ESCALATING,
            from_state=EscalationState.STANDBY,
            severity=tier.label,
            trigger=trigger.value,
            factors=factors or [],
        )

        if tier >= RiskTier.CRITICAL or self._settings.countdown_seconds <= 0:
            self._activate(session, reason="critical" if tier >= RiskTier.CRITICAL else "no_countdown")
            return

        self._timers.schedule(
            session.session_id,
            COUNTDOWN_TIMER,
            self._settings.countdown_seconds,
            lambda: self._on_countdown_elapsed(session.session_id),
        )
        self._record(session, TimelineKind.STAGE_SCHEDULED,
                     timer=COUNTDOWN_TIMER, delay=self._settings.countdown_seconds)

    def _merge_trigger(self, tier: RiskTier, trigger: TriggerSource) -> None:
        session = self._session
        self._record(session, TimelineKind.TRIGGER_MERGED, tier=tier.label, trigger=trigger.value)
        if tier <= session.severity:
            return

        previous = session.severity
        session.severity = tier
        self._record(session, TimelineKind.SEVERITY_UPGRADED, from_tier=previous.label, to_tier=tier.label)
        logger.warning(
            "Escalation severity upgraded",
            session_id=str(session.session_id),
            from_tier=previous.label,
            to_tier=tier.label,
            trigger=trigger.value,
        )

        if session.state == EscalationState.ESCALATING and tier >= RiskTier.CRITICAL:
            # Critical supersedes the countdown
            self._timers.cancel(session.session_id, COUNTDOWN_TIMER)
            self._activate(session, reason="superseded_by_critical")
        elif session.state == EscalationState.ACTIVE:
            self._apply_plan(session, select_contacts(self._contacts, tier, self._settings))

    def _on_countdown_elapsed(self, session_id: UUID) -> None:
        session = self._current(session_id)
        if session is None or session.state != EscalationState.ESCALATING:
            return
        self._activate(session, reason="countdown_elapsed")

    def _activate(self, session: EscalationSession, reason: str) -> None:
        session.activated_at = _utcnow()
        self._transition(session, EscalationState.ACTIVE, reason=reason, severity=session.severity.label)
        plan = select_contacts(self._contacts, session.severity, self._settings)
        if not plan.immediate:
            logger.error("No emergency contacts to notify", session_id=str(session.session_id))
        self._apply_plan(session, plan)

    def _apply_plan(self, session: EscalationSession, plan: ContactPlan) -> None:
        self._start_attempts(session, plan.immediate)

        followup = [c for c in plan.followup if session.attempt_for(c.id) is None]
        if not followup or plan.followup_delay is None:
            return

        self._followup = followup
        self._timers.schedule(
            session.session_id,
            FOLLOWUP_TIMER,
            plan.followup_delay,
            lambda: self._on_followup(session.session_id),
        )
        self._record(
            session,
            TimelineKind.STAGE_SCHEDULED,
            timer=FOLLOWUP_TIMER,
            delay=plan.followup_delay,
            contact_ids=[c.id for c in followup],
        )

    def _on_followup(self, session_id: UUID) -> None:
        session = self._current(session_id)
        if session is None or session.state != EscalationState.ACTIVE:
            return
        followup, self._followup = self._followup, []
        self._start_attempts(session, followup)

    def _close(self, session: EscalationSession, outcome: SessionOutcome) -> None:
        session.outcome = outcome
        session.resolved_at = _utcnow()
        self._history.append(session)
        self._session = None
        self._queue.clear()
        self._followup = []
        self._rearm_ceiling = session.severity if self._settings.rearm_below_trigger else None

        duration = (session.resolved_at - session.started_at).total_seconds()
        track_escalation_session(outcome.value, duration)
        logger.warning(
            "Escalation session closed",
            session_id=str(session.session_id),
            outcome=outcome.value,
            attempts=len(session.attempts),
            hard_failures=len(session.hard_failures),
            duration_seconds=round(duration, 1),
        )

    def _cancel_timers(self, session: EscalationSession) -> None:
        cancelled = self._timers.cancel_session(session.session_id)
        self._record(session, TimelineKind.TIMERS_CANCELLED, count=cancelled)

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def _start_attempts(self, session: EscalationSession, contacts: Iterable[EmergencyContact]) -> None:
        for contact in contacts:
            if session.attempt_for(contact.id) is not None:
                continue
            attempt = ContactAttempt(contact_id=contact.id, channel=contact.channel)
            session.attempts.append(attempt)
            self._record(
                session,
                TimelineKind.ATTEMPT_CREATED,
                contact_id=contact.id,
                attempt_id=str(attempt.attempt_id),
                channel=contact.channel.value,
            )
            track_contact_attempt(contact.channel.value, AttemptStatus.PENDING.value)
            self._queue.append(attempt.attempt_id)
        self._pump(session.session_id)

    def _pump(self, session_id: UUID) -> None:
        """Start queued dispatches, keeping the stagger between starts."""
        session = self._current(session_id)
        if session is None or session.state != EscalationState.ACTIVE:
            return
        if self._timers.has(session_id, PUMP_TIMER):
            return

        while self._queue:
            if self._last_dispatch_at is not None:
                wait = self._last_dispatch_at + self._settings.stagger_seconds - self._scheduler.now()
                if wait > _EPSILON:
                    self._timers.schedule(session_id, PUMP_TIMER, wait, lambda: self._pump(session_id))
                    return
            self._dispatch(session, self._queue.popleft())

    def _dispatch(self, session: EscalationSession, attempt_id: UUID) -> None:
        attempt = session.attempt_by_id(attempt_id)
        if attempt is None or attempt.terminal:
            return

        attempt.dispatch_count += 1
        attempt.status = AttemptStatus.PENDING
        attempt.timestamp = _utcnow()
        generation = attempt.dispatch_count
        self._last_dispatch_at = self._scheduler.now()

        self._record(
            session,
            TimelineKind.ATTEMPT_DISPATCHED,
            contact_id=attempt.contact_id,
            attempt_id=str(attempt_id),
            retry_count=attempt.retry_count,
        )

        contact = self._contact(attempt.contact_id)
        on_done = self._dispatch_callback(session.session_id, attempt_id, generation)

        if self._dispatcher is None or contact is None:
            on_done(DispatchResult.failure("dispatcher unavailable"), None)
            return

        try:
            awaitable = self._dispatcher.send(contact, attempt.channel, render_message(session, contact))
        except Exception as e:
            on_done(None, e)
            return
        self._scheduler.spawn(awaitable, on_done)

    def _dispatch_callback(self, session_id: UUID, attempt_id: UUID, generation: int):
        def on_done(result: object, error: Optional[BaseException]) -> None:
            if error is not None:
                logger.warning(
                    "Dispatcher raised",
                    session_id=str(session_id),
                    attempt_id=str(attempt_id),
                    error_type=type(error).__name__,
                    error=str(error),
                )
                outcome = DispatchResult.failure(f"{type(error).__name__}: {error}")
            elif isinstance(result, DispatchResult):
                outcome = result
            else:
                outcome = DispatchResult(delivered=bool(result))
            self._on_dispatch_result(session_id, attempt_id, generation, outcome)

        return on_done

    def _on_dispatch_result(
        self,
        session_id: UUID,
        attempt_id: UUID,
        generation: int,
        result: DispatchResult,
    ) -> None:
        session = self._find(session_id)
        if session is None:
            return
        attempt = session.attempt_by_id(attempt_id)
        if attempt is None or attempt.dispatch_count != generation:
            logger.debug("Stale dispatch result dropped", attempt_id=str(attempt_id))
            return
        if attempt.status == AttemptStatus.ACKNOWLEDGED:
            return

        if result.delivered:
            attempt.terminal = True
            attempt.last_error = None
            self._set_status(session, attempt, AttemptStatus.DELIVERED, detail=result.detail)
            return

        attempt.last_error = result.detail
        self._set_status(session, attempt, AttemptStatus.FAILED, detail=result.detail)

        if session is not self._session or session.state != EscalationState.ACTIVE:
            # Session closed while the dispatch was in flight
            attempt.terminal = True
            return

        if attempt.retry_count < self._settings.max_retries:
            self._timers.schedule(
                session_id,
                _retry_timer(attempt_id),
                self._settings.retry_backoff_seconds,
                lambda: self._on_retry(session_id, attempt_id),
            )
            self._record(
                session,
                TimelineKind.RETRY_SCHEDULED,
                contact_id=attempt.contact_id,
                attempt_id=str(attempt_id),
                retry=attempt.retry_count + 1,
                delay=self._settings.retry_backoff_seconds,
            )
            return

        attempt.terminal = True
        self._record(
            session,
            TimelineKind.HARD_FAILURE,
            contact_id=attempt.contact_id,
            attempt_id=str(attempt_id),
            retry_count=attempt.retry_count,
            last_error=result.detail,
        )
        track_hard_failure(attempt.channel.value)
        logger.error(
            "Contact attempt failed after retries",
            session_id=str(session_id),
            contact_id=attempt.contact_id,
            channel=attempt.channel.value,
            retry_count=attempt.retry_count,
        )

    def _on_retry(self, session_id: UUID, attempt_id: UUID) -> None:
        session = self._current(session_id)
        if session is None or session.state != EscalationState.ACTIVE:
            return
        attempt = session.attempt_by_id(attempt_id)
        if attempt is None or attempt.terminal:
            return
        attempt.retry_count += 1
        self._queue.append(attempt_id)
        self._pump(session_id)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _current(self, session_id: UUID) -> Optional[EscalationSession]:
        session = self._session
        if session is None or session.session_id != session_id:
            return None
        return session

    def _find(self, session_id: UUID) -> Optional[EscalationSession]:
        session = self._current(session_id)
        if session is not None:
            return session
        for archived in self._history:
            if archived.session_id == session_id:
                return archived
        return None

    def _contact(self, contact_id: str) -> Optional[EmergencyContact]:
        for contact in self._contacts:
            if contact.id == contact_id:
                return contact
        return None

    def _require_active(self, command: str) -> EscalationSession:
        session = self._session
        if session is None or session.state != EscalationState.ACTIVE:
            raise InvalidTransitionError(command, self.state)
        return session

    def _record(self, session: EscalationSession, kind: TimelineKind, **detail: object) -> None:
        session.timeline.append(TimelineEntry(kind=kind, detail=detail))

    def _set_status(
        self,
        session: EscalationSession,
        attempt: ContactAttempt,
        status: AttemptStatus,
        detail: str = "",
    ) -> None:
        attempt.status = status
        attempt.timestamp = _utcnow()
        self._record(
            session,
            TimelineKind.ATTEMPT_STATUS,
            contact_id=attempt.contact_id,
            attempt_id=str(attempt.attempt_id),
            status=status.value,
            detail=detail,
        )
        track_contact_attempt(attempt.channel.value, status.value)

    def _transition(
        self,
        session: EscalationSession,
        to_state: EscalationState,
        from_state: Optional[EscalationState] = None,
        **detail: object,
    ) -> None:
        previous = from_state or session.state
        session.state = to_state
        self._record(
            session,
            TimelineKind.STATE_CHANGED,
            **{"from": previous.value, "to": to_state.value},
            **detail,
        )
        track_escalation_transition(previous.value, to_state.value)
        logger.warning(
            "Escalation state changed",
            session_id=str(session.session_id),
            from_state=previous.value,
            to_state=to_state.value,
            severity=session.severity.label,
        )
