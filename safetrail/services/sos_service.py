"""SOS alert session state machine.

idle -> active -> decoy_offered -> recording -> idle, with cancel back to
idle from any non-idle phase. One machine per user session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from safetrail.core.errors import (
    IncidentCreationFailed,
    InvalidTransition,
    PreconditionFailed,
    SoftWarning,
)
from safetrail.core.scheduler import Scheduler, TimerHandle
from safetrail.core.sos_policies import (
    DECOY_DELAY_MS,
    NOTIFICATION_TYPE_EMERGENCY,
    NOTIFICATION_TYPE_INFO,
    RECORDING_SAVED_MESSAGE,
    RECORDING_SAVED_TITLE,
    SOS_DESCRIPTION,
    SOS_SENT_MESSAGE,
    SOS_SENT_TITLE,
)
from safetrail.core.types import AlertType, Incident, LocationFix, RiskAssessment, RiskLevel, SosPhase
from safetrail.services.ports import AudioRecorder, IncidentSink, NotificationSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SosSnapshot:
    """Read-only view of the session state."""

    phase: SosPhase
    incident_id: int | None
    risk_level: RiskLevel | None  # frozen at trigger time
    generation: int


@dataclass
class TriggerResult:
    snapshot: SosSnapshot
    triggered: bool
    incident: Incident | None = None
    warnings: list[SoftWarning] = field(default_factory=list)


SosListener = Callable[[SosSnapshot], None]


class SosStateMachine:
    """Drives one SOS session and its side effects.

    Every entry into `active` from `idle` bumps the generation. The decoy
    timer carries the generation it was armed under and is ignored if the
    session has moved on by the time it fires.
    """

    def __init__(
        self,
        incidents: IncidentSink,
        notifications: NotificationSink,
        recorder: AudioRecorder,
        scheduler: Scheduler,
        decoy_delay_ms: int = DECOY_DELAY_MS,
    ) -> None:
        self._incidents = incidents
        self._notifications = notifications
        self._recorder = recorder
        self._scheduler = scheduler
        self._decoy_delay_s = decoy_delay_ms / 1000

        self._phase = SosPhase.IDLE
        self._user_id: int | None = None
        self._incident_id: int | None = None
        self._risk_level: RiskLevel | None = None
        self._generation = 0
        self._timer: TimerHandle | None = None
        self._listeners: list[SosListener] = []

    @property
    def phase(self) -> SosPhase:
        return self._phase

    @property
    def snapshot(self) -> SosSnapshot:
        return SosSnapshot(
            phase=self._phase,
            incident_id=self._incident_id,
            risk_level=self._risk_level,
            generation=self._generation,
        )

    def subscribe(self, listener: SosListener) -> Callable[[], None]:
        """Register a phase-change listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ---------- transitions ----------

    async def trigger(
        self,
        user_id: int | None,
        fix: LocationFix | None,
        assessment: RiskAssessment | None,
    ) -> TriggerResult:
        """Start an SOS session and persist the incident.

        The phase flips to active before the incident request resolves and
        reverts to idle only if the request fails.
        """
        if self._phase is not SosPhase.IDLE:
            logger.info("SOS already %s for user=%s; trigger ignored", self._phase.value, self._user_id)
            return TriggerResult(snapshot=self.snapshot, triggered=False)
        if user_id is None:
            raise PreconditionFailed("Unable to trigger SOS: user is not identified.")
        if fix is None:
            raise PreconditionFailed("Unable to trigger SOS. Please ensure location is enabled.")

        risk_level = assessment.level if assessment is not None else RiskLevel.SAFE

        self._generation += 1
        generation = self._generation
        self._user_id = user_id
        self._risk_level = risk_level
        self._set_phase(SosPhase.ACTIVE)
        self._arm_decoy(generation)

        try:
            incident = await self._incidents.create_incident(
                user_id,
                AlertType.SOS,
                fix.latitude,
                fix.longitude,
                risk_level,
                SOS_DESCRIPTION,
            )
        except Exception as e:
            logger.warning("SOS incident creation failed for user=%s: %s", user_id, e)
            if generation == self._generation:
                self._reset()
            raise IncidentCreationFailed("Failed to create incident. Please try again.") from e

        if generation == self._generation:
            self._incident_id = incident.id
            self._emit()
        logger.info("SOS incident %s created for user=%s (risk=%s)", incident.id, user_id, risk_level.value)

        warnings: list[SoftWarning] = []
        warning = await self._notify_best_effort(
            user_id, SOS_SENT_TITLE, SOS_SENT_MESSAGE, NOTIFICATION_TYPE_EMERGENCY
        )
        if warning:
            warnings.append(warning)

        return TriggerResult(snapshot=self.snapshot, triggered=True, incident=incident, warnings=warnings)

    async def accept_decoy(self) -> list[SoftWarning]:
        """Accept the decoy call and start recording."""
        if self._phase is not SosPhase.DECOY_OFFERED:
            raise InvalidTransition(f"Cannot accept decoy call while {self._phase.value}")

        generation = self._generation
        user_id, incident_id = self._user_id, self._incident_id
        self._set_phase(SosPhase.RECORDING)
        try:
            await self._recorder.start(user_id, incident_id)
        except Exception as e:
            logger.warning("Audio recorder failed to start for user=%s: %s", user_id, e)
            if generation == self._generation and self._phase is SosPhase.RECORDING:
                self._set_phase(SosPhase.ACTIVE)
            return [SoftWarning(source="recorder", message=f"Recording could not start: {e}")]
        return []

    def decline_decoy(self) -> None:
        """Dismiss the decoy call. The session stays active and the decoy is not re-armed."""
        if self._phase is not SosPhase.DECOY_OFFERED:
            raise InvalidTransition(f"Cannot decline decoy call while {self._phase.value}")
        self._set_phase(SosPhase.ACTIVE)

    async def stop_recording(self) -> list[SoftWarning]:
        """Stop recording on user request and end the session."""
        if self._phase is not SosPhase.RECORDING:
            raise InvalidTransition(f"Cannot stop recording while {self._phase.value}")

        user_id, incident_id = self._user_id, self._incident_id
        self._reset()

        warnings: list[SoftWarning] = []
        try:
            await self._recorder.stop(user_id, incident_id)
        except Exception as e:
            logger.warning("Audio recorder failed to stop for user=%s: %s", user_id, e)
            warnings.append(SoftWarning(source="recorder", message=f"Recording could not be stopped: {e}"))
        warning = await self._notify_best_effort(
            user_id, RECORDING_SAVED_TITLE, RECORDING_SAVED_MESSAGE, NOTIFICATION_TYPE_INFO
        )
        if warning:
            warnings.append(warning)
        return warnings

    async def recording_stopped(self) -> list[SoftWarning]:
        """External stop signal from the recorder. Late signals are ignored."""
        if self._phase is not SosPhase.RECORDING:
            logger.debug("Recording stop signal ignored while %s", self._phase.value)
            return []

        user_id = self._user_id
        self._reset()
        warning = await self._notify_best_effort(
            user_id, RECORDING_SAVED_TITLE, RECORDING_SAVED_MESSAGE, NOTIFICATION_TYPE_INFO
        )
        return [warning] if warning else []

    async def cancel(self) -> list[SoftWarning]:
        """Return to idle from any phase. The persisted incident is left as is."""
        if self._phase is SosPhase.IDLE:
            return []

        was_recording = self._phase is SosPhase.RECORDING
        user_id, incident_id = self._user_id, self._incident_id
        self._reset()
        logger.info("SOS session cancelled for user=%s (incident=%s)", user_id, incident_id)

        if was_recording:
            try:
                await self._recorder.stop(user_id, incident_id)
            except Exception as e:
                logger.warning("Audio recorder failed to stop for user=%s: %s", user_id, e)
                return [SoftWarning(source="recorder", message=f"Recording could not be stopped: {e}")]
        return []

    # ---------- internals ----------

    def _arm_decoy(self, generation: int) -> None:
        self._cancel_timer()
        self._timer = self._scheduler.call_later(
            self._decoy_delay_s, lambda: self._on_decoy_timer(generation)
        )

    def _on_decoy_timer(self, generation: int) -> None:
        if generation != self._generation or self._phase is not SosPhase.ACTIVE:
            logger.debug("Stale decoy timer ignored (generation=%s, current=%s)", generation, self._generation)
            return
        self._timer = None
        self._set_phase(SosPhase.DECOY_OFFERED)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _reset(self) -> None:
        self._cancel_timer()
        self._generation += 1
        self._user_id = None
        self._incident_id = None
        self._risk_level = None
        self._set_phase(SosPhase.IDLE)

    def _set_phase(self, phase: SosPhase) -> None:
        self._phase = phase
        self._emit()

    def _emit(self) -> None:
        snap = self.snapshot
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("SOS listener failed")

    async def _notify_best_effort(
        self, user_id: int | None, title: str, message: str, type: str
    ) -> SoftWarning | None:
        if user_id is None:
            return None
        try:
            await self._notifications.create_notification(user_id, title, message, type)
        except Exception as e:
            logger.warning("Notification '%s' failed for user=%s: %s", title, user_id, e)
            return SoftWarning(source="notification", message=f"{title}: {e}")
        return None
