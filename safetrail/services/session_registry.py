"""Per-user safety sessions: tracker + SOS machine + geolocation source."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy.orm import sessionmaker

from safetrail.core.config import Settings, settings
from safetrail.core.scheduler import AsyncioScheduler, Scheduler
from safetrail.core.types import WatchOptions
from safetrail.core.ws_manager import ConnectionManager
from safetrail.services.geolocation import PushGeolocationSource
from safetrail.services.persistence import (
    LoggingAudioRecorder,
    SqlIncidentSink,
    SqlLocationLogSink,
    SqlNotificationSink,
    SqlZoneSource,
)
from safetrail.services.ports import AudioRecorder
from safetrail.services.sos_service import SosSnapshot, SosStateMachine, TriggerResult
from safetrail.services.tracking_service import LocationTracker, TrackingStatus

logger = logging.getLogger(__name__)


class SafetySession:
    """Everything one user's device session owns."""

    def __init__(
        self,
        user_id: int,
        geolocation: PushGeolocationSource,
        tracker: LocationTracker,
        sos: SosStateMachine,
    ) -> None:
        self.user_id = user_id
        self.geolocation = geolocation
        self.tracker = tracker
        self.sos = sos
        self.ready: asyncio.Future | None = None

    async def trigger_sos(self) -> TriggerResult:
        """Trigger SOS with the tracker's current fix and assessment snapshot."""
        return await self.sos.trigger(self.user_id, self.tracker.location, self.tracker.assessment)

    async def aclose(self) -> None:
        await self.sos.cancel()
        await self.tracker.aclose()


class SessionRegistry:
    """Creates and owns SafetySession instances, one per user."""

    def __init__(
        self,
        session_factory: sessionmaker,
        scheduler: Scheduler | None = None,
        connections: ConnectionManager | None = None,
        recorder: AudioRecorder | None = None,
        config: Settings = settings,
    ) -> None:
        self.session_factory = session_factory
        self.scheduler = scheduler or AsyncioScheduler()
        self.connections = connections or ConnectionManager()
        self.recorder = recorder or LoggingAudioRecorder()
        self.config = config
        self._sessions: dict[int, SafetySession] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    @property
    def pending_events(self) -> int:
        return len(self._tasks)

    def find(self, user_id: int) -> SafetySession | None:
        return self._sessions.get(user_id)

    async def get(self, user_id: int) -> SafetySession:
        """Return the user's session, creating it and loading zones on first use."""
        session = self._sessions.get(user_id)
        if session is None:
            session = self._build(user_id)
            self._sessions[user_id] = session
            session.ready = asyncio.ensure_future(session.tracker.load_zones())
        try:
            await session.ready
        except Exception:
            if self._sessions.get(user_id) is session:
                del self._sessions[user_id]
            raise
        return session

    async def close(self, user_id: int) -> None:
        session = self._sessions.pop(user_id, None)
        if session is not None:
            await session.aclose()
            logger.info("Session closed for user=%s", user_id)

    async def close_all(self) -> None:
        for user_id in list(self._sessions):
            await self.close(user_id)
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self.connections.close_all()

    def _build(self, user_id: int) -> SafetySession:
        config = self.config
        tz = ZoneInfo(config.local_timezone)
        incidents = SqlIncidentSink(self.session_factory)
        notifications = SqlNotificationSink(self.session_factory)
        geolocation = PushGeolocationSource(self.scheduler)

        tracker = LocationTracker(
            user_id=user_id,
            zones=SqlZoneSource(self.session_factory),
            geolocation=geolocation,
            location_log=SqlLocationLogSink(self.session_factory),
            clock=lambda: datetime.now(tz),
            options=WatchOptions(
                high_accuracy=config.geolocation_high_accuracy,
                timeout_ms=config.geolocation_timeout_ms,
                max_age_ms=config.geolocation_max_age_ms,
            ),
            log_interval_seconds=config.location_log_interval_seconds,
            incidents=incidents,
            notifications=notifications,
            auto_risk_alerts=config.auto_risk_alerts,
        )
        sos = SosStateMachine(
            incidents=incidents,
            notifications=notifications,
            recorder=self.recorder,
            scheduler=self.scheduler,
            decoy_delay_ms=config.decoy_delay_ms,
        )

        tracker.subscribe(lambda status: self._on_tracking(user_id, status))
        sos.subscribe(lambda snap: self._on_sos(user_id, snap))
        logger.info("Session created for user=%s", user_id)
        return SafetySession(user_id, geolocation, tracker, sos)

    def _on_tracking(self, user_id: int, status: TrackingStatus) -> None:
        self._publish(user_id, "risk.updated", asdict(status))

    def _on_sos(self, user_id: int, snap: SosSnapshot) -> None:
        self._publish(user_id, "sos.phase_changed", asdict(snap))

    def _publish(self, user_id: int, event: str, data: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return  # no event loop (e.g. timer fired from a test scheduler)
        task = loop.create_task(self.connections.send_to_user(user_id, event, data))
        self._tasks.add(task)
        task.add_done_callback(self._on_published)

    def _on_published(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Event delivery failed: %s", task.exception())
