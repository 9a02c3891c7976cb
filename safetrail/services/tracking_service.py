"""Session location tracking: sensor subscription, risk evaluation, location logging."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Coroutine, Union

from safetrail.core.errors import InvalidInput, PreconditionFailed, SensorError, SensorTimeout
from safetrail.core.sos_policies import (
    AUTO_ALERT_DESCRIPTION,
    AUTO_ALERT_MESSAGE,
    AUTO_ALERT_TITLE,
    NOTIFICATION_TYPE_EMERGENCY,
)
from safetrail.core.types import AlertType, LocationFix, RiskAssessment, RiskLevel, RiskZone, WatchOptions
from safetrail.services.ports import (
    GeolocationSource,
    IncidentSink,
    LocationLogSink,
    NotificationSink,
    ZoneSource,
)
from safetrail.services.risk_service import evaluate, safe_assessment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackingStatus:
    """What the UI shows: last fix, current assessment, sensor state."""

    location: LocationFix | None
    assessment: RiskAssessment
    is_tracking: bool
    permission_granted: bool
    error: str | None


TrackingListener = Callable[[TrackingStatus], None]


class LocationTracker:
    """Owns the location slice of one user session.

    The current assessment is replaced wholesale on every accepted fix. A
    malformed fix leaves the previous assessment in place. A sensor error
    tears the subscription down and the caller has to start() again; a
    watch timeout is only reported.
    """

    def __init__(
        self,
        user_id: int,
        zones: ZoneSource,
        geolocation: GeolocationSource,
        location_log: LocationLogSink,
        clock: Callable[[], datetime],
        options: WatchOptions | None = None,
        log_interval_seconds: float = 30,
        incidents: IncidentSink | None = None,
        notifications: NotificationSink | None = None,
        auto_risk_alerts: bool = False,
    ) -> None:
        self.user_id = user_id
        self._zone_source = zones
        self._geolocation = geolocation
        self._location_log = location_log
        self._clock = clock
        self._options = options or WatchOptions()
        self._log_interval_seconds = log_interval_seconds
        self._incidents = incidents
        self._notifications = notifications
        self._auto_risk_alerts = auto_risk_alerts

        self._zones: list[RiskZone] = []
        self._location: LocationFix | None = None
        self._assessment = safe_assessment(clock())
        self._permission_granted = False
        self._error: str | None = None
        self._watch_handle: Any = None
        self._last_logged_at: datetime | None = None
        self._listeners: list[TrackingListener] = []
        self._tasks: set[asyncio.Task] = set()

    @property
    def zones(self) -> list[RiskZone]:
        return self._zones

    @property
    def location(self) -> LocationFix | None:
        return self._location

    @property
    def assessment(self) -> RiskAssessment:
        return self._assessment

    @property
    def is_tracking(self) -> bool:
        return self._watch_handle is not None

    @property
    def status(self) -> TrackingStatus:
        return TrackingStatus(
            location=self._location,
            assessment=self._assessment,
            is_tracking=self.is_tracking,
            permission_granted=self._permission_granted,
            error=self._error,
        )

    def subscribe(self, listener: TrackingListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def load_zones(self) -> list[RiskZone]:
        """Fetch the active zone set. Called at session start and on each restart."""
        self._zones = list(await self._zone_source.list_active_zones())
        logger.info("Loaded %s active risk zones for user=%s", len(self._zones), self.user_id)
        return self._zones

    async def request_permission(self) -> bool:
        granted = await self._geolocation.request_permission()
        self._permission_granted = granted
        self._error = None if granted else "Location permission denied"
        self._emit()
        return granted

    def start(self) -> None:
        """Subscribe to the sensor. No-op if already tracking."""
        if not self._permission_granted:
            raise PreconditionFailed("Location permission not granted")
        if self._watch_handle is not None:
            return
        self._error = None
        self._watch_handle = self._geolocation.watch(self.handle_update, self._options)
        logger.info("Tracking started for user=%s", self.user_id)
        self._emit()

    async def restart(self) -> None:
        """Start tracking with a freshly loaded zone set. No-op if already tracking."""
        if not self._permission_granted:
            raise PreconditionFailed("Location permission not granted")
        if self._watch_handle is not None:
            return
        await self.load_zones()
        self.start()

    def stop(self) -> None:
        if self._watch_handle is None:
            return
        self._geolocation.cancel(self._watch_handle)
        self._watch_handle = None
        logger.info("Tracking stopped for user=%s", self.user_id)
        self._emit()

    def handle_update(self, update: Union[LocationFix, SensorError]) -> None:
        """Sensor callback: a fix or an error."""
        if isinstance(update, SensorError):
            self._on_sensor_error(update)
            return

        try:
            assessment = evaluate(update, self._zones, self._clock())
        except InvalidInput as e:
            logger.warning("Rejected fix for user=%s: %s", self.user_id, e)
            self._error = str(e)
            self._emit()
            return

        previous = self._assessment
        self._location = update
        self._assessment = assessment
        self._error = None
        self._emit()

        self._maybe_log_location(update)
        if self._auto_risk_alerts and self._entered_emergency(previous, assessment):
            self._spawn(self._auto_alert(update, assessment), "auto risk alert")

    async def aclose(self) -> None:
        """Stop tracking and wait for in-flight side effects."""
        self.stop()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ---------- internals ----------

    def _on_sensor_error(self, error: SensorError) -> None:
        logger.warning("Sensor error for user=%s: %s", self.user_id, error)
        self._error = str(error)
        if self._watch_handle is not None and not isinstance(error, SensorTimeout):
            self._geolocation.cancel(self._watch_handle)
            self._watch_handle = None
        self._emit()

    @staticmethod
    def _entered_emergency(previous: RiskAssessment, current: RiskAssessment) -> bool:
        return current.level is RiskLevel.EMERGENCY and previous.level is not RiskLevel.EMERGENCY

    def _maybe_log_location(self, fix: LocationFix) -> None:
        if self._last_logged_at is not None:
            elapsed = (fix.timestamp - self._last_logged_at).total_seconds()
            if elapsed < self._log_interval_seconds:
                return
        self._last_logged_at = fix.timestamp
        self._spawn(self._append_log(fix), "location log")

    async def _append_log(self, fix: LocationFix) -> None:
        try:
            await self._location_log.append_location_log(self.user_id, fix)
        except Exception as e:
            logger.debug("Location log failed for user=%s: %s", self.user_id, e)

    async def _auto_alert(self, fix: LocationFix, assessment: RiskAssessment) -> None:
        if self._incidents is None:
            return
        try:
            await self._incidents.create_incident(
                self.user_id,
                AlertType.AUTO_RISK_ZONE,
                fix.latitude,
                fix.longitude,
                assessment.level,
                AUTO_ALERT_DESCRIPTION,
            )
            if self._notifications is not None:
                await self._notifications.create_notification(
                    self.user_id, AUTO_ALERT_TITLE, AUTO_ALERT_MESSAGE, NOTIFICATION_TYPE_EMERGENCY
                )
        except Exception as e:
            logger.warning("Auto risk alert failed for user=%s: %s", self.user_id, e)

    def _spawn(self, coro: Coroutine[Any, Any, None], what: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.debug("No event loop; skipped %s", what)
            return
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _emit(self) -> None:
        status = self.status
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception:
                logger.exception("Tracking listener failed")
