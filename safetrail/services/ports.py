"""Boundary contracts for the collaborators the safety core talks to."""

from __future__ import annotations

from typing import Any, Callable, Protocol, Union

from safetrail.core.errors import SensorError
from safetrail.core.types import AlertType, Incident, LocationFix, RiskLevel, RiskZone, WatchOptions

LocationCallback = Callable[[Union[LocationFix, SensorError]], None]


class ZoneSource(Protocol):
    async def list_active_zones(self) -> list[RiskZone]: ...


class GeolocationSource(Protocol):
    async def request_permission(self) -> bool: ...

    def watch(self, callback: LocationCallback, options: WatchOptions) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class IncidentSink(Protocol):
    async def create_incident(
        self,
        user_id: int,
        alert_type: AlertType,
        latitude: float,
        longitude: float,
        risk_level: RiskLevel,
        description: str,
    ) -> Incident: ...


class NotificationSink(Protocol):
    async def create_notification(self, user_id: int, title: str, message: str, type: str) -> None: ...


class LocationLogSink(Protocol):
    async def append_location_log(self, user_id: int, fix: LocationFix) -> None: ...


class AudioRecorder(Protocol):
    async def start(self, user_id: int, incident_id: int | None) -> None: ...

    async def stop(self, user_id: int, incident_id: int | None) -> None: ...
