"""SQLAlchemy-backed adapters for the zone, incident, notification and location-log ports.

Blocking DB work runs in a worker thread so the event loop keeps serving
sensor updates and timers while a request is in flight.
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from safetrail.core import types as domain
from safetrail.models.incident import Incident
from safetrail.models.location_log import LocationLog
from safetrail.models.notification import Notification
from safetrail.models.risk_zone import RiskZone

logger = logging.getLogger(__name__)


def zone_from_row(row: RiskZone) -> domain.RiskZone:
    """Convert a stored zone to the evaluator's read-only type."""
    factors = row.time_factors or {}
    return domain.RiskZone(
        id=row.id,
        name=row.name,
        description=row.description,
        latitude=row.latitude,
        longitude=row.longitude,
        radius_meters=row.radius_meters,
        base_risk_score=row.risk_score,
        risk_level=domain.RiskLevel(row.risk_level),
        time_factors=domain.TimeFactors(
            night_multiplier=factors.get("night_multiplier"),
            weekend_multiplier=factors.get("weekend_multiplier"),
        ),
        incident_count=row.incident_count,
        is_active=row.is_active,
    )


def incident_from_row(row: Incident) -> domain.Incident:
    return domain.Incident(
        id=row.id,
        user_id=row.user_id,
        alert_type=domain.AlertType(row.alert_type),
        status=domain.AlertStatus(row.status),
        latitude=row.latitude,
        longitude=row.longitude,
        risk_level=domain.RiskLevel(row.risk_level) if row.risk_level else None,
        description=row.description,
    )


class _SqlAdapter:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def _session(self) -> Session:
        return self._session_factory()


class SqlZoneSource(_SqlAdapter):
    async def list_active_zones(self) -> list[domain.RiskZone]:
        return await asyncio.to_thread(self._load)

    def _load(self) -> list[domain.RiskZone]:
        db = self._session()
        try:
            # Ordered by id so equal adjusted scores resolve to the smallest id
            rows = db.execute(
                select(RiskZone).where(RiskZone.is_active.is_(True)).order_by(RiskZone.id)
            ).scalars().all()
            return [zone_from_row(r) for r in rows]
        finally:
            db.close()


class SqlIncidentSink(_SqlAdapter):
    async def create_incident(
        self,
        user_id: int,
        alert_type: domain.AlertType,
        latitude: float,
        longitude: float,
        risk_level: domain.RiskLevel,
        description: str,
    ) -> domain.Incident:
        return await asyncio.to_thread(
            self._create, user_id, alert_type, latitude, longitude, risk_level, description
        )

    def _create(
        self,
        user_id: int,
        alert_type: domain.AlertType,
        latitude: float,
        longitude: float,
        risk_level: domain.RiskLevel,
        description: str,
    ) -> domain.Incident:
        db = self._session()
        try:
            row = Incident(
                user_id=user_id,
                alert_type=alert_type.value,
                status=domain.AlertStatus.PENDING.value,
                latitude=latitude,
                longitude=longitude,
                risk_level=risk_level.value,
                description=description,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return incident_from_row(row)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


class SqlNotificationSink(_SqlAdapter):
    async def create_notification(self, user_id: int, title: str, message: str, type: str) -> None:
        await asyncio.to_thread(self._create, user_id, title, message, type)

    def _create(self, user_id: int, title: str, message: str, type: str) -> None:
        db = self._session()
        try:
            db.add(Notification(user_id=user_id, title=title, message=message, type=type))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


class SqlLocationLogSink(_SqlAdapter):
    async def append_location_log(self, user_id: int, fix: domain.LocationFix) -> None:
        await asyncio.to_thread(self._append, user_id, fix)

    def _append(self, user_id: int, fix: domain.LocationFix) -> None:
        db = self._session()
        try:
            db.add(
                LocationLog(
                    user_id=user_id,
                    latitude=fix.latitude,
                    longitude=fix.longitude,
                    speed=fix.speed_mps,
                    accuracy=fix.accuracy_m,
                    heading=fix.heading_deg,
                    timestamp=fix.timestamp,
                )
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


class LoggingAudioRecorder:
    """Recorder stand-in: capture happens on the device, this only records the request."""

    async def start(self, user_id: int, incident_id: int | None) -> None:
        logger.info("Audio capture requested for user=%s incident=%s", user_id, incident_id)

    async def stop(self, user_id: int, incident_id: int | None) -> None:
        logger.info("Audio capture stop requested for user=%s incident=%s", user_id, incident_id)
