"""Incident queries and status updates."""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from safetrail.core.types import AlertStatus
from safetrail.models.incident import Incident


def list_my_incidents(db: Session, user_id: int, limit: int = 20) -> list[Incident]:
    """List incidents for user, newest first."""
    result = db.execute(
        select(Incident)
        .where(Incident.user_id == user_id)
        .order_by(Incident.created_at.desc(), Incident.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


def get_incident(db: Session, incident_id: int, user_id: int) -> Incident | None:
    """Get incident by id. Only the owner can view."""
    incident = db.get(Incident, incident_id)
    if not incident or incident.user_id != user_id:
        return None
    return incident


def _get_owned(db: Session, incident_id: int, user_id: int) -> Incident:
    incident = db.get(Incident, incident_id)
    if not incident:
        raise ValueError("Incident not found")
    if incident.user_id != user_id:
        raise ValueError("Only the user who raised this incident can update it")
    return incident


def acknowledge_incident(db: Session, incident_id: int, user_id: int) -> Incident:
    incident = _get_owned(db, incident_id, user_id)
    if incident.status == AlertStatus.RESOLVED.value:
        raise ValueError("Incident is already resolved")
    incident.status = AlertStatus.ACKNOWLEDGED.value
    db.commit()
    db.refresh(incident)
    return incident


def resolve_incident(db: Session, incident_id: int, user_id: int) -> Incident:
    incident = _get_owned(db, incident_id, user_id)
    if incident.status == AlertStatus.RESOLVED.value:
        raise ValueError("Incident is already resolved")
    incident.status = AlertStatus.RESOLVED.value
    incident.resolved_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(incident)
    return incident
