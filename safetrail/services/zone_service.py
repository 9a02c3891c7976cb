"""Risk zone catalogue and crowdsourced zone suggestions."""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from safetrail.core.risk_policies import DEFAULT_SUGGESTION_RADIUS_M, SUGGESTED_LEVEL_SCORES
from safetrail.models.risk_zone import RiskZone
from safetrail.models.zone_suggestion import ZoneSuggestion

logger = logging.getLogger(__name__)

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"


def list_active_zones(db: Session) -> list[RiskZone]:
    result = db.execute(select(RiskZone).where(RiskZone.is_active.is_(True)).order_by(RiskZone.id))
    return list(result.scalars().all())


def get_zone(db: Session, zone_id: int) -> RiskZone | None:
    return db.get(RiskZone, zone_id)


# ---------- Suggestions (owner) ----------


def list_my_suggestions(db: Session, user_id: int) -> list[ZoneSuggestion]:
    """List the user's suggestions, newest first."""
    result = db.execute(
        select(ZoneSuggestion)
        .where(ZoneSuggestion.user_id == user_id)
        .order_by(ZoneSuggestion.created_at.desc(), ZoneSuggestion.id.desc())
    )
    return list(result.scalars().all())


def create_suggestion(
    db: Session,
    user_id: int,
    name: str,
    latitude: float,
    longitude: float,
    description: str | None = None,
    radius_meters: float | None = None,
    suggested_risk_level: str | None = None,
) -> ZoneSuggestion:
    name = name.strip()
    if not name:
        raise ValueError("Zone name is required")
    suggestion = ZoneSuggestion(
        user_id=user_id,
        name=name,
        description=(description or "").strip() or None,
        latitude=latitude,
        longitude=longitude,
        radius_meters=radius_meters or DEFAULT_SUGGESTION_RADIUS_M,
        suggested_risk_level=suggested_risk_level or "at_risk",
        status=PENDING,
    )
    db.add(suggestion)
    db.commit()
    db.refresh(suggestion)
    logger.info("Zone suggestion %s submitted by user=%s", suggestion.id, user_id)
    return suggestion


def _get_editable(db: Session, suggestion_id: int, user_id: int) -> ZoneSuggestion:
    suggestion = db.get(ZoneSuggestion, suggestion_id)
    if not suggestion:
        raise ValueError("Suggestion not found")
    if suggestion.user_id != user_id:
        raise ValueError("Only the user who submitted this suggestion can change it")
    if suggestion.status != PENDING:
        raise ValueError(f"Suggestion is already {suggestion.status}")
    return suggestion


def update_suggestion(db: Session, suggestion_id: int, user_id: int, updates: dict) -> ZoneSuggestion:
    suggestion = _get_editable(db, suggestion_id, user_id)
    if "name" in updates and updates["name"] is not None:
        name = updates["name"].strip()
        if not name:
            raise ValueError("Zone name is required")
        suggestion.name = name
    if "description" in updates:
        suggestion.description = (updates["description"] or "").strip() or None
    for field in ("latitude", "longitude", "radius_meters", "suggested_risk_level"):
        if updates.get(field) is not None:
            setattr(suggestion, field, updates[field])
    suggestion.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(suggestion)
    return suggestion


def delete_suggestion(db: Session, suggestion_id: int, user_id: int) -> None:
    suggestion = _get_editable(db, suggestion_id, user_id)
    db.delete(suggestion)
    db.commit()


# ---------- Review (admin) ----------


def list_suggestions(db: Session, status: str | None = PENDING, limit: int = 50) -> list[ZoneSuggestion]:
    """List suggestions for review, oldest first."""
    stmt = select(ZoneSuggestion)
    if status:
        stmt = stmt.where(ZoneSuggestion.status == status)
    stmt = stmt.order_by(ZoneSuggestion.created_at, ZoneSuggestion.id).limit(limit)
    return list(db.execute(stmt).scalars().all())


def _get_pending(db: Session, suggestion_id: int) -> ZoneSuggestion:
    suggestion = db.get(ZoneSuggestion, suggestion_id)
    if not suggestion:
        raise ValueError("Suggestion not found")
    if suggestion.status != PENDING:
        raise ValueError(f"Suggestion is already {suggestion.status}")
    return suggestion


def approve_suggestion(
    db: Session,
    suggestion_id: int,
    admin_notes: str | None = None,
    risk_score: float | None = None,
) -> tuple[ZoneSuggestion, RiskZone]:
    """Approve a pending suggestion and publish it as an active risk zone.

    Without an explicit score, the base score follows the suggested level.
    """
    suggestion = _get_pending(db, suggestion_id)
    score = risk_score if risk_score is not None else SUGGESTED_LEVEL_SCORES[suggestion.suggested_risk_level]
    zone = RiskZone(
        name=suggestion.name,
        description=suggestion.description,
        latitude=suggestion.latitude,
        longitude=suggestion.longitude,
        radius_meters=suggestion.radius_meters,
        risk_score=score,
        risk_level=suggestion.suggested_risk_level,
        incident_count=0,
        time_factors=None,
        is_active=True,
    )
    db.add(zone)
    suggestion.status = APPROVED
    suggestion.admin_notes = admin_notes
    suggestion.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(suggestion)
    db.refresh(zone)
    logger.info("Zone suggestion %s approved as zone %s", suggestion.id, zone.id)
    return suggestion, zone


def reject_suggestion(db: Session, suggestion_id: int, admin_notes: str | None = None) -> ZoneSuggestion:
    suggestion = _get_pending(db, suggestion_id)
    suggestion.status = REJECTED
    suggestion.admin_notes = admin_notes
    suggestion.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(suggestion)
    return suggestion
