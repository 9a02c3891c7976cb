"""Incidents API."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from safetrail.core.deps import get_current_user_id
from safetrail.db.session import get_db
from safetrail.schemas.sos import IncidentResponse
from safetrail.services.incident_service import (
    acknowledge_incident,
    get_incident,
    list_my_incidents,
    resolve_incident,
)

router = APIRouter(prefix="/incidents", tags=["incidents"])


def _raise_for(e: ValueError) -> None:
    detail = str(e)
    if "not found" in detail.lower():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    if "only the user" in detail.lower():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


@router.get("/me", response_model=list[IncidentResponse])
def list_mine(
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """List current user's incidents, newest first."""
    return list_my_incidents(db, user_id, limit)


@router.get("/{incident_id}", response_model=IncidentResponse)
def get_one(
    incident_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    incident = get_incident(db, incident_id, user_id)
    if not incident:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Incident not found")
    return incident


@router.post("/{incident_id}/acknowledge", response_model=IncidentResponse)
def acknowledge(
    incident_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    try:
        return acknowledge_incident(db, incident_id, user_id)
    except ValueError as e:
        _raise_for(e)


@router.post("/{incident_id}/resolve", response_model=IncidentResponse)
def resolve(
    incident_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Mark an incident resolved. Session state is not affected."""
    try:
        return resolve_incident(db, incident_id, user_id)
    except ValueError as e:
        _raise_for(e)
