"""Zone suggestions API: users propose zones, admins review them."""

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from safetrail.core.deps import get_current_user_id, require_admin
from safetrail.db.session import get_db
from safetrail.schemas.zone import (
    RiskZoneResponse,
    SuggestionApprovalResponse,
    SuggestionReview,
    ZoneSuggestionCreate,
    ZoneSuggestionResponse,
    ZoneSuggestionUpdate,
)
from safetrail.services.zone_service import (
    approve_suggestion,
    create_suggestion,
    delete_suggestion,
    list_my_suggestions,
    list_suggestions,
    reject_suggestion,
    update_suggestion,
)

router = APIRouter(prefix="/zone-suggestions", tags=["zone-suggestions"])
admin_router = APIRouter(prefix="/admin/zone-suggestions", tags=["admin"])


def _raise_for(e: ValueError) -> None:
    detail = str(e)
    if "not found" in detail.lower():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    if "only the user" in detail.lower():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


@router.get("/me", response_model=list[ZoneSuggestionResponse])
def list_mine(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """List my suggestions, newest first."""
    return list_my_suggestions(db, user_id)


@router.post("", response_model=ZoneSuggestionResponse, status_code=status.HTTP_201_CREATED)
def create(
    data: ZoneSuggestionCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    try:
        return create_suggestion(
            db,
            user_id,
            data.name,
            data.latitude,
            data.longitude,
            description=data.description,
            radius_meters=data.radius_meters,
            suggested_risk_level=data.suggested_risk_level,
        )
    except ValueError as e:
        _raise_for(e)


@router.patch("/{suggestion_id}", response_model=ZoneSuggestionResponse)
def update(
    suggestion_id: int,
    data: ZoneSuggestionUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Edit a pending suggestion. Only the submitter."""
    try:
        return update_suggestion(db, suggestion_id, user_id, data.model_dump(exclude_unset=True))
    except ValueError as e:
        _raise_for(e)


@router.delete("/{suggestion_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete(
    suggestion_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    try:
        delete_suggestion(db, suggestion_id, user_id)
    except ValueError as e:
        _raise_for(e)


# ---------- Admin review ----------


@admin_router.get("", response_model=list[ZoneSuggestionResponse])
def review_queue(
    status_filter: str | None = Query(default="pending", alias="status", pattern="^(pending|approved|rejected)$"),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    _admin_id: int = Depends(require_admin),
):
    """Suggestions awaiting review, oldest first."""
    return list_suggestions(db, status_filter, limit)


@admin_router.post("/{suggestion_id}/approve", response_model=SuggestionApprovalResponse)
def approve(
    suggestion_id: int,
    data: SuggestionReview | None = Body(default=None),
    db: Session = Depends(get_db),
    _admin_id: int = Depends(require_admin),
):
    """Approve and publish as an active risk zone."""
    review = data or SuggestionReview()
    try:
        suggestion, zone = approve_suggestion(db, suggestion_id, review.admin_notes, review.risk_score)
    except ValueError as e:
        _raise_for(e)
    return SuggestionApprovalResponse(
        suggestion=ZoneSuggestionResponse.model_validate(suggestion),
        zone=RiskZoneResponse.model_validate(zone),
    )


@admin_router.post("/{suggestion_id}/reject", response_model=ZoneSuggestionResponse)
def reject(
    suggestion_id: int,
    data: SuggestionReview | None = Body(default=None),
    db: Session = Depends(get_db),
    _admin_id: int = Depends(require_admin),
):
    review = data or SuggestionReview()
    try:
        return reject_suggestion(db, suggestion_id, review.admin_notes)
    except ValueError as e:
        _raise_for(e)
