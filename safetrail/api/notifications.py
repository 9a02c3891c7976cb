"""Notifications API."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from safetrail.core.deps import get_current_user_id
from safetrail.db.session import get_db
from safetrail.schemas.notification import MarkAllReadResponse, NotificationResponse
from safetrail.services.notification_service import list_notifications, mark_all_read, mark_read

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationResponse])
def list_mine(
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """List notifications, newest first."""
    return list_notifications(db, user_id, unread_only, limit)


@router.post("/read-all", response_model=MarkAllReadResponse)
def read_all(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return MarkAllReadResponse(updated=mark_all_read(db, user_id))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def read_one(
    notification_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    try:
        return mark_read(db, notification_id, user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
