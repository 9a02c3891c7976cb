"""Profile API."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from safetrail.core.deps import get_current_user_id
from safetrail.db.session import get_db
from safetrail.schemas.profile import ProfileResponse, ProfileUpdate
from safetrail.services.profile_service import get_or_create_profile, update_profile

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("/me", response_model=ProfileResponse)
def get_me(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return get_or_create_profile(db, user_id)


@router.patch("/me", response_model=ProfileResponse)
def update_me(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return update_profile(db, user_id, data.model_dump(exclude_unset=True))
