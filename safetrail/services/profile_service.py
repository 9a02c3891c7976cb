"""Profile service."""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from safetrail.models.profile import Profile


def get_profile(db: Session, user_id: int) -> Profile | None:
    return db.execute(select(Profile).where(Profile.user_id == user_id)).scalar_one_or_none()


def get_or_create_profile(db: Session, user_id: int) -> Profile:
    profile = get_profile(db, user_id)
    if profile:
        return profile

    profile = Profile(user_id=user_id, name="", role="user")
    db.add(profile)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent request created the row first; load and return it.
        db.rollback()
        existing = get_profile(db, user_id)
        if existing:
            return existing
        raise
    db.refresh(profile)
    return profile


def update_profile(db: Session, user_id: int, updates: dict) -> Profile:
    profile = get_or_create_profile(db, user_id)
    for field, value in updates.items():
        setattr(profile, field, value)
    profile.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(profile)
    return profile


def is_admin(db: Session, user_id: int) -> bool:
    profile = get_profile(db, user_id)
    return bool(profile and profile.role == "admin")
