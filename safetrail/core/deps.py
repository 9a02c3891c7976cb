"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from fastapi.requests import HTTPConnection
from sqlalchemy.orm import Session

from safetrail.db.session import get_db
from safetrail.services.profile_service import is_admin
from safetrail.services.session_registry import SafetySession, SessionRegistry


def get_current_user_id(
    x_user_id: Annotated[int | None, Header()] = None,
) -> int:
    """Identify the caller. Authentication itself happens upstream of this service."""
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return x_user_id


def require_admin(
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[int, Depends(get_current_user_id)],
) -> int:
    """Require the caller's profile to carry the admin role."""
    if not is_admin(db, user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can review zone suggestions",
        )
    return user_id


def get_registry(connection: HTTPConnection) -> SessionRegistry:
    """Session registry owned by the running app."""
    return connection.app.state.registry


async def get_safety_session(
    user_id: Annotated[int, Depends(get_current_user_id)],
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> SafetySession:
    """The caller's live session (created on first use)."""
    return await registry.get(user_id)
