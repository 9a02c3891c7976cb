"""Health and readiness endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from safetrail.core.deps import get_registry
from safetrail.db.session import get_db
from safetrail.services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict:
    """Liveness: the process is up."""
    return {"status": "ok"}


@router.get("/health/ready")
def ready(
    db: Session = Depends(get_db),
    registry: SessionRegistry = Depends(get_registry),
):
    """Readiness: database reachable. Also reports live sessions and sockets."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Readiness check failed: %s", e)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "database": "error"},
        )
    return {
        "status": "ok",
        "database": "ok",
        "active_sessions": registry.active_sessions,
        "websocket_connections": registry.connections.total_connections,
    }
