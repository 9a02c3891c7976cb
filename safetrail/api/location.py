"""Location tracking API: the device pushes sensor readings here."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from safetrail.core.deps import get_current_user_id, get_registry, get_safety_session
from safetrail.core.errors import PreconditionFailed
from safetrail.core.types import LocationFix
from safetrail.schemas.location import (
    LocationFixIn,
    LocationFixOut,
    PermissionUpdate,
    SensorErrorIn,
    SpeedResponse,
    TrackingStatusResponse,
    assessment_response,
)
from safetrail.services.risk_service import classify_speed
from safetrail.services.session_registry import SafetySession, SessionRegistry
from safetrail.services.tracking_service import TrackingStatus

router = APIRouter(prefix="/location", tags=["location"])


def _status_response(tracking: TrackingStatus) -> TrackingStatusResponse:
    fix = tracking.location
    location = None
    speed = None
    if fix is not None:
        location = LocationFixOut(
            latitude=fix.latitude,
            longitude=fix.longitude,
            speed_mps=fix.speed_mps,
            accuracy_m=fix.accuracy_m,
            heading_deg=fix.heading_deg,
            timestamp=fix.timestamp,
        )
        reading = classify_speed(fix.speed_mps, fix.heading_deg)
        speed = SpeedResponse(speed_kmh=reading.speed_kmh, status=reading.status, heading_deg=reading.heading_deg)
    return TrackingStatusResponse(
        location=location,
        assessment=assessment_response(tracking.assessment),
        speed=speed,
        is_tracking=tracking.is_tracking,
        permission_granted=tracking.permission_granted,
        error=tracking.error,
    )


@router.get("/status", response_model=TrackingStatusResponse)
async def get_status(session: SafetySession = Depends(get_safety_session)):
    """Current location, risk assessment and sensor state."""
    return _status_response(session.tracker.status)


@router.post("/permission", response_model=TrackingStatusResponse)
async def report_permission(data: PermissionUpdate, session: SafetySession = Depends(get_safety_session)):
    """Device reports the outcome of the OS location permission prompt."""
    session.geolocation.set_permission(data.granted)
    await session.tracker.request_permission()
    return _status_response(session.tracker.status)


@router.post("/tracking/start", response_model=TrackingStatusResponse)
async def start_tracking(session: SafetySession = Depends(get_safety_session)):
    """Subscribe to location updates. Also used to retry after a sensor error."""
    try:
        await session.tracker.restart()
    except PreconditionFailed as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _status_response(session.tracker.status)


@router.post("/tracking/stop", response_model=TrackingStatusResponse)
async def stop_tracking(session: SafetySession = Depends(get_safety_session)):
    session.tracker.stop()
    return _status_response(session.tracker.status)


@router.post("", response_model=TrackingStatusResponse)
async def push_fix(data: LocationFixIn, session: SafetySession = Depends(get_safety_session)):
    """Deliver one sensor fix. Ignored unless tracking is on.

    A malformed fix is rejected with 422 and the previous assessment stays current.
    """
    if not session.tracker.is_tracking:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Tracking is not active")
    fix = LocationFix(
        latitude=data.latitude,
        longitude=data.longitude,
        timestamp=data.timestamp or datetime.now(timezone.utc),
        speed_mps=data.speed or 0.0,
        accuracy_m=data.accuracy or 0.0,
        heading_deg=data.heading or 0.0,
    )
    delivered = session.geolocation.push_fix(fix)
    tracking = session.tracker.status
    if delivered and tracking.location is not fix and tracking.error:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=tracking.error)
    return _status_response(tracking)


@router.post("/error", response_model=TrackingStatusResponse)
async def report_sensor_error(data: SensorErrorIn, session: SafetySession = Depends(get_safety_session)):
    """Device reports a sensor failure. Tracking stops until started again."""
    session.geolocation.push_error(data.message)
    return _status_response(session.tracker.status)


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
async def end_session(
    user_id: int = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
):
    """End the caller's session: stop tracking and cancel any SOS in progress.

    The next request starts a fresh session with the current zone set.
    """
    await registry.close(user_id)
