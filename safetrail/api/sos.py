"""SOS session API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from safetrail.core.deps import get_safety_session
from safetrail.core.errors import IncidentCreationFailed, InvalidTransition, PreconditionFailed, SoftWarning
from safetrail.schemas.sos import SosStateResponse
from safetrail.services.session_registry import SafetySession
from safetrail.services.sos_service import SosSnapshot

router = APIRouter(prefix="/sos", tags=["sos"])


def _state(snap: SosSnapshot, warnings: list[SoftWarning] | None = None) -> SosStateResponse:
    return SosStateResponse(
        phase=snap.phase.value,
        incident_id=snap.incident_id,
        risk_level=snap.risk_level.value if snap.risk_level else None,
        warnings=[w.message for w in warnings or []],
    )


@router.get("/state", response_model=SosStateResponse)
async def get_state(session: SafetySession = Depends(get_safety_session)):
    return _state(session.sos.snapshot)


@router.post("/trigger", response_model=SosStateResponse)
async def trigger(session: SafetySession = Depends(get_safety_session)):
    """Raise an SOS at the current location. No-op while a session is already running."""
    try:
        result = await session.trigger_sos()
    except PreconditionFailed as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except IncidentCreationFailed as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return _state(result.snapshot, result.warnings)


@router.post("/cancel", response_model=SosStateResponse)
async def cancel(session: SafetySession = Depends(get_safety_session)):
    warnings = await session.sos.cancel()
    return _state(session.sos.snapshot, warnings)


@router.post("/decoy/accept", response_model=SosStateResponse)
async def accept_decoy(session: SafetySession = Depends(get_safety_session)):
    """Answer the decoy call; audio recording starts."""
    try:
        warnings = await session.sos.accept_decoy()
    except InvalidTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return _state(session.sos.snapshot, warnings)


@router.post("/decoy/decline", response_model=SosStateResponse)
async def decline_decoy(session: SafetySession = Depends(get_safety_session)):
    try:
        session.sos.decline_decoy()
    except InvalidTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return _state(session.sos.snapshot)


@router.post("/recording/stop", response_model=SosStateResponse)
async def stop_recording(session: SafetySession = Depends(get_safety_session)):
    try:
        warnings = await session.sos.stop_recording()
    except InvalidTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return _state(session.sos.snapshot, warnings)


@router.post("/recording/stopped", response_model=SosStateResponse)
async def recording_stopped(session: SafetySession = Depends(get_safety_session)):
    """Recorder on the device reports it stopped on its own."""
    warnings = await session.sos.recording_stopped()
    return _state(session.sos.snapshot, warnings)
