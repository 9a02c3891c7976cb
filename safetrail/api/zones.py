"""Risk zones API."""

from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from safetrail.core.config import settings
from safetrail.core.errors import InvalidInput
from safetrail.core.types import LocationFix
from safetrail.db.session import get_db
from safetrail.schemas.location import AssessmentResponse, EvaluateRequest, assessment_response
from safetrail.schemas.zone import RiskZoneResponse
from safetrail.services.persistence import zone_from_row
from safetrail.services.risk_service import evaluate
from safetrail.services.zone_service import get_zone, list_active_zones

router = APIRouter(prefix="/zones", tags=["zones"])


@router.get("", response_model=list[RiskZoneResponse])
def list_zones(db: Session = Depends(get_db)):
    """List active risk zones for the map."""
    return list_active_zones(db)


@router.post("/evaluate", response_model=AssessmentResponse)
def evaluate_point(data: EvaluateRequest, db: Session = Depends(get_db)):
    """Evaluate an arbitrary point against the active zones (stateless)."""
    now = data.at or datetime.now(ZoneInfo(settings.local_timezone))
    zones = [zone_from_row(z) for z in list_active_zones(db)]
    fix = LocationFix(latitude=data.latitude, longitude=data.longitude, timestamp=now)
    try:
        return assessment_response(evaluate(fix, zones, now))
    except InvalidInput as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.get("/{zone_id}", response_model=RiskZoneResponse)
def get_one(zone_id: int, db: Session = Depends(get_db)):
    zone = get_zone(db, zone_id)
    if not zone:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Zone not found")
    return zone
