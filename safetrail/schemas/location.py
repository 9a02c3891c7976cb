"""Location, risk assessment and tracking schemas."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


class LocationFixIn(BaseModel):
    """Fix pushed by the device sensor. Range checks happen in the evaluator."""

    latitude: float
    longitude: float
    speed: float | None = Field(default=None, description="m/s; missing means 0")
    accuracy: float | None = None
    heading: float | None = None
    timestamp: datetime | None = None

    @field_validator("timestamp")
    @classmethod
    def _aware(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class SensorErrorIn(BaseModel):
    message: str = Field(..., min_length=1, max_length=500)


class PermissionUpdate(BaseModel):
    granted: bool


class EvaluateRequest(BaseModel):
    latitude: float
    longitude: float
    at: datetime | None = Field(default=None, description="Evaluation time; defaults to now in the configured timezone")


class LocationFixOut(BaseModel):
    latitude: float
    longitude: float
    speed_mps: float
    accuracy_m: float
    heading_deg: float
    timestamp: datetime


class ZoneSummary(BaseModel):
    id: int
    name: str
    risk_level: str


class AssessmentResponse(BaseModel):
    level: str
    score: int
    zone: ZoneSummary | None
    distance_meters: float | None
    evaluated_at: datetime


class SpeedResponse(BaseModel):
    speed_kmh: float
    status: str  # stationary | walking | running_cycling | in_vehicle
    heading_deg: float


class TrackingStatusResponse(BaseModel):
    location: LocationFixOut | None
    assessment: AssessmentResponse
    speed: SpeedResponse | None
    is_tracking: bool
    permission_granted: bool
    error: str | None


def assessment_response(assessment) -> AssessmentResponse:
    """Build the API view of a RiskAssessment."""
    zone = assessment.zone
    return AssessmentResponse(
        level=assessment.level.value,
        score=assessment.score,
        zone=ZoneSummary(id=zone.id, name=zone.name, risk_level=zone.risk_level.value) if zone else None,
        distance_meters=assessment.distance_meters,
        evaluated_at=assessment.evaluated_at,
    )
