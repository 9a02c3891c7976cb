"""Risk zone and zone suggestion schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

RISK_LEVEL_PATTERN = "^(safe|at_risk|emergency)$"


class TimeFactorsSchema(BaseModel):
    night_multiplier: float | None = Field(default=None, ge=0)
    weekend_multiplier: float | None = Field(default=None, ge=0)


class RiskZoneResponse(BaseModel):
    id: int
    name: str
    description: str | None
    latitude: float
    longitude: float
    radius_meters: float
    risk_score: float
    risk_level: str
    incident_count: int
    time_factors: TimeFactorsSchema | None
    is_active: bool

    model_config = {"from_attributes": True}


class ZoneSuggestionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    radius_meters: float | None = Field(default=None, gt=0, le=10000)
    suggested_risk_level: str | None = Field(default=None, pattern=RISK_LEVEL_PATTERN)


class ZoneSuggestionUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    radius_meters: float | None = Field(default=None, gt=0, le=10000)
    suggested_risk_level: str | None = Field(default=None, pattern=RISK_LEVEL_PATTERN)


class ZoneSuggestionResponse(BaseModel):
    id: int
    user_id: int
    name: str
    description: str | None
    latitude: float
    longitude: float
    radius_meters: float
    suggested_risk_level: str
    status: str
    admin_notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SuggestionReview(BaseModel):
    admin_notes: str | None = None
    risk_score: float | None = Field(default=None, ge=0, le=100, description="Override the level-based base score")


class SuggestionApprovalResponse(BaseModel):
    suggestion: ZoneSuggestionResponse
    zone: RiskZoneResponse
