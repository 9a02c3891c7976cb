"""SOS session schemas."""

from datetime import datetime

from pydantic import BaseModel


class SosStateResponse(BaseModel):
    phase: str  # idle | active | decoy_offered | recording
    incident_id: int | None
    risk_level: str | None
    warnings: list[str] = []


class IncidentResponse(BaseModel):
    id: int
    user_id: int
    alert_type: str
    status: str
    latitude: float
    longitude: float
    risk_level: str | None
    description: str | None
    audio_url: str | None
    police_notified: bool
    contacts_notified: bool
    resolved_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}
