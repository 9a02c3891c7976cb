"""Profile schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    age: int | None = Field(default=None, ge=1, le=130)
    phone: str | None = Field(default=None, max_length=40)
    address: str | None = Field(default=None, max_length=500)
    onboarding_completed: bool | None = None
    gps_enabled: bool | None = None
    notifications_enabled: bool | None = None


class ProfileResponse(BaseModel):
    id: int
    user_id: int
    name: str
    age: int | None
    phone: str | None
    address: str | None
    role: str
    onboarding_completed: bool
    gps_enabled: bool
    notifications_enabled: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
