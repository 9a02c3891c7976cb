"""Emergency contact schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class ContactCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=3, max_length=40)
    relationship: str | None = Field(default=None, max_length=100)
    is_primary: bool = False


class ContactUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, min_length=3, max_length=40)
    relationship: str | None = Field(default=None, max_length=100)
    is_primary: bool | None = None


class ContactResponse(BaseModel):
    id: int
    user_id: int
    name: str
    phone: str
    relationship: str | None
    is_primary: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
