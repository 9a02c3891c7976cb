"""Risk zone model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from safetrail.db.base import Base


class RiskZone(Base):
    """Circular geofenced area with a base danger score."""

    __tablename__ = "risk_zones"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    radius_meters: Mapped[float] = mapped_column(Float, nullable=False)
    risk_score: Mapped[float] = mapped_column(Float, nullable=False, default=0)  # 0-100
    risk_level: Mapped[str] = mapped_column(String(20), nullable=False, default="at_risk")  # safe | at_risk | emergency
    incident_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    time_factors: Mapped[dict | None] = mapped_column(JSON, nullable=True)  # {night_multiplier, weekend_multiplier}
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
