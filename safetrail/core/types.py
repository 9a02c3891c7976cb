"""Domain types shared by the evaluator, tracker and SOS machine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class RiskLevel(str, Enum):
    SAFE = "safe"
    AT_RISK = "at_risk"
    EMERGENCY = "emergency"


class AlertType(str, Enum):
    SOS = "sos"
    AUTO_RISK_ZONE = "auto_risk_zone"
    SPEED_ALERT = "speed_alert"


class AlertStatus(str, Enum):
    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"


class SosPhase(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    DECOY_OFFERED = "decoy_offered"
    RECORDING = "recording"


@dataclass(frozen=True)
class LocationFix:
    """One reading from the device geolocation sensor."""

    latitude: float
    longitude: float
    timestamp: datetime
    speed_mps: float = 0.0
    accuracy_m: float = 0.0
    heading_deg: float = 0.0


@dataclass(frozen=True)
class TimeFactors:
    night_multiplier: float | None = None
    weekend_multiplier: float | None = None


@dataclass(frozen=True)
class RiskZone:
    """Circular geofenced area with a base danger score."""

    id: int
    name: str
    latitude: float
    longitude: float
    radius_meters: float
    base_risk_score: float
    risk_level: RiskLevel = RiskLevel.AT_RISK  # display badge only
    time_factors: TimeFactors = field(default_factory=TimeFactors)
    description: str | None = None
    incident_count: int = 0
    is_active: bool = True


@dataclass(frozen=True)
class RiskAssessment:
    """Result of one evaluation. Superseded, never mutated."""

    level: RiskLevel
    score: int
    zone: RiskZone | None
    distance_meters: float | None
    evaluated_at: datetime


@dataclass(frozen=True)
class Incident:
    """Incident record as returned by the incident sink."""

    id: int
    user_id: int
    alert_type: AlertType
    status: AlertStatus
    latitude: float
    longitude: float
    risk_level: RiskLevel | None
    description: str | None


@dataclass(frozen=True)
class WatchOptions:
    high_accuracy: bool = True
    timeout_ms: int = 10000
    max_age_ms: int = 0
