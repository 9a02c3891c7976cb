"""Risk evaluation: geofence membership and time-adjusted zone scoring."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from safetrail.core.errors import InvalidInput
from safetrail.core.risk_policies import (
    AT_RISK_THRESHOLD,
    DEFAULT_NIGHT_MULTIPLIER,
    DEFAULT_WEEKEND_MULTIPLIER,
    EARTH_RADIUS_M,
    EMERGENCY_THRESHOLD,
    MAX_SCORE,
    MIN_SCORE,
    NIGHT_END_HOUR,
    NIGHT_START_HOUR,
    RUNNING_MAX_KMH,
    WALKING_MAX_KMH,
    WEEKEND_DAYS,
)
from safetrail.core.types import LocationFix, RiskAssessment, RiskLevel, RiskZone


@dataclass
class SpeedReading:
    """Speed in km/h with a movement label for display."""

    speed_kmh: float
    status: str  # stationary | walking | running_cycling | in_vehicle
    heading_deg: float


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two lat/lng points in meters."""
    R = EARTH_RADIUS_M
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    )
    return R * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def validate_coordinates(latitude: float, longitude: float) -> None:
    """Raise InvalidInput for NaN, infinite or out-of-range coordinates."""
    for name, value, bound in (("latitude", latitude, 90.0), ("longitude", longitude, 180.0)):
        if value is None or not isinstance(value, (int, float)) or isinstance(value, bool):
            raise InvalidInput(f"{name} must be a number")
        if not math.isfinite(value):
            raise InvalidInput(f"{name} must be finite, got {value!r}")
        if not -bound <= value <= bound:
            raise InvalidInput(f"{name} out of range: {value}")


def is_night(now: datetime) -> bool:
    return now.hour >= NIGHT_START_HOUR or now.hour < NIGHT_END_HOUR


def is_weekend(now: datetime) -> bool:
    return now.weekday() in WEEKEND_DAYS


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def adjusted_score(zone: RiskZone, now: datetime) -> int:
    """Base score with night/weekend multipliers, clamped to [0, 100].

    `now` is interpreted in its own timezone (callers pass device-local time).
    A multiplier left unset falls back to the default; an explicit 0 is honored.
    """
    score = float(zone.base_risk_score)
    factors = zone.time_factors

    if is_night(now):
        night = factors.night_multiplier
        score *= DEFAULT_NIGHT_MULTIPLIER if night is None else night

    if is_weekend(now):
        weekend = factors.weekend_multiplier
        score *= DEFAULT_WEEKEND_MULTIPLIER if weekend is None else weekend

    score = min(max(score, MIN_SCORE), MAX_SCORE)
    return _round_half_up(score)


def classify_score(score: int) -> RiskLevel:
    """Map a score to a level. The zone's stored level is never consulted."""
    if score >= EMERGENCY_THRESHOLD:
        return RiskLevel.EMERGENCY
    if score >= AT_RISK_THRESHOLD:
        return RiskLevel.AT_RISK
    return RiskLevel.SAFE


def evaluate(fix: LocationFix, zones: list[RiskZone], now: datetime) -> RiskAssessment:
    """Derive the current risk assessment for a location fix.

    Every active zone whose radius contains the fix qualifies (inclusive
    boundary). The qualifying zone with the highest adjusted score wins;
    ties keep the first zone in input order. No qualifying zone yields
    score 0 / safe.

    Raises InvalidInput before touching any zone if the fix is malformed.
    """
    validate_coordinates(fix.latitude, fix.longitude)

    best_zone: RiskZone | None = None
    best_score = 0
    best_distance: float | None = None

    for zone in zones:
        if not zone.is_active:
            continue
        distance = haversine_m(fix.latitude, fix.longitude, zone.latitude, zone.longitude)
        if distance > zone.radius_meters:
            continue

        score = adjusted_score(zone, now)
        if best_zone is None or score > best_score:
            best_zone = zone
            best_score = score
            best_distance = distance

    return RiskAssessment(
        level=classify_score(best_score),
        score=best_score,
        zone=best_zone,
        distance_meters=round(best_distance, 2) if best_distance is not None else None,
        evaluated_at=now,
    )


def safe_assessment(now: datetime) -> RiskAssessment:
    """Initial assessment before the first fix arrives."""
    return RiskAssessment(level=RiskLevel.SAFE, score=0, zone=None, distance_meters=None, evaluated_at=now)


def classify_speed(speed_mps: float, heading_deg: float = 0.0) -> SpeedReading:
    """Convert m/s to km/h and label the movement."""
    speed_kmh = round((speed_mps or 0.0) * 3.6, 1)
    if speed_kmh == 0:
        status = "stationary"
    elif speed_kmh < WALKING_MAX_KMH:
        status = "walking"
    elif speed_kmh < RUNNING_MAX_KMH:
        status = "running_cycling"
    else:
        status = "in_vehicle"
    return SpeedReading(speed_kmh=speed_kmh, status=status, heading_deg=heading_deg or 0.0)
