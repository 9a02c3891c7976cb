"""Risk evaluation policy constants."""

from __future__ import annotations

# Spherical Earth radius in meters
EARTH_RADIUS_M = 6_371_000.0

# Night window [22:00, 06:00) in local time
NIGHT_START_HOUR = 22
NIGHT_END_HOUR = 6

DEFAULT_NIGHT_MULTIPLIER = 1.5
DEFAULT_WEEKEND_MULTIPLIER = 1.2

# Saturday, Sunday (datetime.weekday())
WEEKEND_DAYS = (5, 6)

MIN_SCORE = 0
MAX_SCORE = 100

# Score thresholds (inclusive)
EMERGENCY_THRESHOLD = 70
AT_RISK_THRESHOLD = 40

# Speed bands in km/h
WALKING_MAX_KMH = 5
RUNNING_MAX_KMH = 20

# Base score given to an approved zone suggestion, keyed by suggested level
SUGGESTED_LEVEL_SCORES = {
    "safe": 20,
    "at_risk": 50,
    "emergency": 80,
}

DEFAULT_SUGGESTION_RADIUS_M = 200
