"""SQLAlchemy models."""

from __future__ import annotations

from safetrail.models.emergency_contact import EmergencyContact
from safetrail.models.incident import Incident
from safetrail.models.location_log import LocationLog
from safetrail.models.notification import Notification
from safetrail.models.profile import Profile
from safetrail.models.risk_zone import RiskZone
from safetrail.models.zone_suggestion import ZoneSuggestion

__all__ = [
    "EmergencyContact",
    "Incident",
    "LocationLog",
    "Notification",
    "Profile",
    "RiskZone",
    "ZoneSuggestion",
]
