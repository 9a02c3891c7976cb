"""Error taxonomy for risk evaluation, tracking and SOS sessions."""

from __future__ import annotations

from dataclasses import dataclass


class SafetyError(Exception):
    """Base class for errors signaled by the safety core."""


class InvalidInput(SafetyError):
    """Malformed coordinates were fed to the evaluator."""


class PreconditionFailed(SafetyError):
    """SOS was triggered without a location fix or an identified user."""


class IncidentCreationFailed(SafetyError):
    """The persistence service rejected the SOS incident."""


class InvalidTransition(SafetyError):
    """An SOS action was requested in a phase that does not allow it."""


class SensorError(SafetyError):
    """The geolocation source reported an error."""


class SensorTimeout(SensorError):
    """No fix arrived within the watch timeout. The watch stays open."""


@dataclass(frozen=True)
class SoftWarning:
    """Non-fatal failure of a best-effort side effect."""

    source: str
    message: str
