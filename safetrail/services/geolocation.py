"""Geolocation source fed by fixes the device pushes to the API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from safetrail.core.errors import SensorError, SensorTimeout
from safetrail.core.scheduler import Scheduler, TimerHandle
from safetrail.core.types import LocationFix, WatchOptions
from safetrail.services.ports import LocationCallback

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Location request timed out"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _Watch:
    callback: LocationCallback
    options: WatchOptions
    timer: TimerHandle | None = None
    token: int = 0


class PushGeolocationSource:
    """Fans device-pushed fixes and sensor errors out to watchers.

    Honors the watch options: a watchdog reports a timeout each time no fix
    arrives within `timeout_ms` and keeps the watch open, and fixes older than
    `max_age_ms` are dropped (both disabled at 0).
    """

    def __init__(self, scheduler: Scheduler, clock: Callable[[], datetime] = _utcnow) -> None:
        self._scheduler = scheduler
        self._clock = clock
        self._permission_granted = False
        self._watches: dict[int, _Watch] = {}
        self._next_handle = 1

    @property
    def permission_granted(self) -> bool:
        return self._permission_granted

    @property
    def active_watches(self) -> int:
        return len(self._watches)

    @property
    def high_accuracy_requested(self) -> bool:
        return any(w.options.high_accuracy for w in self._watches.values())

    def set_permission(self, granted: bool) -> None:
        """Record the permission the device reported."""
        self._permission_granted = granted

    async def request_permission(self) -> bool:
        return self._permission_granted

    def watch(self, callback: LocationCallback, options: WatchOptions) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._watches[handle] = _Watch(callback=callback, options=options)
        self._arm_watchdog(handle)
        logger.debug("Geolocation watch %s started (timeout=%sms)", handle, options.timeout_ms)
        return handle

    def cancel(self, handle: int) -> None:
        watch = self._watches.pop(handle, None)
        if watch and watch.timer is not None:
            watch.timer.cancel()
        if watch:
            logger.debug("Geolocation watch %s cancelled", handle)

    def push_fix(self, fix: LocationFix) -> int:
        """Deliver a fix to every watcher. Returns how many watchers received it."""
        delivered = 0
        for handle, watch in list(self._watches.items()):
            if self._is_stale(fix, watch.options):
                logger.debug("Dropping stale fix for watch %s", handle)
                continue
            self._arm_watchdog(handle)
            watch.callback(fix)
            delivered += 1
        return delivered

    def push_error(self, message: str) -> int:
        """Deliver a sensor error reported by the device."""
        handles = list(self._watches)
        for handle in handles:
            watch = self._watches.get(handle)
            if watch:
                watch.callback(SensorError(message))
        return len(handles)

    def _is_stale(self, fix: LocationFix, options: WatchOptions) -> bool:
        if options.max_age_ms <= 0:
            return False
        ts = fix.timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        age_ms = (self._clock() - ts).total_seconds() * 1000
        return age_ms > options.max_age_ms

    def _arm_watchdog(self, handle: int) -> None:
        watch = self._watches.get(handle)
        if watch is None:
            return
        if watch.timer is not None:
            watch.timer.cancel()
            watch.timer = None
        watch.token += 1
        if watch.options.timeout_ms <= 0:
            return
        token = watch.token
        watch.timer = self._scheduler.call_later(
            watch.options.timeout_ms / 1000, lambda: self._on_timeout(handle, token)
        )

    def _on_timeout(self, handle: int, token: int) -> None:
        watch = self._watches.get(handle)
        if watch is None or watch.token != token:
            return
        logger.info("Geolocation watch %s timed out", handle)
        self._arm_watchdog(handle)
        watch.callback(SensorTimeout(TIMEOUT_MESSAGE))
