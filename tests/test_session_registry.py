"""Session registry tests."""

import asyncio

import pytest

from fakes import make_fix, new_user_id
from safetrail.core.errors import PreconditionFailed
from safetrail.core.types import SosPhase


def test_one_session_per_user(registry, zone_factory):
    zone = zone_factory(latitude=51.0, longitude=51.0)
    user_id = new_user_id()

    async def _run():
        first = await registry.get(user_id)
        second = await registry.get(user_id)
        other = await registry.get(new_user_id())
        return first, second, other

    first, second, other = asyncio.run(_run())
    assert first is second
    assert first is not other
    assert zone.id in [z.id for z in first.tracker.zones]
    assert registry.find(user_id) is first


def test_published_events_are_held_until_delivered(registry):
    user_id = new_user_id()

    async def _run():
        session = await registry.get(user_id)
        session.geolocation.set_permission(True)
        await session.tracker.request_permission()
        held = registry.pending_events
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        drained = registry.pending_events
        await registry.close_all()
        return held, drained

    held, drained = asyncio.run(_run())
    assert held == 1
    assert drained == 0
    assert registry.pending_events == 0


def test_closed_session_is_rebuilt_with_current_zones(registry, zone_factory):
    user_id = new_user_id()

    async def _run():
        first = await registry.get(user_id)
        zone = zone_factory(latitude=52.0, longitude=52.0)
        await registry.close(user_id)
        second = await registry.get(user_id)
        await registry.close_all()
        return first, second, zone

    first, second, zone = asyncio.run(_run())
    assert first is not second
    assert zone.id not in [z.id for z in first.tracker.zones]
    assert zone.id in [z.id for z in second.tracker.zones]


def test_trigger_uses_tracker_location(registry):
    user_id = new_user_id()

    async def _run():
        session = await registry.get(user_id)
        with pytest.raises(PreconditionFailed):
            await session.trigger_sos()

        session.geolocation.set_permission(True)
        await session.tracker.request_permission()
        session.tracker.start()
        session.geolocation.push_fix(make_fix(3.0, 4.0))
        result = await session.trigger_sos()
        await registry.close_all()
        return session, result

    session, result = asyncio.run(_run())
    assert result.triggered
    assert result.incident.latitude == 3.0
    assert session.sos.phase is SosPhase.IDLE
    assert not session.tracker.is_tracking
    assert registry.find(user_id) is None
