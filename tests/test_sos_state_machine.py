"""SOS state machine tests: phases, decoy timer, side-effect failures."""

import asyncio
from datetime import datetime, timezone

import pytest

from fakes import FakeIncidentSink, FakeNotificationSink, FakeRecorder, ManualScheduler, make_fix
from safetrail.core.errors import IncidentCreationFailed, InvalidTransition, PreconditionFailed
from safetrail.core.sos_policies import RECORDING_SAVED_TITLE, SOS_SENT_TITLE
from safetrail.core.types import AlertType, RiskAssessment, RiskLevel, SosPhase
from safetrail.services.sos_service import SosStateMachine

USER = 42


def _assessment(level=RiskLevel.EMERGENCY, score=85) -> RiskAssessment:
    return RiskAssessment(
        level=level,
        score=score,
        zone=None,
        distance_meters=None,
        evaluated_at=datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc),
    )


def _machine(incidents=None, notifications=None, recorder=None, scheduler=None):
    incidents = incidents or FakeIncidentSink()
    notifications = notifications or FakeNotificationSink()
    recorder = recorder or FakeRecorder()
    scheduler = scheduler or ManualScheduler()
    machine = SosStateMachine(incidents, notifications, recorder, scheduler, decoy_delay_ms=2000)
    return machine, incidents, notifications, recorder, scheduler


def _trigger(machine, fix=None, assessment=None, user_id=USER):
    return asyncio.run(machine.trigger(user_id, fix or make_fix(12.97, 77.59), assessment or _assessment()))


def test_trigger_requires_location():
    machine, incidents, *_ = _machine()
    with pytest.raises(PreconditionFailed):
        asyncio.run(machine.trigger(USER, None, _assessment()))
    assert machine.phase is SosPhase.IDLE
    assert incidents.calls == []


def test_trigger_requires_user():
    machine, incidents, *_ = _machine()
    with pytest.raises(PreconditionFailed):
        asyncio.run(machine.trigger(None, make_fix(), _assessment()))
    assert machine.phase is SosPhase.IDLE
    assert incidents.calls == []


def test_trigger_creates_incident_and_notifies():
    machine, incidents, notifications, _, _ = _machine()
    result = _trigger(machine, fix=make_fix(12.97, 77.59))

    assert result.triggered
    assert result.warnings == []
    assert result.snapshot.phase is SosPhase.ACTIVE
    assert result.snapshot.incident_id == 1
    assert result.snapshot.risk_level is RiskLevel.EMERGENCY

    call = incidents.calls[0]
    assert call["alert_type"] is AlertType.SOS
    assert (call["latitude"], call["longitude"]) == (12.97, 77.59)
    assert call["risk_level"] is RiskLevel.EMERGENCY
    assert call["description"] == "SOS triggered by user"

    assert len(notifications.sent) == 1
    user_id, title, _, kind = notifications.sent[0]
    assert (user_id, title, kind) == (USER, SOS_SENT_TITLE, "emergency")


def test_trigger_without_assessment_reports_safe():
    machine, incidents, *_ = _machine()
    asyncio.run(machine.trigger(USER, make_fix(), None))
    assert incidents.calls[0]["risk_level"] is RiskLevel.SAFE
    assert machine.snapshot.risk_level is RiskLevel.SAFE


def test_phase_is_active_before_incident_resolves():
    seen = []

    class _ObservingSink(FakeIncidentSink):
        async def create_incident(self, *args):
            seen.append(machine.phase)
            return await super().create_incident(*args)

    machine, *_ = _machine(incidents=_ObservingSink())
    _trigger(machine)
    assert seen == [SosPhase.ACTIVE]


def test_decoy_offered_after_exactly_the_delay():
    machine, *_, scheduler = _machine()
    _trigger(machine)

    scheduler.advance(1.5)
    assert machine.phase is SosPhase.ACTIVE
    scheduler.advance(0.5)
    assert machine.phase is SosPhase.DECOY_OFFERED


def test_retrigger_while_active_is_a_noop():
    machine, incidents, *_ = _machine()
    first = _trigger(machine)
    second = _trigger(machine)

    assert not second.triggered
    assert second.snapshot.incident_id == first.snapshot.incident_id
    assert len(incidents.calls) == 1


def test_incident_failure_reverts_to_idle():
    machine, incidents, notifications, _, scheduler = _machine(incidents=FakeIncidentSink(fail=True))
    with pytest.raises(IncidentCreationFailed):
        _trigger(machine)

    assert machine.phase is SosPhase.IDLE
    assert machine.snapshot.incident_id is None
    assert scheduler.pending == []
    assert notifications.sent == []

    scheduler.advance(5)
    assert machine.phase is SosPhase.IDLE


def test_notification_failure_is_a_soft_warning():
    machine, *_ = _machine(notifications=FakeNotificationSink(fail=True))
    result = _trigger(machine)

    assert result.triggered
    assert machine.phase is SosPhase.ACTIVE
    assert machine.snapshot.incident_id == 1
    assert [w.source for w in result.warnings] == ["notification"]


def test_cancel_before_decoy_leaves_no_live_timer():
    machine, *_, scheduler = _machine()
    _trigger(machine)
    scheduler.advance(1)

    assert asyncio.run(machine.cancel()) == []
    assert machine.phase is SosPhase.IDLE
    assert scheduler.pending == []

    scheduler.advance(5)
    assert machine.phase is SosPhase.IDLE


def test_stale_timer_from_previous_session_is_ignored():
    class _UncancellableScheduler(ManualScheduler):
        def call_later(self, delay_seconds, callback):
            timer = super().call_later(delay_seconds, callback)
            timer.cancel = lambda: None
            return timer

    machine, incidents, *_, scheduler = _machine(scheduler=_UncancellableScheduler())
    _trigger(machine)  # decoy due at t=2
    scheduler.advance(1)
    asyncio.run(machine.cancel())
    _trigger(machine)  # decoy due at t=3

    scheduler.advance(1)  # t=2: first session's timer fires
    assert machine.phase is SosPhase.ACTIVE
    assert machine.snapshot.incident_id == 2

    scheduler.advance(1)  # t=3
    assert machine.phase is SosPhase.DECOY_OFFERED
    assert len(incidents.calls) == 2


def test_accept_decoy_then_stop_recording():
    machine, _, notifications, recorder, scheduler = _machine()
    _trigger(machine)
    scheduler.advance(2)

    assert asyncio.run(machine.accept_decoy()) == []
    assert machine.phase is SosPhase.RECORDING
    assert recorder.started == [(USER, 1)]

    assert asyncio.run(machine.stop_recording()) == []
    assert machine.phase is SosPhase.IDLE
    assert recorder.stopped == [(USER, 1)]
    assert notifications.sent[-1][1] == RECORDING_SAVED_TITLE
    assert notifications.sent[-1][3] == "info"


def test_decline_decoy_stays_active_without_rearming():
    machine, *_, scheduler = _machine()
    _trigger(machine)
    scheduler.advance(2)

    machine.decline_decoy()
    assert machine.phase is SosPhase.ACTIVE
    scheduler.advance(10)
    assert machine.phase is SosPhase.ACTIVE


def test_recorder_start_failure_returns_to_active():
    machine, *_, scheduler = _machine(recorder=FakeRecorder(fail_start=True))
    _trigger(machine)
    scheduler.advance(2)

    warnings = asyncio.run(machine.accept_decoy())
    assert machine.phase is SosPhase.ACTIVE
    assert [w.source for w in warnings] == ["recorder"]


def test_recording_stopped_signal():
    machine, _, notifications, recorder, scheduler = _machine()
    assert asyncio.run(machine.recording_stopped()) == []

    _trigger(machine)
    scheduler.advance(2)
    asyncio.run(machine.accept_decoy())
    asyncio.run(machine.recording_stopped())

    assert machine.phase is SosPhase.IDLE
    assert notifications.sent[-1][1] == RECORDING_SAVED_TITLE
    assert recorder.stopped == []


def test_cancel_while_recording_stops_recorder():
    machine, _, _, recorder, scheduler = _machine()
    _trigger(machine)
    scheduler.advance(2)
    asyncio.run(machine.accept_decoy())

    asyncio.run(machine.cancel())
    assert machine.phase is SosPhase.IDLE
    assert recorder.stopped == [(USER, 1)]


def test_cancel_from_idle_is_a_noop():
    machine, *_ = _machine()
    generation = machine.snapshot.generation
    assert asyncio.run(machine.cancel()) == []
    assert machine.snapshot.generation == generation


@pytest.mark.parametrize("action", ["accept", "decline", "stop"])
def test_actions_in_wrong_phase_raise(action):
    machine, *_ = _machine()
    with pytest.raises(InvalidTransition):
        if action == "accept":
            asyncio.run(machine.accept_decoy())
        elif action == "decline":
            machine.decline_decoy()
        else:
            asyncio.run(machine.stop_recording())
    assert machine.phase is SosPhase.IDLE


def test_stop_recording_while_active_raises():
    machine, *_ = _machine()
    _trigger(machine)
    with pytest.raises(InvalidTransition):
        asyncio.run(machine.stop_recording())
    assert machine.phase is SosPhase.ACTIVE


def test_risk_level_is_frozen_at_trigger_time():
    machine, *_, scheduler = _machine()
    _trigger(machine, assessment=_assessment(RiskLevel.AT_RISK, 45))
    scheduler.advance(2)
    asyncio.run(machine.accept_decoy())
    assert machine.snapshot.risk_level is RiskLevel.AT_RISK


def test_listeners_see_every_phase_change():
    machine, *_, scheduler = _machine()
    phases = []
    unsubscribe = machine.subscribe(lambda snap: phases.append(snap.phase))

    _trigger(machine)
    scheduler.advance(2)
    machine.decline_decoy()
    unsubscribe()
    asyncio.run(machine.cancel())

    assert phases[0] is SosPhase.ACTIVE
    assert SosPhase.DECOY_OFFERED in phases
    assert phases[-1] is SosPhase.ACTIVE


def test_failing_listener_does_not_break_transitions():
    machine, *_ = _machine()

    def _boom(snap):
        raise RuntimeError("listener bug")

    machine.subscribe(_boom)
    _trigger(machine)
    assert machine.phase is SosPhase.ACTIVE
