"""Location tracking and zone evaluation API tests."""

from sqlalchemy import select

from fakes import auth, new_user_id
from safetrail.models.location_log import LocationLog


def _start_tracking(client, user_id):
    r = client.post("/location/permission", headers=auth(user_id), json={"granted": True})
    assert r.status_code == 200
    r = client.post("/location/tracking/start", headers=auth(user_id))
    assert r.status_code == 200
    return r.json()


def test_location_requires_user_header(client):
    assert client.get("/location/status").status_code == 401


def test_fresh_session_is_safe_and_idle(client):
    r = client.get("/location/status", headers=auth(new_user_id()))
    assert r.status_code == 200
    body = r.json()
    assert body["is_tracking"] is False
    assert body["permission_granted"] is False
    assert body["location"] is None
    assert body["assessment"]["level"] == "safe"
    assert body["assessment"]["score"] == 0


def test_start_without_permission_is_rejected(client):
    user_id = new_user_id()
    r = client.post("/location/tracking/start", headers=auth(user_id))
    assert r.status_code == 400
    assert "permission" in r.json()["detail"].lower()


def test_permission_denied_is_reported(client):
    user_id = new_user_id()
    r = client.post("/location/permission", headers=auth(user_id), json={"granted": False})
    assert r.status_code == 200
    assert r.json()["error"] == "Location permission denied"


def test_push_fix_requires_tracking(client):
    r = client.post("/location", headers=auth(new_user_id()), json={"latitude": 1.0, "longitude": 1.0})
    assert r.status_code == 409


def test_fix_inside_zone_is_assessed(client, zone_factory):
    zone = zone_factory(name="Dark alley", latitude=45.0, longitude=45.0, radius_meters=400, risk_score=85)
    user_id = new_user_id()
    assert _start_tracking(client, user_id)["is_tracking"] is True

    r = client.post(
        "/location",
        headers=auth(user_id),
        json={"latitude": 45.001, "longitude": 45.0, "speed": 1.0, "heading": 180},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["assessment"]["level"] == "emergency"
    assert body["assessment"]["score"] == 85
    assert body["assessment"]["zone"]["id"] == zone.id
    assert body["assessment"]["distance_meters"] > 100
    assert body["speed"] == {"speed_kmh": 3.6, "status": "walking", "heading_deg": 180.0}
    assert body["location"]["latitude"] == 45.001


def test_malformed_fix_keeps_previous_assessment(client, zone_factory):
    zone_factory(latitude=46.0, longitude=46.0, risk_score=55)
    user_id = new_user_id()
    _start_tracking(client, user_id)
    client.post("/location", headers=auth(user_id), json={"latitude": 46.0, "longitude": 46.0})

    r = client.post("/location", headers=auth(user_id), json={"latitude": 95.0, "longitude": 46.0})
    assert r.status_code == 422

    status = client.get("/location/status", headers=auth(user_id)).json()
    assert status["assessment"]["level"] == "at_risk"
    assert status["location"]["latitude"] == 46.0
    assert status["is_tracking"] is True


def test_sensor_error_stops_tracking(client):
    user_id = new_user_id()
    _start_tracking(client, user_id)

    r = client.post("/location/error", headers=auth(user_id), json={"message": "GPS signal lost"})
    assert r.status_code == 200
    assert r.json()["is_tracking"] is False
    assert r.json()["error"] == "GPS signal lost"

    assert client.post("/location/tracking/start", headers=auth(user_id)).json()["is_tracking"] is True


def test_stop_tracking(client):
    user_id = new_user_id()
    _start_tracking(client, user_id)
    r = client.post("/location/tracking/stop", headers=auth(user_id))
    assert r.status_code == 200
    assert r.json()["is_tracking"] is False


def test_restarted_tracking_sees_newly_approved_zone(client, zone_factory):
    user_id = new_user_id()
    _start_tracking(client, user_id)
    client.post("/location/tracking/stop", headers=auth(user_id))

    zone = zone_factory(name="Closed station", latitude=10.0, longitude=10.0, risk_score=90)
    assert client.post("/location/tracking/start", headers=auth(user_id)).json()["is_tracking"] is True

    r = client.post("/location", headers=auth(user_id), json={"latitude": 10.0, "longitude": 10.0})
    assert r.status_code == 200
    assert r.json()["assessment"]["level"] == "emergency"
    assert r.json()["assessment"]["zone"]["id"] == zone.id


def test_end_session(client, registry, zone_factory):
    user_id = new_user_id()
    _start_tracking(client, user_id)
    assert registry.find(user_id) is not None

    r = client.delete("/location/session", headers=auth(user_id))
    assert r.status_code == 204
    assert registry.find(user_id) is None

    zone = zone_factory(name="Riverside path", latitude=11.0, longitude=11.0, risk_score=60)
    body = client.get("/location/status", headers=auth(user_id)).json()
    assert body["is_tracking"] is False
    assert body["permission_granted"] is False
    assert zone.id in [z.id for z in registry.find(user_id).tracker.zones]

    # Ending a session that does not exist is fine
    assert client.delete("/location/session", headers=auth(new_user_id())).status_code == 204


def test_first_fix_is_logged(client, registry, db):
    user_id = new_user_id()
    _start_tracking(client, user_id)
    client.post("/location", headers=auth(user_id), json={"latitude": 1.5, "longitude": 2.5})
    # Logging runs in the background; closing the session waits for it
    client.portal.call(registry.close_all)

    rows = db.execute(select(LocationLog).where(LocationLog.user_id == user_id)).scalars().all()
    assert [(r.latitude, r.longitude) for r in rows] == [(1.5, 2.5)]


def test_zone_catalogue(client, zone_factory):
    zone = zone_factory(name="Bus depot", latitude=47.0, longitude=47.0)
    r = client.get("/zones")
    assert r.status_code == 200
    assert zone.id in [z["id"] for z in r.json()]

    r = client.get(f"/zones/{zone.id}")
    assert r.status_code == 200
    assert r.json()["name"] == "Bus depot"
    assert r.json()["time_factors"] == {"night_multiplier": 1.0, "weekend_multiplier": 1.0}

    assert client.get("/zones/999999999").status_code == 404


def test_inactive_zone_is_not_listed(client, zone_factory):
    zone = zone_factory(latitude=48.0, longitude=48.0, is_active=False)
    assert zone.id not in [z["id"] for z in client.get("/zones").json()]


def test_evaluate_point(client, zone_factory):
    zone = zone_factory(latitude=49.0, longitude=49.0, risk_score=72)
    r = client.post(
        "/zones/evaluate",
        json={"latitude": 49.0, "longitude": 49.0, "at": "2026-10-14T12:00:00+00:00"},
    )
    assert r.status_code == 200
    assert r.json()["level"] == "emergency"
    assert r.json()["zone"]["id"] == zone.id
    assert r.json()["distance_meters"] == 0.0

    assert client.post("/zones/evaluate", json={"latitude": 0.0, "longitude": 200.0}).status_code == 422
