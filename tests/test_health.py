"""Health endpoint tests."""


def test_health_returns_ok(client):
    """GET /health returns { status: ok }."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ready_reports_database_and_sessions(client):
    client.get("/location/status", headers={"X-User-Id": "101"})
    response = client.get("/health/ready")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["database"] == "ok"
    assert body["active_sessions"] == 1
    assert body["websocket_connections"] == 0
