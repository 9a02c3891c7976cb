"""Pytest fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete
from sqlalchemy.orm import sessionmaker

from fakes import ManualScheduler
from safetrail.core.deps import get_registry
from safetrail.db.base import Base
from safetrail.db.session import get_db, make_engine
from safetrail.main import app
from safetrail.models import EmergencyContact, Incident, LocationLog, Notification, Profile, RiskZone, ZoneSuggestion  # noqa: F401 - register for create_all
from safetrail.services.session_registry import SessionRegistry

TEST_DATABASE_URL = "sqlite:///./test.db"

engine = make_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# ---------- Fixtures ----------


@pytest.fixture(scope="session")
def setup_db():
    """Create tables once for test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(setup_db):
    return TestingSessionLocal


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def registry(session_factory, scheduler):
    return SessionRegistry(session_factory, scheduler=scheduler)


@pytest.fixture
def client(setup_db, registry):
    """Test client with overridden DB and session registry."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_registry] = lambda: registry
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db(setup_db):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def zone_factory(setup_db):
    """Insert risk zones; they are removed again after the test."""
    created: list[int] = []

    def _make(**fields) -> RiskZone:
        values = {
            "name": "Test zone",
            "latitude": 0.0,
            "longitude": 0.0,
            "radius_meters": 500.0,
            "risk_score": 50.0,
            "risk_level": "at_risk",
            "incident_count": 0,
            "time_factors": {"night_multiplier": 1.0, "weekend_multiplier": 1.0},
            "is_active": True,
        }
        values.update(fields)
        session = TestingSessionLocal()
        try:
            zone = RiskZone(**values)
            session.add(zone)
            session.commit()
            session.refresh(zone)
            created.append(zone.id)
            session.expunge(zone)
            return zone
        finally:
            session.close()

    yield _make

    session = TestingSessionLocal()
    try:
        if created:
            session.execute(delete(RiskZone).where(RiskZone.id.in_(created)))
            session.commit()
    finally:
        session.close()
