"""SafeTrail FastAPI application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from safetrail.api import contacts, health, incidents, location, notifications, profile, sos, ws, zone_suggestions, zones
from safetrail.core.config import settings
from safetrail.db.session import SessionLocal
from safetrail.services.session_registry import SessionRegistry

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.registry.close_all()


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)
app.state.registry = SessionRegistry(SessionLocal)

app.include_router(health.router)
app.include_router(profile.router)
app.include_router(zones.router)
app.include_router(location.router)
app.include_router(sos.router)
app.include_router(incidents.router)
app.include_router(notifications.router)
app.include_router(contacts.router)
app.include_router(zone_suggestions.router)
app.include_router(zone_suggestions.admin_router)
app.include_router(ws.router)
