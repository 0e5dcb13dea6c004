"""Pytest configuration and shared fixtures.

Settings are read at import time, so the environment is prepared before any
ticketdesk module is imported. Every test gets fresh in-memory tables.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CLIENT_BASE_URL"] = "https://tickets.example.test"

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from ticketdesk.core.clock import utcnow
from ticketdesk.core.security import create_access_token
from ticketdesk.db.session import Base, SessionLocal, engine
from ticketdesk.main import app
from ticketdesk.models import audit_log, booking, email_log, event, ticket, used_ticket  # noqa: F401
from ticketdesk.schemas.event import EventIn
from ticketdesk.services import email_service, event_service

sent_emails = []


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def no_mail(monkeypatch):
    sent_emails.clear()

    def _capture(to_email, subject, body, attachments):
        sent_emails.append((to_email, subject, body))

    monkeypatch.setattr(email_service, "send_email", _capture)
    return sent_emails


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def auth(user_id: str, role: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, role=role)}"}


@pytest.fixture
def admin_headers():
    return auth("admin-1", "admin")


@pytest.fixture
def creator_headers():
    return auth("creator-1", "creator")


@pytest.fixture
def make_event(db):
    """Create an approved future event. Price in cents."""

    def _make(total_places: int = 10, price_cents: int = 1000, title: str = "Conference", **kw):
        start = utcnow() + timedelta(days=7)
        body = EventIn(
            title=title,
            startDate=start,
            endDate=start + timedelta(hours=8),
            presenter="Dr. Sarah Johnson",
            totalPlaces=total_places,
            priceCents=price_cents,
            **kw,
        )
        return event_service.create_event(db, body, actor_id="admin-1")

    return _make
