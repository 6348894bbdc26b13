"""Pytest fixtures for the verification workflow.

Provides reusable test fixtures for:
- Database session on a temporary-file SQLite database
- Users and Actors for each role (admin, moderators, submitters)
- Documents in each workflow state
- In-memory collaborators (geocoder, photo storage, notification sink)
- FastAPI TestClient with collaborator overrides and bearer tokens

Usage:
    def test_assign(db_session, admin, moderator_lagos, make_document):
        doc = make_document()
        AssignmentManager(db_session).assign(doc.id, moderator_lagos.user_id, admin)
"""

import os
import tempfile
import threading
from pathlib import Path

# Set environment variables BEFORE any imports to ensure they take effect
_test_dir = tempfile.mkdtemp(prefix="siteverify-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_test_dir) / 'siteverify.db'}"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ["GEOCODER_BACKEND"] = "static"
os.environ["LOG_JSON"] = "false"
os.environ["GEOFENCE_RADIUS_METERS"] = "100"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from typing import Generator

from siteverify.auth.jwt import create_access_token
from siteverify.database import engine, SessionLocal, get_db
from siteverify.dependencies import (
    get_geocoder,
    get_notification_dispatcher,
    get_photo_storage,
)
from siteverify.domain.ports.geocoding_port import GeocodeResult
from siteverify.domain.ports.notification_port import NotificationPort
from siteverify.domain.ports.photo_storage_port import PhotoStoragePort
from siteverify.domain.verification.models import Actor
from siteverify.infrastructure.geocoding import StaticGeocoder
from siteverify.infrastructure.notifications import NotificationDispatcher
from siteverify.models.base import Base
from siteverify.models.user import User
from siteverify.models.verification_document import VerificationDocument


# Lagos Island reference point used across tests
LAGOS = (6.5244, 3.3792)
ABUJA = (9.0765, 7.3986)


class InMemoryPhotoStorage(PhotoStoragePort):
    """Photo storage double keeping uploads in a dict."""

    def __init__(self):
        self.objects = {}

    def store(self, data: bytes, document_id: str, content_type: str = "image/jpeg") -> str:
        reference = f"memory://{document_id}/{len(self.objects) + 1}"
        self.objects[reference] = (data, content_type)
        return reference


class RecordingSink(NotificationPort):
    """Notification sink double recording delivered events."""

    def __init__(self):
        self.events = []
        self._lock = threading.Lock()

    def notify(self, event) -> None:
        with self._lock:
            self.events.append(event)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    Each test gets a clean database state.
    """
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def other_session(db_session) -> Generator[Session, None, None]:
    """A second, independent session on the same database."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _add_user(db: Session, user_id: str, role: str, jurisdiction=None) -> User:
    user = User(
        id=user_id,
        role=role,
        jurisdiction=jurisdiction,
        full_name=user_id.replace("-", " ").title(),
        email=f"{user_id}@example.com",
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin(db_session) -> Actor:
    _add_user(db_session, "admin-1", "admin")
    return Actor(user_id="admin-1", role="admin")


@pytest.fixture
def moderator_lagos(db_session) -> Actor:
    _add_user(db_session, "mod-lagos", "moderator", "Lagos")
    return Actor(user_id="mod-lagos", role="moderator", jurisdiction="Lagos")


@pytest.fixture
def moderator_lagos_2(db_session) -> Actor:
    _add_user(db_session, "mod-lagos-2", "moderator", "Lagos")
    return Actor(user_id="mod-lagos-2", role="moderator", jurisdiction="Lagos")


@pytest.fixture
def moderator_abuja(db_session) -> Actor:
    _add_user(db_session, "mod-abuja", "moderator", "FCT")
    return Actor(user_id="mod-abuja", role="moderator", jurisdiction="FCT")


@pytest.fixture
def submitter(db_session) -> Actor:
    _add_user(db_session, "submitter-1", "submitter")
    return Actor(user_id="submitter-1", role="submitter")


@pytest.fixture
def other_submitter(db_session) -> Actor:
    _add_user(db_session, "submitter-2", "submitter")
    return Actor(user_id="submitter-2", role="submitter")


@pytest.fixture
def make_document(db_session):
    """Factory creating documents directly in the record store.

    Defaults to a geocoded Lagos address in pending_assignment owned by
    submitter-1; any column can be overridden.
    """
    def _make(**overrides) -> VerificationDocument:
        fields = {
            "submitter_id": "submitter-1",
            "full_name": "Ada Obi",
            "email": "ada@example.com",
            "phone": "+2348000000000",
            "street": "12 Marina Road",
            "city": "Lagos Island",
            "state": "Lagos",
            "country": "Nigeria",
            "latitude": LAGOS[0],
            "longitude": LAGOS[1],
            "region": "lagos",
            "geocode_pending": False,
            "status": "pending_assignment",
        }
        fields.update(overrides)
        document = VerificationDocument(**fields)
        db_session.add(document)
        db_session.commit()
        return document

    return _make


@pytest.fixture
def geocoder() -> StaticGeocoder:
    """Static geocoder knowing a handful of Lagos and Abuja addresses."""
    return StaticGeocoder({
        "12 Marina Road, Lagos Island, Lagos, Nigeria": GeocodeResult(LAGOS[0], LAGOS[1], "Lagos"),
        "1 Broad Street, Lagos Island, Lagos, Nigeria": GeocodeResult(6.4541, 3.3947, "Lagos"),
        "5 Aso Drive, Maitama, FCT, Nigeria": GeocodeResult(ABUJA[0], ABUJA[1], "FCT"),
    })


@pytest.fixture
def photo_storage() -> InMemoryPhotoStorage:
    return InMemoryPhotoStorage()


@pytest.fixture
def notification_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def dispatcher(notification_sink) -> Generator[NotificationDispatcher, None, None]:
    dispatcher = NotificationDispatcher(notification_sink, max_workers=1)
    yield dispatcher
    dispatcher.shutdown(wait=True)


def auth_headers(actor: Actor) -> dict:
    """Bearer token headers carrying an actor's claims."""
    token = create_access_token(actor.user_id, actor.role, actor.jurisdiction)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db_session, geocoder, photo_storage, dispatcher) -> Generator[TestClient, None, None]:
    """TestClient wired to the test database and in-memory collaborators."""
    from siteverify.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    app.dependency_overrides[get_photo_storage] = lambda: photo_storage
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher

    yield TestClient(app)

    app.dependency_overrides.clear()
