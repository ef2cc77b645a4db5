"""Shared fixtures: in-memory SQLite database, factories and auth headers."""

import itertools
import os

# Settings are read at import time, point them at an in-memory database first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DEBUG"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from staffing_api.config.database import Base, engine, get_db
from staffing_api.main import app
from staffing_api.models import (
    BookingStatus,
    CandidateProfile,
    CandidateStatus,
    Project,
    ProjectStatus,
    ResourceAssignment,
)
from staffing_api.services.token import create_access_token

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

CLIENT_ID = "client-1"
OTHER_CLIENT_ID = "client-2"
ADMIN_ID = "admin-1"


def auth_headers(subject: str, role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject, role)}"}


@pytest.fixture
def db():
    """Fresh schema per test. Factories commit so request sessions see their rows."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def client_headers():
    return auth_headers(CLIENT_ID, "client")


@pytest.fixture
def other_client_headers():
    return auth_headers(OTHER_CLIENT_ID, "client")


@pytest.fixture
def admin_headers():
    return auth_headers(ADMIN_ID, "admin")


@pytest.fixture
def make_project(db):
    def _make(owner_id=CLIENT_ID, status=ProjectStatus.DRAFT.value, title="Website redesign"):
        project = Project(owner_id=owner_id, title=title, status=status)
        db.add(project)
        db.commit()
        db.refresh(project)
        return project

    return _make


@pytest.fixture
def make_assignment(db, make_project):
    def _make(
        project=None,
        profile_id="developer",
        seniority="intermediate",
        booking_status=BookingStatus.RECHERCHE.value,
        candidate_id=None,
        languages=(),
        expertises=(),
        calculated_price=None,
    ):
        project = project or make_project(status=ProjectStatus.WAITING_TEAM.value)
        assignment = ResourceAssignment(
            project_id=project.id,
            profile_id=profile_id,
            seniority=seniority,
            booking_status=booking_status,
            candidate_id=candidate_id,
            calculated_price=calculated_price,
        )
        assignment.set_requirements(languages=list(languages), expertises=list(expertises))
        db.add(assignment)
        db.commit()
        db.refresh(assignment)
        return assignment

    return _make


@pytest.fixture
def make_candidate(db):
    counter = itertools.count(1)

    def _make(
        candidate_id=None,
        profile_id="developer",
        seniority="intermediate",
        status=CandidateStatus.DISPONIBLE.value,
        languages=(),
        expertises=(),
    ):
        n = next(counter)
        candidate = CandidateProfile(
            id=candidate_id or f"candidate-{n}",
            first_name="Test",
            last_name=f"Candidate {n}",
            email=f"candidate{n}@example.com",
            profile_id=profile_id,
            seniority=seniority,
            status=status,
        )
        candidate.set_skills(languages=list(languages), expertises=list(expertises))
        db.add(candidate)
        db.commit()
        db.refresh(candidate)
        return candidate

    return _make
