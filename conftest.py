"""
Shared pytest fixtures: an in-memory SQLite database standing in for
PostgreSQL, a recording notifier, a static team roster and a test client
with authentication replaced.
"""

import os

# Keep the app from looking for PostgreSQL settings during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import models  # noqa: F401  (registers tables)
from models.employee_request import EmployeeRequest, RequestStatus, RequestType
from services.notification_service import NotificationError
from services.team_roster import RosterMember, TeamRosterCache

ADMIN_USER = {"uid": "admin-1", "name": "Morgan Lee", "email": "morgan@example.com", "role": "admin"}
CREW_USER = {"uid": "u-crew", "name": "Dana Ruiz", "email": "dana@example.com", "role": "crew"}

ROSTER_MEMBERS = [
    RosterMember(user_id="u-crew", full_name="Dana Ruiz", email="dana@example.com", role="crew",
                 avatar_url="https://cdn.example.com/dana.png"),
    RosterMember(user_id="admin-1", full_name="Morgan Lee", email="morgan@example.com", role="admin"),
    RosterMember(user_id="owner-1", full_name="Pat Owens", email="pat@example.com", role="owner"),
]


class FakeNotifier:
    """Records every notification; raises NotificationError when `fail` is set."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def _record(self, *event):
        self.sent.append(event)
        if self.fail:
            raise NotificationError("SMS gateway unavailable")

    def notify_request_approved(self, user_id, request_type, details=None):
        self._record("approved", user_id, getattr(request_type, "value", request_type))

    def notify_request_denied(self, user_id, request_type, reason=None):
        self._record("denied", user_id, getattr(request_type, "value", request_type), reason)

    def notify_new_employee_request(self, admin_user_ids, request_type, employee_name, details, shift_data=None):
        self._record("new_request", list(admin_user_ids), getattr(request_type, "value", request_type), employee_name)
        return {"sent": len(list(admin_user_ids)), "total": len(list(admin_user_ids))}


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def advance(self, seconds: float):
        self.now += seconds

    def __call__(self) -> float:
        return self.now


def make_request(session: Session, **fields) -> EmployeeRequest:
    fields.setdefault("user_id", "u-crew")
    fields.setdefault("request_type", RequestType.SHIFT)
    fields.setdefault("status", RequestStatus.PENDING)
    db_request = EmployeeRequest(**fields)
    session.add(db_request)
    session.commit()
    session.refresh(db_request)
    return db_request


def make_shift_request(session: Session, **fields) -> EmployeeRequest:
    fields.setdefault("shift_start_date", date(2024, 1, 5))
    fields.setdefault("shift_start_time", time(9, 0))
    fields.setdefault("shift_end_date", date(2024, 1, 5))
    fields.setdefault("shift_end_time", time(17, 0))
    fields.setdefault("total_hours", 8)
    return make_request(session, request_type=RequestType.SHIFT, **fields)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def roster():
    return TeamRosterCache(loader=lambda: list(ROSTER_MEMBERS), clock=FakeClock())


@pytest.fixture
def client(engine, notifier, roster):
    from main import app
    from core.deps import get_current_user
    from db.session import get_session
    from services.notification_service import get_notifier
    from services.team_roster import get_team_roster

    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_team_roster] = lambda: roster
    app.dependency_overrides[get_current_user] = lambda: ADMIN_USER

    yield TestClient(app)

    app.dependency_overrides.clear()
