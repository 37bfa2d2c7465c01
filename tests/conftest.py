import os
import uuid
from datetime import timedelta

os.environ.setdefault("DATABASE_URL", "sqlite:///./.pytest-scanin.db")
os.environ.setdefault("ATLAS_APP_CODE", "SCANIN")
os.environ.setdefault("DEVICE_COOKIE_SECURE", "false")
os.environ.setdefault("DELETION_CHUNK_DELAY_SECONDS", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from atams.db import Base
from app.api.deps import require_auth
from app.core.clock import utc_now
from app.db.session import get_db, get_session_factory
from app.main import app
from app.models import AttendanceRecord, EventSession, SubmissionMarker

OWNER = {"user_id": 7, "username": "owner", "role_level": 10}
ADMIN = {"user_id": 1, "username": "admin", "role_level": 50}
STRANGER = {"user_id": 99, "username": "stranger", "role_level": 10}

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def session_factory():
    return TestingSessionLocal


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def current_user():
    # Tests switch identity by mutating this dict in place
    return dict(OWNER)


@pytest.fixture()
def client(db, current_user):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[require_auth] = lambda: current_user

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def make_session(db):
    def _make(**overrides) -> EventSession:
        data = {
            "es_id": uuid.uuid4().hex[:12],
            "es_name": "Monday standup",
            "es_kind": "session",
            "es_is_active": True,
            "es_owner_id": OWNER["user_id"],
            "es_scan_count": 0,
        }
        data.update(overrides)
        session = EventSession(**data)
        db.add(session)
        db.commit()
        db.refresh(session)
        return session

    return _make


@pytest.fixture()
def add_records(db):
    def _add(session_id: str, count: int, with_markers: bool = False, age: timedelta = timedelta(hours=1)) -> None:
        checked_in_at = utc_now() - age
        rows = []
        for i in range(count):
            device_id = f"dt_seed_{session_id}_{i}"
            rows.append(AttendanceRecord(
                ar_session_id=session_id,
                ar_device_id=device_id,
                ar_status="present",
                ar_checked_in_at=checked_in_at,
            ))
            if with_markers:
                rows.append(SubmissionMarker(
                    sm_key=f"{session_id}_{device_id}",
                    sm_session_id=session_id,
                    sm_device_id=device_id,
                ))
        db.add_all(rows)
        db.commit()

    return _add
