# tests/conftest.py
import os
import tempfile
from datetime import date, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from skilllink.db import get_db, make_engine
from skilllink.models import Base, User, AvailabilitySlot, Skill
from skilllink.main import app


@pytest.fixture(scope="function")
def test_db_engine():
    os.environ["SKIP_DB_INIT"] = "1"

    # temp DB
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    engine = make_engine(f"sqlite:///{tmp.name}")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()
        os.unlink(tmp.name)


@pytest.fixture(scope="function")
def session_factory(test_db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)


@pytest.fixture(scope="function")
def test_db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(test_db_session):
    def override_get_db():
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


def as_user(user_id):
    return {"X-User-Id": user_id}


@pytest.fixture
def auth():
    return as_user


# Factories
@pytest.fixture
def make_user(test_db_session):
    def _make_user(user_id="u-1", name=None, email=None, role="seeker", status="active"):
        u = User(
            id=user_id,
            name=name or user_id,
            email=email or f"{user_id}@example.com",
            role=role,
            current_mode="seeker" if role == "both" else None,
            status=status,
        )
        test_db_session.add(u)
        test_db_session.commit()
        return u
    return _make_user


@pytest.fixture
def make_slot(test_db_session, make_user):
    def _make_slot(slot_id="s-1", provider_id=None, day=date(2024, 1, 10), start=time(9, 0), end=time(10, 0),
                   is_available=True):
        if provider_id is None:
            provider_id = make_user("prov-default", role="provider").id
        slot = AvailabilitySlot(
            id=slot_id, provider_id=provider_id, date=day, start_time=start, end_time=end, is_available=is_available
        )
        test_db_session.add(slot)
        test_db_session.commit()
        return slot
    return _make_slot


@pytest.fixture
def make_skill(test_db_session):
    def _make_skill(user_id, skill_name="Photography", category="Arts & Crafts", intent="provider", skill_id=None):
        s = Skill(user_id=user_id, skill_name=skill_name, category=category, intent=intent)
        if skill_id:
            s.id = skill_id
        test_db_session.add(s)
        test_db_session.commit()
        return s
    return _make_skill


@pytest.fixture
def marketplace(make_user, make_slot):
    """One provider with a 2024-01-10 09:00-10:00 slot and two seekers."""
    make_user("prov-1", name="Provider One", role="provider")
    make_user("seek-1", name="Seeker One")
    make_user("seek-2", name="Seeker Two")
    make_slot("slot-1", provider_id="prov-1")
    return {"provider": "prov-1", "seeker": "seek-1", "other_seeker": "seek-2", "slot": "slot-1"}


@pytest.fixture
def book(client):
    def _book(seeker_id="seek-1", provider_id="prov-1", slot_id="slot-1", service_name="Session", **extra):
        return client.post(
            "/bookings",
            json={"provider_id": provider_id, "slot_id": slot_id, "service_name": service_name, **extra},
            headers=as_user(seeker_id),
        )
    return _book
