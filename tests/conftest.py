import fakeredis
import pytest
from fastapi.testclient import TestClient

from rideboard.app.database import KeyedStore, get_store
from rideboard.app.main import app
from rideboard.app.models import UserProfile
from rideboard.app.services.rides import RideRepository


@pytest.fixture
def store():
    return KeyedStore(fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True))


@pytest.fixture
def rides(store):
    return RideRepository(store)


@pytest.fixture
def alice():
    return UserProfile(id="alice", name="Alice", phone="555-0100", college_email="alice@college.edu")


@pytest.fixture
def bob():
    return UserProfile(id="bob", name="Bob", phone="555-0101", college_email="bob@college.edu")


@pytest.fixture
def carol():
    return UserProfile(id="carol", name="Carol")


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def post_ride(rides):
    def _post(rider, **overrides):
        fields = {
            "pickup_location": "Library",
            "dropoff_location": "Airport",
            "date": "2026-10-20",
            "time": "09:30",
            "payment_type": "meal-swipes",
            "payment_amount": 2,
        }
        fields.update(overrides)
        return rides.create(rider, **fields)
    return _post


@pytest.fixture
def clock(monkeypatch):
    """Deterministic, strictly increasing timestamps for the ride service."""
    from datetime import datetime, timedelta, timezone
    from rideboard.app.services import rides as rides_module

    state = {"now": datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)}

    def tick():
        state["now"] += timedelta(seconds=1)
        return state["now"]

    monkeypatch.setattr(rides_module, "utcnow", tick)
    return state
