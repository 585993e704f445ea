"""Shared fixtures: an in-memory database per test and booking factories."""
import os

os.environ.setdefault("BOOKING_DB", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("LOG_JSON", "false")

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.pool import StaticPool

from booking_ledger.db import Base, get_engine, get_session
from booking_ledger.listings import get_listing_client
from booking_ledger.main import app
from booking_ledger.routes import get_db
from booking_ledger.schemas import CreateBookingRequest
from booking_ledger.security import Principal

OWNER = Principal(id="owner-1", email="owner@example.com")
BOOKER = Principal(id="booker-1", email="booker@example.com")
STRANGER = Principal(id="stranger-1", email="stranger@example.com")

START = datetime(2026, 11, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def engine():
    engine = get_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return get_session(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


def room_request(**overrides) -> CreateBookingRequest:
    data = {
        "booking_type": "room",
        "start_date": START,
        "end_date": START + timedelta(days=3),
        "total_amount": 3000,
        "payment_method": "upi",
        "booker": BOOKER.id,
        "booker_name": "Asha Rao",
        "booker_email": BOOKER.email,
        "booker_phone": "9800000001",
        "booker_address": "12 Lake Road",
        "listing": "room-101",
        "listing_model": "Room",
        "listing_title": "Sunny room near the lake",
        "listing_price": 1000,
        "owner": OWNER.id,
        "owner_name": "Kiran Shah",
        "owner_email": OWNER.email,
        "owner_phone": "9800000002",
        "number_of_guests": 2,
        "special_requests": "Late check-in",
    }
    data.update(overrides)
    return CreateBookingRequest(**data)


def vehicle_request(**overrides) -> CreateBookingRequest:
    data = {
        "booking_type": "vehicle",
        "start_date": START,
        "end_date": START + timedelta(days=2),
        "total_amount": 1800,
        "payment_method": "cash",
        "booker": BOOKER.id,
        "booker_name": "Asha Rao",
        "booker_email": BOOKER.email,
        "booker_phone": "9800000001",
        "listing": "vehicle-7",
        "listing_model": "Vehicle",
        "listing_title": "Royal Enfield Classic 350",
        "listing_price": 900,
        "owner": OWNER.id,
        "owner_name": "Kiran Shah",
        "pickup_location": "Bus stand",
        "dropoff_location": "Airport",
    }
    data.update(overrides)
    return CreateBookingRequest(**data)


def token_for(principal: Principal) -> str:
    return jwt.encode({"id": principal.id, "email": principal.email}, "test-secret", algorithm="HS256")


def auth(principal: Principal) -> dict:
    return {"Authorization": f"Bearer {token_for(principal)}"}


class FakeListingClient:
    """Listing directory double keyed by listing id."""

    def __init__(self, listings=None, enabled=True):
        self.listings = listings or {}
        self.enabled = enabled
        self.calls = []

    async def lookup(self, listing_id, listing_model):
        self.calls.append((listing_id, listing_model))
        if not self.enabled:
            return None
        return self.listings.get(listing_id)


@pytest.fixture
def listing_client():
    return FakeListingClient(enabled=False)


@pytest.fixture
async def client(session_factory, listing_client):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_listing_client] = lambda: listing_client
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
