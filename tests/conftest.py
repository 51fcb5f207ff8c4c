from datetime import datetime, timezone
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects import postgresql

from app.database import get_session
from app.dependencies.auth import get_current_user
from app.dependencies.services import get_cache, get_geocoder
from app.main import app
from app.models import ManagerStatus, PropertyType
from app.services.query_cache import InMemoryQueryCache


def compile_sql(stmt, literal=False) -> str:
    kwargs = {"literal_binds": True} if literal else {}
    return str(stmt.compile(dialect=postgresql.dialect(), compile_kwargs=kwargs))


def make_row(**overrides):
    """One search/detail result row as the database returns it."""
    row = {
        "id": 1,
        "name": "Rondebosch Student Lodge",
        "description": "Walking distance to UCT",
        "price_per_month": Decimal("3000.00"),
        "security_deposit": Decimal("1500.00"),
        "beds": 2,
        "baths": 1.0,
        "kitchens": 1,
        "square_feet": 600,
        "property_type": PropertyType.APARTMENT,
        "amenities": ["WiFi", "Laundry"],
        "highlights": [],
        "photo_urls": [],
        "is_pets_allowed": False,
        "is_parking_included": True,
        "average_rating": 4.5,
        "number_of_reviews": 12,
        "posted_date": datetime(2026, 1, 15, tzinfo=timezone.utc),
        "created_at": datetime(2026, 1, 15, tzinfo=timezone.utc),
        "updated_at": datetime(2026, 1, 15, tzinfo=timezone.utc),
        "location_id": 7,
        "manager_cognito_id": "manager-1",
        "min_room_price": Decimal("2800.00"),
        "available_rooms": 3,
        "location_address": "12 Main Road, Rondebosch, Cape Town",
        "location_city": "Cape Town",
        "location_suburb": "Rondebosch",
        "location_state": "Western Cape",
        "location_country": "South Africa",
        "location_postal_code": "7700",
        "location_longitude": 18.4726,
        "location_latitude": -33.9575,
        "manager_status": ManagerStatus.Active,
        "disabled_marker": None,
    }
    row.update(overrides)
    return row


class FakeResult:
    def __init__(self, rows):
        self._rows = rows

    def mappings(self):
        return self

    def all(self):
        return list(self._rows)

    def first(self):
        return self._rows[0] if self._rows else None


class FakeSession:
    """Stands in for AsyncSession. Each ``execute`` consumes the next queued
    outcome: a list of rows, or an exception to raise."""

    def __init__(self, outcomes=None, scalars=None, objects=None):
        self.outcomes = list(outcomes or [])
        self.scalars = list(scalars or [])
        self.objects = dict(objects or {})
        self.statements = []
        self.added = []
        self.commits = 0
        self.rollbacks = 0

    async def execute(self, stmt):
        self.statements.append(stmt)
        outcome = self.outcomes.pop(0) if self.outcomes else []
        if isinstance(outcome, BaseException):
            raise outcome
        return FakeResult(outcome)

    async def scalar(self, stmt):
        self.statements.append(stmt)
        return self.scalars.pop(0) if self.scalars else None

    async def get(self, model, ident):
        return self.objects.get((model.__name__, ident))

    def add(self, obj):
        self.added.append(obj)

    async def commit(self):
        self.commits += 1
        for i, obj in enumerate(self.added, start=101):
            if getattr(obj, "id", None) is None:
                obj.id = i

    async def rollback(self):
        self.rollbacks += 1


class FakeGeocoder:
    def __init__(self, point=(18.4726, -33.9575)):
        self.point = point
        self.addresses = []

    async def geocode(self, address):
        self.addresses.append(address)
        return self.point


@pytest.fixture
def cache():
    return InMemoryQueryCache()


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def as_user():
    def _set(role="manager", user_id="manager-1"):
        app.dependency_overrides[get_current_user] = lambda: {"user_id": user_id, "role": role}
    return _set


@pytest.fixture
async def client(session, cache, geocoder):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
