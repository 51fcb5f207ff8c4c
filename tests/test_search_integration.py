"""Search against a real PostGIS database.

Set TEST_DATABASE_URL (asyncpg URL of a disposable database) to run these.
Every test rebuilds the schema.
"""
import os
from decimal import Decimal

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.models import Base, Location, Manager, ManagerStatus, Property, PropertyType
from app.schemas.property_search import PropertySearchFilter
from app.services.property_search import search_properties
from app.services.query_cache import InMemoryQueryCache

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

pytestmark = pytest.mark.skipif(not TEST_DATABASE_URL, reason="TEST_DATABASE_URL not set")

CAPE_TOWN = (18.4241, -33.9249)
JOHANNESBURG = (28.0473, -26.2041)


def point(lng, lat):
    return f"SRID=4326;POINT({lng} {lat})"


@pytest.fixture
async def db():
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS postgis"))
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        active = Manager(cognito_id="active-1", name="Thandi", email="thandi@example.com",
                         status=ManagerStatus.Active)
        banned = Manager(cognito_id="banned-1", name="Pieter", email="pieter@example.com",
                         status=ManagerStatus.Banned)
        cape_town = Location(address="12 Main Road, Rondebosch", city="Cape Town", suburb="Rondebosch",
                             state="Western Cape", country="South Africa", coordinates=point(*CAPE_TOWN))
        joburg = Location(address="1 Jorissen Street, Braamfontein", city="Johannesburg",
                          suburb="Braamfontein", state="Gauteng", country="South Africa",
                          coordinates=point(*JOHANNESBURG))
        session.add_all([active, banned, cape_town, joburg])
        await session.flush()

        listings = [
            ("Budget Room", Decimal("1800"), 1, cape_town, active),
            ("Rondebosch Lodge", Decimal("3000"), 2, cape_town, active),
            ("Braamfontein Flat", Decimal("4500"), 2, joburg, active),
            ("Luxury Loft", Decimal("6000"), 3, cape_town, active),
            ("Hidden Gem", Decimal("3200"), 2, cape_town, banned),
        ]
        for name, price, beds, location, manager in listings:
            session.add(Property(
                name=name,
                price_per_month=price,
                beds=beds,
                baths=1,
                property_type=PropertyType.APARTMENT,
                amenities=["WiFi"],
                location_id=location.id,
                manager_cognito_id=manager.cognito_id,
            ))
        await session.commit()

        yield session

    await engine.dispose()


async def search(db, **params):
    result = await search_properties(db, InMemoryQueryCache(), PropertySearchFilter.model_validate(params))
    return result.listings


async def test_price_and_bed_bounds(db):
    listings = await search(db, priceMin="2000", priceMax="5000", beds="2")
    assert sorted(p["pricePerMonth"] for p in listings) == [3000.0, 4500.0]


async def test_inactive_managers_listings_never_appear(db):
    names = {p["name"] for p in await search(db)}
    assert "Hidden Gem" not in names
    assert len(names) == 4


async def test_radius_search_only_returns_nearby(db):
    listings = await search(db, coordinates=f"{CAPE_TOWN[0]},{CAPE_TOWN[1]}")
    assert {p["location"]["city"] for p in listings} == {"Cape Town"}
    assert listings[0]["location"]["coordinates"]["longitude"] == pytest.approx(CAPE_TOWN[0])


async def test_location_text_search(db):
    listings = await search(db, location="Johannesburg, South Africa")
    assert [p["name"] for p in listings] == ["Braamfontein Flat"]

    listings = await search(db, location="rondebosch")
    assert {p["name"] for p in listings} == {"Budget Room", "Rondebosch Lodge", "Luxury Loft"}


async def test_results_are_newest_first_and_limited(db):
    listings = await search(db, limit="2")
    assert [p["name"] for p in listings] == ["Luxury Loft", "Braamfontein Flat"]


async def test_amenities_must_all_be_present(db):
    assert len(await search(db, amenities="WiFi")) == 4
    assert await search(db, amenities="WiFi,Pool") == []
