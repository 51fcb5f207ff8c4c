"""Composable search predicates.

Each predicate renders one SQLAlchemy boolean clause and carries its own bind
parameters, so a search is just the AND of whichever predicates the filter
asked for. Nothing here builds SQL by string concatenation.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence

from geoalchemy2 import Geography
from sqlalchemy import and_, cast, exists, false, func, or_, select
from sqlalchemy.sql.elements import ColumnElement

from app.models import DisabledProperty, Lease, Location, Manager, ManagerStatus, Property

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user text only ever matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


class Predicate:
    def clause(self) -> ColumnElement[bool]:
        raise NotImplementedError


@dataclass(frozen=True, eq=False)
class AtLeast(Predicate):
    column: Any
    value: float

    def clause(self):
        return self.column >= self.value


@dataclass(frozen=True, eq=False)
class AtMost(Predicate):
    column: Any
    value: float

    def clause(self):
        return self.column <= self.value


@dataclass(frozen=True, eq=False)
class Equals(Predicate):
    column: Any
    value: Any

    def clause(self):
        return self.column == self.value


@dataclass(frozen=True, eq=False)
class IdIn(Predicate):
    ids: Sequence[int]

    def clause(self):
        return Property.id.in_(list(self.ids))


@dataclass(frozen=True, eq=False)
class ContainsAll(Predicate):
    """Array column is a superset of ``values`` (Postgres ``@>``)."""

    column: Any
    values: Sequence[str]

    def clause(self):
        return self.column.contains(list(self.values))


class NeverMatches(Predicate):
    """Stands in for a filter value that cannot match any row, such as an
    unknown property type, so the filter still narrows instead of vanishing."""

    def clause(self):
        return false()


@dataclass(frozen=True, eq=False)
class LeaseStartedBy(Predicate):
    date: datetime

    def clause(self):
        return exists(
            select(Lease.id).where(
                Lease.property_id == Property.id,
                Lease.start_date <= self.date,
            )
        )


@dataclass(frozen=True, eq=False)
class TextSearch(Predicate):
    """Case-insensitive substring match over listing text and place fields."""

    term: str

    def clause(self):
        pattern = f"%{escape_like(self.term.lower())}%"
        columns = (
            Property.name,
            Property.description,
            Location.address,
            Location.city,
            Location.suburb,
            Location.state,
        )
        return or_(*(func.lower(c).like(pattern, escape=LIKE_ESCAPE) for c in columns))


@dataclass(frozen=True, eq=False)
class LocationText(Predicate):
    """Place-name match: exact city/suburb/state first, then substring
    on address/city/suburb/state. ``term`` must already be normalized."""

    term: str

    def clause(self):
        pattern = f"%{escape_like(self.term)}%"
        exact = [
            and_(c.isnot(None), func.lower(c) == self.term)
            for c in (Location.city, Location.suburb, Location.state)
        ]
        partial = [
            and_(c.isnot(None), c != "", func.lower(c).like(pattern, escape=LIKE_ESCAPE))
            for c in (Location.address, Location.city, Location.suburb, Location.state)
        ]
        return or_(*exact, *partial)


@dataclass(frozen=True, eq=False)
class WithinRadius(Predicate):
    longitude: float
    latitude: float
    meters: float

    def clause(self):
        point = cast(
            func.ST_SetSRID(func.ST_MakePoint(self.longitude, self.latitude), 4326),
            Geography(geometry_type="POINT", srid=4326),
        )
        return func.ST_DWithin(Location.coordinates, point, self.meters)


class ManagerIsActive(Predicate):
    def clause(self):
        return Manager.status == ManagerStatus.Active


class NotDisabled(Predicate):
    """Requires the statement to LEFT JOIN ``disabled_properties``."""

    def clause(self):
        return DisabledProperty.property_id.is_(None)


def all_of(predicates: Sequence[Predicate]) -> ColumnElement[bool]:
    return and_(*(p.clause() for p in predicates))
