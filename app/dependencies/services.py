from fastapi import Request

from app.services.geocoding import GeocodingClient
from app.services.query_cache import QueryCache


# Both clients are built at startup and kept on app.state.
def get_cache(request: Request) -> QueryCache:
    return request.app.state.cache


def get_geocoder(request: Request) -> GeocodingClient:
    return request.app.state.geocoder
