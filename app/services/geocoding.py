from typing import Tuple

import httpx
from structlog import get_logger
from pybreaker import CircuitBreaker, CircuitBreakerError

from app.utils.retry import retry_api

logger = get_logger(__name__)
breaker = CircuitBreaker(fail_max=3, reset_timeout=60)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"


class GeocodingError(Exception):
    """Raised when an address cannot be resolved to a point."""

    def __init__(self, message: str, status: str | None = None):
        super().__init__(message)
        self.message = message
        self.status = status


class GeocodingUnavailable(GeocodingError):
    """The geocoding service could not be reached or kept failing."""


class GeocodingClient:
    """Resolves free-text addresses with the Google Geocoding API.

    The underlying ``httpx.AsyncClient`` is created once at startup and
    closed on shutdown.
    """

    def __init__(self, api_key: str, client: httpx.AsyncClient | None = None):
        self._api_key = api_key
        self._client = client or httpx.AsyncClient(timeout=10.0)

    @retry_api(tries=3, delay=1, backoff=2)
    @breaker
    async def _fetch(self, address: str) -> dict:
        resp = await self._client.get(GEOCODE_URL, params={"address": address, "key": self._api_key})
        resp.raise_for_status()
        return resp.json()

    async def geocode(self, address: str) -> Tuple[float, float]:
        """Return ``(longitude, latitude)`` for an address.

        Transport failures are retried with backoff. A response that does not
        resolve to a point raises ``GeocodingError`` without retrying.
        """
        try:
            data = await self._fetch(address)
        except (httpx.HTTPError, CircuitBreakerError) as e:
            logger.error("Geocoding service unavailable", address=address, error=str(e))
            raise GeocodingUnavailable(str(e) or type(e).__name__) from e
        status = data.get("status")
        results = data.get("results") or []
        if status != "OK" or not results:
            logger.error("Geocoding failed", status=status, address=address)
            raise GeocodingError("Could not geocode the address", status=status)

        location = results[0]["geometry"]["location"]
        lng, lat = float(location["lng"]), float(location["lat"])
        logger.info("Address geocoded", address=address, longitude=lng, latitude=lat)
        return lng, lat

    async def close(self) -> None:
        await self._client.aclose()
