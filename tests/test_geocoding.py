import httpx
import pytest

from app.services.geocoding import GeocodingClient, GeocodingError, GeocodingUnavailable


def client_returning(payload, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        return httpx.Response(200, json=payload)

    return GeocodingClient("test-key", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_geocode_returns_lng_lat():
    seen = []
    geocoder = client_returning(
        {"status": "OK", "results": [{"geometry": {"location": {"lat": -33.9575, "lng": 18.4726}}}]},
        seen,
    )

    assert await geocoder.geocode("12 Main Road, Rondebosch, Cape Town, South Africa") == (18.4726, -33.9575)
    assert seen[0].url.params["address"] == "12 Main Road, Rondebosch, Cape Town, South Africa"
    assert seen[0].url.params["key"] == "test-key"
    await geocoder.close()


@pytest.mark.asyncio
async def test_no_results_raises_geocoding_error():
    geocoder = client_returning({"status": "ZERO_RESULTS", "results": []})

    with pytest.raises(GeocodingError) as exc_info:
        await geocoder.geocode("Nowhere")
    assert exc_info.value.status == "ZERO_RESULTS"
    await geocoder.close()


@pytest.mark.asyncio
async def test_unreachable_service_is_retried_then_reported(monkeypatch):
    async def no_sleep(seconds):
        return None

    monkeypatch.setattr(GeocodingClient._fetch.retry, "sleep", no_sleep)
    attempts = []

    def handler(request):
        attempts.append(request)
        raise httpx.ConnectError("maps.googleapis.com unreachable", request=request)

    geocoder = GeocodingClient("test-key", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    with pytest.raises(GeocodingUnavailable, match="unreachable"):
        await geocoder.geocode("12 Main Road, Cape Town")
    assert len(attempts) == 3
    await geocoder.close()
