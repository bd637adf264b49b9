"""
Tests for the address resolver and the Nominatim client.
"""

import asyncio
import json

import httpx
import pytest

from conftest import CountingGeocoder
from mediamap.geo.errors import GeocodingError
from mediamap.geo.geocoder import (
    AddressResolver,
    InMemoryAddressCache,
    NominatimGeocoder,
    cache_key,
    format_address,
)

NOMINATIM_URL = "https://nominatim.example/reverse"


# =============================================================================
# RESOLVER
# =============================================================================

async def test_second_resolve_hits_cache(counting_geocoder):
    resolver = AddressResolver(counting_geocoder)

    first = await resolver.resolve(-26.106358, 28.172825)
    second = await resolver.resolve(-26.106358, 28.172825)

    assert first == second == counting_geocoder.address
    assert len(counting_geocoder.calls) == 1


async def test_nearby_points_share_a_cache_entry(counting_geocoder):
    resolver = AddressResolver(counting_geocoder)

    await resolver.resolve(-26.10631, 28.17281)
    await resolver.resolve(-26.10628, 28.17279)

    assert len(counting_geocoder.calls) == 1


async def test_failure_falls_back_to_coordinates(failing_geocoder):
    resolver = AddressResolver(failing_geocoder)

    address = await resolver.resolve(-26.106358, 28.172825)

    assert address == "-26.106358, 28.172825"
    assert failing_geocoder.calls == 1


async def test_fallback_is_cached(failing_geocoder):
    cache = InMemoryAddressCache()
    resolver = AddressResolver(failing_geocoder, cache)

    await resolver.resolve(1.5, 2.5)
    await resolver.resolve(1.5, 2.5)

    assert failing_geocoder.calls == 1
    assert cache.get(cache_key(1.5, 2.5)) == "1.500000, 2.500000"


async def test_unexpected_error_never_escapes():
    class Broken:
        async def reverse(self, latitude, longitude):
            raise RuntimeError("boom")

    assert await AddressResolver(Broken()).resolve(10.0, 20.0) == "10.000000, 20.000000"


async def test_concurrent_misses_share_one_lookup():
    geocoder = CountingGeocoder(delay=0.05)
    resolver = AddressResolver(geocoder)

    results = await asyncio.gather(*(resolver.resolve(-33.9249, 18.4241) for _ in range(5)))

    assert len(set(results)) == 1
    assert len(geocoder.calls) == 1


def test_cache_key_precision():
    assert cache_key(-26.106358, 28.172825) == "-26.1064_28.1728"
    assert cache_key(-26.106358, 28.172825, precision=2) == "-26.11_28.17"


# =============================================================================
# NOMINATIM
# =============================================================================

def test_format_address_parts():
    payload = {
        "display_name": "long display name",
        "address": {
            "road": "Rivonia Road",
            "suburb": "Sandton",
            "city": "Johannesburg",
            "state": "Gauteng",
            "country": "South Africa",
        },
    }
    assert format_address(payload) == "Rivonia Road, Sandton, Johannesburg, Gauteng, South Africa"


def test_format_address_town_and_region():
    payload = {"address": {"town": "Udupi", "region": "Karnataka", "country": "India"}}
    assert format_address(payload) == "Udupi, Karnataka, India"


def test_format_address_display_name_fallback():
    assert format_address({"display_name": "Somewhere", "address": {}}) == "Somewhere"
    assert format_address({}) is None


def _geocoder(handler) -> NominatimGeocoder:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return NominatimGeocoder(client, NOMINATIM_URL, user_agent="mediamap-tests/1.0")


async def test_nominatim_request_and_parse():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        seen["user_agent"] = request.headers["User-Agent"]
        return httpx.Response(200, json={"address": {"city": "Cape Town", "country": "South Africa"}})

    geocoder = _geocoder(handler)
    address = await geocoder.reverse(-33.9249, 18.4241)
    await geocoder.client.aclose()

    assert address == "Cape Town, South Africa"
    assert seen["params"]["format"] == "json"
    assert seen["params"]["zoom"] == "18"
    assert seen["params"]["addressdetails"] == "1"
    assert seen["user_agent"] == "mediamap-tests/1.0"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, text="busy"),
        httpx.Response(200, content=b"<html>not json</html>"),
        httpx.Response(200, content=json.dumps({"error": "Unable to geocode"}).encode()),
    ],
)
async def test_nominatim_failures_raise_geocoding_error(response):
    geocoder = _geocoder(lambda request: response)
    with pytest.raises(GeocodingError):
        await geocoder.reverse(0.0, 0.0)
    await geocoder.client.aclose()


async def test_nominatim_network_error():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    geocoder = _geocoder(handler)
    with pytest.raises(GeocodingError):
        await geocoder.reverse(0.0, 0.0)
    await geocoder.client.aclose()
