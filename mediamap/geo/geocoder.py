"""
Address Resolver with Cache.

=============================================================================
REVERSE GEOCODING
=============================================================================

1. Cache first:
   - Keys are coordinates rounded to 4 decimals ("-26.1064_28.1728"),
     about 11 m, so neighbouring markers share one lookup
   - Entries are never invalidated; the last write wins
   - Concurrent misses for the same key share one in-flight request

2. Nominatim (OpenStreetMap) on a miss:
   - One GET to /reverse with format=json, zoom=18, addressdetails=1
   - A descriptive User-Agent is mandatory under the usage policy
   - No retries; callers get a fallback instead

3. Formatting:
   - road, suburb, city|town|village, state|region, country joined by ", "
   - display_name when no parts are present
   - "lat, lng" (6 decimals) when the lookup fails

resolve() never raises: an address label is cosmetic, so failures degrade
to the coordinate string and are logged at WARNING.
=============================================================================
"""

import asyncio
import logging
from typing import Dict, Optional, Protocol

import httpx

from mediamap.geo.errors import GeocodingError

logger = logging.getLogger(__name__)

DEFAULT_CACHE_PRECISION = 4

_ADDRESS_PARTS = (
    ("road",),
    ("suburb",),
    ("city", "town", "village"),
    ("state", "region"),
    ("country",),
)


def cache_key(latitude: float, longitude: float, precision: int = DEFAULT_CACHE_PRECISION) -> str:
    return f"{latitude:.{precision}f}_{longitude:.{precision}f}"


def coordinate_fallback(latitude: float, longitude: float) -> str:
    return f"{latitude:.6f}, {longitude:.6f}"


def format_address(payload: dict) -> Optional[str]:
    """Build a short address from a Nominatim ``/reverse`` response.

    Returns:
        The joined address parts, ``display_name`` when there are none, or
        None when the payload carries neither.
    """
    address = payload.get("address") or {}
    parts = []
    for keys in _ADDRESS_PARTS:
        value = next((address[k] for k in keys if address.get(k)), None)
        if value:
            parts.append(str(value))

    if parts:
        return ", ".join(parts)
    return payload.get("display_name") or None


# =============================================================================
# GEOCODERS
# =============================================================================

class ReverseGeocoder(Protocol):
    async def reverse(self, latitude: float, longitude: float) -> str:
        """Return an address or raise GeocodingError."""
        ...


class NominatimGeocoder:
    """
    Client for the Nominatim reverse endpoint.

    Documentation: https://nominatim.org/release-docs/latest/api/Reverse/

    Args:
        client: Shared ``httpx.AsyncClient`` owned by the application.
        url: Full URL of the ``/reverse`` endpoint.
        user_agent: Identifying User-Agent header.
        timeout: Request timeout in seconds.
    """

    def __init__(self, client: httpx.AsyncClient, url: str, user_agent: str, timeout: float = 10.0):
        self.client = client
        self.url = url
        self.user_agent = user_agent
        self.timeout = timeout

    async def reverse(self, latitude: float, longitude: float) -> str:
        params = {
            "format": "json",
            "lat": latitude,
            "lon": longitude,
            "zoom": 18,
            "addressdetails": 1,
        }
        try:
            response = await self.client.get(
                self.url,
                params=params,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise GeocodingError(f"Nominatim request failed: {e}") from e
        except ValueError as e:
            raise GeocodingError(f"Nominatim returned malformed JSON: {e}") from e

        if not isinstance(payload, dict) or payload.get("error"):
            raise GeocodingError(f"Nominatim could not resolve {latitude}, {longitude}")

        address = format_address(payload)
        if not address:
            raise GeocodingError("Nominatim response has no address")
        return address


# =============================================================================
# CACHE
# =============================================================================

class AddressCache(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, address: str) -> None:
        ...


class InMemoryAddressCache:
    """Process-local cache; lost on restart."""

    def __init__(self):
        self._entries: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._entries.get(key)

    def set(self, key: str, address: str) -> None:
        self._entries[key] = address

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries


class AddressResolver:
    """Resolve coordinates to an address label through a cache.

    Args:
        geocoder: Backend used on cache misses.
        cache: Where resolved labels are stored.
        precision: Decimal places of the cache key.
    """

    def __init__(
        self,
        geocoder: ReverseGeocoder,
        cache: Optional[AddressCache] = None,
        precision: int = DEFAULT_CACHE_PRECISION,
    ):
        self.geocoder = geocoder
        self.cache = cache if cache is not None else InMemoryAddressCache()
        self.precision = precision
        self._in_flight: Dict[str, "asyncio.Task[str]"] = {}

    async def resolve(self, latitude: float, longitude: float) -> str:
        """Return an address for the coordinates. Never raises."""
        key = cache_key(latitude, longitude, self.precision)

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._lookup(key, latitude, longitude))
            self._in_flight[key] = task
            task.add_done_callback(lambda _: self._in_flight.pop(key, None))

        return await asyncio.shield(task)

    async def _lookup(self, key: str, latitude: float, longitude: float) -> str:
        try:
            address = await self.geocoder.reverse(latitude, longitude)
        except GeocodingError as e:
            logger.warning(f"Reverse geocoding failed for {key}: {e}")
            address = coordinate_fallback(latitude, longitude)
        except Exception:
            logger.exception(f"Unexpected reverse geocoding error for {key}")
            address = coordinate_fallback(latitude, longitude)

        self.cache.set(key, address)
        return address
