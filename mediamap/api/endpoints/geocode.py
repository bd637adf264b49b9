"""Reverse geocoding for a single point."""

from fastapi import APIRouter, Query

from mediamap.api.deps import Resolver
from mediamap.schemas.locations import AddressResponse

router = APIRouter(prefix="/geocode", tags=["Geocoding"])


@router.get("/reverse", response_model=AddressResponse)
async def reverse_geocode(
    resolver: Resolver,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
) -> AddressResponse:
    """Address label for a point; falls back to "lat, lng" when lookup fails."""
    address = await resolver.resolve(lat, lng)
    return AddressResponse(latitude=lat, longitude=lng, address=address)
