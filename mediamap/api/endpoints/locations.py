"""Aggregated map markers."""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Query

from mediamap.api.deps import AppSettings, DBSession, Resolver
from mediamap.api.endpoints.media import parse_category
from mediamap.geo.aggregator import aggregate
from mediamap.schemas.locations import LocationListResponse, LocationMarkerResponse
from mediamap.schemas.media import MediaResponse
from mediamap.services.media_repository import MediaRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/locations", tags=["Locations"])


@router.get("", response_model=LocationListResponse)
async def list_locations(
    db: DBSession,
    settings: AppSettings,
    resolver: Resolver,
    category: Optional[str] = Query(None, description="Category filter, 'all' for none"),
    with_address: bool = Query(False, description="Resolve an address label per marker"),
) -> LocationListResponse:
    """
    Group media into map markers.

    Markers are computed on every request from the ``media`` table, so a
    deleted upload disappears from its marker immediately.
    """
    wanted = parse_category(category)
    records = await MediaRepository(db).list_media(wanted)
    markers = aggregate(records, wanted, precision=settings.MARKER_PRECISION)

    addresses = [None] * len(markers)
    if with_address and markers:
        addresses = await asyncio.gather(
            *(resolver.resolve(m.latitude, m.longitude) for m in markers)
        )

    return LocationListResponse(
        locations=[
            LocationMarkerResponse(
                latitude=marker.latitude,
                longitude=marker.longitude,
                category=marker.category,
                count=marker.count,
                address=address,
                media=[MediaResponse.model_validate(r) for r in marker.media],
            )
            for marker, address in zip(markers, addresses)
        ]
    )
