"""Schemas for aggregated map markers and reverse geocoding."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from mediamap.schemas.media import MediaResponse


class LocationMarkerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    latitude: float
    longitude: float
    category: str
    count: int
    address: Optional[str] = None
    media: List[MediaResponse]


class AddressResponse(BaseModel):
    latitude: float
    longitude: float
    address: str


class LocationListResponse(BaseModel):
    locations: List[LocationMarkerResponse]
