"""Request and response schemas for media endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from mediamap.geo.extractor import MediaKind
from mediamap.models.media import MediaCategory


class MediaResponse(BaseModel):
    """Public view of a stored media record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    filename: str
    content_type: Optional[str] = None
    file_size: int
    latitude: float
    longitude: float
    category: MediaCategory
    description: Optional[str] = None
    kind: MediaKind
    coordinate_source: str
    uploaded_at: datetime
    owner_id: Optional[int] = None


class UploadResponse(BaseModel):
    success: bool = True
    message: str = "Upload successful"
    media: MediaResponse


class ExtractionAttempt(BaseModel):
    source: str
    status: str = Field(..., description="found, not_found or error")
    detail: Optional[str] = None


class ExtractionResponse(BaseModel):
    """Outcome of running the coordinate extractor on a payload."""

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    source: Optional[str] = None
    needs_manual_entry: bool
    attempts: List[ExtractionAttempt] = []


class MediaListResponse(BaseModel):
    media: List[MediaResponse]


class ExportResponse(BaseModel):
    exported_at: datetime
    count: int
    data: List[MediaResponse]
