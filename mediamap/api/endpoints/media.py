"""
Media API Routes - upload geotagged photos and videos, list and delete them.

Upload flow
===========

1. Validate category, file type and size
2. Run the coordinate extractor (EXIF GPS, OCR, metadata text, then the
   coordinates the user supplied)
3. Refuse the upload when nothing produced a valid pair
4. Store the payload on disk under a UUID name and insert the record
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse

from mediamap.api.deps import AppSettings, CurrentUser, DBSession, Extractor, OptionalUser, Storage
from mediamap.core.exceptions import (
    BadRequestException,
    CoordinateValidationException,
    PayloadTooLargeException,
    UnauthorizedException,
)
from mediamap.geo.extractor import CoordinateOverride, ExtractionReport, Found, MediaInput, MediaKind, NotFound
from mediamap.models import MediaCategory, MediaRecord
from mediamap.schemas.media import (
    ExtractionAttempt,
    ExtractionResponse,
    MediaListResponse,
    MediaResponse,
    UploadResponse,
)
from mediamap.services.media_repository import MediaRepository
from mediamap.services.storage import sanitize_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/media", tags=["Media"])

MISSING_GPS_MESSAGES = {
    MediaKind.IMAGE: "No GPS data in image EXIF. Please provide latitude and longitude.",
    MediaKind.VIDEO: "Videos do not contain GPS data. Please provide latitude and longitude.",
}


# =============================================================================
# HELPERS
# =============================================================================

def parse_category(value: Optional[str], allow_all: bool = True) -> Optional[str]:
    """Validate a category name; ``None``/``"all"`` mean no filter.

    Raises:
        BadRequestException: For an unknown category.
    """
    if value is None or (allow_all and value == "all"):
        return None
    try:
        return MediaCategory(value).value
    except ValueError:
        raise BadRequestException(
            f"Unknown category '{value}'",
            details={"allowed": [c.value for c in MediaCategory]},
        ) from None


def _optional_float(name: str, value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError:
        raise CoordinateValidationException(
            f"{name} must be a number",
            details={name: value},
        ) from None


def _override_from_form(
    latitude: Optional[str],
    longitude: Optional[str],
    coordinates_text: Optional[str],
) -> CoordinateOverride:
    return CoordinateOverride(
        latitude=_optional_float("latitude", latitude),
        longitude=_optional_float("longitude", longitude),
        text=coordinates_text,
    )


async def _read_media(media: UploadFile, max_size: int) -> MediaInput:
    kind = MediaKind.from_content_type(media.content_type)
    if kind is None:
        raise BadRequestException("Unsupported file type. Only images and videos are allowed.")

    content = await media.read()
    if not content:
        raise BadRequestException("No file uploaded")
    if len(content) > max_size:
        raise PayloadTooLargeException(
            f"File too large. Maximum size: {max_size // (1024 * 1024)}MB",
            details={"size": len(content), "max_size": max_size},
        )

    return MediaInput(
        filename=sanitize_filename(media.filename),
        content=content,
        kind=kind,
        content_type=media.content_type,
    )


def _attempts(report: ExtractionReport) -> List[ExtractionAttempt]:
    attempts = []
    for outcome in report.attempts:
        if isinstance(outcome, Found):
            attempts.append(ExtractionAttempt(source=outcome.source, status="found", detail=outcome.detail))
        elif isinstance(outcome, NotFound):
            attempts.append(ExtractionAttempt(source=outcome.source, status="not_found", detail=outcome.reason))
        else:
            attempts.append(ExtractionAttempt(source=outcome.source, status="error", detail=outcome.error))
    return attempts


def _media_list(records: List[MediaRecord]) -> MediaListResponse:
    return MediaListResponse(media=[MediaResponse.model_validate(r) for r in records])


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/extract", response_model=ExtractionResponse)
async def extract_coordinates(
    settings: AppSettings,
    extractor: Extractor,
    media: UploadFile = File(..., description="Photo or video to inspect"),
    latitude: Optional[str] = Form(None),
    longitude: Optional[str] = Form(None),
    coordinates_text: Optional[str] = Form(None),
) -> ExtractionResponse:
    """Run the extractor without storing anything.

    The map UI calls this before showing the upload form so it can ask
    for manual coordinates only when they are needed.
    """
    media_input = await _read_media(media, settings.MAX_UPLOAD_SIZE)
    override = _override_from_form(latitude, longitude, coordinates_text)
    report = await extractor.extract(media_input, override)

    pair = report.pair
    return ExtractionResponse(
        latitude=pair.latitude if pair else None,
        longitude=pair.longitude if pair else None,
        source=report.source,
        needs_manual_entry=report.needs_manual_entry,
        attempts=_attempts(report),
    )


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_media(
    db: DBSession,
    settings: AppSettings,
    extractor: Extractor,
    storage: Storage,
    user: OptionalUser,
    media: UploadFile = File(..., description="Photo or video to upload"),
    category: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    latitude: Optional[str] = Form(None),
    longitude: Optional[str] = Form(None),
    coordinates_text: Optional[str] = Form(None),
) -> UploadResponse:
    """
    Upload one photo or video and pin it to a location.

    Raises:
        401: No session and anonymous uploads are disabled
        400: Missing/unknown category, unsupported type, or no usable coordinates
        413: File too large
    """
    if user is None and not settings.ALLOW_ANONYMOUS_UPLOADS:
        raise UnauthorizedException("No token provided")

    if not category:
        raise BadRequestException("Category required")
    media_category = MediaCategory(parse_category(category, allow_all=False))

    media_input = await _read_media(media, settings.MAX_UPLOAD_SIZE)
    override = _override_from_form(latitude, longitude, coordinates_text)
    report = await extractor.extract(media_input, override)

    if report.needs_manual_entry:
        raise CoordinateValidationException(
            MISSING_GPS_MESSAGES[media_input.kind],
            details={"attempts": [a.model_dump() for a in _attempts(report)]},
        )

    storage_path = storage.save(media_input.content, media_input.filename)
    repo = MediaRepository(db)
    try:
        record = await repo.add(
            filename=media_input.filename,
            storage_path=storage_path,
            content_type=media_input.content_type,
            file_size=len(media_input.content),
            pair=report.pair,
            category=media_category,
            kind=media_input.kind,
            coordinate_source=report.source,
            description=(description or "").strip() or None,
            owner_id=user.id if user else None,
        )
        await db.commit()
    except Exception:
        storage.delete(storage_path)
        raise

    return UploadResponse(media=MediaResponse.model_validate(record))


@router.get("", response_model=MediaListResponse)
async def list_media(
    db: DBSession,
    category: Optional[str] = Query(None, description="Category filter, 'all' for none"),
) -> MediaListResponse:
    records = await MediaRepository(db).list_media(parse_category(category))
    return _media_list(records)


@router.get("/location", response_model=MediaListResponse)
async def media_at_location(
    db: DBSession,
    settings: AppSettings,
    lat: Optional[float] = Query(None, description="Latitude of the marker"),
    lng: Optional[float] = Query(None, description="Longitude of the marker"),
    category: Optional[str] = Query(None, description="Category of the marker, 'all' for none"),
) -> MediaListResponse:
    """All media of a category within ``NEARBY_TOLERANCE`` degrees of a point."""
    if lat is None or lng is None:
        raise CoordinateValidationException("Latitude and longitude required")

    records = await MediaRepository(db).near(lat, lng, settings.NEARBY_TOLERANCE, parse_category(category))
    return _media_list(records)


@router.get("/bbox", response_model=MediaListResponse)
async def media_in_bbox(
    db: DBSession,
    south: float = Query(..., ge=-90, le=90),
    west: float = Query(..., ge=-180, le=180),
    north: float = Query(..., ge=-90, le=90),
    east: float = Query(..., ge=-180, le=180),
    category: Optional[str] = Query(None),
) -> MediaListResponse:
    """Media inside the visible map area."""
    if south > north:
        raise BadRequestException("south must not be greater than north")

    records = await MediaRepository(db).in_bbox(south, west, north, east, parse_category(category))
    return _media_list(records)


@router.get("/{media_id}", response_model=MediaResponse)
async def get_media(media_id: int, db: DBSession) -> MediaResponse:
    return MediaResponse.model_validate(await MediaRepository(db).get(media_id))


@router.get("/{media_id}/file")
async def download_media(media_id: int, db: DBSession, storage: Storage) -> FileResponse:
    """Stream the stored payload."""
    record = await MediaRepository(db).get(media_id)
    return FileResponse(
        storage.path_for(record.storage_path),
        media_type=record.content_type or "application/octet-stream",
        filename=record.filename,
    )


@router.delete("/{media_id}")
async def delete_media(media_id: int, db: DBSession, storage: Storage, user: CurrentUser) -> dict:
    """Delete one of the caller's uploads.

    Someone else's media is reported as not found.
    """
    record = await MediaRepository(db).delete_owned(media_id, user.id)
    await db.commit()
    storage.delete(record.storage_path)
    return {"message": "Media deleted successfully"}
