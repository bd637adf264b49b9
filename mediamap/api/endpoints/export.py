"""Export of the caller's own uploads."""

from datetime import datetime, timezone

from fastapi import APIRouter

from mediamap.api.deps import CurrentUser, DBSession
from mediamap.schemas.media import ExportResponse, MediaResponse
from mediamap.services.media_repository import MediaRepository

router = APIRouter(tags=["Export"])


@router.get("/export", response_model=ExportResponse)
async def export_media(db: DBSession, user: CurrentUser) -> ExportResponse:
    records = await MediaRepository(db).owned_by(user.id)
    return ExportResponse(
        exported_at=datetime.now(timezone.utc),
        count=len(records),
        data=[MediaResponse.model_validate(r) for r in records],
    )
