"""Database access for media records.

All coordinate checks happen before a row is built, so nothing out of
range reaches the ``media`` table even on backends that ignore CHECK
constraints.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mediamap.core.exceptions import CoordinateValidationException, NotFoundException
from mediamap.geo.coordinates import CoordinatePair
from mediamap.geo.errors import InvalidFormatError
from mediamap.geo.extractor import MediaKind
from mediamap.models import MediaCategory, MediaRecord

logger = logging.getLogger(__name__)


def validate_coordinates(latitude, longitude) -> CoordinatePair:
    """Persistence gate for coordinates.

    Raises:
        CoordinateValidationException: If either value is missing or invalid.
    """
    if latitude is None or longitude is None:
        raise CoordinateValidationException()
    try:
        return CoordinatePair.validated(latitude, longitude)
    except InvalidFormatError as e:
        raise CoordinateValidationException(
            str(e),
            details={"latitude": latitude, "longitude": longitude},
        ) from e


class MediaRepository:
    """Queries and writes for :class:`MediaRecord`.

    Args:
        db: Request-scoped async session.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(
        self,
        *,
        filename: str,
        storage_path: str,
        content_type: Optional[str],
        file_size: int,
        pair: CoordinatePair,
        category: MediaCategory,
        kind: MediaKind,
        coordinate_source: str,
        description: Optional[str] = None,
        owner_id: Optional[int] = None,
    ) -> MediaRecord:
        pair = validate_coordinates(pair.latitude, pair.longitude)
        record = MediaRecord(
            filename=filename,
            storage_path=storage_path,
            content_type=content_type,
            file_size=file_size,
            latitude=pair.latitude,
            longitude=pair.longitude,
            category=category,
            description=description,
            kind=kind,
            coordinate_source=coordinate_source,
            owner_id=owner_id,
        )
        self.db.add(record)
        await self.db.flush()
        await self.db.refresh(record)
        logger.info(
            f"Stored media {record.id} ({kind.value}, {category.value}) at "
            f"{pair.format()} via {coordinate_source}"
        )
        return record

    async def get(self, media_id: int) -> MediaRecord:
        """Fetch one record.

        Raises:
            NotFoundException: If no record has this id.
        """
        record = await self.db.get(MediaRecord, media_id)
        if record is None:
            raise NotFoundException("Media not found", details={"id": media_id})
        return record

    async def _all(self, stmt) -> List[MediaRecord]:
        stmt = stmt.order_by(MediaRecord.uploaded_at.desc(), MediaRecord.id.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_media(self, category: Optional[str] = None) -> List[MediaRecord]:
        """All records, newest first; ``None`` or ``"all"`` disables the filter."""
        stmt = select(MediaRecord)
        if category not in (None, "all"):
            stmt = stmt.where(MediaRecord.category == MediaCategory(category))
        return await self._all(stmt)

    async def near(
        self,
        latitude: float,
        longitude: float,
        tolerance: float,
        category: Optional[str] = None,
    ) -> List[MediaRecord]:
        """Records within ``tolerance`` degrees of a point on both axes."""
        stmt = select(MediaRecord).where(
            MediaRecord.latitude.between(latitude - tolerance, latitude + tolerance),
            MediaRecord.longitude.between(longitude - tolerance, longitude + tolerance),
        )
        if category not in (None, "all"):
            stmt = stmt.where(MediaRecord.category == MediaCategory(category))
        return await self._all(stmt)

    async def in_bbox(
        self,
        south: float,
        west: float,
        north: float,
        east: float,
        category: Optional[str] = None,
    ) -> List[MediaRecord]:
        """Records inside a bounding box.

        A box with ``west > east`` crosses the antimeridian.
        """
        lng_filter = (
            MediaRecord.longitude.between(west, east)
            if west <= east
            else (MediaRecord.longitude >= west) | (MediaRecord.longitude <= east)
        )
        stmt = select(MediaRecord).where(MediaRecord.latitude.between(south, north), lng_filter)
        if category not in (None, "all"):
            stmt = stmt.where(MediaRecord.category == MediaCategory(category))
        return await self._all(stmt)

    async def owned_by(self, owner_id: int) -> List[MediaRecord]:
        return await self._all(select(MediaRecord).where(MediaRecord.owner_id == owner_id))

    async def delete_owned(self, media_id: int, owner_id: int) -> MediaRecord:
        """Delete a record that belongs to ``owner_id``.

        Someone else's record is reported as missing.

        Raises:
            NotFoundException: If the record does not exist or is not owned.
        """
        record = await self.db.get(MediaRecord, media_id)
        if record is None or record.owner_id != owner_id:
            raise NotFoundException("Media not found or unauthorized", details={"id": media_id})

        await self.db.delete(record)
        await self.db.flush()
        logger.info(f"Deleted media {media_id}")
        return record
