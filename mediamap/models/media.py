"""Media model for geotagged uploads.

Each row is one uploaded photo or video pinned to a coordinate pair.
Rows are immutable after insert; the only mutation is deletion by the
owner.
"""

import enum
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mediamap.geo.extractor import MediaKind
from mediamap.models.base import Base

if TYPE_CHECKING:
    from mediamap.models.user import User


class MediaCategory(str, enum.Enum):
    SOLAR = "solar"
    EQUIPMENT = "equipment"
    BUILDING = "building"
    INFRASTRUCTURE = "infrastructure"
    OTHER = "other"


class MediaRecord(Base):
    """A stored upload and the coordinates it was pinned to.

    Attributes:
        id: Primary key identifier.
        filename: Original client filename (sanitized).
        storage_path: Path of the payload relative to the upload directory.
        content_type: MIME type declared by the client.
        file_size: Payload size in bytes.
        latitude: Degrees north, within [-90, 90].
        longitude: Degrees east, within [-180, 180].
        category: What the media shows.
        description: Optional free-text note.
        kind: ``image`` or ``video``.
        coordinate_source: Extraction tier that produced the coordinates.
        uploaded_at: Server timestamp of the insert.
        owner_id: Uploading user, null for anonymous uploads.
    """

    __tablename__ = "media"
    __table_args__ = (
        CheckConstraint("latitude >= -90 AND latitude <= 90", name="ck_media_latitude_range"),
        CheckConstraint("longitude >= -180 AND longitude <= 180", name="ck_media_longitude_range"),
        Index("ix_media_lat_lng", "latitude", "longitude"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_path: Mapped[str] = mapped_column(String(512), nullable=False)
    content_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    latitude: Mapped[float] = mapped_column(nullable=False)
    longitude: Mapped[float] = mapped_column(nullable=False)

    category: Mapped[MediaCategory] = mapped_column(
        Enum(MediaCategory, name="media_category", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    kind: Mapped[MediaKind] = mapped_column(
        Enum(MediaKind, name="media_kind", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    coordinate_source: Mapped[str] = mapped_column(String(32), nullable=False, default="manual")

    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    owner_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Relationship
    owner: Mapped[Optional["User"]] = relationship("User", back_populates="media")
