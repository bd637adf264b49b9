"""User and session models.

Sessions are opaque bearer tokens stored in the database. This is a thin
identity layer for attributing uploads, not a security model.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mediamap.models.base import Base, CreatedAtMixin


class User(Base, CreatedAtMixin):
    """A registered uploader.

    Attributes:
        id: Primary key identifier.
        email: Unique login email.
        password_hash: passlib hash of the password.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Relationships
    sessions: Mapped[list["Session"]] = relationship(
        "Session",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    media: Mapped[list["MediaRecord"]] = relationship("MediaRecord", back_populates="owner")


class Session(Base, CreatedAtMixin):
    """A login session identified by a random token."""

    __tablename__ = "sessions"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="sessions")


# Import related models for relationship resolution
from mediamap.models.media import MediaRecord  # noqa: E402
