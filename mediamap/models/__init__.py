from mediamap.models.base import Base
from mediamap.models.media import MediaCategory, MediaRecord
from mediamap.models.user import Session, User

__all__ = ["Base", "MediaCategory", "MediaRecord", "Session", "User"]
