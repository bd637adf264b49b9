"""Dependency injection utilities for API endpoints.

This module provides the dependencies shared across routes: database
sessions, settings, the location pipeline services held on
``app.state`` and the current user.
"""

from typing import Annotated, Optional

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from mediamap.core.config import Settings, get_settings
from mediamap.core.exceptions import UnauthorizedException
from mediamap.geo.extractor import CoordinateExtractor
from mediamap.geo.geocoder import AddressResolver
from mediamap.models import User
from mediamap.services.auth import user_for_token
from mediamap.services.database import get_db
from mediamap.services.storage import MediaStorage

# Type alias for database session dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]

bearer_scheme = HTTPBearer(auto_error=False)


def get_extractor(request: Request) -> CoordinateExtractor:
    return request.app.state.extractor


def get_resolver(request: Request) -> AddressResolver:
    return request.app.state.resolver


def get_storage(settings: AppSettings) -> MediaStorage:
    return MediaStorage(settings.UPLOAD_DIR)


Extractor = Annotated[CoordinateExtractor, Depends(get_extractor)]
Resolver = Annotated[AddressResolver, Depends(get_resolver)]
Storage = Annotated[MediaStorage, Depends(get_storage)]


async def get_token(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    token: Annotated[Optional[str], Query(description="Session token for direct media links")] = None,
) -> Optional[str]:
    """Read the session token from the Authorization header or ``?token=``."""
    if credentials is not None:
        return credentials.credentials
    return token


async def get_optional_user(
    db: DBSession,
    token: Annotated[Optional[str], Depends(get_token)],
) -> Optional[User]:
    return await user_for_token(db, token)


async def get_current_user(
    user: Annotated[Optional[User], Depends(get_optional_user)],
) -> User:
    """Require a valid session.

    Raises:
        UnauthorizedException: If the token is missing, unknown or expired.
    """
    if user is None:
        raise UnauthorizedException("Invalid or expired token")
    return user


OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
CurrentUser = Annotated[User, Depends(get_current_user)]
