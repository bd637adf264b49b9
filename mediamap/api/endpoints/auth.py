"""Registration, login and session endpoints."""

import logging
from typing import Annotated, Dict

from fastapi import APIRouter, Depends, status

from mediamap.api.deps import AppSettings, CurrentUser, DBSession, get_token
from mediamap.models import User
from mediamap.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from mediamap.services import auth as auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: DBSession, settings: AppSettings) -> TokenResponse:
    """Create an account and log it in straight away.

    Raises:
        ConflictException: 409 if the email is already registered.
    """
    user = await auth_service.register_user(db, body.email, body.password)
    session = await auth_service.login(db, body.email, body.password, settings.SESSION_TTL_DAYS)
    await db.commit()
    return TokenResponse(
        token=session.token,
        expires_at=session.expires_at,
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: DBSession, settings: AppSettings) -> TokenResponse:
    session = await auth_service.login(db, body.email, body.password, settings.SESSION_TTL_DAYS)
    await db.commit()
    user = await db.get(User, session.user_id)
    return TokenResponse(
        token=session.token,
        expires_at=session.expires_at,
        user=UserResponse.model_validate(user),
    )


@router.get("/verify", response_model=UserResponse)
async def verify(user: CurrentUser) -> UserResponse:
    return UserResponse.model_validate(user)


@router.post("/logout")
async def logout(
    user: CurrentUser,
    db: DBSession,
    token: Annotated[str, Depends(get_token)],
) -> Dict[str, str]:
    await auth_service.logout(db, token)
    await db.commit()
    logger.info(f"User {user.id} logged out")
    return {"message": "Logout successful"}
