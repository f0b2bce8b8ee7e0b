import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from slotplanner.api.deps import CurrentSession, get_current_session, get_current_user
from slotplanner.api.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from slotplanner.core.db import get_session
from slotplanner.models.user import User, UserCreate, UserPublic
from slotplanner.services.auth_service import (
    login_user,
    register_user,
    revoke_session,
    user_to_public,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    session: AsyncSession = Depends(get_session),
) -> UserPublic:
    if not body.password or body.password != body.confirm_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Passwords do not match",
        )
    user = await register_user(
        session,
        UserCreate(
            email=body.email,
            password=body.password,
            name=body.name,
            user_type=body.user_type,
        ),
    )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This email is already registered. Log in or use another email.",
        )
    logger.info("Registered %s user %s", user.user_type, user.id)
    return user_to_public(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> TokenResponse:
    result = await login_user(session, body.email, body.password)
    if not result:
        # Same message whether the email or the password is wrong
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    user, token, expires_in = result
    logger.info("User %s logged in", user.id)
    return TokenResponse(access_token=token, expires_in=expires_in)


@router.post("/logout")
async def logout(
    session: AsyncSession = Depends(get_session),
    current: CurrentSession = Depends(get_current_session),
) -> dict:
    await revoke_session(session, current.session_id)
    return {"message": "Logged out"}


@router.get("/me", response_model=UserPublic)
async def me(current_user: User = Depends(get_current_user)) -> UserPublic:
    return user_to_public(current_user)
