from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from slotplanner.core.config import settings
from slotplanner.core.db import get_session
from slotplanner.core.security import decode_access_token
from slotplanner.models.user import User
from slotplanner.services.auth_service import get_active_session, get_user_by_id
from slotplanner.services.slot_rules import SlotPolicy

security = HTTPBearer(auto_error=False)

Clock = Callable[[], datetime]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


@dataclass
class CurrentSession:
    user: User
    session_id: str


def get_clock() -> Clock:
    """Wall clock for request handlers; overridden in tests."""
    return lambda: datetime.now(UTC)


def get_submission_policy() -> SlotPolicy:
    return SlotPolicy.submission(settings)


def get_preview_policy() -> SlotPolicy:
    return SlotPolicy.preview(settings)


async def get_current_session(
    session: AsyncSession = Depends(get_session),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentSession:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise _unauthorized("Missing or invalid authorization header")
    user_id, session_id = decode_access_token(credentials.credentials)
    if not user_id or not session_id:
        raise _unauthorized("Invalid or expired token")
    try:
        uid = int(user_id)
    except ValueError:
        raise _unauthorized("Invalid token")
    login = await get_active_session(session, session_id)
    if not login or login.user_id != uid:
        raise _unauthorized("Session expired or logged out")
    user = await get_user_by_id(session, uid)
    if not user:
        raise _unauthorized("User not found")
    return CurrentSession(user=user, session_id=session_id)


async def get_current_user(current: CurrentSession = Depends(get_current_session)) -> User:
    return current.user


async def get_current_organizer(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_organizer:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You must be an organizer to access this resource",
        )
    return current_user
