from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from slotplanner.core.config import settings
from slotplanner.core.security import (
    create_access_token,
    hash_password,
    new_session_id,
    session_expiry,
    verify_password,
)
from slotplanner.models.session import UserSession
from slotplanner.models.user import User, UserCreate, UserPublic


def _utc_naive() -> datetime:
    """Naive UTC datetime for DB columns that are TIMESTAMP WITHOUT TIME ZONE."""
    return datetime.now(UTC).replace(tzinfo=None)


def _naive_utc(dt: datetime) -> datetime:
    """Ensure datetime is naive UTC for DB (strip or convert to UTC and strip)."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(UTC)
    return dt.replace(tzinfo=None)


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_user_by_id(session: AsyncSession, user_id: int) -> User | None:
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, data: UserCreate) -> User:
    user = User(
        email=data.email.lower(),
        name=data.name,
        user_type=data.user_type,
        hashed_password=hash_password(data.password),
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


def user_to_public(user: User) -> UserPublic:
    return UserPublic(
        id=user.id,
        email=user.email,
        name=user.name,
        user_type=user.user_type,
    )


async def register_user(session: AsyncSession, data: UserCreate) -> User | None:
    """Returns None when the email is already taken."""
    existing = await get_user_by_email(session, data.email)
    if existing:
        return None
    return await create_user(session, data)


async def open_session(session: AsyncSession, user_id: int) -> tuple[str, int]:
    """Persist a new login session and return (access_token, expires_in_seconds)."""
    jti = new_session_id()
    expires_at = session_expiry()
    session.add(UserSession(user_id=user_id, jti=jti, expires_at=_naive_utc(expires_at)))
    await session.flush()
    token = create_access_token(user_id, jti, expires_at)
    return token, settings.session_expire_hours * 60 * 60


async def login_user(
    session: AsyncSession, email: str, password: str
) -> tuple[User, str, int] | None:
    user = await get_user_by_email(session, email)
    if not user or not user.hashed_password:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    token, expires_in = await open_session(session, user.id)
    return user, token, expires_in


async def get_active_session(session: AsyncSession, jti: str) -> UserSession | None:
    result = await session.execute(
        select(UserSession).where(
            UserSession.jti == jti,
            UserSession.revoked == False,  # noqa: E712
            UserSession.expires_at > _utc_naive(),
        )
    )
    return result.scalar_one_or_none()


async def revoke_session(session: AsyncSession, jti: str) -> None:
    result = await session.execute(select(UserSession).where(UserSession.jti == jti))
    row = result.scalar_one_or_none()
    if row:
        row.revoked = True
        session.add(row)
