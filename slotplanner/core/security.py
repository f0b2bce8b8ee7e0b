from datetime import UTC, datetime, timedelta
from uuid import uuid4

from jose import JWTError, jwt
from passlib.context import CryptContext

from slotplanner.core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.password_hash_rounds
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def new_session_id() -> str:
    return str(uuid4())


def session_expiry() -> datetime:
    return datetime.now(UTC) + timedelta(hours=settings.session_expire_hours)


def create_access_token(subject: str | int, session_id: str, expires_at: datetime) -> str:
    to_encode = {"sub": str(subject), "sid": session_id, "exp": expires_at, "type": "access"}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> tuple[str | None, str | None]:
    """Returns (user_id_str, session_id) or (None, None)."""
    try:
        payload = jwt.decode(
            token, settings.secret_key, algorithms=[settings.algorithm]
        )
        if payload.get("type") != "access":
            return None, None
        sub = payload.get("sub")
        sid = payload.get("sid")
        if not sub or not sid:
            return None, None
        return str(sub), str(sid)
    except JWTError:
        return None, None
