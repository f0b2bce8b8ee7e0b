from datetime import UTC, datetime
from typing import Literal

from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel

UserType = Literal["organizer", "participant"]


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class UserBase(SQLModel):
    email: str = Field(unique=True, index=True)
    name: str | None = None
    user_type: str = Field(default="participant")  # "organizer" | "participant"


class User(UserBase, table=True):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("user_type IN ('organizer', 'participant')", name="ck_users_user_type"),
    )
    id: int | None = Field(default=None, primary_key=True)
    hashed_password: str
    created_at: datetime = Field(default_factory=_utc_naive_now)

    @property
    def is_organizer(self) -> bool:
        return self.user_type == "organizer"


class UserCreate(SQLModel):
    email: str
    password: str
    name: str | None = None
    user_type: UserType = "participant"


class UserPublic(SQLModel):
    id: int
    email: str
    name: str | None = None
    user_type: str
