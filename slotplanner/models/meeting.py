from datetime import UTC, datetime
from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class Meeting(SQLModel, table=True):
    __tablename__ = "meetings"
    id: int | None = Field(default=None, primary_key=True)
    organizer_id: int = Field(foreign_key="users.id", index=True)
    title: str
    description: str | None = None
    created_at: datetime = Field(default_factory=_utc_naive_now, index=True)


class MeetingSlot(SQLModel, table=True):
    __tablename__ = "meeting_slots"
    __table_args__ = (CheckConstraint("end_utc > start_utc", name="ck_meeting_slots_order"),)
    id: int | None = Field(default=None, primary_key=True)
    meeting_id: int = Field(foreign_key="meetings.id", index=True)
    start_utc: datetime
    end_utc: datetime
