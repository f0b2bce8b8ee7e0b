import logging
from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from slotplanner.models.meeting import Meeting, MeetingSlot
from slotplanner.services.slot_rules import TimeInterval

logger = logging.getLogger(__name__)


def _to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    if dt.tzinfo is not None:
        return dt.astimezone(UTC).replace(tzinfo=None)
    return dt


async def create_meeting(
    session: AsyncSession, organizer_id: int, title: str, description: str | None
) -> Meeting:
    meeting = Meeting(
        organizer_id=organizer_id,
        title=title.strip(),
        description=description or None,
    )
    session.add(meeting)
    await session.flush()
    await session.refresh(meeting)
    return meeting


async def add_slot(
    session: AsyncSession, meeting_id: int, start: datetime, end: datetime
) -> MeetingSlot:
    slot = MeetingSlot(
        meeting_id=meeting_id,
        start_utc=_to_naive_utc(start),
        end_utc=_to_naive_utc(end),
    )
    session.add(slot)
    await session.flush()
    await session.refresh(slot)
    return slot


async def create_meeting_with_slots(
    session: AsyncSession,
    organizer_id: int,
    title: str,
    description: str | None,
    intervals: Sequence[TimeInterval],
) -> tuple[Meeting, list[MeetingSlot]]:
    """Create a meeting and all of its slots inside the caller's transaction.

    Nothing is committed here; if any insert fails the exception propagates and
    the caller's rollback discards the meeting along with any slots already added.
    """
    meeting = await create_meeting(session, organizer_id, title, description)
    slots = [await add_slot(session, meeting.id, i.start, i.end) for i in intervals]
    logger.info("Meeting %s created by user %s with %d slot(s)", meeting.id, organizer_id, len(slots))
    return meeting, slots


async def get_meeting(session: AsyncSession, meeting_id: int) -> Meeting | None:
    result = await session.execute(select(Meeting).where(Meeting.id == meeting_id))
    return result.scalar_one_or_none()


async def list_slots(session: AsyncSession, meeting_id: int) -> list[MeetingSlot]:
    result = await session.execute(
        select(MeetingSlot)
        .where(MeetingSlot.meeting_id == meeting_id)
        .order_by(MeetingSlot.start_utc, MeetingSlot.id)
    )
    return list(result.scalars().all())


async def list_meetings_by_owner(session: AsyncSession, organizer_id: int) -> list[Meeting]:
    result = await session.execute(
        select(Meeting)
        .where(Meeting.organizer_id == organizer_id)
        .order_by(Meeting.created_at.desc(), Meeting.id.desc())
    )
    return list(result.scalars().all())


async def delete_meeting(session: AsyncSession, meeting_id: int) -> int:
    """Delete a meeting and its slots. Returns the number of meetings deleted (0 or 1)."""
    await session.execute(delete(MeetingSlot).where(MeetingSlot.meeting_id == meeting_id))
    result = await session.execute(delete(Meeting).where(Meeting.id == meeting_id))
    await session.flush()
    return result.rowcount or 0
