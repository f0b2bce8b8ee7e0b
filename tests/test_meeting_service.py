from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest
from sqlalchemy.exc import IntegrityError

from slotplanner.core.db import async_session_maker
from slotplanner.models.user import User
from slotplanner.services import meeting_service
from slotplanner.services.meeting_service import (
    add_slot,
    create_meeting,
    create_meeting_with_slots,
    delete_meeting,
    get_meeting,
    list_meetings_by_owner,
    list_slots,
)
from slotplanner.services.slot_rules import TimeInterval


def _interval(day: int, start_hour: int, end_hour: int) -> TimeInterval:
    return TimeInterval(
        datetime(2024, 6, day, start_hour, 0, tzinfo=UTC),
        datetime(2024, 6, day, end_hour, 0, tzinfo=UTC),
    )


async def _make_user(email: str = "org@example.com") -> int:
    async with async_session_maker() as session:
        user = User(email=email, name="Org", user_type="organizer", hashed_password="x")
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user.id


def test_create_meeting_with_slots_persists_everything(db) -> None:
    async def scenario():
        owner = await _make_user()
        async with async_session_maker() as session:
            meeting, slots = await create_meeting_with_slots(
                session, owner, "  Planning  ", "", [_interval(5, 12, 13), _interval(4, 7, 8)]
            )
            await session.commit()
        async with async_session_maker() as session:
            stored = await get_meeting(session, meeting.id)
            stored_slots = await list_slots(session, meeting.id)
        return meeting, slots, stored, stored_slots

    meeting, slots, stored, stored_slots = asyncio.run(scenario())

    assert len(slots) == 2
    assert stored.title == "Planning"
    assert stored.description is None
    # Ordered by start, stored as naive UTC
    assert [s.start_utc for s in stored_slots] == [datetime(2024, 6, 4, 7, 0), datetime(2024, 6, 5, 12, 0)]
    assert all(s.meeting_id == meeting.id for s in stored_slots)


def test_failed_slot_insert_leaves_no_meeting(db, monkeypatch: pytest.MonkeyPatch) -> None:
    real_add_slot = meeting_service.add_slot
    calls = {"n": 0}

    async def flaky_add_slot(session, meeting_id, start, end):
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("database went away")
        return await real_add_slot(session, meeting_id, start, end)

    monkeypatch.setattr(meeting_service, "add_slot", flaky_add_slot)

    async def scenario():
        owner = await _make_user()
        async with async_session_maker() as session:
            with pytest.raises(RuntimeError):
                await create_meeting_with_slots(
                    session, owner, "Planning", None, [_interval(4, 7, 8), _interval(5, 7, 8)]
                )
            await session.rollback()
        async with async_session_maker() as session:
            return await list_meetings_by_owner(session, owner)

    assert asyncio.run(scenario()) == []


def test_list_meetings_by_owner_is_newest_first_and_scoped(db) -> None:
    async def scenario():
        owner = await _make_user("a@example.com")
        other = await _make_user("b@example.com")
        async with async_session_maker() as session:
            first = await create_meeting(session, owner, "First", None)
            second = await create_meeting(session, owner, "Second", "details")
            await create_meeting(session, other, "Not mine", None)
            await session.commit()
        async with async_session_maker() as session:
            meetings = await list_meetings_by_owner(session, owner)
        return first, second, meetings

    first, second, meetings = asyncio.run(scenario())

    assert [m.id for m in meetings] == [second.id, first.id]


def test_delete_meeting_removes_slots_and_reports_count(db) -> None:
    async def scenario():
        owner = await _make_user()
        async with async_session_maker() as session:
            meeting, _ = await create_meeting_with_slots(session, owner, "Planning", None, [_interval(4, 7, 8)])
            await session.commit()
        async with async_session_maker() as session:
            first = await delete_meeting(session, meeting.id)
            await session.commit()
        async with async_session_maker() as session:
            second = await delete_meeting(session, meeting.id)
            remaining = await list_slots(session, meeting.id)
            gone = await get_meeting(session, meeting.id)
        return first, second, remaining, gone

    first, second, remaining, gone = asyncio.run(scenario())

    assert (first, second) == (1, 0)
    assert remaining == []
    assert gone is None


def test_slot_ending_before_it_starts_violates_schema(db) -> None:
    async def scenario():
        owner = await _make_user()
        async with async_session_maker() as session:
            meeting = await create_meeting(session, owner, "Planning", None)
            with pytest.raises(IntegrityError):
                await add_slot(
                    session,
                    meeting.id,
                    datetime(2024, 6, 4, 9, 0, tzinfo=UTC),
                    datetime(2024, 6, 4, 8, 0, tzinfo=UTC),
                )
            await session.rollback()

    asyncio.run(scenario())


def test_unknown_user_type_violates_schema(db) -> None:
    async def scenario():
        async with async_session_maker() as session:
            session.add(User(email="x@example.com", user_type="admin", hashed_password="x"))
            with pytest.raises(IntegrityError):
                await session.flush()
            await session.rollback()

    asyncio.run(scenario())
