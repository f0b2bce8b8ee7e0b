"""Validation rules for proposed meeting slots.

Every check is a pure function of ``(interval, now, policy)``: no clock reads,
no host timezone, no I/O. The submission handler and the live preview share
this engine and differ only in the :class:`SlotPolicy` they pass in.

Rules run in a fixed order and the first failure wins:

1. both ends parse and ``end > start``
2. start is not in the past (modulo the policy's grace window)
3. start and end fall on the same local calendar day
4. duration does not exceed ``max_duration``
5. start falls on an allowed weekday
6. start and end both lie inside business hours (inclusive)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, time, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

if TYPE_CHECKING:
    from slotplanner.core.config import Settings


class RejectionReason(StrEnum):
    INVALID_OR_MISORDERED = "INVALID_OR_MISORDERED"
    IN_PAST = "IN_PAST"
    SPANS_MULTIPLE_DAYS = "SPANS_MULTIPLE_DAYS"
    DURATION_TOO_LONG = "DURATION_TOO_LONG"
    WEEKEND_NOT_ALLOWED = "WEEKEND_NOT_ALLOWED"
    OUTSIDE_BUSINESS_HOURS = "OUTSIDE_BUSINESS_HOURS"
    EMPTY_OR_MISMATCHED_COUNT = "EMPTY_OR_MISMATCHED_COUNT"


@dataclass(frozen=True)
class SlotPolicy:
    timezone: ZoneInfo
    grace_window: timedelta = timedelta(minutes=5)
    floor_now_to_minute: bool = False
    workday_start: time = time(8, 30)
    workday_end: time = time(18, 30)
    max_duration: timedelta = timedelta(hours=2)
    allowed_weekdays: frozenset[int] = frozenset({1, 2, 3, 4, 5})  # ISO, Monday=1

    @classmethod
    def submission(cls, settings: Settings) -> SlotPolicy:
        """Authoritative policy applied when a meeting is submitted."""
        return cls(
            timezone=ZoneInfo(settings.slot_timezone),
            grace_window=timedelta(minutes=settings.submission_grace_minutes),
            floor_now_to_minute=False,
            workday_start=settings.workday_start_time,
            workday_end=settings.workday_end_time,
            max_duration=timedelta(minutes=settings.max_slot_duration_minutes),
            allowed_weekdays=settings.allowed_weekdays_set,
        )

    @classmethod
    def preview(cls, settings: Settings) -> SlotPolicy:
        """Advisory policy for live feedback: no grace, compared against the current minute."""
        return cls(
            timezone=ZoneInfo(settings.slot_timezone),
            grace_window=timedelta(0),
            floor_now_to_minute=True,
            workday_start=settings.workday_start_time,
            workday_end=settings.workday_end_time,
            max_duration=timedelta(minutes=settings.max_slot_duration_minutes),
            allowed_weekdays=settings.allowed_weekdays_set,
        )


@dataclass(frozen=True)
class TimeInterval:
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def to_utc(self) -> TimeInterval:
        return TimeInterval(self.start.astimezone(UTC), self.end.astimezone(UTC))


@dataclass(frozen=True)
class Accepted:
    interval: TimeInterval
    accepted = True


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason
    message: str
    accepted = False


SlotResult = Accepted | Rejected


@dataclass(frozen=True)
class BatchResult:
    intervals: tuple[TimeInterval, ...] = ()
    rejection: Rejected | None = None
    ordinal: int | None = None  # 1-based index of the failing slot

    @property
    def accepted(self) -> bool:
        return self.rejection is None


_MESSAGES = {
    RejectionReason.INVALID_OR_MISORDERED: "is invalid or misordered (the end must be after the start).",
    RejectionReason.IN_PAST: "cannot start in the past.",
    RejectionReason.SPANS_MULTIPLE_DAYS: "must start and end on the same day.",
    RejectionReason.DURATION_TOO_LONG: "cannot last longer than {max_duration}.",
    RejectionReason.WEEKEND_NOT_ALLOWED: "cannot fall on a weekend.",
    RejectionReason.OUTSIDE_BUSINESS_HOURS: "must lie entirely between {workday_start} and {workday_end}.",
}


def _message(reason: RejectionReason, policy: SlotPolicy, label: str) -> str:
    template = _MESSAGES[reason].format(
        max_duration=_format_duration(policy.max_duration),
        workday_start=policy.workday_start.strftime("%H:%M"),
        workday_end=policy.workday_end.strftime("%H:%M"),
    )
    return f"{label} {template}"


def _format_duration(delta: timedelta) -> str:
    minutes = int(delta.total_seconds()) // 60
    hours, rest = divmod(minutes, 60)
    if rest == 0:
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    if hours == 0:
        return f"{rest} minutes"
    return f"{hours}h{rest:02d}"


def parse_local(value: str | datetime | None, tz: ZoneInfo) -> datetime | None:
    """Parse a ``YYYY-MM-DDTHH:MM[:SS]`` wall-clock value in ``tz``.

    Naive input is read as local time in ``tz``; aware input is converted to it.
    Returns None when the value is missing or unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz)
    return parsed.astimezone(tz)


def _minutes_of_day(value: datetime | time) -> int:
    return value.hour * 60 + value.minute


def _lead_time_reference(now: datetime, policy: SlotPolicy) -> datetime:
    if policy.floor_now_to_minute:
        now = now.replace(second=0, microsecond=0)
    return now - policy.grace_window


def validate_slot(
    start: str | datetime | None,
    end: str | datetime | None,
    now: datetime,
    policy: SlotPolicy,
    *,
    label: str = "The slot",
) -> SlotResult:
    """Check one proposed slot against ``policy`` as of ``now``.

    ``now`` must be timezone-aware. ``label`` prefixes the human message so batch
    callers can name the failing slot.
    """
    if now.tzinfo is None or now.utcoffset() is None:
        raise ValueError("now must be a timezone-aware datetime")
    tz = policy.timezone
    start_at = parse_local(start, tz)
    end_at = parse_local(end, tz)

    def reject(reason: RejectionReason) -> Rejected:
        return Rejected(reason, _message(reason, policy, label))

    if start_at is None or end_at is None:
        return reject(RejectionReason.INVALID_OR_MISORDERED)

    # Same-tzinfo arithmetic is wall-clock; compare instants in UTC instead
    interval = TimeInterval(start_at, end_at).to_utc()
    if interval.end <= interval.start:
        return reject(RejectionReason.INVALID_OR_MISORDERED)

    if interval.start < _lead_time_reference(now, policy):
        return reject(RejectionReason.IN_PAST)

    if start_at.date() != end_at.date():
        return reject(RejectionReason.SPANS_MULTIPLE_DAYS)

    if interval.duration > policy.max_duration:
        return reject(RejectionReason.DURATION_TOO_LONG)

    if start_at.isoweekday() not in policy.allowed_weekdays:
        return reject(RejectionReason.WEEKEND_NOT_ALLOWED)

    opens = _minutes_of_day(policy.workday_start)
    closes = _minutes_of_day(policy.workday_end)
    if not (opens <= _minutes_of_day(start_at) <= closes and opens <= _minutes_of_day(end_at) <= closes):
        return reject(RejectionReason.OUTSIDE_BUSINESS_HOURS)

    return Accepted(interval)


def preview_slot(
    start: str | None,
    end: str | None,
    now: datetime,
    policy: SlotPolicy,
) -> SlotResult | None:
    """Live-edit check; None while either field is still empty."""
    if not (start and start.strip()) or not (end and end.strip()):
        return None
    return validate_slot(start, end, now, policy)


def validate_submission(
    title: str | None,
    start_times: Sequence[str | datetime | None],
    end_times: Sequence[str | datetime | None],
    now: datetime,
    policy: SlotPolicy,
) -> BatchResult:
    """Validate a whole meeting submission.

    Slots are checked in input order and checking stops at the first rejected
    one. The result either carries every interval (normalized to UTC) or none.
    """
    if not (title and title.strip()) or not start_times or len(start_times) != len(end_times):
        rejection = Rejected(
            RejectionReason.EMPTY_OR_MISMATCHED_COUNT,
            "A title is required and at least one slot must be proposed, each with a start and an end.",
        )
        return BatchResult(rejection=rejection)

    intervals: list[TimeInterval] = []
    for ordinal, (start, end) in enumerate(zip(start_times, end_times), start=1):
        result = validate_slot(start, end, now, policy, label=f"Slot {ordinal}")
        if isinstance(result, Rejected):
            return BatchResult(rejection=result, ordinal=ordinal)
        intervals.append(result.interval)
    return BatchResult(intervals=tuple(intervals))


def to_utc_string(value: datetime) -> str:
    """Canonical storage form: UTC, millisecond precision, ``Z`` suffix.

    Naive values are taken to be UTC already (as read back from the database).
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
