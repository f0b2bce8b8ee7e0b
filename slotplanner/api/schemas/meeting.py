from datetime import datetime

from pydantic import BaseModel, field_validator


class CreateMeetingRequest(BaseModel):
    """Form-shaped submission: parallel lists of local ``YYYY-MM-DDTHH:MM`` values."""

    title: str | None = None
    description: str | None = None
    start_times: list[str | None] = []
    end_times: list[str | None] = []

    @field_validator("start_times", "end_times", mode="before")
    @classmethod
    def _wrap_single_value(cls, v):
        # A form with one slot may post a bare string instead of a list
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


class SlotPublic(BaseModel):
    id: int
    start_utc: str  # canonical UTC string, e.g. 2024-06-03T06:30:00.000Z
    end_utc: str


class MeetingPublic(BaseModel):
    id: int
    organizer_id: int
    title: str
    description: str | None = None
    created_at: datetime


class MeetingDetail(MeetingPublic):
    slots: list[SlotPublic]


class SlotRejection(BaseModel):
    code: str
    message: str
    slot: int | None = None  # 1-based; None for submission-level errors
    form: CreateMeetingRequest


class PreviewRequest(BaseModel):
    start: str | None = None
    end: str | None = None


class PreviewResponse(BaseModel):
    complete: bool
    valid: bool
    code: str | None = None
    message: str | None = None
