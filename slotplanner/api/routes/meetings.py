import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from slotplanner.api.deps import (
    Clock,
    get_clock,
    get_current_organizer,
    get_current_user,
    get_preview_policy,
    get_submission_policy,
)
from slotplanner.api.schemas.meeting import (
    CreateMeetingRequest,
    MeetingDetail,
    MeetingPublic,
    PreviewRequest,
    PreviewResponse,
    SlotPublic,
    SlotRejection,
)
from slotplanner.core.db import get_session
from slotplanner.models.meeting import Meeting, MeetingSlot
from slotplanner.models.user import User
from slotplanner.services.meeting_service import (
    create_meeting_with_slots,
    delete_meeting,
    get_meeting,
    list_meetings_by_owner,
    list_slots,
)
from slotplanner.services.slot_rules import (
    Rejected,
    SlotPolicy,
    preview_slot,
    to_utc_string,
    validate_submission,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/meetings", tags=["meetings"])


def _to_public(m: Meeting) -> MeetingPublic:
    return MeetingPublic(
        id=m.id,
        organizer_id=m.organizer_id,
        title=m.title,
        description=m.description,
        created_at=m.created_at,
    )


def _slot_to_public(s: MeetingSlot) -> SlotPublic:
    return SlotPublic(id=s.id, start_utc=to_utc_string(s.start_utc), end_utc=to_utc_string(s.end_utc))


def _to_detail(m: Meeting, slots: list[MeetingSlot]) -> MeetingDetail:
    return MeetingDetail(
        **_to_public(m).model_dump(),
        slots=[_slot_to_public(s) for s in slots],
    )


@router.post("", response_model=MeetingDetail, status_code=status.HTTP_201_CREATED)
async def create_new_meeting(
    body: CreateMeetingRequest,
    session: AsyncSession = Depends(get_session),
    organizer: User = Depends(get_current_organizer),
    clock: Clock = Depends(get_clock),
    policy: SlotPolicy = Depends(get_submission_policy),
) -> MeetingDetail:
    batch = validate_submission(body.title, body.start_times, body.end_times, clock(), policy)
    if not batch.accepted:
        logger.info(
            "Meeting submission by user %s rejected: %s (slot %s)",
            organizer.id, batch.rejection.reason, batch.ordinal,
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=SlotRejection(
                code=batch.rejection.reason.value,
                message=batch.rejection.message,
                slot=batch.ordinal,
                form=body,
            ).model_dump(),
        )
    try:
        meeting, slots = await create_meeting_with_slots(
            session, organizer.id, body.title, body.description, batch.intervals
        )
    except Exception as e:
        logger.exception("Create meeting failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="The meeting could not be created. Please try again later.",
        ) from e
    return _to_detail(meeting, slots)


@router.post("/slots/preview", response_model=PreviewResponse)
async def preview(
    body: PreviewRequest,
    current_user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    policy: SlotPolicy = Depends(get_preview_policy),
) -> PreviewResponse:
    """Advisory check of one slot while it is being edited; submission decides."""
    result = preview_slot(body.start, body.end, clock(), policy)
    if result is None:
        return PreviewResponse(complete=False, valid=False)
    if isinstance(result, Rejected):
        return PreviewResponse(complete=True, valid=False, code=result.reason.value, message=result.message)
    return PreviewResponse(complete=True, valid=True)


@router.get("", response_model=list[MeetingPublic])
async def list_my_meetings(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> list[MeetingPublic]:
    if not current_user.is_organizer:
        # TODO: list meetings a participant is invited to once invitations exist
        logger.debug("Meeting list requested by participant %s", current_user.id)
        return []
    meetings = await list_meetings_by_owner(session, current_user.id)
    return [_to_public(m) for m in meetings]


@router.get("/{meeting_id}", response_model=MeetingDetail)
async def view_meeting(
    meeting_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> MeetingDetail:
    meeting = await get_meeting(session, meeting_id)
    if not meeting:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Meeting not found")
    slots = await list_slots(session, meeting_id)
    return _to_detail(meeting, slots)


@router.delete("/{meeting_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_my_meeting(
    meeting_id: int,
    session: AsyncSession = Depends(get_session),
    organizer: User = Depends(get_current_organizer),
) -> None:
    meeting = await get_meeting(session, meeting_id)
    if not meeting:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Meeting not found")
    if meeting.organizer_id != organizer.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only delete your own meetings",
        )
    deleted = await delete_meeting(session, meeting_id)
    if deleted:
        logger.info("Meeting %s deleted by user %s", meeting_id, organizer.id)
    else:
        logger.warning("Meeting %s vanished before user %s could delete it", meeting_id, organizer.id)
