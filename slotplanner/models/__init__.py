from slotplanner.models.user import User, UserCreate, UserPublic, UserType
from slotplanner.models.session import UserSession
from slotplanner.models.meeting import Meeting, MeetingSlot

__all__ = [
    "User",
    "UserCreate",
    "UserPublic",
    "UserType",
    "UserSession",
    "Meeting",
    "MeetingSlot",
]
