"""Tracker-neutral contract for fetching and updating bugs."""

from bug_tracker_interface.bug import (
    FLAG_CLEARED,
    FLAG_REQUESTED,
    NEEDINFO,
    Attachment,
    Bug,
    Comment,
    Flag,
    NewAttachment,
    User,
)
from bug_tracker_interface.cache import BugCache
from bug_tracker_interface.changes import Changes
from bug_tracker_interface.client import (
    BugNotFoundError,
    BugTrackerClient,
    BugTrackerError,
    ConnectionFailedError,
    DecodeError,
    InvalidValueError,
    MidAirCollisionError,
    RequestError,
    ServiceError,
)
from bug_tracker_interface.response import FieldChange, UpdateResponse

__all__ = [
    "FLAG_CLEARED",
    "FLAG_REQUESTED",
    "NEEDINFO",
    "Attachment",
    "Bug",
    "BugCache",
    "BugNotFoundError",
    "BugTrackerClient",
    "BugTrackerError",
    "Changes",
    "Comment",
    "ConnectionFailedError",
    "DecodeError",
    "FieldChange",
    "Flag",
    "InvalidValueError",
    "MidAirCollisionError",
    "NewAttachment",
    "RequestError",
    "ServiceError",
    "UpdateResponse",
    "User",
]
