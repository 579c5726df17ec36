"""Core client contract definitions and error hierarchy."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import IO

from bug_tracker_interface.bug import Attachment, Bug, Comment, NewAttachment
from bug_tracker_interface.changes import Changes
from bug_tracker_interface.response import UpdateResponse

__all__ = [
    "BugNotFoundError",
    "BugTrackerClient",
    "BugTrackerError",
    "ConnectionFailedError",
    "DecodeError",
    "InvalidValueError",
    "MidAirCollisionError",
    "RequestError",
    "ServiceError",
]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class BugTrackerError(Exception):
    """Base exception for everything the client raises."""


class RequestError(BugTrackerError):
    """Raised when the request cannot even be built."""

    def __str__(self) -> str:
        return f"cannot build request: {super().__str__()}"


class MidAirCollisionError(RequestError):
    """Raised when the bug changed since the caller last read it."""


class InvalidValueError(RequestError):
    """Raised when a field is given a value outside its fixed set, e.g. an unknown priority."""


class ServiceError(BugTrackerError):
    """Raised when the tracker explicitly rejects a request.

    "code" carries the tracker's own error code when the error body was structured.
    """

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code

    def __str__(self) -> str:
        return f"Bugzilla: {super().__str__()}"


class BugNotFoundError(ServiceError):
    """Raised when a requested bug or attachment does not exist."""


class ConnectionFailedError(BugTrackerError):
    """Raised when talking to the tracker fails or it answers with an unexpected shape."""

    def __str__(self) -> str:
        return f"cannot communicate with server: {super().__str__()}"


class DecodeError(BugTrackerError):
    """Raised when a response body cannot be parsed."""

    def __str__(self) -> str:
        return f"error decoding response: {super().__str__()}"


# ---------------------------------------------------------------------------
# Client contract
# ---------------------------------------------------------------------------

class BugTrackerClient(ABC):
    """Fetches and updates bugs."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    @abstractmethod
    def get_bug(self, bug_id: int) -> Bug:
        """Get a bug with its comments and attachment metadata."""
        """Args:
            bug_id: The unique identifier of the bug

        Returns:
            The corresponding Bug instance

        Raises:
            BugNotFoundError: If no bug with that ID exists

        """
        raise NotImplementedError

    @abstractmethod
    def get_bug_ex(self, bug_id: int, with_comments: bool, with_attachments: bool) -> Bug:
        """Get a bug, fetching comments and attachment metadata only when asked to."""
        raise NotImplementedError

    @abstractmethod
    def get_comments(self, bug_ids: Iterable[int]) -> list[Comment]:
        """Get the comments of the given bugs, grouped in the order the ids were given."""
        raise NotImplementedError

    @abstractmethod
    def get_attachments_info(self, bug_ids: Iterable[int]) -> list[Attachment]:
        """Get attachment metadata (without content) for the given bugs."""
        raise NotImplementedError

    @abstractmethod
    def get_attachment(self, attachment_id: int) -> Attachment:
        """Get one attachment including its content."""
        raise NotImplementedError

    @abstractmethod
    def get_bug_from_json(self, source: IO) -> Bug:
        """Build a Bug from a document previously serialized by the client, e.g. a cache entry."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    @abstractmethod
    def update(self, bug_id: int, changes: Changes) -> UpdateResponse:
        """Apply a set of changes to an existing bug."""
        """Args:
            bug_id:  The unique identifier of the bug to update
            changes: A Changes instance carrying the desired changes

        Notes on usage: The bug is fetched fresh, the smallest possible update is derived from it and
        submitted in a single request. Only the fields explicitly set on "changes" are sent.
        Nothing is retried, any failure leaves the bug untouched.

        Returns:
            The tracker's acknowledgement listing what it changed

        Raises:
            RequestError: If the update cannot be built (ambiguous needinfo, bad username, collision, bad value)
            ServiceError: If the tracker rejects the update
            ConnectionFailedError: If the tracker cannot be reached or answers unexpectedly

        """
        raise NotImplementedError

    @abstractmethod
    def upload_attachment(self, bug_id: int, attachment: NewAttachment) -> int:
        """Upload a new attachment to a bug and return its id."""
        raise NotImplementedError
