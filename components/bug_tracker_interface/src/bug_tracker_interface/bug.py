"""Bug contract - Core bug representation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

__all__ = [
    "FLAG_CLEARED",
    "FLAG_REQUESTED",
    "NEEDINFO",
    "Attachment",
    "Bug",
    "Comment",
    "Flag",
    "NewAttachment",
    "User",
]

NEEDINFO = "needinfo"

#flag statuses as used by the tracker: "?" requested, "+" granted, "-" denied, "X" cleared
FLAG_REQUESTED = "?"
FLAG_CLEARED = "X"


@dataclass(frozen=True)
class User:
    """A user as found in assigned_to, creator and qa_contact details."""

    id: int = 0
    name: str = ""
    email: str = ""
    real_name: str = ""


@dataclass(frozen=True)
class Flag:
    """A named marker on a bug or attachment, such as needinfo."""

    id: int
    name: str
    status: str
    requestee: str = ""
    setter: str = ""
    type_id: int = 0
    creation_date: datetime | None = None
    modification_date: datetime | None = None

    @property
    def is_open(self) -> bool:
        """Return True while the flag is still requested."""
        return self.status == FLAG_REQUESTED


@dataclass(frozen=True)
class Comment:
    id: int
    bug_id: int
    text: str
    creator: str = ""
    count: int = 0
    attachment_id: int | None = None
    time: datetime | None = None
    creation_time: datetime | None = None
    is_private: bool = False


@dataclass(frozen=True)
class Attachment:
    """Attachment metadata, with the decoded content when it was requested."""

    id: int
    bug_id: int
    file_name: str = ""
    summary: str = ""
    content_type: str = ""
    creator: str = ""
    size: int = 0
    is_obsolete: bool = False
    is_patch: bool = False
    is_private: bool = False
    creation_time: datetime | None = None
    last_change_time: datetime | None = None
    token: str = ""
    flags: tuple[Flag, ...] = ()
    data: bytes | None = None


@dataclass(frozen=True)
class NewAttachment:
    """
    Describes an attachment to be uploaded to an existing bug.

    The content is kept as raw bytes, encoding for the wire is left to the implementation.
    """

    data: bytes
    file_name: str
    summary: str
    content_type: str = "text/plain"
    comment: str = ""
    is_patch: bool = False
    is_private: bool = False
    flags: tuple[Flag, ...] = ()


class Bug(ABC):
    """Abstract base class representing a bug as returned by the tracker."""

    @property
    @abstractmethod
    def id(self) -> int:
        """Return the unique identifier of the bug."""
        raise NotImplementedError

    @property
    @abstractmethod
    def summary(self) -> str:
        """Return the one line summary of the bug."""
        raise NotImplementedError

    @property
    @abstractmethod
    def status(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def resolution(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def priority(self) -> str:
        """Return the priority label, e.g. 'P2 - High'."""
        raise NotImplementedError

    @property
    @abstractmethod
    def severity(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def whiteboard(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def url(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def assigned_to(self) -> str:
        """Return the email of the assignee."""
        raise NotImplementedError

    @property
    @abstractmethod
    def assigned_to_detail(self) -> User:
        raise NotImplementedError

    @property
    @abstractmethod
    def cc(self) -> frozenset[str]:
        """Return the set of emails in the CC list."""
        raise NotImplementedError

    @property
    @abstractmethod
    def flags(self) -> tuple[Flag, ...]:
        """Return the flags of the bug in the order the tracker lists them."""
        raise NotImplementedError

    @property
    @abstractmethod
    def last_change_time(self) -> datetime | None:
        """Return the time of the last change, used as the mid-air collision token."""
        raise NotImplementedError

    @property
    @abstractmethod
    def creation_time(self) -> datetime | None:
        raise NotImplementedError

    @property
    @abstractmethod
    def product(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def component(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def version(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def keywords(self) -> tuple[str, ...]:
        raise NotImplementedError

    @property
    @abstractmethod
    def dupe_of(self) -> int | None:
        """Return the id of the bug this one duplicates, or None."""
        raise NotImplementedError

    @property
    @abstractmethod
    def is_open(self) -> bool:
        raise NotImplementedError

    @property
    @abstractmethod
    def creator(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def qa_contact(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def update_token(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def comments(self) -> tuple[Comment, ...]:
        """Return the comments, empty when they were not fetched."""
        raise NotImplementedError

    @property
    @abstractmethod
    def attachments(self) -> tuple[Attachment, ...]:
        """Return the attachment metadata, empty when it was not fetched."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Needinfo lookup
    # ------------------------------------------------------------------

    def find_needinfos_for(self, email: str) -> list[int]:
        """
        Return the ids of the open needinfo flags requested from "email".

        Notes on usage:
            The comparison ignores case. An empty email matches every open needinfo,
            which is how "clear whichever needinfo is set" is expressed.
            Ids are returned in the order the flags appear on the bug.
        """
        wanted = email.lower()
        return [
            flag.id
            for flag in self.flags
            if flag.name == NEEDINFO
            and flag.is_open
            and (not wanted or flag.requestee.lower() == wanted)
        ]

    def has_needinfo_for(self, email: str) -> bool:
        """Return True if an open needinfo for "email" is already set."""
        return bool(self.find_needinfos_for(email))

    def __repr__(self) -> str:
        return f"<Bug id={self.id!r} summary={self.summary!r} status={self.status!r}>"
