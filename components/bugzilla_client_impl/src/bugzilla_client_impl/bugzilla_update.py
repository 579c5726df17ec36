"""Wire format of a Bugzilla partial update (PUT /rest/bug/{id}).

Only what the caller asked to change is ever serialized: absent members are
left out of the payload entirely, never sent as null or "", since Bugzilla
would read those as "clear this field".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from bug_tracker_interface.bug import FLAG_CLEARED, FLAG_REQUESTED, NEEDINFO


@dataclass(frozen=True)
class NewFlagRequest:
    """A flag to be created, addressed by name and requestee."""

    requestee: str
    name: str = NEEDINFO
    status: str = FLAG_REQUESTED

    def to_wire(self) -> dict[str, Any]:
        return {"name": self.name, "new": True, "requestee": self.requestee, "status": self.status}


@dataclass(frozen=True)
class ExistingFlagEdit:
    """A change to a flag already on the bug, addressed by its id."""

    id: int
    status: str = FLAG_CLEARED

    def to_wire(self) -> dict[str, Any]:
        return {"id": self.id, "status": self.status}


FlagChange = Union[NewFlagRequest, ExistingFlagEdit]


@dataclass(frozen=True)
class CommentChange:
    body: str
    is_private: bool = False

    def to_wire(self) -> dict[str, Any]:
        return {"body": self.body, "is_private": self.is_private}


@dataclass
class ListChange:
    """Additions to and removals from a list field such as cc."""

    add: list[str] = field(default_factory=list)
    remove: list[str] = field(default_factory=list)

    def to_wire(self) -> dict[str, list[str]]:
        wire: dict[str, list[str]] = {}
        if self.add:
            wire["add"] = list(self.add)
        if self.remove:
            wire["remove"] = list(self.remove)
        return wire


#scalar members copied to the payload as-is when set, in payload order
_SCALAR_FIELDS = (
    "url",
    "assigned_to",
    "summary",
    "whiteboard",
    "status",
    "resolution",
    "priority",
    "dupe_of",
)


@dataclass
class WireUpdate:
    """
    Built fresh for every update and discarded once submitted.

    Notes on usage:
        Use add_flag_change(), add_cc() and remove_cc() rather than touching flags and cc directly,
        then call to_payload() to get the JSON document.
    """

    ids: list[int] = field(default_factory=list)
    flags: list[FlagChange] = field(default_factory=list)
    cc: ListChange | None = None
    comment: CommentChange | None = None

    url: str | None = None
    assigned_to: str | None = None
    summary: str | None = None
    whiteboard: str | None = None
    status: str | None = None
    resolution: str | None = None
    priority: str | None = None
    dupe_of: int | None = None

    def add_flag_change(self, change: FlagChange) -> None:
        self.flags.append(change)

    def _cc(self) -> ListChange:
        if self.cc is None:
            self.cc = ListChange()
        return self.cc

    def add_cc(self, email: str) -> None:
        self._cc().add.append(email)

    def remove_cc(self, email: str) -> None:
        self._cc().remove.append(email)

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON document, leaving out every member that was not set."""
        payload: dict[str, Any] = {"ids": list(self.ids)}
        if self.flags:
            payload["flags"] = [change.to_wire() for change in self.flags]
        if self.cc is not None:
            cc = self.cc.to_wire()
            if cc:
                payload["cc"] = cc
        if self.comment is not None:
            payload["comment"] = self.comment.to_wire()
        for name in _SCALAR_FIELDS:
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        return payload
