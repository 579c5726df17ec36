"""Bugzilla Bug implementation."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Iterable
from datetime import datetime

from bug_tracker_interface.bug import Attachment, Bug, Comment, Flag, User
from bug_tracker_interface.client import DecodeError

# ---------------------------------------------------------------------------
# Field parsers: Bugzilla JSON values  ->  Python values
# ---------------------------------------------------------------------------

def parse_time(value: str | None) -> datetime | None:
    """Parse a Bugzilla timestamp such as '2023-04-12T01:02:03Z' into an aware datetime."""
    if not value:
        return None
    if not isinstance(value, str):
        raise DecodeError(f"invalid timestamp {value!r}")
    #fromisoformat only learned the "Z" suffix in 3.11
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise DecodeError(f"invalid timestamp {value!r}") from exc


def format_time(value: datetime) -> str:
    """Format a datetime the way Bugzilla writes it."""
    text = value.isoformat()
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def _user(raw: dict | None) -> User:
    if not isinstance(raw, dict):
        return User()
    return User(
        id=raw.get("id") or 0,
        name=raw.get("name") or "",
        email=raw.get("email") or "",
        real_name=raw.get("real_name") or "",
    )


def build_flag(raw: dict) -> Flag:
    return Flag(
        id=raw.get("id") or 0,
        name=raw.get("name") or "",
        status=raw.get("status") or "",
        requestee=raw.get("requestee") or "",
        setter=raw.get("setter") or "",
        type_id=raw.get("type_id") or 0,
        creation_date=parse_time(raw.get("creation_date")),
        modification_date=parse_time(raw.get("modification_date")),
    )


def build_comment(raw: dict) -> Comment:
    return Comment(
        id=raw.get("id") or 0,
        bug_id=raw.get("bug_id") or 0,
        text=raw.get("text") or "",
        creator=raw.get("creator") or "",
        count=raw.get("count") or 0,
        attachment_id=raw.get("attachment_id"),
        time=parse_time(raw.get("time")),
        creation_time=parse_time(raw.get("creation_time")),
        is_private=bool(raw.get("is_private")),
    )


def build_attachment(raw: dict) -> Attachment:
    """Build an Attachment, decoding the base64 "data" member when the server sent one."""
    data = raw.get("data")
    if data is not None:
        try:
            data = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecodeError(f"invalid attachment data for attachment {raw.get('id')}") from exc
    return Attachment(
        id=raw.get("id") or 0,
        bug_id=raw.get("bug_id") or 0,
        file_name=raw.get("file_name") or "",
        summary=raw.get("summary") or "",
        content_type=raw.get("content_type") or "",
        creator=raw.get("creator") or "",
        size=raw.get("size") or 0,
        is_obsolete=bool(raw.get("is_obsolete")),
        is_patch=bool(raw.get("is_patch")),
        is_private=bool(raw.get("is_private")),
        creation_time=parse_time(raw.get("creation_time")),
        last_change_time=parse_time(raw.get("last_change_time")),
        token=raw.get("token") or "",
        flags=tuple(build_flag(f) for f in raw.get("flags") or [] if isinstance(f, dict)),
        data=data,
    )


# ------------------------------------------------------------------
# Bug implementation
# ------------------------------------------------------------------
class BugzillaBug(Bug):
    """Concrete Bug backed by a Bugzilla REST bug document.

    Construct via the module-level ``get_bug()`` factory rather than
    instantiating directly.

    Args:
        raw_data:    One entry of the ``bugs`` list from GET /rest/bug/{id}.
        comments:    Comments fetched separately, if any.
        attachments: Attachment metadata fetched separately, if any.

    """

    def __init__(
        self,
        raw_data: dict,
        comments: Iterable[Comment] = (),
        attachments: Iterable[Attachment] = (),
    ) -> None:
        """Initialize BugzillaBug."""
        self._raw = raw_data
        self._comments = tuple(comments)
        self._attachments = tuple(attachments)
        #flags and timestamps are parsed once, the snapshot never changes
        self._flags = tuple(build_flag(f) for f in raw_data.get("flags") or [] if isinstance(f, dict))
        self._last_change_time = parse_time(raw_data.get("last_change_time"))
        self._creation_time = parse_time(raw_data.get("creation_time"))

    @property
    def raw(self) -> dict:
        """Return a copy of the raw document."""
        return dict(self._raw)

    @property
    def id(self) -> int:
        """Return id."""
        return self._raw.get("id") or 0

    @property
    def summary(self) -> str:
        return self._raw.get("summary") or ""

    @property
    def status(self) -> str:
        return self._raw.get("status") or ""

    @property
    def resolution(self) -> str:
        return self._raw.get("resolution") or ""

    @property
    def priority(self) -> str:
        return self._raw.get("priority") or ""

    @property
    def severity(self) -> str:
        return self._raw.get("severity") or ""

    @property
    def whiteboard(self) -> str:
        return self._raw.get("whiteboard") or ""

    @property
    def url(self) -> str:
        return self._raw.get("url") or ""

    @property
    def assigned_to(self) -> str:
        return self._raw.get("assigned_to") or ""

    @property
    def assigned_to_detail(self) -> User:
        return _user(self._raw.get("assigned_to_detail"))

    @property
    def cc(self) -> frozenset[str]:
        return frozenset(self._raw.get("cc") or [])

    @property
    def flags(self) -> tuple[Flag, ...]:
        return self._flags

    @property
    def last_change_time(self) -> datetime | None:
        return self._last_change_time

    @property
    def creation_time(self) -> datetime | None:
        return self._creation_time

    @property
    def product(self) -> str:
        return self._raw.get("product") or ""

    @property
    def component(self) -> str:
        return self._raw.get("component") or ""

    @property
    def version(self) -> str:
        return self._raw.get("version") or ""

    @property
    def keywords(self) -> tuple[str, ...]:
        return tuple(self._raw.get("keywords") or [])

    @property
    def dupe_of(self) -> int | None:
        #the tracker sends null rather than omitting the key
        return self._raw.get("dupe_of") or None

    @property
    def is_open(self) -> bool:
        return bool(self._raw.get("is_open"))

    @property
    def creator(self) -> str:
        return self._raw.get("creator") or ""

    @property
    def qa_contact(self) -> str:
        return self._raw.get("qa_contact") or ""

    @property
    def update_token(self) -> str:
        return self._raw.get("update_token") or ""

    @property
    def comments(self) -> tuple[Comment, ...]:
        return self._comments

    @property
    def attachments(self) -> tuple[Attachment, ...]:
        return self._attachments

    def to_document(self) -> dict:
        """
        Notes on usage:
            Returns the raw document with the separately fetched comments and attachment metadata
            folded back in, so a cached copy can be turned into an equal BugzillaBug with get_bug_from_document().
        """
        document = dict(self._raw)
        document["comments"] = [_comment_document(c) for c in self._comments]
        document["attachments"] = [_attachment_document(a) for a in self._attachments]
        return document


# ---------------------------------------------------------------------------
# Serialization of the separately fetched parts, used by the cache
# ---------------------------------------------------------------------------

def _time_or_none(value: datetime | None) -> str | None:
    return format_time(value) if value is not None else None


def _flag_document(flag: Flag) -> dict:
    return {
        "id": flag.id,
        "name": flag.name,
        "status": flag.status,
        "requestee": flag.requestee,
        "setter": flag.setter,
        "type_id": flag.type_id,
        "creation_date": _time_or_none(flag.creation_date),
        "modification_date": _time_or_none(flag.modification_date),
    }


def _comment_document(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "bug_id": comment.bug_id,
        "attachment_id": comment.attachment_id,
        "count": comment.count,
        "text": comment.text,
        "creator": comment.creator,
        "time": _time_or_none(comment.time),
        "creation_time": _time_or_none(comment.creation_time),
        "is_private": comment.is_private,
    }


def _attachment_document(attachment: Attachment) -> dict:
    #content is never cached, only metadata
    return {
        "id": attachment.id,
        "bug_id": attachment.bug_id,
        "file_name": attachment.file_name,
        "summary": attachment.summary,
        "content_type": attachment.content_type,
        "creator": attachment.creator,
        "size": attachment.size,
        "is_obsolete": int(attachment.is_obsolete),
        "is_patch": int(attachment.is_patch),
        "is_private": int(attachment.is_private),
        "creation_time": _time_or_none(attachment.creation_time),
        "last_change_time": _time_or_none(attachment.last_change_time),
        "token": attachment.token,
        "flags": [_flag_document(f) for f in attachment.flags],
    }


# ---------------------------------------------------------------------------
# Get bug
# ---------------------------------------------------------------------------

def get_bug(
    raw_data: dict,
    comments: Iterable[Comment] = (),
    attachments: Iterable[Attachment] = (),
) -> BugzillaBug:
    """Return a BugzillaBug from a Bugzilla REST bug document.

    Args:
        raw_data:    One bug document from the ``bugs`` list.
        comments:    Comments fetched for the bug.
        attachments: Attachment metadata fetched for the bug.

    Returns:
        A BugzillaBug instance conforming to the Bug contract.

    """
    return BugzillaBug(raw_data, comments, attachments)


def get_bug_from_document(document: dict) -> BugzillaBug:
    """Return a BugzillaBug from a document produced by BugzillaBug.to_document()."""
    raw = dict(document)
    comments = [build_comment(c) for c in raw.pop("comments", None) or [] if isinstance(c, dict)]
    attachments = [build_attachment(a) for a in raw.pop("attachments", None) or [] if isinstance(a, dict)]
    return BugzillaBug(raw, comments, attachments)
