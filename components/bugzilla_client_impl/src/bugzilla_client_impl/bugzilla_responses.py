"""Decoders for the JSON documents Bugzilla answers with."""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from bug_tracker_interface.bug import Attachment, Comment
from bug_tracker_interface.client import ConnectionFailedError, DecodeError
from bug_tracker_interface.response import FieldChange, UpdateResponse

from bugzilla_client_impl.bugzilla_bug import build_attachment, build_comment, parse_time


def _load(body: bytes | str) -> Any:
    try:
        return json.loads(body)
    except ValueError as exc:
        raise DecodeError(exc) from exc


def _object(body: bytes | str) -> dict:
    document = _load(body)
    if not isinstance(document, dict):
        raise DecodeError(f"expected a JSON object, got {type(document).__name__}")
    return document


def _mapping(document: dict, key: str) -> dict:
    """Return document[key] when it is an object, {} when it is missing."""
    value = document.get(key) or {}
    if not isinstance(value, dict):
        raise DecodeError(f"'{key}' is not an object")
    return value


def _aliases(value: Any) -> tuple[str, ...]:
    #older Bugzilla versions answer a single alias as a plain string
    if isinstance(value, str):
        return (value,) if value else ()
    if not isinstance(value, list):
        raise DecodeError(f"invalid alias {value!r}")
    return tuple(value)


# ---------------------------------------------------------------------------
# Update acknowledgement
# ---------------------------------------------------------------------------

def decode_update_response(body: bytes | str) -> UpdateResponse:
    """
    Decode the answer to PUT /rest/bug/{id}, e.g.

        {"bugs": [{"id": 101234, "alias": [], "last_change_time": "2023-05-09T09:30:30Z",
                   "changes": {"priority": {"added": "P0 - Crit Sit", "removed": "P2 - High"}}}]}

    Only single bug updates are submitted, so exactly one entry is expected.
    """
    entries = _object(body).get("bugs")
    if not isinstance(entries, list) or len(entries) != 1:
        count = len(entries) if isinstance(entries, list) else 0
        raise ConnectionFailedError(f"got an unexpected number of update responses: {count}")
    entry = entries[0]
    if not isinstance(entry, dict):
        raise DecodeError("update response entry is not an object")

    changes: dict[str, FieldChange] = {}
    for name, change in _mapping(entry, "changes").items():
        if not isinstance(change, dict):
            raise DecodeError(f"malformed change for field {name!r}")
        changes[name] = FieldChange(added=change.get("added") or "", removed=change.get("removed") or "")

    return UpdateResponse(
        id=entry.get("id") or 0,
        last_change_time=parse_time(entry.get("last_change_time")),
        alias=_aliases(entry.get("alias") or []),
        changes=changes,
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def decode_bugs(body: bytes | str) -> list[dict]:
    """Return the raw bug documents from GET /rest/bug/{id}."""
    bugs = _object(body).get("bugs") or []
    if not isinstance(bugs, list):
        raise DecodeError("'bugs' is not a list")
    return [b for b in bugs if isinstance(b, dict)]


def decode_comments(body: bytes | str, bug_ids: Iterable[int]) -> list[Comment]:
    """
    Decode GET /rest/bug/{id}/comment, which is keyed by bug id:

        {"bugs": {"1047068": {"comments": [{...}, ...]}}}

    Comments are returned bug by bug in the order of "bug_ids"; bugs missing from the answer are skipped.
    """
    by_bug = _mapping(_object(body), "bugs")
    comments: list[Comment] = []
    for bug_id in bug_ids:
        bug_doc = by_bug.get(str(bug_id))
        if not isinstance(bug_doc, dict):
            continue
        comments.extend(build_comment(c) for c in bug_doc.get("comments") or [] if isinstance(c, dict))
    return comments


def decode_attachments(body: bytes | str, bug_ids: Iterable[int]) -> list[Attachment]:
    """Decode GET /rest/bug/{id}/attachment: {"bugs": {"<bug id>": [{...}, ...]}}."""
    by_bug = _mapping(_object(body), "bugs")
    attachments: list[Attachment] = []
    for bug_id in bug_ids:
        raw_attachments = by_bug.get(str(bug_id))
        if not isinstance(raw_attachments, list):
            continue
        attachments.extend(build_attachment(a) for a in raw_attachments if isinstance(a, dict))
    return attachments


def decode_direct_attachments(body: bytes | str, attachment_ids: Iterable[int]) -> list[Attachment]:
    """Decode GET /rest/bug/attachment/{id}: {"attachments": {"<attachment id>": {...}}}."""
    by_id = _mapping(_object(body), "attachments")
    attachments: list[Attachment] = []
    for attachment_id in attachment_ids:
        raw = by_id.get(str(attachment_id))
        if isinstance(raw, dict):
            #the server omits the id when only "data" was included
            raw.setdefault("id", attachment_id)
            attachments.append(build_attachment(raw))
    return attachments


def decode_post_attachment(body: bytes | str) -> int:
    """Return the id of the attachment created by POST /rest/bug/{id}/attachment."""
    ids = _object(body).get("ids")
    if not isinstance(ids, list) or not ids:
        raise ConnectionFailedError("no attachment id returned")
    try:
        return int(ids[0])
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"invalid attachment id {ids[0]!r}") from exc


def decode_error(body: bytes | str) -> tuple[int | None, str] | None:
    """
    Return (code, message) from a structured Bugzilla error body, or None if the body is not one:

        {"code": 102, "documentation": "...", "error": true, "message": "You are not authorized to access bug #1."}
    """
    try:
        document = json.loads(body)
    except ValueError:
        return None
    if not isinstance(document, dict) or document.get("message") is None:
        return None
    return document.get("code"), str(document["message"])
