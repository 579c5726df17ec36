"""Turns a Changes request plus the bug's current state into a WireUpdate."""

from __future__ import annotations

from bug_tracker_interface.bug import Bug
from bug_tracker_interface.changes import Changes
from bug_tracker_interface.client import InvalidValueError, MidAirCollisionError, RequestError

from bugzilla_client_impl.bugzilla_update import CommentChange, ExistingFlagEdit, NewFlagRequest, WireUpdate

# ---------------------------------------------------------------------------
# Mapping tables
# ---------------------------------------------------------------------------

#short priority codes to the labels the Bugzilla instance uses; only the label goes on the wire
PRIORITY_MAP: dict[str, str] = {
    "P0": "P0 - Crit Sit",
    "P1": "P1 - Urgent",
    "P2": "P2 - High",
    "P3": "P3 - Medium",
    "P4": "P4 - Low",
    "P5": "P5 - None",
}


def priority_label(code: str) -> str:
    """Return the long label for a short priority code such as 'P0'."""
    try:
        return PRIORITY_MAP[code]
    except KeyError:
        raise InvalidValueError(f"invalid priority value: {code}") from None


def check_delta_ts(changes: Changes, bug: Bug) -> None:
    """
    Raise MidAirCollisionError when the bug changed after the caller read it.

    Notes on usage:
        delta_ts is expected to be the last_change_time from an earlier read, passed back untouched.
        The comparison is exact: same instant and same UTC offset, no tolerance window.
    """
    if not changes.check_delta_ts:
        return
    current = bug.last_change_time
    expected = changes.delta_ts
    #aware and naive datetimes never compare equal, so a naive delta_ts always collides
    if current is None or expected is None or current != expected or current.utcoffset() != expected.utcoffset():
        raise MidAirCollisionError(f"likely mid-air collision: the bug has been updated at {current}")


def _needinfo_target(changes: Changes, account_email: str | None) -> str:
    """Return the requestee whose needinfos should go, "" meaning any requestee."""
    if changes.clear_my_needinfos:
        if not account_email:
            raise RequestError("the account email is required to clear your own needinfos")
        return account_email
    if changes.remove_needinfo:
        return changes.remove_needinfo
    return ""


def _add_needinfo_changes(update: WireUpdate, bug: Bug, changes: Changes, account_email: str | None) -> None:
    if changes.set_needinfo and not bug.has_needinfo_for(changes.set_needinfo):
        update.add_flag_change(NewFlagRequest(requestee=changes.set_needinfo))

    if not changes.wants_needinfo_cleared():
        return
    flag_ids = bug.find_needinfos_for(_needinfo_target(changes, account_email))
    #refuse to guess which one of several needinfos the caller meant
    if len(flag_ids) > 1 and not changes.clear_all_needinfos and not changes.remove_needinfo:
        raise RequestError("more than one needinfo found")
    for flag_id in flag_ids:
        update.add_flag_change(ExistingFlagEdit(id=flag_id))


def build_update(bug_id: int, bug: Bug, changes: Changes, account_email: str | None = None) -> WireUpdate:
    """
    Args:
        bug_id:        The id the update is addressed to
        bug:           The bug as just fetched from the tracker
        changes:       What the caller wants to change
        account_email: The configured account's email, needed for cc_myself and clear_my_needinfos

    Notes on usage:
        Pure function, nothing is sent. Fields left unset on "changes" are not part of the result.

    Returns:
        The WireUpdate to submit

    Raises:
        MidAirCollisionError: If check_delta_ts is set and the bug changed since delta_ts
        RequestError:         If clearing needinfo is ambiguous or the account email is missing
        InvalidValueError:    If set_priority is not a known code
    """
    check_delta_ts(changes, bug)

    update = WireUpdate(ids=[bug_id])

    _add_needinfo_changes(update, bug, changes, account_email)

    if changes.set_url:
        update.url = changes.set_url
    if changes.set_assignee:
        update.assigned_to = changes.set_assignee
    if changes.set_description:
        update.summary = changes.set_description
    if changes.set_whiteboard:
        update.whiteboard = changes.set_whiteboard
    if changes.set_status:
        update.status = changes.set_status
    if changes.set_resolution:
        update.resolution = changes.set_resolution
    if changes.set_priority:
        update.priority = priority_label(changes.set_priority)
    if changes.set_duplicate:
        update.dupe_of = changes.set_duplicate

    if changes.add_cc:
        update.add_cc(changes.add_cc)
    if changes.remove_cc:
        update.remove_cc(changes.remove_cc)
    if changes.cc_myself:
        if not account_email:
            raise RequestError("the account email is required to add yourself to cc")
        update.add_cc(account_email)

    if changes.add_comment:
        update.comment = CommentChange(body=changes.add_comment, is_private=changes.comment_is_private)

    return update
