"""Unit tests for build_update and the wire update types, without any client."""

from datetime import datetime, timezone

import pytest

from bug_tracker_interface.changes import Changes
from bug_tracker_interface.client import InvalidValueError, MidAirCollisionError, RequestError
from bugzilla_client_impl.bugzilla_bug import get_bug
from bugzilla_client_impl.bugzilla_update import (
    CommentChange,
    ExistingFlagEdit,
    ListChange,
    NewFlagRequest,
    WireUpdate,
)
from bugzilla_client_impl.update_builder import PRIORITY_MAP, build_update, check_delta_ts, priority_label

UPDATE_ID = 101234


@pytest.fixture
def bug(bug_document):
    return get_bug(bug_document)


def needinfo(flag_id, requestee, status="?"):
    return {"id": flag_id, "name": "needinfo", "requestee": requestee, "status": status}


#-------------------- needinfo handling --------------------

def test_set_needinfo_appends_new_flag_request(bug):
    update = build_update(UPDATE_ID, bug, Changes(set_needinfo="user@foobar.com"))

    assert update.flags == [NewFlagRequest(requestee="user@foobar.com")]


def test_set_needinfo_twice_creates_one_request(bug_document):
    # second round: the bug now carries the needinfo created by the first one
    first = build_update(UPDATE_ID, get_bug(bug_document), Changes(set_needinfo="user@foobar.com"))
    assert len(first.flags) == 1

    bug_document["flags"].append(needinfo(270000, "user@foobar.com"))
    second = build_update(UPDATE_ID, get_bug(bug_document), Changes(set_needinfo="user@foobar.com"))

    assert second.flags == []


def test_set_needinfo_ignores_closed_needinfo(bug_document):
    # a needinfo that was already answered does not count as an open request
    bug_document["flags"] = [needinfo(1, "user@foobar.com", status="X")]

    update = build_update(UPDATE_ID, get_bug(bug_document), Changes(set_needinfo="user@foobar.com"))

    assert update.flags == [NewFlagRequest(requestee="user@foobar.com")]


def test_clear_single_needinfo(bug_document):
    bug_document["flags"] = [needinfo(10, "a@x.com"), needinfo(11, "b@x.com", status="X")]

    update = build_update(UPDATE_ID, get_bug(bug_document), Changes(clear_needinfo=True))

    assert update.flags == [ExistingFlagEdit(id=10, status="X")]


def test_clear_needinfo_with_none_set_is_a_no_op(bug_document):
    bug_document["flags"] = []

    update = build_update(UPDATE_ID, get_bug(bug_document), Changes(clear_needinfo=True))

    assert update.to_payload() == {"ids": [UPDATE_ID]}


def test_ambiguous_clear_is_rejected(bug):
    with pytest.raises(RequestError, match="more than one needinfo found"):
        build_update(UPDATE_ID, bug, Changes(clear_needinfo=True))


def test_clear_all_keeps_discovery_order(bug):
    update = build_update(UPDATE_ID, bug, Changes(clear_needinfo=True, clear_all_needinfos=True))

    assert [f.id for f in update.flags] == [264343, 266294, 266299]
    assert all(f.status == "X" for f in update.flags)


def test_remove_needinfo_matches_case_insensitively(bug):
    update = build_update(UPDATE_ID, bug, Changes(remove_needinfo="User3@FooBarCorp.example.com"))

    assert [f.id for f in update.flags] == [266294, 266299]


def test_remove_needinfo_for_unknown_email_sends_nothing(bug):
    update = build_update(UPDATE_ID, bug, Changes(remove_needinfo="nobody@example.com"))

    assert update.flags == []


def test_clear_my_needinfos_requires_account_email(bug):
    with pytest.raises(RequestError):
        build_update(UPDATE_ID, bug, Changes(clear_needinfo=True, clear_my_needinfos=True))


def test_clear_my_needinfos_overrides_explicit_email(bug):
    changes = Changes(remove_needinfo="user3@foobarcorp.example.com", clear_my_needinfos=True)

    update = build_update(UPDATE_ID, bug, changes, account_email="user1@foobarcorp.example.com")

    assert update.flags == [ExistingFlagEdit(id=264343)]


def test_set_and_clear_needinfo_together(bug):
    changes = Changes(set_needinfo="new@x.com", remove_needinfo="user1@foobarcorp.example.com")

    update = build_update(UPDATE_ID, bug, changes)

    assert [f.to_wire() for f in update.flags] == [
        {"name": "needinfo", "new": True, "requestee": "new@x.com", "status": "?"},
        {"id": 264343, "status": "X"},
    ]


#-------------------- collision check --------------------

def test_check_delta_ts_disabled_by_default(bug):
    check_delta_ts(Changes(delta_ts=datetime(2000, 1, 1, tzinfo=timezone.utc)), bug)


def test_check_delta_ts_exact_match_passes(bug):
    check_delta_ts(Changes(delta_ts=bug.last_change_time, check_delta_ts=True), bug)


def test_check_delta_ts_rejects_sub_second_difference(bug):
    changes = Changes(delta_ts=bug.last_change_time.replace(microsecond=1), check_delta_ts=True)

    with pytest.raises(MidAirCollisionError):
        check_delta_ts(changes, bug)


def test_check_delta_ts_rejects_naive_datetime(bug):
    changes = Changes(delta_ts=datetime(2023, 4, 12, 1, 2, 3), check_delta_ts=True)

    with pytest.raises(MidAirCollisionError):
        check_delta_ts(changes, bug)


def test_check_delta_ts_without_token_collides(bug):
    with pytest.raises(MidAirCollisionError):
        check_delta_ts(Changes(check_delta_ts=True), bug)


def test_collision_is_checked_before_anything_else(bug):
    # even an invalid priority is not reported once the bug is known to have moved on
    changes = Changes(set_priority="wrong", delta_ts=datetime(2000, 1, 1, tzinfo=timezone.utc), check_delta_ts=True)

    with pytest.raises(MidAirCollisionError):
        build_update(UPDATE_ID, bug, changes)


#-------------------- priority --------------------

@pytest.mark.parametrize("code", sorted(PRIORITY_MAP))
def test_priority_label_known_codes(code):
    assert priority_label(code).startswith(code + " - ")


def test_priority_label_unknown_code():
    with pytest.raises(InvalidValueError, match="invalid priority value: P9"):
        priority_label("P9")


def test_invalid_priority_is_a_request_error(bug):
    with pytest.raises(RequestError):
        build_update(UPDATE_ID, bug, Changes(set_priority="wrong"))


#-------------------- scalar fields, cc, comment --------------------

def test_empty_changes_payload(bug):
    assert build_update(UPDATE_ID, bug, Changes()).to_payload() == {"ids": [UPDATE_ID]}


def test_empty_strings_are_treated_as_unset(bug):
    changes = Changes(set_url="", set_status="", add_comment="", add_cc="", set_needinfo="")

    assert build_update(UPDATE_ID, bug, changes).to_payload() == {"ids": [UPDATE_ID]}


def test_zero_duplicate_is_treated_as_unset(bug):
    assert "dupe_of" not in build_update(UPDATE_ID, bug, Changes(set_duplicate=0)).to_payload()


def test_description_maps_to_summary(bug):
    payload = build_update(UPDATE_ID, bug, Changes(set_description="A better summary")).to_payload()

    assert payload == {"ids": [UPDATE_ID], "summary": "A better summary"}


def test_cc_changes_combine(bug):
    changes = Changes(add_cc="a@x.com", remove_cc="b@x.com", cc_myself=True)

    payload = build_update(UPDATE_ID, bug, changes, account_email="me@x.com").to_payload()

    assert payload["cc"] == {"add": ["a@x.com", "me@x.com"], "remove": ["b@x.com"]}


def test_cc_myself_requires_account_email(bug):
    with pytest.raises(RequestError):
        build_update(UPDATE_ID, bug, Changes(cc_myself=True))


def test_everything_at_once(bug):
    changes = Changes(
        set_needinfo="user@foobar.com",
        add_comment="done",
        set_priority="P1",
        set_status="RESOLVED",
        set_resolution="FIXED",
        add_cc="a@x.com",
    )

    payload = build_update(UPDATE_ID, bug, changes).to_payload()

    assert payload == {
        "ids": [UPDATE_ID],
        "flags": [{"name": "needinfo", "new": True, "requestee": "user@foobar.com", "status": "?"}],
        "cc": {"add": ["a@x.com"]},
        "comment": {"body": "done", "is_private": False},
        "status": "RESOLVED",
        "resolution": "FIXED",
        "priority": "P1 - Urgent",
    }


#-------------------- wire types --------------------

def test_wire_update_omits_unset_members():
    update = WireUpdate(ids=[1], url="http://x")

    assert update.to_payload() == {"ids": [1], "url": "http://x"}


def test_list_change_omits_empty_side():
    assert ListChange(add=["a@x.com"]).to_wire() == {"add": ["a@x.com"]}
    assert ListChange().to_wire() == {}


def test_wire_update_drops_empty_cc():
    update = WireUpdate(ids=[1], cc=ListChange())

    assert "cc" not in update.to_payload()


def test_comment_change_defaults_to_public():
    assert CommentChange("hi").to_wire() == {"body": "hi", "is_private": False}
