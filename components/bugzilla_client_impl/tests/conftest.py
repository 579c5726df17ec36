"""Shared fixtures: Bugzilla REST documents and a client with its HTTP helpers mocked out."""

import json
from unittest.mock import MagicMock

import pytest

from bugzilla_client_impl.bugzilla_impl import BugzillaClient

BUG_ID = 1047068
UPDATE_ID = 101234


def _flag(flag_id, name, requestee, status="?", type_id=4, when="2022-06-14T15:54:28Z"):
    flag = {
        "creation_date": when,
        "id": flag_id,
        "modification_date": when,
        "name": name,
        "setter": requestee or "user2@foobarcorp.example.com",
        "status": status,
        "type_id": type_id,
    }
    if requestee:
        flag["requestee"] = requestee
    return flag


@pytest.fixture
def bug_document():
    """A bug with three open needinfos (user1 once, user3 twice) and two unrelated flags."""
    return {
        "alias": [],
        "assigned_to": "user1@foobarcorp.example.com",
        "assigned_to_detail": {
            "email": "user1@foobarcorp.example.com",
            "id": 63803,
            "name": "user1@foobarcorp.example.com",
            "real_name": "Firstname1 LastName1",
        },
        "cc": [
            "user2@foobarcorp.example.com",
            "user1@foobarcorp.example.com",
            "user3@foobarcorp.example.com",
        ],
        "classification": "Enterprise Frobnicator",
        "component": "Basesystem",
        "creation_time": "2017-07-03T13:29:15Z",
        "creator": "user1@foobarcorp.example.com",
        "dupe_of": None,
        "flags": [
            _flag(264343, "needinfo", "user1@foobarcorp.example.com", when="2022-04-26T07:53:49Z"),
            _flag(266294, "needinfo", "user3@foobarcorp.example.com"),
            _flag(266299, "needinfo", "user3@foobarcorp.example.com"),
            _flag(201663, "SHIP_STOPPER", "user1@foobarcorp.example.com", type_id=2),
            _flag(264345, "CCB_Review", "", status="+", type_id=3),
        ],
        "id": BUG_ID,
        "is_open": True,
        "keywords": ["TRETA", "TRETA_ADDRESSED"],
        "last_change_time": "2023-04-12T01:02:03Z",
        "priority": "P2 - High",
        "product": "Enterprise Frobnicator 9000.1",
        "qa_contact": "user1@foobarcorp.example.com",
        "resolution": "",
        "severity": "Major",
        "status": "REOPENED",
        "summary": "L4: test cloud bug123",
        "update_token": "1683306765-PMQ3v1SB5rHQwTPnDeSPrCAmChAk5itzZn7A_WfGgq4",
        "url": "https://xxxxxx.foobarcorp.example.com/incident/9999999",
        "version": "FROB90001Maint-Upd",
        "whiteboard": "wasXXXFLAG:48626 é com acento QE_REVIEW",
    }


@pytest.fixture
def bugs_body(bug_document):
    return json.dumps({"bugs": [bug_document], "faults": []}).encode()


@pytest.fixture
def comments_body():
    return json.dumps({
        "bugs": {
            str(BUG_ID): {
                "comments": [
                    {
                        "attachment_id": None,
                        "bug_id": BUG_ID,
                        "count": 0,
                        "creation_time": "2017-07-03T13:29:15Z",
                        "creator": "user1@foobarcorp.example.com",
                        "id": 7315202,
                        "is_private": False,
                        "tags": [],
                        "text": "This is a test cloud incident.",
                        "time": "2017-07-03T13:29:15Z",
                    },
                    {
                        "attachment_id": None,
                        "bug_id": BUG_ID,
                        "count": 1,
                        "creation_time": "2017-07-03T13:31:23Z",
                        "creator": "bot1@foobarcorp.example.com",
                        "id": 7315205,
                        "is_private": True,
                        "tags": [],
                        "text": "XXXFLAG:48626 is now handled by Firstname1 LastName1.",
                        "time": "2017-07-03T13:31:23Z",
                    },
                ],
            },
        },
        "comments": {},
    }).encode()


@pytest.fixture
def attachments_body():
    return json.dumps({
        "bugs": {
            str(BUG_ID): [
                {
                    "bug_id": BUG_ID,
                    "content_type": "text/plain",
                    "creation_time": "2018-04-06T12:48:24Z",
                    "creator": "user1@foobarcorp.example.com",
                    "file_name": "a.txt",
                    "flags": [],
                    "id": 766283,
                    "is_obsolete": 0,
                    "is_patch": 0,
                    "is_private": 0,
                    "last_change_time": "2018-04-06T12:48:24Z",
                    "size": 2,
                    "summary": "description",
                },
            ],
        },
    }).encode()


def make_ack(changes=None, bug_id=UPDATE_ID, last_change_time="2023-05-09T09:53:05Z"):
    """Return the body Bugzilla answers a single bug update with."""
    return json.dumps({
        "bugs": [{
            "alias": [],
            "changes": changes or {},
            "id": bug_id,
            "last_change_time": last_change_time,
        }],
    }).encode()


@pytest.fixture
def ack_body():
    return make_ack()


@pytest.fixture
def bugzilla_client(bugs_body, ack_body):
    """Returns a BugzillaClient with mocked internal HTTP methods.

    _get always answers with the bug document, _put with an empty acknowledgement.
    """
    client = BugzillaClient("https://bugzilla.example.com/", "user1@foobarcorp.example.com", "xxxxxx")

    # Mock the internal helpers to prevent real HTTP calls
    client._get = MagicMock(return_value=bugs_body)
    client._put = MagicMock(return_value=ack_body)
    client._post = MagicMock()

    return client


def make_response(status_code=200, body=b"", reason="OK"):
    """Return a stand-in for requests.Response as read by BugzillaClient._collect."""
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.iter_content.return_value = [body] if body else []
    return response


@pytest.fixture
def ack_factory():
    return make_ack


@pytest.fixture
def response_factory():
    return make_response
