"""
Authentication
--------------
Bugzilla's REST API takes an API key, sent as the Bugzilla_api_key query parameter on every request.
The client supports two credential modes:

1. When get_client(interactive = True)
    User is prompted for the values below at runtime if any are missing from the environment.
2. When get_client(interactive = False) - Default
        BUGZILLA_BASE_URL   https://bugzilla.example.com
        BUGZILLA_USERNAME   me@example.com
        BUGZILLA_API_KEY    <key from the "API Keys" tab of the Bugzilla preferences>
        BUGZILLA_CACHE_DIR  optional, directory receiving a JSON copy of every fetched bug

Dependencies:
    uv add requests

"""
#to avoid having to consider forward declarations, the below line must be first line in the file
from __future__ import annotations

import base64
import json
import logging
import os
import threading
from collections.abc import Iterable, Iterator
from getpass import getpass
from typing import IO, Any

import requests

from bug_tracker_interface.bug import Attachment, Comment, NewAttachment
from bug_tracker_interface.cache import BugCache
from bug_tracker_interface.changes import Changes
from bug_tracker_interface.client import (
    BugNotFoundError,
    BugTrackerClient,
    ConnectionFailedError,
    DecodeError,
    RequestError,
    ServiceError,
)
from bug_tracker_interface.response import UpdateResponse

from bugzilla_client_impl.bugzilla_bug import BugzillaBug, get_bug as _make_bug, get_bug_from_document
from bugzilla_client_impl.bugzilla_cache import DirectoryCache
from bugzilla_client_impl.bugzilla_config import BugzillaConfig
from bugzilla_client_impl.bugzilla_responses import (
    decode_attachments,
    decode_bugs,
    decode_comments,
    decode_direct_attachments,
    decode_error,
    decode_post_attachment,
    decode_update_response,
)
from bugzilla_client_impl.update_builder import build_update

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

#bodies above this size are refused rather than read into memory
MAX_RESPONSE_SIZE = 10 * 1024 * 1024
_CHUNK_SIZE = 64 * 1024


def _read_limited(response: requests.Response, limit: int = MAX_RESPONSE_SIZE) -> bytes:
    buf = bytearray()
    try:
        for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
            buf.extend(chunk)
            if len(buf) > limit:
                raise ConnectionFailedError(f"response body larger than {limit} bytes")
    except requests.RequestException as exc:
        raise ConnectionFailedError(exc) from exc
    return bytes(buf)


def _bug_ids(bug_ids: Iterable[int]) -> list[int]:
    ids = [int(i) for i in bug_ids]
    if not ids:
        raise RequestError("no bug ids given")
    return ids


# ---------------------------------------------------------------------------
# Attachment download handle
# ---------------------------------------------------------------------------

class AttachmentDownload:
    """
    Streaming handle returned by BugzillaClient.download_attachment().

    Notes on usage:
        The body is the raw JSON document with the base64 content inside. Read it with iter_content(),
        store it wherever suits, then turn it into bytes with data_from_download().
        Close the handle (or use it as a context manager) when done.
    """

    def __init__(self, attachment_id: int, response: requests.Response) -> None:
        self._attachment_id = attachment_id
        self._response = response

    @property
    def attachment_id(self) -> int:
        return self._attachment_id

    def iter_content(self, chunk_size: int = _CHUNK_SIZE) -> Iterator[bytes]:
        try:
            yield from self._response.iter_content(chunk_size=chunk_size)
        except requests.RequestException as exc:
            raise ConnectionFailedError(exc) from exc

    def data_from_download(self, raw: bytes) -> bytes:
        """Decode the attachment content out of the downloaded document."""
        attachments = decode_direct_attachments(raw, [self._attachment_id])
        if len(attachments) != 1:
            raise ConnectionFailedError(f"unexpected number of attachments returned: {len(attachments)}")
        return attachments[0].data or b""

    def close(self) -> None:
        self._response.close()

    def __enter__(self) -> AttachmentDownload:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Client implementation
# ---------------------------------------------------------------------------

class BugzillaClient(BugTrackerClient):
    """
    Args:
        base_url: Bugzilla instance root URL (e.g. 'https://bugzilla.example.com')
        username: Login of the account, must be an email address for cc_myself and clear_my_needinfos
        api_key:  API key generated from the Bugzilla preferences
        cache:    Optional BugCache offered a copy of every fetched bug
        timeout:  Seconds before a request is abandoned

    Notes on usage:
        One client can be shared by threads working on different bugs; each thread gets its own session.
    """

    _API_PREFIX = "/rest"

    def __init__(
        self,
        base_url: str,
        username: str = "",
        api_key: str = "",
        cache: BugCache | None = None,
        timeout: float = 30,
    ) -> None:
        self.config = BugzillaConfig(base_url.rstrip("/"), username, api_key, cache)
        self._timeout = timeout
        self._local = threading.local()

    @property
    def _session(self) -> requests.Session:
        #requests.Session is not thread safe, so sessions are kept per thread
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update({"Accept": "application/json", "Content-Type": "application/json"})
            self._local.session = session
        return session

    @_session.setter
    def _session(self, session: requests.Session) -> None:
        self._local.session = session

    @classmethod
    def from_config(cls, config: BugzillaConfig, timeout: float = 30) -> BugzillaClient:
        return cls(config.base_url, config.username, config.api_key, config.cache, timeout)

    # ------------------------------------------------------------------
    # Internal HTTP helpers
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self.config.base_url}{self._API_PREFIX}{path}"

    def _request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        body: dict | None = None,
    ) -> requests.Response:
        query: dict[str, Any] = {"Bugzilla_api_key": self.config.api_key}
        if params:
            query.update(params)
        logger.debug("%s %s", method, path)
        try:
            return self._session.request(
                method,
                self._url(path),
                params=query,
                json=body,
                timeout=self._timeout,
                stream=True,
            )
        except requests.RequestException as exc:
            raise ConnectionFailedError(exc) from exc

    def _get(self, path: str, params: dict | None = None) -> bytes:
        return self._collect(self._request("GET", path, params=params))

    def _put(self, path: str, body: dict) -> bytes:
        return self._collect(self._request("PUT", path, body=body))

    def _post(self, path: str, body: dict) -> bytes:
        return self._collect(self._request("POST", path, body=body))

    @staticmethod
    def _collect(response: requests.Response) -> bytes:
        """Read the body and turn any non-2xx answer into a ServiceError."""
        try:
            body = _read_limited(response)
        finally:
            response.close()

        if 200 <= response.status_code <= 299:
            return body

        code = None
        decoded = decode_error(body)
        if decoded is not None:
            code, message = decoded
            if code is not None:
                message = f"[{code}] {message}"
        else:
            #no structured body, fall back to the status text
            message = response.reason or f"HTTP {response.status_code}"
        logger.debug("request failed with status %s: %s", response.status_code, message)
        if response.status_code == 404:
            raise BugNotFoundError(message, code)
        raise ServiceError(message, code)

    def _cache_bugs(self, bugs: Iterable[BugzillaBug]) -> None:
        cache = self.config.cache
        if cache is None:
            return
        for bug in bugs:
            #best effort, a broken cache never fails a fetch
            try:
                data = json.dumps(bug.to_document()).encode("utf-8")
                writer = cache.get_writer(str(bug.id))
                try:
                    writer.write(data)
                finally:
                    writer.close()
            except Exception:
                logger.debug("could not cache bug %s", bug.id, exc_info=True)

    # ------------------------------------------------------------------
    # BugTrackerClient contract: reads
    # ------------------------------------------------------------------

    def get_bug(self, bug_id: int) -> BugzillaBug:
        """Fetch a bug with its comments and attachment metadata."""
        return self.get_bug_ex(bug_id, with_comments=True, with_attachments=True)

    def get_bug_ex(self, bug_id: int, with_comments: bool, with_attachments: bool) -> BugzillaBug:
        """
        Notes on usage:
            Comments and attachments each cost one extra request, update() skips both.
            Every fetched bug is offered to the configured cache.

        Raises:
            BugNotFoundError: If the bug does not exist or the answer holds no bug.
        """
        raw_bugs = decode_bugs(self._get(f"/bug/{bug_id}"))
        if not raw_bugs:
            raise BugNotFoundError(f"bug {bug_id} not returned")

        comments: list[Comment] = self.get_comments([bug_id]) if with_comments else []
        attachments: list[Attachment] = self.get_attachments_info([bug_id]) if with_attachments else []

        bugs = [_make_bug(raw, comments, attachments) for raw in raw_bugs]
        self._cache_bugs(bugs)
        return bugs[0]

    def get_comments(self, bug_ids: Iterable[int]) -> list[Comment]:
        ids = _bug_ids(bug_ids)
        body = self._get(f"/bug/{ids[0]}/comment", params={"ids": ids})
        return decode_comments(body, ids)

    def get_attachments_info(self, bug_ids: Iterable[int]) -> list[Attachment]:
        """Return information about the attachments of the given bugs, with no data."""
        ids = _bug_ids(bug_ids)
        body = self._get(f"/bug/{ids[0]}/attachment", params={"ids": ids, "exclude_fields": "data"})
        return decode_attachments(body, ids)

    def get_attachment(self, attachment_id: int) -> Attachment:
        """Return one attachment including its data."""
        body = self._get(f"/bug/attachment/{attachment_id}")
        attachments = decode_direct_attachments(body, [attachment_id])
        if len(attachments) != 1:
            raise ConnectionFailedError(f"unexpected number of attachments returned: {len(attachments)}")
        return attachments[0]

    def download_attachment(self, attachment_id: int) -> AttachmentDownload:
        """Start a streaming download of an attachment, see AttachmentDownload."""
        response = self._request("GET", f"/bug/attachment/{attachment_id}", params={"include_fields": "data"})
        if not 200 <= response.status_code <= 299:
            self._collect(response)
        return AttachmentDownload(attachment_id, response)

    def get_bug_from_json(self, source: IO) -> BugzillaBug:
        """Build a bug from a JSON document such as a cache entry written by this client."""
        try:
            document = json.load(source)
        except ValueError as exc:
            raise DecodeError(exc) from exc
        if not isinstance(document, dict):
            raise DecodeError("bug document is not an object")
        return get_bug_from_document(document)

    # ------------------------------------------------------------------
    # BugTrackerClient contract: writes
    # ------------------------------------------------------------------

    def update(self, bug_id: int, changes: Changes) -> UpdateResponse:
        """
        Args:
            bug_id:  The Bugzilla bug id
            changes: A "Changes" dataclass instance with the desired changes

        Notes on usage:
            The bug is fetched first (without comments or attachments) because needinfo handling and the
            mid-air collision check depend on its current flags and last_change_time.
            Fields left unset are not sent and remain unchanged. An empty Changes is still submitted.

        Returns:
            The UpdateResponse for the bug

        Raises:
            RequestError: If the username is needed but is not an email address, needinfo clearing is ambiguous,
                the bug changed since changes.delta_ts, or the priority is unknown.
            ServiceError: If Bugzilla rejects the update.
            ConnectionFailedError: If Bugzilla cannot be reached or does not acknowledge exactly one bug.
        """
        #resolved before fetching so that a bad username never costs a request
        account_email = self.config.email_address() if changes.needs_account_email() else None

        bug = self.get_bug_ex(bug_id, with_comments=False, with_attachments=False)
        update = build_update(bug_id, bug, changes, account_email)

        body = self._put(f"/bug/{bug_id}", update.to_payload())
        return decode_update_response(body)

    def upload_attachment(self, bug_id: int, attachment: NewAttachment) -> int:
        """Post a new attachment to a bug and return the id Bugzilla gave it."""
        body: dict[str, Any] = {
            "ids": [bug_id],
            "data": base64.b64encode(attachment.data).decode("ascii"),
            "file_name": attachment.file_name,
            "summary": attachment.summary,
            "content_type": attachment.content_type,
            "is_patch": attachment.is_patch,
            "is_private": attachment.is_private,
        }
        if attachment.comment:
            body["comment"] = attachment.comment
        if attachment.flags:
            flags = []
            for flag in attachment.flags:
                entry = {"name": flag.name, "status": flag.status}
                if flag.requestee:
                    entry["requestee"] = flag.requestee
                flags.append(entry)
            body["flags"] = flags
        return decode_post_attachment(self._post(f"/bug/{bug_id}/attachment", body))


# ---------------------------------------------------------------------------
# Get client
# ---------------------------------------------------------------------------

def get_client(*, interactive: bool = False) -> BugzillaClient:
    """Return a configured BugzillaClient.

    Reads settings from environment variables. If "interactive = True" and
    any variable is missing, the user will be prompted.

    Environment variables:
        BUGZILLA_BASE_URL:   Base URL of the Bugzilla instance.
        BUGZILLA_USERNAME:   Account login (email address).
        BUGZILLA_API_KEY:    API key of the account.
        BUGZILLA_CACHE_DIR:  Optional directory for the bug cache.
    """
    base_url = os.environ.get("BUGZILLA_BASE_URL", "")
    username = os.environ.get("BUGZILLA_USERNAME", "")
    api_key = os.environ.get("BUGZILLA_API_KEY", "")
    cache_dir = os.environ.get("BUGZILLA_CACHE_DIR", "")

    if interactive:
        if not base_url:
            base_url = input("Bugzilla base URL (e.g. https://bugzilla.example.com): ").strip()
        if not username:
            username = input("Bugzilla username (email): ").strip()
        if not api_key:
            api_key = getpass("Bugzilla API key: ")
    else:
        #collects the missing fields and raises an error alerting to the missing values
        missing = [name for name, val in [
            ("BUGZILLA_BASE_URL", base_url),
            ("BUGZILLA_USERNAME", username),
            ("BUGZILLA_API_KEY", api_key),
        ] if not val]
        if missing:
            raise EnvironmentError(
                f"Missing required environment variables: {', '.join(missing)}. "
                "Set them or call get_client(interactive=True)."
            )

    cache = DirectoryCache(cache_dir) if cache_dir else None
    return BugzillaClient(base_url, username, api_key, cache)
