"""Bugzilla REST implementation of the bug tracker client."""

from bugzilla_client_impl.bugzilla_bug import BugzillaBug
from bugzilla_client_impl.bugzilla_cache import DirectoryCache
from bugzilla_client_impl.bugzilla_config import BugzillaConfig
from bugzilla_client_impl.bugzilla_impl import AttachmentDownload, BugzillaClient, get_client
from bugzilla_client_impl.update_builder import PRIORITY_MAP, build_update

__all__ = [
    "PRIORITY_MAP",
    "AttachmentDownload",
    "BugzillaBug",
    "BugzillaClient",
    "BugzillaConfig",
    "DirectoryCache",
    "build_update",
    "get_client",
]
