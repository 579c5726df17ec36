"""Settings needed to talk to a Bugzilla instance."""

from __future__ import annotations

from dataclasses import dataclass

from bug_tracker_interface.cache import BugCache
from bug_tracker_interface.client import RequestError


@dataclass
class BugzillaConfig:
    """
    Args:
        base_url: Bugzilla root URL (e.g. 'https://bugzilla.example.com')
        username: Login of the account, an email address for self referencing changes
        api_key:  API key generated from the Bugzilla preferences page
        cache:    Optional sink receiving every fetched bug
    """

    base_url: str
    username: str = ""
    api_key: str = ""
    cache: BugCache | None = None

    def email_address(self) -> str:
        """Return the account's email, raising RequestError if the username is not one."""
        email = self.username
        if "@" not in email:
            raise RequestError(f"Your username doesn't look like an email address: {email}")
        return email
