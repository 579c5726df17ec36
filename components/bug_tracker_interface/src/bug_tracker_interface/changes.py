"""Changes contract - what a caller wants to change on one bug."""

from dataclasses import dataclass
from datetime import datetime

__all__ = ["Changes"]


@dataclass
#dataclass instead of a plain dict so that a typo in a field name fails loudly
class Changes:
    """
    Every field defaults to "leave unchanged". Empty strings, False and None all mean the same thing:
    only fields given a real value end up in the update sent to the tracker.

    Needinfo clearing is driven by three flags together:
        clear_needinfo alone                        clear the single open needinfo, fail if there are several
        clear_needinfo + clear_all_needinfos        clear every open needinfo
        clear_needinfo + clear_my_needinfos         clear the open needinfos requested from the account's email
        remove_needinfo=<email>                     clear every open needinfo requested from <email>
    """

    set_needinfo: str | None = None
    remove_needinfo: str | None = None

    clear_needinfo: bool = False
    clear_all_needinfos: bool = False
    clear_my_needinfos: bool = False

    add_comment: str | None = None
    comment_is_private: bool = False

    set_url: str | None = None
    set_assignee: str | None = None
    set_priority: str | None = None
    #maps to the bug's summary field
    set_description: str | None = None
    set_whiteboard: str | None = None
    set_status: str | None = None
    set_resolution: str | None = None
    #bug ids are never 0, so 0 is treated like None
    set_duplicate: int | None = None

    add_cc: str | None = None
    remove_cc: str | None = None
    cc_myself: bool = False

    #last_change_time of the bug as read earlier, compared verbatim when check_delta_ts is set
    delta_ts: datetime | None = None
    check_delta_ts: bool = False

    def wants_needinfo_cleared(self) -> bool:
        """Return True when any needinfo is asked to be cleared or removed."""
        return bool(self.remove_needinfo) or self.clear_needinfo

    def needs_account_email(self) -> bool:
        """Return True when building the update requires the account's own email address."""
        return self.cc_myself or (self.clear_my_needinfos and self.wants_needinfo_cleared())
