"""Update acknowledgement returned by the tracker."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

__all__ = ["FieldChange", "UpdateResponse"]


@dataclass(frozen=True)
class FieldChange:
    """What the tracker actually did to one field, as comma separated strings."""

    added: str = ""
    removed: str = ""


@dataclass(frozen=True)
class UpdateResponse:
    """
    Args:
        id:               The id of the updated bug
        last_change_time: The new last change time, usable as the next delta_ts
        alias:            Aliases of the bug
        changes:          Field name to FieldChange, empty when nothing changed
    """

    id: int
    last_change_time: datetime | None = None
    alias: tuple[str, ...] = ()
    changes: dict[str, FieldChange] = field(default_factory=dict)
