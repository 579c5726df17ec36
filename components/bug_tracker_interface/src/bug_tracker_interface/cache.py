"""Cache sink contract offered every fetched bug."""

from abc import ABC, abstractmethod
from typing import BinaryIO

__all__ = ["BugCache"]


class BugCache(ABC):
    """
    Receives a serialized copy of every bug the client fetches.

    Notes on usage:
        The client writes the whole document to the returned writer and then closes it.
        Failures anywhere in this path are ignored by the client, the fetch itself still succeeds.
    """

    @abstractmethod
    def get_writer(self, key: str) -> BinaryIO:
        """Return a writable binary file object for the entry named "key" (the bug id in decimal)."""
        raise NotImplementedError
