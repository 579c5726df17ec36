"""A BugCache keeping one JSON file per bug in a directory."""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO

from bug_tracker_interface.cache import BugCache


class DirectoryCache(BugCache):
    """Stores each entry as <directory>/<key>.json, creating the directory on first write."""

    def __init__(self, directory: str | os.PathLike) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        #keys are bug ids; anything else could escape the directory
        if not key.isdigit():
            raise ValueError(f"invalid cache key: {key!r}")
        return self._directory / f"{key}.json"

    def get_writer(self, key: str) -> BinaryIO:
        path = self._path(key)
        self._directory.mkdir(parents=True, exist_ok=True)
        return path.open("wb")

    def get_reader(self, key: str) -> BinaryIO:
        """Open a cached entry for reading, raising FileNotFoundError if there is none."""
        return self._path(key).open("rb")
