"""Bookmark snapshot file."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from ..errors import CorruptStoreError
from ._base import JsonStore

FILE_NAME = ".folderBM.json"
FORMAT_VERSION = 1


class BookmarkFileStore(JsonStore):
    """Whole-store snapshot (``{"version": 1, "bookmarks": {name: path}}``)."""

    def __init__(self, path: Path) -> None:
        super().__init__(path)

    @classmethod
    def in_directory(cls, directory: Path) -> BookmarkFileStore:
        """Return the store for ``<directory>/.folderBM.json``."""
        return cls(Path(directory) / FILE_NAME)

    def load(self) -> dict[str, str] | None:
        """Read the snapshot, or return None when no file exists yet."""
        if not self.exists():
            return None
        return self._parse(self.load_raw())

    def save(self, bookmarks: Mapping[str, str]) -> None:
        """Overwrite the file with a complete snapshot of *bookmarks*."""
        self.save_raw(
            {"version": FORMAT_VERSION, "bookmarks": dict(bookmarks)},
            sort_keys=True,
        )

    def _parse(self, data: dict | list) -> dict[str, str]:
        where = str(self.path)
        if not isinstance(data, dict):
            raise CorruptStoreError(where, "top level is not an object")
        version = data.get("version", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise CorruptStoreError(where, f"unsupported version {version!r}")
        bookmarks = data.get("bookmarks")
        if not isinstance(bookmarks, dict):
            raise CorruptStoreError(where, "missing 'bookmarks' object")
        for name, path in bookmarks.items():
            if not name or not isinstance(path, str) or not path:
                raise CorruptStoreError(where, f"bad entry for {name!r}")
        return dict(bookmarks)
