"""Error hierarchy for folderbm.

Each error carries the offending name or path and an ``exit_code`` so a
command-line wrapper can turn it into a distinct process status.
"""

from __future__ import annotations


class BookmarkError(Exception):
    """Base class for every folderbm error."""

    exit_code = 1


class InvalidNameError(BookmarkError):
    """Raised when a bookmark name is empty or whitespace only."""

    exit_code = 3

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Invalid bookmark name: {name!r}")


class InvalidPathError(BookmarkError):
    """Raised when a path is not an existing directory."""

    exit_code = 3

    def __init__(self, path: str, reason: str = "not an existing directory") -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid path '{path}': {reason}")


class NotFoundError(BookmarkError):
    """Raised when a bookmark name is not in the store."""

    exit_code = 4

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No bookmark named '{name}'")


class PersistenceFailedError(BookmarkError):
    """Raised when the bookmark file cannot be written (or read)."""

    exit_code = 5

    def __init__(self, path: str, reason: str = "", results: list | None = None) -> None:
        self.path = path
        self.reason = reason
        # Per-name outcomes of a batch whose final save failed
        self.results = results or []
        msg = f"Cannot persist bookmarks to '{path}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class CorruptStoreError(BookmarkError):
    """Raised when the bookmark file exists but cannot be parsed."""

    exit_code = 6

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        msg = f"Bookmark file '{path}' is corrupt"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
