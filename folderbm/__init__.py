"""folderbm -- named directory bookmarks for the shell."""

from .errors import (
    BookmarkError,
    CorruptStoreError,
    InvalidNameError,
    InvalidPathError,
    NotFoundError,
    PersistenceFailedError,
)
from .store import Bookmark, BookmarkStore, ChangeResult, always_proceed

__version__ = "0.1.0"

__all__ = [
    "Bookmark",
    "BookmarkError",
    "BookmarkStore",
    "ChangeResult",
    "CorruptStoreError",
    "InvalidNameError",
    "InvalidPathError",
    "NotFoundError",
    "PersistenceFailedError",
    "always_proceed",
    "__version__",
]
