"""Persistence layer – each store owns its file path, data format, and I/O."""

from .bookmarks import BookmarkFileStore

__all__ = [
    "BookmarkFileStore",
]
