"""In-memory directory bookmark store with write-through persistence.

A session builds one :class:`BookmarkStore`, calls :meth:`BookmarkStore.load`
once, and then issues commands against it.  ``set`` and ``remove`` save the
whole mapping after every successful mutation; ``use``, ``list`` and
``test`` never touch the disk.
"""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from . import platform
from .errors import (
    CorruptStoreError,
    InvalidNameError,
    InvalidPathError,
    NotFoundError,
    PersistenceFailedError,
)
from .log import logger
from .persistence import BookmarkFileStore

Confirm = Callable[[str], bool]

# Outcome labels for ChangeResult.status
ADDED = "added"
UPDATED = "updated"
UNCHANGED = "unchanged"
REMOVED = "removed"
NOT_FOUND = "not-found"
SKIPPED = "skipped"
DRY_RUN = "dry-run"


def always_proceed(description: str) -> bool:  # noqa: ARG001
    """Confirmation callback that approves every change."""
    return True


@dataclass(frozen=True)
class Bookmark:
    """A named reference to a directory."""

    name: str
    path: str


@dataclass
class ChangeResult:
    """Outcome of one logical mutation (a set, or one name of a remove)."""

    name: str
    status: str
    path: str = ""
    error: Exception | None = None

    @property
    def changed(self) -> bool:
        return self.status in (ADDED, UPDATED, REMOVED)


class BookmarkStore:
    """Name -> directory mapping held in memory and mirrored to one file.

    Host access goes through the injected *current_directory* and
    *is_directory* callables so tests can drive the store without a real
    working directory.
    """

    def __init__(
        self,
        file_store: BookmarkFileStore,
        *,
        current_directory: Callable[[], str] = platform.current_directory,
        is_directory: Callable[[str], bool] = platform.is_directory,
        case_sensitive: bool = True,
    ) -> None:
        self.file_store = file_store
        self.case_sensitive = case_sensitive
        self._current_directory = current_directory
        self._is_directory = is_directory
        self._bookmarks: dict[str, str] = {}

    @classmethod
    def for_profile(
        cls,
        profile_dir: Path | None = None,
        **kwargs,
    ) -> BookmarkStore:
        """Build a store backed by ``.folderBM.json`` in the profile directory."""
        directory = profile_dir if profile_dir is not None else platform.profile_directory()
        return cls(BookmarkFileStore.in_directory(directory), **kwargs)

    @property
    def path(self) -> Path:
        """Location of the persistence file."""
        return self.file_store.path

    def __len__(self) -> int:
        return len(self._bookmarks)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._key_for(name) is not None

    # -- helpers --------------------------------------------------------------

    def _fold(self, text: str) -> str:
        return text if self.case_sensitive else text.casefold()

    def _key_for(self, name: str) -> str | None:
        """Return the stored key matching *name* under the case rule."""
        if name in self._bookmarks:
            return name
        if self.case_sensitive:
            return None
        folded = name.casefold()
        for key in self._bookmarks:
            if key.casefold() == folded:
                return key
        return None

    def _resolve_directory(self, path: str | None) -> str:
        if path is None or not str(path).strip():
            target = self._current_directory()
        else:
            target = platform.normalize_path(str(path), base=self._current_directory())
        if not self._is_directory(target):
            if os.path.exists(target):
                raise InvalidPathError(target, "not a directory")
            raise InvalidPathError(target, "does not exist")
        return target

    def _check_unique_folded(self, data: dict[str, str]) -> None:
        seen: dict[str, str] = {}
        for name in sorted(data):
            other = seen.setdefault(name.casefold(), name)
            if other != name:
                raise CorruptStoreError(
                    str(self.path), f"names {other!r} and {name!r} differ only in case"
                )

    def _same_path(self, a: str, b: str) -> bool:
        a, b = os.path.normpath(a), os.path.normpath(b)
        if self.case_sensitive:
            return a == b
        return os.path.normcase(a).casefold() == os.path.normcase(b).casefold()

    # -- commands -------------------------------------------------------------

    def set(
        self,
        name: str,
        path: str | None = None,
        *,
        confirm: Confirm | None = None,
        dry_run: bool = False,
    ) -> ChangeResult:
        """Point *name* at *path* (default: the current directory) and save.

        Raises ``InvalidNameError`` / ``InvalidPathError`` before anything is
        touched.  When the save fails the in-memory change is kept and
        ``PersistenceFailedError`` is raised.
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidNameError(name)
        name = name.strip()
        target = self._resolve_directory(path)

        existing = self._key_for(name)
        if existing is not None and existing == name and self._bookmarks[existing] == target:
            return ChangeResult(name, UNCHANGED, target)

        status = ADDED if existing is None else UPDATED
        verb = "Create" if status == ADDED else "Update"
        description = f"{verb} bookmark '{name}' -> {target}"
        if dry_run:
            logger.debug("dry run: %s", description)
            return ChangeResult(name, DRY_RUN, target)
        if not (confirm or always_proceed)(description):
            logger.debug("declined: %s", description)
            return ChangeResult(name, SKIPPED, target)

        if existing is not None and existing != name:
            del self._bookmarks[existing]
        self._bookmarks[name] = target
        logger.info("%s bookmark %s -> %s", status, name, target)
        self.save()
        return ChangeResult(name, status, target)

    def use(self, name: str) -> str:
        """Return the directory stored under *name*.

        The path is not re-validated; changing into it is the caller's job.
        """
        key = self._key_for(name) if isinstance(name, str) else None
        if key is None:
            raise NotFoundError(name)
        return self._bookmarks[key]

    def remove(
        self,
        names: str | Iterable[str],
        *,
        confirm: Confirm | None = None,
        dry_run: bool = False,
    ) -> list[ChangeResult]:
        """Remove each of *names*, reporting per name, then save once.

        Unknown names produce a ``not-found`` result carrying a
        ``NotFoundError`` and do not stop the rest of the batch.
        """
        if isinstance(names, str):
            names = [names]
        decide = confirm or always_proceed
        results: list[ChangeResult] = []
        removed = 0
        for name in names:
            key = self._key_for(name)
            if key is None:
                results.append(ChangeResult(name, NOT_FOUND, error=NotFoundError(name)))
                continue
            path = self._bookmarks[key]
            description = f"Remove bookmark '{key}' -> {path}"
            if dry_run:
                results.append(ChangeResult(key, DRY_RUN, path))
                continue
            if not decide(description):
                logger.debug("declined: %s", description)
                results.append(ChangeResult(key, SKIPPED, path))
                continue
            del self._bookmarks[key]
            removed += 1
            logger.info("removed bookmark %s", key)
            results.append(ChangeResult(key, REMOVED, path))

        if removed:
            try:
                self.save()
            except PersistenceFailedError as exc:
                exc.results = results
                raise
        return results

    def list(self, pattern: str | None = None) -> Iterator[Bookmark]:
        """Yield bookmarks ordered by name, optionally filtered by a glob."""
        folded = self._fold(pattern) if pattern else None
        for name, path in sorted(self._bookmarks.items()):
            if folded is not None and not fnmatch.fnmatchcase(self._fold(name), folded):
                continue
            yield Bookmark(name, path)

    def names(self) -> list[str]:
        """Sorted bookmark names (for completion and help layers)."""
        return sorted(self._bookmarks)

    def test(self, path: str | None = None) -> bool:
        """True when *path* (default: current directory) is some bookmark's target."""
        target = self._resolve_directory(path)
        return any(self._same_path(target, value) for value in self._bookmarks.values())

    def stale(self) -> list[Bookmark]:
        """Bookmarks whose directory no longer exists."""
        return [bm for bm in self.list() if not self._is_directory(bm.path)]

    # -- persistence ----------------------------------------------------------

    def save(self) -> None:
        """Write the complete mapping to the bookmark file."""
        self.file_store.save(self._bookmarks)

    def load(self) -> bool:
        """Replace the mapping with the saved snapshot.

        Returns False (and leaves the store alone) when there is no file yet.
        A corrupt file raises ``CorruptStoreError`` without touching memory;
        with case-insensitive names, two entries differing only in case count
        as corrupt.
        """
        data = self.file_store.load()
        if data is None:
            logger.debug("no bookmark file at %s", self.path)
            return False
        if not self.case_sensitive:
            self._check_unique_folded(data)
        self._bookmarks = data
        logger.debug("loaded %d bookmark(s) from %s", len(data), self.path)
        return True
