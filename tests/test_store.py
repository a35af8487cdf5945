"""Tests for folderbm.store.BookmarkStore.

Covers the set/use/remove/list/test commands, the confirmation and dry-run
gate, write-through persistence, and load/save semantics.  Collaborators
are injected so nothing depends on the real working directory.
"""

from __future__ import annotations

import json
import os
from unittest.mock import patch

import pytest

from folderbm.errors import (
    CorruptStoreError,
    InvalidNameError,
    InvalidPathError,
    NotFoundError,
    PersistenceFailedError,
)
from folderbm.persistence import BookmarkFileStore
from folderbm.store import (
    ADDED,
    DRY_RUN,
    NOT_FOUND,
    REMOVED,
    SKIPPED,
    UNCHANGED,
    UPDATED,
    Bookmark,
    BookmarkStore,
    always_proceed,
)


def _saved(store: BookmarkStore) -> dict[str, str]:
    return json.loads(store.path.read_text(encoding="utf-8"))["bookmarks"]


# -- set ---------------------------------------------------------------------


class TestSet:
    def test_adds_and_persists(self, store, dirs):
        result = store.set("alpha", dirs["alpha"])
        assert result.status == ADDED
        assert result.changed is True
        assert store.use("alpha") == dirs["alpha"]
        assert _saved(store) == {"alpha": dirs["alpha"]}

    def test_defaults_to_current_directory(self, store, dirs):
        store.set("here")
        assert store.use("here") == dirs["cwd"]

    def test_relative_path_resolved_against_current_directory(self, store, dirs, tmp_path):
        os.mkdir(os.path.join(dirs["cwd"], "sub"))
        store.set("sub", "sub")
        assert store.use("sub") == os.path.join(dirs["cwd"], "sub")

    def test_dotdot_is_normalised(self, store, dirs):
        store.set("up", os.path.join(dirs["alpha"], "..", "mike"))
        assert store.use("up") == dirs["mike"]

    def test_overwrite_existing_name(self, store, dirs):
        store.set("x", dirs["alpha"])
        result = store.set("x", dirs["mike"])
        assert result.status == UPDATED
        assert store.use("x") == dirs["mike"]
        assert len(store) == 1

    def test_same_arguments_twice_is_idempotent(self, store, dirs):
        store.set("x", dirs["alpha"])
        snapshot = store.path.read_text()
        with patch.object(store.file_store, "save", wraps=store.file_store.save) as save:
            result = store.set("x", dirs["alpha"])
        assert result.status == UNCHANGED
        assert save.call_count == 0
        assert list(store.list()) == [Bookmark("x", dirs["alpha"])]
        assert store.path.read_text() == snapshot

    def test_regular_file_rejected(self, store, dirs):
        store.set("keep", dirs["alpha"])
        snapshot = store.path.read_text()
        with pytest.raises(InvalidPathError) as exc_info:
            store.set("x", dirs["file"])
        assert exc_info.value.path == dirs["file"]
        assert "not a directory" in str(exc_info.value)
        assert "x" not in store
        assert store.path.read_text() == snapshot

    def test_missing_path_rejected_without_writing(self, store, dirs):
        missing = os.path.join(dirs["alpha"], "nope")
        with pytest.raises(InvalidPathError) as exc_info:
            store.set("x", missing)
        assert "does not exist" in str(exc_info.value)
        assert len(store) == 0
        assert not store.path.exists()

    @pytest.mark.parametrize("name", ["", "   ", "\t"])
    def test_blank_name_rejected(self, store, dirs, name):
        with pytest.raises(InvalidNameError):
            store.set(name, dirs["alpha"])
        assert len(store) == 0

    def test_name_is_stripped(self, store, dirs):
        store.set("  alpha  ", dirs["alpha"])
        assert store.names() == ["alpha"]

    def test_dry_run_changes_nothing(self, store, dirs):
        result = store.set("x", dirs["alpha"], dry_run=True)
        assert result.status == DRY_RUN
        assert result.path == dirs["alpha"]
        assert "x" not in store
        assert not store.path.exists()

    def test_dry_run_still_validates(self, store, dirs):
        with pytest.raises(InvalidPathError):
            store.set("x", dirs["file"], dry_run=True)

    def test_declined_confirmation_skips(self, store, dirs):
        asked: list[str] = []

        def decline(description: str) -> bool:
            asked.append(description)
            return False

        result = store.set("x", dirs["alpha"], confirm=decline)
        assert result.status == SKIPPED
        assert "x" not in store
        assert not store.path.exists()
        assert len(asked) == 1
        assert "x" in asked[0] and dirs["alpha"] in asked[0]

    def test_accepted_confirmation_applies(self, store, dirs):
        result = store.set("x", dirs["alpha"], confirm=lambda _d: True)
        assert result.status == ADDED
        assert store.use("x") == dirs["alpha"]

    def test_save_failure_keeps_memory_change(self, store, dirs):
        failure = PersistenceFailedError(str(store.path), "disk full")
        with patch.object(store.file_store, "save", side_effect=failure):
            with pytest.raises(PersistenceFailedError):
                store.set("x", dirs["alpha"])
        # No rollback: memory is ahead of disk until the next save
        assert store.use("x") == dirs["alpha"]
        assert not store.path.exists()
        store.save()
        assert _saved(store) == {"x": dirs["alpha"]}


# -- use ---------------------------------------------------------------------


class TestUse:
    def test_returns_path(self, store, dirs):
        store.set("p", dirs["project"])
        assert store.use("p") == dirs["project"]

    def test_unknown_name(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            store.use("ghost")
        assert exc_info.value.name == "ghost"
        assert "ghost" in str(exc_info.value)

    def test_does_not_persist(self, store, dirs):
        store.set("p", dirs["project"])
        with patch.object(store.file_store, "save") as save:
            store.use("p")
        save.assert_not_called()

    def test_stale_path_returned_as_is(self, store, dirs, tmp_path):
        gone = tmp_path / "gone"
        gone.mkdir()
        store.set("gone", str(gone))
        gone.rmdir()
        assert store.use("gone") == str(gone)


# -- remove ------------------------------------------------------------------


class TestRemove:
    @pytest.fixture
    def filled(self, store, dirs):
        for name in ("a", "b", "c"):
            store.set(name, dirs["alpha"])
        return store

    def test_single_name(self, filled):
        results = filled.remove("a")
        assert [(r.name, r.status) for r in results] == [("a", REMOVED)]
        assert filled.names() == ["b", "c"]
        assert sorted(_saved(filled)) == ["b", "c"]

    def test_batch_isolates_missing_names(self, filled):
        with patch.object(filled.file_store, "save", wraps=filled.file_store.save) as save:
            results = filled.remove(["a", "ghost", "b"])
        assert [(r.name, r.status) for r in results] == [
            ("a", REMOVED),
            ("ghost", NOT_FOUND),
            ("b", REMOVED),
        ]
        assert isinstance(results[1].error, NotFoundError)
        assert results[0].error is None
        assert filled.names() == ["c"]
        assert save.call_count == 1
        assert _saved(filled) == {"c": filled.use("c")}

    def test_absent_name_is_noop_that_reports(self, filled):
        before = filled.path.read_text()
        with patch.object(filled.file_store, "save") as save:
            results = filled.remove(["ghost"])
        assert results[0].status == NOT_FOUND
        assert results[0].error.name == "ghost"
        assert filled.names() == ["a", "b", "c"]
        save.assert_not_called()
        assert filled.path.read_text() == before

    def test_remove_everything_listed(self, filled):
        filled.remove([bm.name for bm in filled.list()])
        assert len(filled) == 0
        assert _saved(filled) == {}

    def test_confirm_is_asked_per_name(self, filled):
        asked: list[str] = []

        def only_b(description: str) -> bool:
            asked.append(description)
            return "'b'" in description

        results = filled.remove(["a", "b", "c"], confirm=only_b)
        assert [r.status for r in results] == [SKIPPED, REMOVED, SKIPPED]
        assert len(asked) == 3
        assert filled.names() == ["a", "c"]

    def test_all_declined_does_not_persist(self, filled):
        with patch.object(filled.file_store, "save") as save:
            results = filled.remove(["a", "b"], confirm=lambda _d: False)
        assert {r.status for r in results} == {SKIPPED}
        save.assert_not_called()

    def test_dry_run(self, filled):
        with patch.object(filled.file_store, "save") as save:
            results = filled.remove(["a", "ghost"], dry_run=True)
        assert [r.status for r in results] == [DRY_RUN, NOT_FOUND]
        assert filled.names() == ["a", "b", "c"]
        save.assert_not_called()

    def test_save_failure_carries_results(self, filled):
        failure = PersistenceFailedError(str(filled.path), "read-only")
        with patch.object(filled.file_store, "save", side_effect=failure):
            with pytest.raises(PersistenceFailedError) as exc_info:
                filled.remove(["a", "ghost"])
        assert [r.status for r in exc_info.value.results] == [REMOVED, NOT_FOUND]
        assert "a" not in filled

    def test_accepts_generator(self, filled):
        results = filled.remove(name for name in ("a", "b"))
        assert [r.status for r in results] == [REMOVED, REMOVED]


# -- list / names ------------------------------------------------------------


class TestList:
    def test_sorted_by_name(self, store, dirs):
        for name in ("zeta", "alpha", "mike"):
            store.set(name, dirs[name])
        assert [bm.name for bm in store.list()] == ["alpha", "mike", "zeta"]

    def test_remove_later_name_while_iterating(self, store, dirs):
        for name in ("alpha", "mike", "zeta"):
            store.set(name, dirs[name])
        seen = []
        for bm in store.list():
            seen.append(bm)
            if bm.name == "alpha":
                store.remove(["mike"])
        assert [bm.name for bm in seen] == ["alpha", "mike", "zeta"]
        assert seen[1] == Bookmark("mike", dirs["mike"])
        assert store.names() == ["alpha", "zeta"]

    def test_load_while_iterating(self, store, dirs):
        store.set("alpha", dirs["alpha"])
        store.set("zeta", dirs["zeta"])
        listing = store.list()
        assert next(listing).name == "alpha"
        store.file_store.save({"other": dirs["mike"]})
        store.load()
        assert next(listing) == Bookmark("zeta", dirs["zeta"])

    def test_is_lazy_iterator(self, store, dirs):
        store.set("alpha", dirs["alpha"])
        listing = store.list()
        assert iter(listing) is listing
        assert next(listing) == Bookmark("alpha", dirs["alpha"])

    def test_empty(self, store):
        assert list(store.list()) == []

    def test_glob_filter(self, store, dirs):
        for name in ("work-api", "work-web", "home"):
            store.set(name, dirs["alpha"])
        assert [bm.name for bm in store.list("work*")] == ["work-api", "work-web"]
        assert [bm.name for bm in store.list("?ome")] == ["home"]

    def test_glob_filter_respects_case_rule(self, file_store, dirs):
        sensitive = BookmarkStore(file_store)
        sensitive.set("Work", dirs["alpha"])
        assert list(sensitive.list("work")) == []
        insensitive = BookmarkStore(file_store, case_sensitive=False)
        insensitive.load()
        assert [bm.name for bm in insensitive.list("work")] == ["Work"]

    def test_does_not_persist(self, store, dirs):
        store.set("alpha", dirs["alpha"])
        with patch.object(store.file_store, "save") as save:
            list(store.list())
            store.names()
        save.assert_not_called()

    def test_names(self, store, dirs):
        store.set("b", dirs["alpha"])
        store.set("a", dirs["alpha"])
        assert store.names() == ["a", "b"]

    def test_stale(self, store, dirs, tmp_path):
        gone = tmp_path / "gone"
        gone.mkdir()
        store.set("gone", str(gone))
        store.set("alpha", dirs["alpha"])
        gone.rmdir()
        assert store.stale() == [Bookmark("gone", str(gone))]


# -- test --------------------------------------------------------------------


class TestMembership:
    def test_true_regardless_of_name(self, store, dirs):
        store.set("whatever", dirs["project"])
        assert store.test(dirs["project"]) is True

    def test_false_when_not_bookmarked(self, store, dirs):
        store.set("whatever", dirs["project"])
        assert store.test(dirs["alpha"]) is False

    def test_defaults_to_current_directory(self, store, dirs):
        assert store.test() is False
        store.set("here")
        assert store.test() is True

    def test_trailing_separator_ignored(self, store, dirs):
        store.set("p", dirs["project"])
        assert store.test(dirs["project"] + os.sep) is True

    def test_invalid_path(self, store, dirs):
        with pytest.raises(InvalidPathError):
            store.test(dirs["file"])

    def test_does_not_persist(self, store, dirs):
        with patch.object(store.file_store, "save") as save:
            store.test(dirs["alpha"])
        save.assert_not_called()


# -- case rules --------------------------------------------------------------


class TestCaseInsensitive:
    @pytest.fixture
    def ci_store(self, file_store, dirs):
        return BookmarkStore(
            file_store, current_directory=lambda: dirs["cwd"], case_sensitive=False
        )

    def test_lookup_ignores_case(self, ci_store, dirs):
        ci_store.set("Work", dirs["alpha"])
        assert ci_store.use("work") == dirs["alpha"]
        assert "WORK" in ci_store

    def test_set_replaces_spelling(self, ci_store, dirs):
        ci_store.set("Work", dirs["alpha"])
        result = ci_store.set("work", dirs["mike"])
        assert result.status == UPDATED
        assert ci_store.names() == ["work"]
        assert ci_store.use("WORK") == dirs["mike"]

    def test_remove_ignores_case(self, ci_store, dirs):
        ci_store.set("Work", dirs["alpha"])
        results = ci_store.remove(["WORK"])
        assert results[0].name == "Work"
        assert results[0].status == REMOVED

    def test_load_rejects_names_differing_only_in_case(self, ci_store, file_store, dirs):
        ci_store.set("keep", dirs["zeta"])
        file_store.save({"Work": dirs["alpha"], "work": dirs["mike"]})
        with pytest.raises(CorruptStoreError) as exc_info:
            ci_store.load()
        assert "differ only in case" in str(exc_info.value)
        assert ci_store.names() == ["keep"]

    def test_case_sensitive_load_keeps_both(self, store, file_store, dirs):
        file_store.save({"Work": dirs["alpha"], "work": dirs["mike"]})
        assert store.load() is True
        assert store.names() == ["Work", "work"]

    def test_default_is_case_sensitive(self, store, dirs):
        store.set("Work", dirs["alpha"])
        store.set("work", dirs["mike"])
        assert store.names() == ["Work", "work"]
        with pytest.raises(NotFoundError):
            store.use("WORK")


# -- save / load -------------------------------------------------------------


class TestSaveLoad:
    def test_round_trip(self, store, file_store, dirs):
        for name in ("alpha", "mike", "zeta", "project"):
            store.set(name, dirs[name])
        store.save()
        fresh = BookmarkStore(file_store)
        assert fresh.load() is True
        assert list(fresh.list()) == list(store.list())

    def test_load_missing_file_keeps_store(self, store, dirs):
        assert store.load() is False
        assert len(store) == 0
        store._bookmarks["mem"] = dirs["alpha"]
        assert store.load() is False
        assert store.use("mem") == dirs["alpha"]

    def test_load_replaces_not_merges(self, store, file_store, dirs):
        file_store.save({"disk": dirs["alpha"]})
        store._bookmarks["unsaved"] = dirs["mike"]
        store.load()
        assert store.names() == ["disk"]

    def test_corrupt_file_leaves_memory_unchanged(self, store, dirs):
        store.set("keep", dirs["alpha"])
        store.path.write_text("{not json")
        with pytest.raises(CorruptStoreError) as exc_info:
            store.load()
        assert exc_info.value.path == str(store.path)
        assert store.names() == ["keep"]

    def test_save_does_not_mutate_memory(self, store, dirs):
        store.set("keep", dirs["alpha"])
        failure = PersistenceFailedError(str(store.path), "boom")
        with patch.object(store.file_store, "save", side_effect=failure):
            with pytest.raises(PersistenceFailedError):
                store.save()
        assert store.names() == ["keep"]

    def test_for_profile(self, tmp_path):
        store = BookmarkStore.for_profile(tmp_path)
        assert store.path == tmp_path / ".folderBM.json"

    def test_for_profile_uses_env(self, isolated_home):
        store = BookmarkStore.for_profile()
        assert store.path == isolated_home / ".folderBM.json"


def test_always_proceed():
    assert always_proceed("anything") is True


def test_injected_is_directory_is_used(file_store):
    seen: list[str] = []

    def fake_is_dir(path: str) -> bool:
        seen.append(path)
        return True

    store = BookmarkStore(
        file_store, current_directory=lambda: "/virtual/cwd", is_directory=fake_is_dir
    )
    store.set("v", "/virtual/target")
    assert seen == ["/virtual/target"]
    assert store.use("v") == "/virtual/target"


def test_undecodable_directory_name_is_saved(file_store):
    # os.fsdecode() of a non-UTF-8 directory name on POSIX
    odd = "/virtual/bad\udcffdir"
    store = BookmarkStore(
        file_store, current_directory=lambda: "/virtual", is_directory=lambda p: True
    )
    assert store.set("odd", odd).status == ADDED
    assert [p.name for p in file_store.path.parent.iterdir()] == [".folderBM.json"]

    reloaded = BookmarkStore(file_store, is_directory=lambda p: True)
    assert reloaded.load() is True
    assert reloaded.use("odd") == odd
