"""Entry point for the folderbm CLI.

Each invocation is one session: preferences are read, the bookmark file is
imported, one command runs, and mutating commands write the file back.
A shell wrapper turns ``folderbm use NAME`` into a ``cd``, e.g.::

    fcd() { cd "$(folderbm use "$1")"; }
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

from . import __version__
from .errors import BookmarkError, CorruptStoreError, PersistenceFailedError
from .log import logger, setup_logging
from .platform import PLATFORM, abbreviate_home, shell_name
from .preferences import (
    KNOWN_KEYS,
    Preferences,
    load_preferences,
    parse_bool,
    save_preference,
)
from .store import (
    ADDED,
    DRY_RUN,
    NOT_FOUND,
    REMOVED,
    SKIPPED,
    UNCHANGED,
    BookmarkStore,
    ChangeResult,
    always_proceed,
)

console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, soft_wrap=True)

EXIT_OK = 0
EXIT_FALSE = 1


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _ask(description: str) -> bool:
    """Interactive confirmation gate."""
    return Confirm.ask(f"{escape(description)}?", default=False, console=err_console)


def _confirm_for(args: argparse.Namespace, prefs: Preferences):
    if getattr(args, "yes", False):
        return always_proceed
    if getattr(args, "confirm", False) or prefs.prompts.confirm:
        return _ask
    return always_proceed


def _open_store(prefs: Preferences) -> BookmarkStore:
    return BookmarkStore.for_profile(case_sensitive=prefs.names.case_sensitive)


def _error(message: str) -> None:
    err_console.print(f"[bold red]error:[/bold red] {escape(message)}")


def _report(result: ChangeResult) -> None:
    """Print one line describing a ChangeResult."""
    name = escape(result.name)
    path = escape(abbreviate_home(result.path)) if result.path else ""
    if result.status == ADDED:
        console.print(f"[green]Added[/green] {name} -> {path}")
    elif result.status == REMOVED:
        console.print(f"[green]Removed[/green] {name} ({path})")
    elif result.status == UNCHANGED:
        console.print(f"{name} already points to {path}")
    elif result.status == DRY_RUN:
        console.print(f"[yellow]Would change[/yellow] {name} -> {path}")
    elif result.status == SKIPPED:
        console.print(f"[dim]Skipped {name}[/dim]")
    elif result.status == NOT_FOUND:
        _error(str(result.error))
    else:
        console.print(f"[green]Updated[/green] {name} -> {path}")


def _read_names(raw: list[str]) -> list[str]:
    """Expand ``-`` into names read from stdin, one per line."""
    names: list[str] = []
    for item in raw:
        if item == "-":
            names.extend(line.strip() for line in sys.stdin if line.strip())
        else:
            names.append(item)
    return names


def _batch_exit_code(results: list[ChangeResult]) -> int:
    for result in results:
        if result.status == NOT_FOUND and result.error is not None:
            return result.error.exit_code
    return EXIT_OK


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_set(store: BookmarkStore, args: argparse.Namespace, prefs: Preferences) -> int:
    result = store.set(
        args.name,
        args.path,
        confirm=_confirm_for(args, prefs),
        dry_run=args.dry_run,
    )
    _report(result)
    return EXIT_OK


def _cmd_use(store: BookmarkStore, args: argparse.Namespace, prefs: Preferences) -> int:
    print(store.use(args.name))
    return EXIT_OK


def _cmd_remove(store: BookmarkStore, args: argparse.Namespace, prefs: Preferences) -> int:
    names = _read_names(args.names)
    if not names:
        _error("no bookmark names given")
        return 2
    try:
        results = store.remove(
            names, confirm=_confirm_for(args, prefs), dry_run=args.dry_run
        )
    except PersistenceFailedError as exc:
        for result in exc.results:
            _report(result)
        raise
    for result in results:
        _report(result)
    return _batch_exit_code(results)


def _cmd_prune(store: BookmarkStore, args: argparse.Namespace, prefs: Preferences) -> int:
    stale = [bm.name for bm in store.stale()]
    if not stale:
        console.print("No stale bookmarks.")
        return EXIT_OK
    try:
        results = store.remove(
            stale, confirm=_confirm_for(args, prefs), dry_run=args.dry_run
        )
    except PersistenceFailedError as exc:
        for result in exc.results:
            _report(result)
        raise
    for result in results:
        _report(result)
    return _batch_exit_code(results)


def _cmd_list(store: BookmarkStore, args: argparse.Namespace, prefs: Preferences) -> int:
    bookmarks = store.stale() if args.stale else list(store.list(args.pattern))
    if args.stale and args.pattern:
        keep = {bm.name for bm in store.list(args.pattern)}
        bookmarks = [bm for bm in bookmarks if bm.name in keep]

    if args.names or args.paths:
        for bm in bookmarks:
            print(bm.name if args.names else bm.path)
        return EXIT_OK

    if not bookmarks:
        console.print("No bookmarks." if not len(store) else "No matching bookmarks.")
        return EXIT_OK

    stale = {bm.name for bm in store.stale()} if prefs.display.show_stale else set()
    table = Table(box=None, padding=(0, 2), show_edge=False)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Path", overflow="fold")
    if stale:
        table.add_column("", no_wrap=True)
    for bm in bookmarks:
        row = [escape(bm.name), escape(abbreviate_home(bm.path))]
        if stale:
            row.append("[red]missing[/red]" if bm.name in stale else "")
        table.add_row(*row)
    console.print(table)
    return EXIT_OK


def _cmd_test(store: BookmarkStore, args: argparse.Namespace, prefs: Preferences) -> int:
    found = store.test(args.path)
    print("True" if found else "False")
    return EXIT_OK if found else EXIT_FALSE


def _cmd_export(store: BookmarkStore, args: argparse.Namespace, prefs: Preferences) -> int:
    store.save()
    console.print(f"Saved {len(store)} bookmark(s) to {escape(str(store.path))}")
    return EXIT_OK


def _cmd_import(store: BookmarkStore, args: argparse.Namespace, prefs: Preferences) -> int:
    if store.load():
        console.print(f"Loaded {len(store)} bookmark(s) from {escape(str(store.path))}")
    else:
        console.print(f"No bookmark file at {escape(str(store.path))}")
    return EXIT_OK


def _cmd_pick(store: BookmarkStore, args: argparse.Namespace, prefs: Preferences) -> int:
    if not len(store):
        _error("no bookmarks to pick from")
        return EXIT_FALSE
    from .picker import pick_bookmark

    path = pick_bookmark(store, show_stale=prefs.display.show_stale)
    if path is None:
        return EXIT_FALSE
    print(path)
    return EXIT_OK


def _cmd_config(args: argparse.Namespace, prefs: Preferences) -> int:
    if not args.key:
        for section, key in KNOWN_KEYS:
            value = getattr(getattr(prefs, section), key)
            print(f"{section}.{key} = {'true' if value else 'false'}")
        return EXIT_OK

    section, _, key = args.key.partition(".")
    if (section, key) not in KNOWN_KEYS:
        _error(f"unknown preference '{args.key}'")
        return 2
    if args.value is None:
        value = getattr(getattr(prefs, section), key)
        print("true" if value else "false")
        return EXIT_OK
    try:
        value = parse_bool(args.value)
    except ValueError as exc:
        _error(str(exc))
        return 2
    try:
        save_preference(section, key, value)
    except OSError as exc:
        _error(f"cannot write preferences: {exc}")
        return PersistenceFailedError.exit_code
    console.print(f"{section}.{key} = {'true' if value else 'false'}")
    return EXIT_OK


def _run_doctor(prefs: Preferences) -> int:
    """Print a health report for the bookmark file and preferences."""
    from . import preferences

    store = _open_store(prefs)
    print("folderbm -- Doctor\n")
    print(f"  Python:       {sys.executable} ({sys.version.split()[0]})")
    print(f"  Platform:     {PLATFORM} ({shell_name()})")
    print(f"  Preferences:  {preferences.PREFS_PATH}")
    print(f"  Bookmarks:    {store.path}")
    print()

    ok = True
    try:
        if store.load():
            print(f"  [ok] {len(store)} bookmark(s) loaded")
        else:
            print("  [--] no bookmark file yet")
    except BookmarkError as exc:
        print(f"  [!!] {exc}")
        ok = False

    stale = store.stale()
    if stale:
        print(f"  [!!] {len(stale)} stale bookmark(s):")
        for bm in stale:
            print(f"         {bm.name:20s}  {bm.path}")
        print("       Run 'folderbm prune' to remove them.")
    elif ok:
        print("  [ok] every bookmark points to an existing directory")

    print()
    print(f"  names.case_sensitive = {prefs.names.case_sensitive}")
    print(f"  prompts.confirm      = {prefs.prompts.confirm}")
    print(f"  display.show_stale   = {prefs.display.show_stale}")
    return EXIT_OK if ok else EXIT_FALSE


_COMMANDS = {
    "set": _cmd_set,
    "use": _cmd_use,
    "remove": _cmd_remove,
    "prune": _cmd_prune,
    "list": _cmd_list,
    "test": _cmd_test,
    "export": _cmd_export,
    "import": _cmd_import,
    "pick": _cmd_pick,
}


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _add_gate_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        "-n",
        action="store_true",
        help="Report what would change without changing anything",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--confirm",
        "-c",
        action="store_true",
        help="Ask before each change",
    )
    group.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Never ask, even when prompts.confirm is set",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="folderbm",
        description="Bookmark directories under short names",
    )
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=f"folderbm {__version__}",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log debug output to stderr",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write debug logs to this file",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    p = sub.add_parser("set", aliases=["create"], help="Bookmark a directory")
    p.add_argument("name", help="Bookmark name")
    p.add_argument("path", nargs="?", help="Directory (default: current directory)")
    _add_gate_flags(p)

    p = sub.add_parser("use", aliases=["goto"], help="Print a bookmarked path")
    p.add_argument("name", help="Bookmark name")

    p = sub.add_parser("remove", aliases=["rm"], help="Remove bookmarks")
    p.add_argument("names", nargs="+", help="Bookmark names ('-' reads names from stdin)")
    _add_gate_flags(p)

    p = sub.add_parser("prune", help="Remove bookmarks whose directory is gone")
    _add_gate_flags(p)

    p = sub.add_parser("list", aliases=["ls"], help="List bookmarks")
    p.add_argument("pattern", nargs="?", help="Glob filter on names, e.g. 'work*'")
    p.add_argument("--stale", action="store_true", help="Only bookmarks whose directory is gone")
    fmt = p.add_mutually_exclusive_group()
    fmt.add_argument("--names", action="store_true", help="Print bare names, one per line")
    fmt.add_argument("--paths", action="store_true", help="Print bare paths, one per line")

    p = sub.add_parser("test", help="Exit 0 if a directory is bookmarked")
    p.add_argument("path", nargs="?", help="Directory (default: current directory)")

    sub.add_parser("export", help="Write the bookmark file")
    sub.add_parser("import", help="Re-read the bookmark file")
    sub.add_parser("pick", help="Choose a bookmark interactively and print its path")

    p = sub.add_parser("config", help="Show or change preferences")
    p.add_argument("key", nargs="?", help="Preference key, e.g. prompts.confirm")
    p.add_argument("value", nargs="?", help="New value (true/false)")

    sub.add_parser("doctor", help="Check the bookmark file and preferences")
    return parser


_ALIASES = {"create": "set", "goto": "use", "rm": "remove", "ls": "list"}


def run(argv: list[str] | None = None) -> int:
    """Run one CLI session and return the process exit code."""
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, args.log_file)
    command = _ALIASES.get(args.command, args.command)
    prefs = load_preferences()

    if command == "config":
        return _cmd_config(args, prefs)
    if command == "doctor":
        return _run_doctor(prefs)

    try:
        store = _open_store(prefs)
        store.load()
        return _COMMANDS[command](store, args, prefs)
    except BookmarkError as exc:
        logger.debug("%s failed", command, exc_info=True)
        _error(str(exc))
        if isinstance(exc, CorruptStoreError):
            err_console.print("Fix or delete the file, then run 'folderbm import'.")
        return exc.exit_code
    except KeyboardInterrupt:
        return 130


def main() -> None:
    """Run folderbm."""
    # Paths from undecodable file names must reach the shell as the original bytes
    for stream in (sys.stdout, sys.stderr):
        reconfigure = getattr(stream, "reconfigure", None)
        if reconfigure is not None:
            reconfigure(errors="surrogateescape")
    sys.exit(run())


if __name__ == "__main__":
    main()
