"""Full-screen bookmark picker built on Textual."""

from __future__ import annotations

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Input, OptionList
from textual.widgets.option_list import Option

from .platform import abbreviate_home
from .store import Bookmark, BookmarkStore


class BookmarkPicker(App[str]):
    """Filterable list of bookmarks; exits with the chosen path (or None)."""

    TITLE = "folderbm"

    CSS = """
    #filter {
        dock: top;
        margin: 0 1;
    }
    #bookmark-list {
        height: 1fr;
        border: round $accent;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=True),
        Binding("down", "focus_list", "List", show=False),
    ]

    def __init__(self, store: BookmarkStore, show_stale: bool = True) -> None:
        super().__init__()
        self.store = store
        self.show_stale = show_stale
        self._stale = {bm.name for bm in store.stale()}
        self._visible: list[Bookmark] = []

    def compose(self) -> ComposeResult:
        yield Input(placeholder="Filter bookmarks...", id="filter")
        yield OptionList(id="bookmark-list")
        yield Footer()

    def on_mount(self) -> None:
        self._refresh_options("")
        self.query_one("#filter", Input).focus()

    def _refresh_options(self, text: str) -> None:
        needle = text.strip().casefold()
        self._visible = [
            bm
            for bm in self.store.list()
            if not needle or needle in bm.name.casefold() or needle in bm.path.casefold()
        ]
        option_list = self.query_one("#bookmark-list", OptionList)
        option_list.clear_options()
        for bm in self._visible:
            label = Text(f"{bm.name:<20} {abbreviate_home(bm.path)}")
            if self.show_stale and bm.name in self._stale:
                label.stylize("dim")
                label.append("  (missing)", style="red")
            option_list.add_option(Option(label, id=bm.name))
        if self._visible:
            option_list.highlighted = 0

    def on_input_changed(self, event: Input.Changed) -> None:
        self._refresh_options(event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        option_list = self.query_one("#bookmark-list", OptionList)
        index = option_list.highlighted
        if index is None or not self._visible:
            self.bell()
            return
        self.exit(self._visible[index].path)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.exit(self.store.use(event.option.id))

    def action_focus_list(self) -> None:
        self.query_one("#bookmark-list", OptionList).focus()

    def action_cancel(self) -> None:
        self.exit(None)


def pick_bookmark(store: BookmarkStore, show_stale: bool = True) -> str | None:
    """Run the picker and return the selected path."""
    return BookmarkPicker(store, show_stale=show_stale).run()
