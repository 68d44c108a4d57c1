"""Popup menu of ticket actions, shown where the card was clicked."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.events import Click
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Static


class MenuItem(Static):
    """One row in a ContextMenu. ``item_id`` is what the caller acts on."""

    DEFAULT_CSS = """
    MenuItem {
        width: 100%;
        padding: 0 1;
    }
    MenuItem.-highlighted {
        background: $accent;
        color: $text;
    }
    MenuItem.-disabled {
        color: $text-disabled;
    }
    """

    def __init__(self, label: str, item_id: str | None = None, disabled: bool = False) -> None:
        super().__init__(label, markup=False, classes="-disabled" if disabled else "")
        self.label = label
        self.item_id = item_id
        self.disabled = disabled


class MenuSeparator(Static):
    DEFAULT_CSS = """
    MenuSeparator {
        width: 100%;
        height: 1;
        border-bottom: solid $panel-lighten-1;
    }
    """


class ContextMenu(ModalScreen[MenuItem | None]):
    """Modal list of actions anchored at (x, y).

    The highlight only ever rests on enabled items. Enter or a click on an
    enabled item dismisses with that item; escape or a click outside the
    menu dismisses with None.
    """

    DEFAULT_CSS = """
    ContextMenu {
        background: transparent;
    }
    ContextMenu > #menu {
        height: auto;
        max-height: 80%;
        background: $panel;
        border: tall $accent;
    }
    """

    BINDINGS = [
        ("escape", "dismiss_menu", "Close"),
        ("up", "step(-1)", "Up"),
        ("down", "step(1)", "Down"),
        ("home", "jump(0)", "First"),
        ("end", "jump(-1)", "Last"),
        ("enter", "choose", "Choose"),
    ]

    highlighted: reactive[int] = reactive(-1)

    def __init__(self, entries: list[MenuItem | MenuSeparator], x: int, y: int) -> None:
        super().__init__()
        self._entries = entries
        self._anchor = (x, y)

    @property
    def items(self) -> list[MenuItem]:
        return [e for e in self._entries if isinstance(e, MenuItem)]

    @property
    def _choices(self) -> list[int]:
        """Indexes into ``items`` that can be highlighted."""
        return [i for i, item in enumerate(self.items) if not item.disabled]

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="menu"):
            yield from self._entries

    def on_mount(self) -> None:
        longest = max((len(item.label) for item in self.items), default=0)
        self.query_one("#menu").styles.width = longest + 4
        self.call_after_refresh(self._place)
        self.action_jump(0)

    def _place(self) -> None:
        menu = self.query_one("#menu")
        x, y = self._anchor
        x = max(0, min(x, self.app.size.width - menu.size.width))
        y = max(0, min(y, self.app.size.height - menu.size.height))
        menu.styles.offset = (x, y)

    def watch_highlighted(self, old: int, new: int) -> None:
        items = self.items
        for index, add in ((old, False), (new, True)):
            if 0 <= index < len(items):
                items[index].set_class(add, "-highlighted")

    def action_step(self, direction: int) -> None:
        choices = self._choices
        if self.highlighted not in choices:
            return
        pos = choices.index(self.highlighted) + direction
        if 0 <= pos < len(choices):
            self.highlighted = choices[pos]

    def action_jump(self, pos: int) -> None:
        choices = self._choices
        if choices:
            self.highlighted = choices[pos]

    def action_choose(self) -> None:
        if self.highlighted in self._choices:
            self.dismiss(self.items[self.highlighted])

    def action_dismiss_menu(self) -> None:
        self.dismiss(None)

    def on_click(self, event: Click) -> None:
        if not self.query_one("#menu").region.contains(event.screen_x, event.screen_y):
            self.dismiss(None)
            return
        for item in self.items:
            if item.region.contains(event.screen_x, event.screen_y):
                event.stop()
                if not item.disabled:
                    self.dismiss(item)
                return
