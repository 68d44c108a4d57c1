"""Ticket card widget."""

from __future__ import annotations

from rich.text import Text
from textual.events import Click, MouseDown, MouseMove, MouseUp
from textual.message import Message
from textual.widgets import Static

from tickboard.interaction import DragResult
from tickboard.models import COLUMN_ORDER, TicketStatus, TicketSummary
from tickboard.ui.constants import (
    ICON_AI,
    ICON_LOCKED,
    ICON_MOVE_TO,
    ICON_PERSON,
    ICON_SAVING,
    ICON_TICKET,
    ICON_UNASSIGN,
    TYPE_ICONS,
)
from tickboard.ui.menu import ContextMenu, MenuItem, MenuSeparator


def card_text(card: TicketSummary, saving: bool = False, locked: bool = False) -> Text:
    """Build the card body: type line, title, assignee line."""
    header = Text.assemble(
        (f"{TYPE_ICONS.get(card.type, '')} {card.type.label}", "bold"),
        (f"  #{card.id}", "dim"),
    )
    if card.ai_enhanced:
        header.append(f" {ICON_AI}")
    if saving:
        header.append(f" {ICON_SAVING}")
    elif locked:
        header.append(f" {ICON_LOCKED}")
    assignee = f"{ICON_PERSON} {card.assignee_name}" if card.assignee_name else "Unassigned"
    return Text("\n").join([header, Text(card.title), Text(assignee, style="italic")])


class TicketCard(Static, can_focus=True):
    """A single ticket in a column.

    Pointer and keyboard input is handed to the screen's DragMachine; the
    card only renders and asks for menus.
    """

    class ActionRequested(Message):
        """Posted when the card's menu asks for a move or assignment."""

        def __init__(self, card: TicketCard, action: str, value: str | None) -> None:
            super().__init__()
            self.card = card
            self.action = action
            self.value = value

    DEFAULT_CSS = """
    TicketCard {
        width: 100%;
        height: auto;
        padding: 0 1;
        margin-bottom: 1;
        background: $surface;
    }
    TicketCard:focus {
        background: $primary;
    }
    TicketCard.-locked {
        color: $text-muted;
    }
    TicketCard.-saving {
        opacity: 0.6;
    }
    TicketCard.-grabbed {
        border: dashed $accent;
    }
    TicketCard.-inert {
        opacity: 0.5;
    }
    """

    def __init__(self, card: TicketSummary, status: TicketStatus) -> None:
        super().__init__()
        self.card = card
        self.status = status
        self.ticket_id = card.id
        self._saving = False
        self._locked = False

    def on_mount(self) -> None:
        self._render_card()

    def _render_card(self) -> None:
        self.update(card_text(self.card, saving=self._saving, locked=self._locked))
        self.set_class(self._saving, "-saving")
        self.set_class(self._locked, "-locked")

    def show(self, card: TicketSummary, status: TicketStatus) -> None:
        self.card = card
        self.status = status
        self._render_card()

    def set_state(self, saving: bool, locked: bool) -> None:
        if (saving, locked) != (self._saving, self._locked):
            self._saving = saving
            self._locked = locked
            self._render_card()

    @property
    def center(self) -> tuple[int, int]:
        region = self.region
        return region.x + region.width // 2, region.y + region.height // 2

    # -- pointer, forwarded to the DragMachine --

    def on_mouse_down(self, event: MouseDown) -> None:
        if event.button != 1:
            return
        event.stop()
        self.screen.machine.pointer_down(self.ticket_id, self.status, event.screen_x, event.screen_y)
        self.capture_mouse()

    def on_mouse_move(self, event: MouseMove) -> None:
        if self.app.mouse_captured is not self:
            return
        event.stop()
        self.screen.pointer_moved(event.screen_x, event.screen_y)

    def on_mouse_up(self, event: MouseUp) -> None:
        if self.app.mouse_captured is not self:
            return
        event.stop()
        self.release_mouse()
        if self.screen.pointer_released(event.screen_x, event.screen_y) is DragResult.CLICK:
            self.focus()

    def on_click(self, event: Click) -> None:
        if event.button == 3:
            event.stop()
            self.show_context_menu(event.screen_x, event.screen_y)

    # -- menu --

    def show_context_menu(self, x: int | None = None, y: int | None = None) -> None:
        if x is None or y is None:
            x, y = self.center
        user = self.screen.coordinator.user
        can_move = self.screen.coordinator.can_interact(self.ticket_id)
        items: list[MenuItem | MenuSeparator] = [
            MenuItem(f"{ICON_TICKET} {self.card.title}", disabled=True),
            MenuSeparator(),
        ]
        items += [
            MenuItem(f"{ICON_MOVE_TO} Move to {status.label}", f"move:{status}", disabled=not can_move or status == self.status)
            for status in COLUMN_ORDER
        ]
        items.append(MenuSeparator())
        mine = user is not None and self.card.assignee_id == user.id
        if self.card.assignee_id and (mine or (user is not None and user.is_admin)):
            items.append(MenuItem(f"{ICON_UNASSIGN} Unassign", "unassign"))
        if not mine:
            items.append(MenuItem(f"{ICON_PERSON} Assign to me", "assign-me", disabled=user is None))
        self.app.push_screen(ContextMenu(items, x, y), self._on_menu_closed)

    def _on_menu_closed(self, item: MenuItem | None) -> None:
        if item is None:
            return
        match item.item_id:
            case s if s and s.startswith("move:"):
                self.post_message(self.ActionRequested(self, "move", s[5:]))
            case "assign-me":
                self.post_message(self.ActionRequested(self, "assign", self.screen.coordinator.user.id))
            case "unassign":
                self.post_message(self.ActionRequested(self, "assign", None))
