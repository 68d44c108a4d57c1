"""Board screen showing the three status columns."""

from __future__ import annotations

import asyncio
import logging

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.screen import Screen
from textual.widgets import Footer

from tickboard.coordinator import Coordinator, MoveIntent
from tickboard.errors import TicketError
from tickboard.interaction import ARROWS, DragMachine, DragResult, DragState, DropZone
from tickboard.models import COLUMN_ORDER, TicketStatus
from tickboard.permissions import can_mutate
from tickboard.ui.announcer import LiveRegion
from tickboard.ui.card import TicketCard
from tickboard.ui.column import ColumnWidget
from tickboard.ui.watcher import StoreWatcherMixin

logger = logging.getLogger(__name__)

LOAD_FAILED = "Failed to load tickets. Please try again."


class BoardScreen(StoreWatcherMixin, Screen):
    """Main board screen.

    Renders the coordinator's BoardStore and routes mouse and keyboard input
    through a DragMachine. Every move, whether dragged, keyed or picked
    from a menu, ends up as a coordinator call run as a task.
    """

    BINDINGS = [
        ("r", "refresh", "Refresh"),
        ("m", "context_menu", "Menu"),
        ("ctrl+@", "context_menu", "Context menu"),
    ]

    DEFAULT_CSS = """
    BoardScreen #columns {
        height: 1fr;
    }
    """

    def __init__(
        self,
        coordinator: Coordinator,
        username: str | None = None,
        drag_threshold: int = 2,
        keyboard_step: int = 26,
    ) -> None:
        self._init_watcher()
        super().__init__()
        self.coordinator = coordinator
        self.store = coordinator.store
        self.username = username
        self.mutations: set[asyncio.Task] = set()
        self.machine = DragMachine(
            columns=self._drop_zones,
            is_disabled=lambda ticket_id: not coordinator.can_interact(ticket_id),
            announce=self._announce,
            on_intent=self._on_intent,
            title_of=self._title_of,
            drag_threshold=drag_threshold,
            keyboard_step=keyboard_step,
        )

    def compose(self) -> ComposeResult:
        with Horizontal(id="columns"):
            for status in COLUMN_ORDER:
                yield ColumnWidget(status)
        yield LiveRegion(id="live-region")
        yield Footer()

    async def on_mount(self) -> None:
        self.store_watch(self.store, "board", self._on_board_changed)
        self.store_watch(self.store, "saving", self._on_saving_changed)
        await self._render_board()

    # -- store -> widgets --

    def _on_board_changed(self, store, key, old, new) -> None:
        self.call_later(self._render_board)

    def _on_saving_changed(self, store, key, old, new) -> None:
        self._refresh_card_states()

    def column(self, status: TicketStatus) -> ColumnWidget:
        return self.query_one(f"#column-{status.lower()}", ColumnWidget)

    def card(self, ticket_id: str) -> TicketCard | None:
        return next((c for c in self.query(TicketCard) if c.ticket_id == ticket_id), None)

    async def _render_board(self) -> None:
        """Make the columns match the current board."""
        focused = self.focused.ticket_id if isinstance(self.focused, TicketCard) else None
        first_render = not self.query(TicketCard) and self.store.board.total
        board = self.store.board
        for status, cards in board:
            await self.column(status).set_cards(cards)
        self._refresh_card_states()
        self._sync_drag_classes()
        target = self.card(focused) if focused else None
        if target is None and first_render:
            target = next(iter(self.query(TicketCard)), None)
        if target is not None and target.can_focus:
            target.focus()

    def _refresh_card_states(self) -> None:
        user = self.coordinator.user
        saving = self.store.saving
        for card in self.query(TicketCard):
            card.set_state(saving=card.ticket_id in saving, locked=not can_mutate(user, card.card))

    def _sync_drag_classes(self) -> None:
        machine = self.machine
        for column in self.query(ColumnWidget):
            column.set_class(machine.active and machine.hover == column.status, "-drop-target")
        for card in self.query(TicketCard):
            inert = not machine.is_focusable(card.ticket_id)
            card.set_class(machine.active and card.ticket_id == machine.ticket_id, "-grabbed")
            card.set_class(inert, "-inert")
            card.can_focus = not inert

    # -- DragMachine collaborators --

    def _drop_zones(self) -> list[DropZone]:
        return [DropZone(c.status, c.region) for c in self.query(ColumnWidget)]

    def _title_of(self, ticket_id: str) -> str:
        found = self.store.board.locate(ticket_id)
        return found[2].title if found else ticket_id

    def _announce(self, text: str) -> None:
        self.query_one(LiveRegion).announce(text)

    def _on_intent(self, intent: MoveIntent) -> None:
        self.run_mutation(self.coordinator.handle_intent(intent))

    def run_mutation(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self.mutations.add(task)
        task.add_done_callback(self.mutations.discard)
        return task

    # -- input --

    def pointer_moved(self, x: int, y: int) -> None:
        self.machine.pointer_move(x, y)
        self._sync_drag_classes()

    def pointer_released(self, x: int, y: int) -> DragResult | None:
        result = self.machine.pointer_up(x, y)
        self._sync_drag_classes()
        return result

    def on_key(self, event) -> None:
        card = self.focused if isinstance(self.focused, TicketCard) else None
        if self.machine.state is DragState.IDLE and event.key in ARROWS:
            if card is not None:
                event.stop()
                event.prevent_default()
                self._focus_neighbour(card, event.key)
            return
        focused = (card.ticket_id, card.status, *card.center) if card is not None else None
        result = self.machine.key(event.key, focused=focused)
        if result is not False:
            event.stop()
            event.prevent_default()
        self._sync_drag_classes()

    def _focus_neighbour(self, card: TicketCard, key: str) -> None:
        """Arrow-key navigation between cards while nothing is picked up."""
        dx, dy = ARROWS[key]
        statuses = list(COLUMN_ORDER)
        if dy:
            cards = self.column(card.status).cards
            index = cards.index(card) + dy
            if 0 <= index < len(cards):
                cards[index].focus()
            return
        index = statuses.index(card.status) + dx
        while 0 <= index < len(statuses):
            cards = self.column(statuses[index]).cards
            if cards:
                row = self.column(card.status).cards.index(card)
                cards[min(row, len(cards) - 1)].focus()
                return
            index += dx

    # -- menu --

    def on_ticket_card_action_requested(self, event: TicketCard.ActionRequested) -> None:
        event.stop()
        ticket_id = event.card.ticket_id
        match event.action:
            case "move":
                self.run_mutation(self.coordinator.move_ticket(ticket_id, TicketStatus(event.value)))
            case "assign":
                name = self.username if event.value is not None else None
                self.run_mutation(self.coordinator.assign_ticket(ticket_id, event.value, name))

    def action_context_menu(self) -> None:
        if isinstance(self.focused, TicketCard):
            self.focused.show_context_menu()

    def action_refresh(self) -> None:
        self.run_mutation(self.refresh_board())

    async def refresh_board(self) -> None:
        try:
            await self.coordinator.refresh()
        except TicketError as exc:
            logger.warning("refresh failed: %s", exc)
            self.notify(LOAD_FAILED, severity="error")
