"""Status column widget."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Rule, Static

from tickboard.models import TicketStatus, TicketSummary
from tickboard.ui.card import TicketCard


class ColumnWidget(Vertical):
    """One board column: a header with the ticket count, then the cards."""

    DEFAULT_CSS = """
    ColumnWidget {
        width: 26;
        height: 100%;
        overflow-y: auto;
        padding: 0 1;
        border-right: tall $surface-lighten-1;
    }
    ColumnWidget.-drop-target {
        background: $primary 15%;
        border: round $accent;
    }
    ColumnWidget > .column-title {
        width: 100%;
        text-align: center;
        text-style: bold;
    }
    ColumnWidget > Rule.-horizontal {
        margin: 0;
    }
    """

    def __init__(self, status: TicketStatus) -> None:
        super().__init__(id=f"column-{status.lower()}")
        self.status = status

    def compose(self) -> ComposeResult:
        yield Static(self._title(0), classes="column-title")
        yield Rule()

    def _title(self, count: int) -> str:
        return f"{self.status.label} ({count})"

    @property
    def cards(self) -> list[TicketCard]:
        return list(self.query(TicketCard))

    async def set_cards(self, cards: tuple[TicketSummary, ...]) -> None:
        """Show exactly these cards, in order, reusing widgets whose ticket is unchanged."""
        self.query_one(".column-title", Static).update(self._title(len(cards)))
        current = self.cards
        if [w.ticket_id for w in current] == [c.id for c in cards]:
            for widget, card in zip(current, cards):
                if widget.card != card:
                    widget.show(card, self.status)
            return
        await self.query(TicketCard).remove()
        await self.mount_all([TicketCard(card, self.status) for card in cards])
