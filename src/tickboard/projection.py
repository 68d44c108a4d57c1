"""Board projection: a flat ticket collection grouped into status columns."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, replace

from tickboard.models import COLUMN_ORDER, Ticket, TicketStatus, TicketSummary, TicketType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Board:
    """Immutable three-bucket view of all tickets.

    Every mutation helper returns a new Board; nothing edits a Board in place.
    """

    buckets: Mapping[TicketStatus, tuple[TicketSummary, ...]]

    def __getitem__(self, status: TicketStatus) -> tuple[TicketSummary, ...]:
        return self.buckets[status]

    def __iter__(self) -> Iterator[tuple[TicketStatus, tuple[TicketSummary, ...]]]:
        for status in COLUMN_ORDER:
            yield status, self.buckets[status]

    @property
    def total(self) -> int:
        return sum(len(cards) for cards in self.buckets.values())

    def ids(self) -> list[str]:
        return [card.id for _, cards in self for card in cards]

    def locate(self, ticket_id: str) -> tuple[TicketStatus, int, TicketSummary] | None:
        """Find a ticket's column, position and card."""
        for status, cards in self:
            for index, card in enumerate(cards):
                if card.id == ticket_id:
                    return status, index, card
        return None

    def moved(self, ticket_id: str, target: TicketStatus) -> Board:
        """Return a board with the ticket removed from its column and appended to target."""
        found = self.locate(ticket_id)
        if found is None:
            return self
        source, index, card = found
        if source == target:
            return self
        buckets = dict(self.buckets)
        cards = list(buckets[source])
        del cards[index]
        buckets[source] = tuple(cards)
        buckets[target] = buckets[target] + (card,)
        return Board(buckets)

    def placed(self, card: TicketSummary, status: TicketStatus, index: int) -> Board:
        """Return a board with card at index in status, removed from wherever it was."""
        buckets = {s: tuple(c for c in cards if c.id != card.id) for s, cards in self.buckets.items()}
        cards = list(buckets[status])
        cards.insert(min(index, len(cards)), card)
        buckets[status] = tuple(cards)
        return Board(buckets)

    def replaced(self, ticket_id: str, card: TicketSummary) -> Board:
        """Return a board with the ticket's card swapped for card, same position."""
        found = self.locate(ticket_id)
        if found is None:
            return self
        status, index, _ = found
        buckets = dict(self.buckets)
        cards = list(buckets[status])
        cards[index] = card
        buckets[status] = tuple(cards)
        return Board(buckets)


def empty_board() -> Board:
    return Board({status: () for status in COLUMN_ORDER})


def summarize(ticket: Ticket) -> TicketSummary:
    """Build the card view for a ticket. Missing user references are fine."""
    try:
        ticket_type = TicketType(ticket.type)
    except ValueError:
        ticket_type = TicketType.TASK
    return TicketSummary(
        id=ticket.id,
        title=ticket.title,
        type=ticket_type,
        assignee_name=ticket.assignee.username if ticket.assignee else None,
        reporter_id=ticket.reporter_id or None,
        assignee_id=ticket.assignee_id,
        ai_enhanced=bool(ticket.ai_enhanced),
    )


def project_board(tickets: Iterable[Ticket]) -> Board:
    """Group tickets by status. Unknown statuses land in OPEN."""
    grouped: dict[TicketStatus, list[TicketSummary]] = {status: [] for status in COLUMN_ORDER}
    for ticket in tickets:
        try:
            status = TicketStatus(ticket.status)
        except ValueError:
            logger.warning("Unknown ticket status %r on %s, placing in OPEN", ticket.status, ticket.id)
            status = TicketStatus.OPEN
        grouped[status].append(summarize(ticket))
    return Board({status: tuple(cards) for status, cards in grouped.items()})


def with_assignee(card: TicketSummary, assignee_id: str | None, assignee_name: str | None) -> TicketSummary:
    return replace(card, assignee_id=assignee_id, assignee_name=assignee_name if assignee_id else None)
