"""Permission predicates for ticket mutations.

These are the client-side mirror of the checks the ticket service performs.
Both take plain values so they can be evaluated against a full Ticket or a
TicketSummary card.
"""

from __future__ import annotations

from typing import Protocol

from tickboard.models import Role, UserContext


class Ownable(Protocol):
    reporter_id: str | None
    assignee_id: str | None


def can_mutate(user: UserContext | None, ticket: Ownable) -> bool:
    """True if user may change the ticket's status or fields."""
    if user is None:
        return False
    if user.role == Role.ADMIN:
        return True
    return user.id in (ticket.reporter_id, ticket.assignee_id)


def can_assign(user: UserContext | None, ticket: Ownable, assignee_id: str | None) -> bool:
    """True if user may set the ticket's assignee to assignee_id.

    Admins may assign anyone. Others may only take a ticket themselves or
    drop a ticket they currently hold.
    """
    if user is None:
        return False
    if user.role == Role.ADMIN:
        return True
    if assignee_id is None:
        return ticket.assignee_id == user.id
    return assignee_id == user.id
