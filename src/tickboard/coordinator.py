"""Optimistic mutation coordinator.

Every ticket mutation, whichever surface it comes from, goes through
Coordinator: check permission, apply to the local Board, ask the service,
then reconcile with a refetch or roll back to the Board as it was.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from tickboard.api import TicketApi
from tickboard.errors import (
    FailureKind,
    TicketConnectionError,
    TicketError,
    classify,
    failure_message,
)
from tickboard.models import TicketStatus, UserContext
from tickboard.permissions import can_assign, can_mutate
from tickboard.projection import Board, project_board, with_assignee
from tickboard.store import BoardStore

logger = logging.getLogger(__name__)

Notify = Callable[[str, str], None]

BUSY_MESSAGE = "Ticket is still saving. Please wait."


class SaveState(StrEnum):
    IDLE = "idle"
    SAVING = "saving"


class MutationPhase(StrEnum):
    IDLE = "idle"
    PERMISSION_CHECKED = "permission_checked"
    APPLIED_LOCALLY = "applied_locally"
    AWAITING_SERVER = "awaiting_server"
    RECONCILED = "reconciled"
    ROLLED_BACK = "rolled_back"


class Outcome(StrEnum):
    RECONCILED = "reconciled"
    ROLLED_BACK = "rolled_back"
    NOT_FOUND = "not_found"
    NO_CHANGE = "no_change"
    DENIED = "denied"
    BUSY = "busy"


@dataclass(frozen=True)
class MoveIntent:
    """A request to move a ticket, produced by the drag machine."""

    ticket_id: str
    source: TicketStatus
    target: TicketStatus


@dataclass(frozen=True)
class MutationOutcome:
    ticket_id: str
    outcome: Outcome
    phases: tuple[MutationPhase, ...] = (MutationPhase.IDLE,)
    failure: FailureKind | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome in (Outcome.RECONCILED, Outcome.NO_CHANGE)

    @property
    def retryable(self) -> bool:
        return self.failure is not None and self.failure.retryable


def _log_notify(message: str, severity: str) -> None:
    logger.info("[%s] %s", severity, message)


class Coordinator:
    """Runs optimistic mutations against a BoardStore and a TicketApi.

    ``user`` is the acting user and is never modified. ``notify`` receives
    (message, severity) with severity one of "information", "warning" or
    "error".
    """

    def __init__(
        self,
        api: TicketApi,
        store: BoardStore,
        user: UserContext | None,
        notify: Notify | None = None,
        request_timeout: float = 10.0,
    ) -> None:
        self.api = api
        self.store = store
        self.user = user
        self.notify = notify or _log_notify
        self.request_timeout = request_timeout
        self.save_state: dict[str, SaveState] = {}

    # -- gating --

    def is_saving(self, ticket_id: str) -> bool:
        return self.save_state.get(ticket_id, SaveState.IDLE) is SaveState.SAVING

    def can_interact(self, ticket_id: str) -> bool:
        """True if the ticket may be grabbed or moved right now."""
        found = self.store.board.locate(ticket_id)
        if found is None or self.is_saving(ticket_id):
            return False
        return can_mutate(self.user, found[2])

    def _set_saving(self, ticket_id: str, saving: bool) -> None:
        if saving:
            self.save_state[ticket_id] = SaveState.SAVING
        else:
            self.save_state.pop(ticket_id, None)
        self.store.set_saving(ticket_id, saving)

    # -- reads --

    async def _request(self, coro):
        try:
            return await asyncio.wait_for(coro, self.request_timeout)
        except TimeoutError:
            raise TicketConnectionError(f"Request timed out after {self.request_timeout:g}s") from None

    async def refresh(self) -> Board:
        """Refetch every ticket and replace the board with a fresh projection."""
        tickets = await self._request(self.api.fetch_tickets())
        board = project_board(tickets)
        self.store.replace(board)
        logger.debug("board refreshed: %d tickets", board.total)
        return board

    # -- writes --

    async def handle_intent(self, intent: MoveIntent) -> MutationOutcome:
        return await self.move_ticket(intent.ticket_id, intent.target)

    async def move_ticket(self, ticket_id: str, status: TicketStatus) -> MutationOutcome:
        """Move a ticket to another column."""
        status = TicketStatus(status)
        board = self.store.board
        found = board.locate(ticket_id)
        if found is None:
            logger.debug("move of unknown ticket %s ignored", ticket_id)
            return MutationOutcome(ticket_id, Outcome.NOT_FOUND)
        if self.is_saving(ticket_id):
            self.notify(BUSY_MESSAGE, "warning")
            return MutationOutcome(ticket_id, Outcome.BUSY, message=BUSY_MESSAGE)
        source, _, card = found
        if source == status:
            return MutationOutcome(ticket_id, Outcome.NO_CHANGE)
        if not can_mutate(self.user, card):
            return self._deny(ticket_id, "move")

        return await self._mutate(
            ticket_id,
            board,
            board.moved(ticket_id, status),
            lambda: self.api.update_status(ticket_id, status),
            action="move",
            success=lambda _: f"Ticket moved to {status.label}.",
        )

    async def assign_ticket(
        self, ticket_id: str, assignee_id: str | None, assignee_name: str | None = None
    ) -> MutationOutcome:
        """Set or clear a ticket's assignee."""
        board = self.store.board
        found = board.locate(ticket_id)
        if found is None:
            logger.debug("assign of unknown ticket %s ignored", ticket_id)
            return MutationOutcome(ticket_id, Outcome.NOT_FOUND)
        if self.is_saving(ticket_id):
            self.notify(BUSY_MESSAGE, "warning")
            return MutationOutcome(ticket_id, Outcome.BUSY, message=BUSY_MESSAGE)
        _, _, card = found
        if card.assignee_id == assignee_id:
            return MutationOutcome(ticket_id, Outcome.NO_CHANGE)
        if not can_assign(self.user, card, assignee_id):
            return self._deny(ticket_id, "assign")

        def success(current: Board) -> str:
            if assignee_id is None:
                return "Ticket unassigned."
            located = current.locate(ticket_id)
            name = (located[2].assignee_name if located else None) or assignee_name or assignee_id
            return f"Ticket assigned to {name}."

        return await self._mutate(
            ticket_id,
            board,
            board.replaced(ticket_id, with_assignee(card, assignee_id, assignee_name)),
            lambda: self.api.update_assignee(ticket_id, assignee_id),
            action="assign",
            success=success,
        )

    def _deny(self, ticket_id: str, action: str) -> MutationOutcome:
        message = failure_message(FailureKind.FORBIDDEN, action=action)
        self.notify(message, "error")
        logger.debug("%s of %s denied for %s", action, ticket_id, self.user.id if self.user else None)
        return MutationOutcome(ticket_id, Outcome.DENIED, failure=FailureKind.FORBIDDEN, message=message)

    async def _mutate(
        self,
        ticket_id: str,
        previous: Board,
        optimistic: Board,
        request: Callable,
        action: str,
        success: Callable[[Board], str],
    ) -> MutationOutcome:
        phases = [MutationPhase.IDLE, MutationPhase.PERMISSION_CHECKED]
        source, index, card = previous.locate(ticket_id)

        self.store.replace(optimistic)
        phases.append(MutationPhase.APPLIED_LOCALLY)
        self._set_saving(ticket_id, True)
        try:
            phases.append(MutationPhase.AWAITING_SERVER)
            logger.debug("%s %s: awaiting server", action, ticket_id)
            try:
                await self._request(request())
            except asyncio.CancelledError:
                self._roll_back(ticket_id, previous, optimistic, source, index, card)
                logger.debug("%s %s cancelled, rolled back", action, ticket_id)
                raise
            except Exception as exc:
                if not isinstance(exc, TicketError):
                    logger.exception("unexpected error during %s of %s", action, ticket_id)
                self._roll_back(ticket_id, previous, optimistic, source, index, card)
                phases.append(MutationPhase.ROLLED_BACK)
                kind = classify(exc)
                message = failure_message(kind, exc, action=action)
                logger.debug("%s %s rolled back (%s): %s", action, ticket_id, kind, exc)
                self.notify(message, "error")
                return MutationOutcome(ticket_id, Outcome.ROLLED_BACK, tuple(phases), kind, message)

            try:
                current = await self.refresh()
            except Exception as exc:
                # The service already committed; the optimistic board is right.
                logger.warning("refetch after %s of %s failed, keeping local board: %s", action, ticket_id, exc)
                current = self.store.board
            phases.append(MutationPhase.RECONCILED)
            message = success(current)
            self.notify(message, "information")
            return MutationOutcome(ticket_id, Outcome.RECONCILED, tuple(phases), message=message)
        finally:
            self._set_saving(ticket_id, False)

    def _roll_back(self, ticket_id, previous, optimistic, source, index, card) -> None:
        """Undo the optimistic change.

        If nothing else replaced the board meanwhile, the exact previous
        Board comes back. Otherwise only this ticket is put back where it
        was, so other in-flight changes survive.
        """
        if self.store.board is optimistic:
            self.store.replace(previous)
        else:
            self.store.replace(self.store.board.placed(card, source, index))
