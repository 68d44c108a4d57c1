"""Async client boundary to the ticket service, with sync service calls run off-loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

from tickboard.errors import TicketConnectionError, TicketError, UnauthorizedError
from tickboard.models import Profile, Ticket, TicketStatus
from tickboard.service import MAX_PAGE_SIZE, TicketService

logger = logging.getLogger(__name__)


class TicketApi(Protocol):
    """What the coordinator needs from the authoritative side."""

    async def fetch_tickets(self) -> list[Ticket]: ...

    async def update_status(self, ticket_id: str, status: TicketStatus) -> Ticket: ...

    async def update_assignee(self, ticket_id: str, assignee_id: str | None) -> Ticket: ...

    async def fetch_current_user(self) -> Profile: ...


class LocalTicketApi:
    """TicketApi backed by an in-process TicketService.

    Every call runs in a worker thread. ``on_write`` is called after each
    successful write, in the same thread and under the repository lock, e.g.
    to persist the workspace. If it raises, the write is undone so the
    service never holds a change that was not saved.
    Anything the service raises that is not a TicketError comes back as
    TicketConnectionError.
    """

    def __init__(
        self,
        service: TicketService,
        user_id: str | None,
        on_write: Callable[[TicketService], None] | None = None,
    ) -> None:
        self.service = service
        self.user_id = user_id
        self.on_write = on_write

    async def _call(self, func, *args, write: bool = False):
        def _run():
            if not write or self.on_write is None:
                return func(*args)
            repository = self.service.repository
            with repository.lock:
                saved = repository.snapshot()
                result = func(*args)
                try:
                    self.on_write(self.service)
                except Exception:
                    repository.restore(saved)
                    logger.warning("save after %s failed, write undone", getattr(func, "__name__", func))
                    raise
                return result

        try:
            return await asyncio.to_thread(_run)
        except TicketError:
            raise
        except Exception as exc:
            logger.exception("ticket service call %s failed", getattr(func, "__name__", func))
            raise TicketConnectionError(str(exc) or None) from exc

    async def fetch_tickets(self) -> list[Ticket]:
        def _all():
            tickets: list[Ticket] = []
            offset = 0
            while True:
                page = self.service.list_tickets(offset=offset, limit=MAX_PAGE_SIZE)
                tickets.extend(page.tickets)
                offset += MAX_PAGE_SIZE
                if offset >= page.pagination.total:
                    return tickets

        return await self._call(_all)

    async def update_status(self, ticket_id: str, status: TicketStatus) -> Ticket:
        return await self._call(self.service.update_status, ticket_id, status, self.user_id, write=True)

    async def update_assignee(self, ticket_id: str, assignee_id: str | None) -> Ticket:
        return await self._call(self.service.update_assignee, ticket_id, assignee_id, self.user_id, write=True)

    async def fetch_current_user(self) -> Profile:
        if self.user_id is None:
            raise UnauthorizedError("No acting user")
        return await self._call(self.service.get_user, self.user_id)
