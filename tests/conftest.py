"""Shared fixtures: a populated ticket service and an API whose requests can be held or failed."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from tickboard.api import LocalTicketApi
from tickboard.coordinator import Coordinator
from tickboard.models import Role, TicketStatus, TicketType, UserContext
from tickboard.service import TicketService
from tickboard.store import BoardStore


class StepClock:
    """Deterministic clock: each call is one second after the previous one."""

    def __init__(self, start=datetime(2024, 1, 1, tzinfo=UTC)):
        self.now = start

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


def make_service():
    """Three users and four tickets.

    Users: u1 admin (ADMIN), u2 alice, u3 bob.
    Tickets (created in this order):
      1  "Login fails"      BUG   OPEN          reporter alice, assignee bob
      2  "Dark mode"        IMPROVEMENT OPEN    reporter bob
      3  "Write docs"       TASK  IN_PROGRESS   reporter alice, assignee alice
      4  "Old cleanup"      TASK  CLOSED        reporter admin
    """
    service = TicketService(clock=StepClock())
    service.add_user("admin", email="admin@example.com", role=Role.ADMIN)
    service.add_user("alice", email="alice@example.com")
    service.add_user("bob", email="bob@example.com")
    service.create_ticket("Login fails", "u2", description="Cannot log in", type=TicketType.BUG, assignee_id="u3")
    service.create_ticket("Dark mode", "u3", type=TicketType.IMPROVEMENT)
    service.create_ticket("Write docs", "u2", assignee_id="u2")
    service.update_status("3", TicketStatus.IN_PROGRESS, "u2")
    service.create_ticket("Old cleanup", "u1")
    service.update_status("4", TicketStatus.CLOSED, "u1")
    return service


@pytest.fixture
def service():
    return make_service()


@pytest.fixture
def admin():
    return UserContext("u1", Role.ADMIN)


@pytest.fixture
def alice():
    return UserContext("u2")


@pytest.fixture
def bob():
    return UserContext("u3")


class ControlledApi(LocalTicketApi):
    """LocalTicketApi with test hooks.

    ``hold`` makes writes wait until ``release()``; ``fail_with`` makes the
    next write raise; ``fail_fetch`` makes refetches raise.
    """

    def __init__(self, service, user_id):
        super().__init__(service, user_id)
        self.hold = False
        self.fail_with: BaseException | None = None
        self.fail_fetch: BaseException | None = None
        self.write_calls = 0
        self.fetch_calls = 0
        self._gate = asyncio.Event()
        self.waiting = asyncio.Event()

    def release(self):
        self._gate.set()

    async def _write(self, call, *args):
        self.write_calls += 1
        if self.hold:
            self.waiting.set()
            await self._gate.wait()
        if self.fail_with is not None:
            exc, self.fail_with = self.fail_with, None
            raise exc
        return await call(*args)

    async def update_status(self, ticket_id, status):
        return await self._write(super().update_status, ticket_id, status)

    async def update_assignee(self, ticket_id, assignee_id):
        return await self._write(super().update_assignee, ticket_id, assignee_id)

    async def fetch_tickets(self):
        self.fetch_calls += 1
        if self.fail_fetch is not None:
            raise self.fail_fetch
        return await super().fetch_tickets()


@pytest.fixture
def make_api(service):
    def _make(user_id):
        return ControlledApi(service, user_id)

    return _make


class Harness:
    """A coordinator wired to a ControlledApi, recording notifications."""

    def __init__(self, service, user: UserContext | None, timeout=10.0):
        self.service = service
        self.api = ControlledApi(service, user.id if user else None)
        self.store = BoardStore()
        self.notes: list[tuple[str, str]] = []
        self.coordinator = Coordinator(
            self.api,
            self.store,
            user,
            notify=lambda message, severity: self.notes.append((message, severity)),
            request_timeout=timeout,
        )

    async def start(self):
        await self.coordinator.refresh()
        self.api.fetch_calls = 0
        return self

    def column_ids(self, status):
        return [c.id for c in self.store.board[status]]


@pytest.fixture
def harness(service):
    """Build a started Harness over the shared ``service``."""

    async def _make(user, timeout=10.0):
        return await Harness(service, user, timeout).start()

    return _make


@pytest.fixture(scope="session")
def fresh_harness():
    """Build a started Harness over a brand new service, for hypothesis tests."""

    async def _make(user):
        return await Harness(make_service(), user).start()

    return _make
