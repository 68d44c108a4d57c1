"""Data models for tickboard."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum


class TicketStatus(StrEnum):
    """Ticket status values, one per board column."""

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    CLOSED = "CLOSED"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


class TicketType(StrEnum):
    BUG = "BUG"
    IMPROVEMENT = "IMPROVEMENT"
    TASK = "TASK"

    @property
    def label(self) -> str:
        return TYPE_LABELS[self]


class Role(StrEnum):
    USER = "USER"
    ADMIN = "ADMIN"


COLUMN_ORDER: tuple[TicketStatus, ...] = (
    TicketStatus.OPEN,
    TicketStatus.IN_PROGRESS,
    TicketStatus.CLOSED,
)

STATUS_LABELS = {
    TicketStatus.OPEN: "Open",
    TicketStatus.IN_PROGRESS: "In Progress",
    TicketStatus.CLOSED: "Closed",
}

TYPE_LABELS = {
    TicketType.BUG: "Bug",
    TicketType.IMPROVEMENT: "Improvement",
    TicketType.TASK: "Task",
}

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 10000


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class UserRef:
    """A joined user reference as shown next to a ticket."""

    id: str
    username: str


@dataclass
class Profile:
    """A user account known to the service."""

    id: str
    username: str
    email: str = ""
    role: Role = Role.USER


@dataclass(frozen=True)
class UserContext:
    """The acting user for one session. Read-only."""

    id: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass
class Ticket:
    """An authoritative ticket record.

    ``status`` is typed as TicketStatus but a raw string may come back from
    a foreign source; the projection tolerates that.
    """

    id: str
    title: str
    description: str = ""
    type: TicketType = TicketType.TASK
    status: TicketStatus = TicketStatus.OPEN
    reporter_id: str | None = None
    assignee_id: str | None = None
    ai_enhanced: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    reporter: UserRef | None = None
    assignee: UserRef | None = None


@dataclass(frozen=True)
class TicketSummary:
    """Card view of a ticket, derived from a Ticket on every projection."""

    id: str
    title: str
    type: TicketType
    assignee_name: str | None = None
    reporter_id: str | None = None
    assignee_id: str | None = None
    ai_enhanced: bool = False


@dataclass(frozen=True)
class Pagination:
    offset: int
    limit: int
    total: int

    @property
    def page(self) -> int:
        return self.offset // self.limit + 1 if self.limit else 1


@dataclass(frozen=True)
class TicketPage:
    tickets: list[Ticket]
    pagination: Pagination
