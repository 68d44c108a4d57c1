"""Authoritative ticket service.

Every public method is one logical operation: it loads what it needs,
checks validity and authorization, and writes, with no await in between.
Callers on an event loop run these via asyncio.to_thread (see tickboard.api)
and the repository lock keeps each call atomic.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

from tickboard.errors import (
    TicketForbiddenError,
    TicketNotFoundError,
    TicketValidationError,
    UnauthorizedError,
)
from tickboard.ids import id_key, next_id
from tickboard.models import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    Pagination,
    Profile,
    Role,
    Ticket,
    TicketPage,
    TicketStatus,
    TicketType,
    UserRef,
    utcnow,
)

logger = logging.getLogger(__name__)

SORT_FIELDS = ("created_at", "updated_at", "title", "status", "type")
MAX_PAGE_SIZE = 100


class TicketRepository:
    """In-memory storage for tickets and user profiles, insertion ordered."""

    def __init__(self) -> None:
        self.tickets: dict[str, Ticket] = {}
        self.profiles: dict[str, Profile] = {}
        self.lock = threading.RLock()

    def snapshot(self) -> tuple[dict[str, Ticket], dict[str, Profile]]:
        """Copies of every record, for restore() after a failed save."""
        with self.lock:
            return (
                {k: replace(t) for k, t in self.tickets.items()},
                {k: replace(p) for k, p in self.profiles.items()},
            )

    def restore(self, snapshot: tuple[dict[str, Ticket], dict[str, Profile]]) -> None:
        with self.lock:
            tickets, profiles = snapshot
            self.tickets = {k: replace(t) for k, t in tickets.items()}
            self.profiles = {k: replace(p) for k, p in profiles.items()}


def _parse_status(value) -> TicketStatus:
    try:
        return TicketStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in TicketStatus)
        raise TicketValidationError(f"Invalid status '{value}'. Expected one of: {allowed}") from None


def _parse_type(value) -> TicketType:
    try:
        return TicketType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in TicketType)
        raise TicketValidationError(f"Invalid type '{value}'. Expected one of: {allowed}") from None


def _validate_title(title: str) -> str:
    title = (title or "").strip()
    if not title:
        raise TicketValidationError("Title required")
    if len(title) > TITLE_MAX_LENGTH:
        raise TicketValidationError(f"Title cannot exceed {TITLE_MAX_LENGTH} characters")
    return title


def _validate_description(description: str | None) -> str:
    description = description or ""
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise TicketValidationError(f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters")
    return description


class TicketService:
    """Validates and persists ticket changes; the single source of truth."""

    def __init__(
        self,
        repository: TicketRepository | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repository = repository or TicketRepository()
        self._clock = clock

    # -- users --

    def add_user(self, username: str, email: str = "", role: Role | str = Role.USER, user_id: str | None = None) -> Profile:
        username = (username or "").strip()
        if not username:
            raise TicketValidationError("Username required")
        try:
            role = Role(role)
        except ValueError:
            raise TicketValidationError(f"Invalid role '{role}'") from None
        with self.repository.lock:
            profiles = self.repository.profiles
            if any(p.username == username for p in profiles.values()):
                raise TicketValidationError(f"Username '{username}' is already taken")
            user_id = user_id or next_id(list(profiles), prefix="u")
            if user_id in profiles:
                raise TicketValidationError(f"User ID '{user_id}' already exists")
            profile = Profile(id=user_id, username=username, email=email, role=role)
            profiles[user_id] = profile
            logger.debug("added user %s (%s)", user_id, role)
            return replace(profile)

    def get_user(self, user_id: str) -> Profile:
        with self.repository.lock:
            profile = self.repository.profiles.get(user_id)
            if profile is None:
                raise TicketNotFoundError(message=f"User '{user_id}' not found")
            return replace(profile)

    def find_user(self, key: str) -> Profile | None:
        """Look a user up by id, username or email."""
        with self.repository.lock:
            for profile in self.repository.profiles.values():
                if key in (profile.id, profile.username) or (profile.email and profile.email == key):
                    return replace(profile)
        return None

    def list_users(self) -> list[Profile]:
        with self.repository.lock:
            return [replace(p) for p in self.repository.profiles.values()]

    def delete_user(self, user_id: str) -> None:
        """Remove an account. Tickets keep existing with the reference cleared."""
        with self.repository.lock:
            if self.repository.profiles.pop(user_id, None) is None:
                raise TicketNotFoundError(message=f"User '{user_id}' not found")
            for ticket in self.repository.tickets.values():
                if ticket.reporter_id == user_id:
                    ticket.reporter_id = None
                if ticket.assignee_id == user_id:
                    ticket.assignee_id = None
            logger.debug("deleted user %s", user_id)

    # -- reads --

    def _joined(self, ticket: Ticket) -> Ticket:
        profiles = self.repository.profiles
        reporter = profiles.get(ticket.reporter_id) if ticket.reporter_id else None
        assignee = profiles.get(ticket.assignee_id) if ticket.assignee_id else None
        return replace(
            ticket,
            reporter=UserRef(reporter.id, reporter.username) if reporter else None,
            assignee=UserRef(assignee.id, assignee.username) if assignee else None,
        )

    def _load(self, ticket_id: str) -> Ticket:
        ticket = self.repository.tickets.get(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(ticket_id)
        return ticket

    def _acting_profile(self, user_id: str | None) -> Profile:
        profile = self.repository.profiles.get(user_id) if user_id else None
        if profile is None:
            raise UnauthorizedError("User profile not found")
        return profile

    def get_ticket(self, ticket_id: str) -> Ticket:
        with self.repository.lock:
            return self._joined(self._load(ticket_id))

    def list_tickets(
        self,
        status: str | None = None,
        type: str | None = None,
        assignee_id: str | None = None,
        reporter_id: str | None = None,
        sort: str = "created_at desc",
        offset: int = 0,
        limit: int = MAX_PAGE_SIZE,
    ) -> TicketPage:
        """Filtered, sorted, paginated ticket listing."""
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise TicketValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")
        if offset < 0:
            raise TicketValidationError("Offset cannot be negative")
        parts = sort.split()
        field = parts[0] if parts else "created_at"
        if field not in SORT_FIELDS:
            raise TicketValidationError(f"Cannot sort by '{field}'")
        descending = len(parts) < 2 or parts[1].lower() != "asc"
        status_filter = _parse_status(status) if status else None
        type_filter = _parse_type(type) if type else None

        with self.repository.lock:
            tickets = [
                t
                for t in self.repository.tickets.values()
                if (status_filter is None or t.status == status_filter)
                and (type_filter is None or t.type == type_filter)
                and (assignee_id is None or t.assignee_id == assignee_id)
                and (reporter_id is None or t.reporter_id == reporter_id)
            ]
            tickets.sort(key=lambda t: (getattr(t, field), id_key(t.id)), reverse=descending)
            page = [self._joined(t) for t in tickets[offset : offset + limit]]
        return TicketPage(tickets=page, pagination=Pagination(offset=offset, limit=limit, total=len(tickets)))

    # -- writes --

    def create_ticket(
        self,
        title: str,
        reporter_id: str,
        description: str = "",
        type: TicketType | str = TicketType.TASK,
        assignee_id: str | None = None,
        ai_enhanced: bool = False,
    ) -> Ticket:
        title = _validate_title(title)
        description = _validate_description(description)
        ticket_type = _parse_type(type)
        with self.repository.lock:
            self._acting_profile(reporter_id)
            if assignee_id is not None and assignee_id not in self.repository.profiles:
                raise TicketValidationError("Assignee not found")
            now = self._clock()
            ticket = Ticket(
                id=next_id(list(self.repository.tickets)),
                title=title,
                description=description,
                type=ticket_type,
                status=TicketStatus.OPEN,
                reporter_id=reporter_id,
                assignee_id=assignee_id,
                ai_enhanced=ai_enhanced,
                created_at=now,
                updated_at=now,
            )
            self.repository.tickets[ticket.id] = ticket
            logger.debug("created ticket %s by %s", ticket.id, reporter_id)
            return self._joined(ticket)

    def update_status(self, ticket_id: str, status: TicketStatus | str, user_id: str) -> Ticket:
        """Set a ticket's status.

        Allowed for admins, the reporter and the assignee. Any status may
        follow any other, and setting the current status is a successful
        update.
        """
        new_status = _parse_status(status)
        with self.repository.lock:
            ticket = self._load(ticket_id)
            profile = self._acting_profile(user_id)
            is_reporter = ticket.reporter_id == user_id
            is_assignee = ticket.assignee_id == user_id
            is_admin = profile.role == Role.ADMIN
            if not (is_reporter or is_assignee or is_admin):
                raise TicketForbiddenError(
                    "Access denied: You don't have permission to update this ticket's status"
                )
            ticket.status = new_status
            ticket.updated_at = self._clock()
            logger.debug("ticket %s status -> %s by %s", ticket_id, new_status, user_id)
            return self._joined(ticket)

    def update_assignee(self, ticket_id: str, assignee_id: str | None, user_id: str) -> Ticket:
        """Set or clear a ticket's assignee.

        Admins may assign anyone. Other users may assign themselves or
        unassign themselves, nothing else.
        """
        with self.repository.lock:
            ticket = self._load(ticket_id)
            if assignee_id is not None and assignee_id not in self.repository.profiles:
                raise TicketValidationError("Assignee not found")
            profile = self._acting_profile(user_id)
            is_self_assignment = assignee_id is not None and assignee_id == user_id
            is_self_unassignment = assignee_id is None and ticket.assignee_id == user_id
            is_admin = profile.role == Role.ADMIN
            if not (is_self_assignment or is_self_unassignment or is_admin):
                raise TicketForbiddenError(
                    "Access denied: Only administrators can assign tickets to other users, "
                    "or you can assign/unassign tickets to/from yourself"
                )
            ticket.assignee_id = assignee_id
            ticket.updated_at = self._clock()
            logger.debug("ticket %s assignee -> %s by %s", ticket_id, assignee_id, user_id)
            return self._joined(ticket)

    def update_ticket(
        self,
        ticket_id: str,
        user_id: str,
        title: str | None = None,
        description: str | None = None,
        type: TicketType | str | None = None,
    ) -> Ticket:
        """Edit title, description or type. Same rule as status changes."""
        new_title = _validate_title(title) if title is not None else None
        new_description = _validate_description(description) if description is not None else None
        new_type = _parse_type(type) if type is not None else None
        with self.repository.lock:
            ticket = self._load(ticket_id)
            profile = self._acting_profile(user_id)
            if not (user_id in (ticket.reporter_id, ticket.assignee_id) or profile.role == Role.ADMIN):
                raise TicketForbiddenError("Access denied: You don't have permission to update this ticket")
            if new_title is not None:
                ticket.title = new_title
            if new_description is not None:
                ticket.description = new_description
            if new_type is not None:
                ticket.type = new_type
            ticket.updated_at = self._clock()
            return self._joined(ticket)

    def delete_ticket(self, ticket_id: str, user_id: str) -> None:
        """Delete a ticket. Allowed for admins and the reporter."""
        with self.repository.lock:
            ticket = self._load(ticket_id)
            profile = self._acting_profile(user_id)
            if not (ticket.reporter_id == user_id or profile.role == Role.ADMIN):
                raise TicketForbiddenError("Access denied: You don't have permission to delete this ticket")
            del self.repository.tickets[ticket_id]
            logger.debug("deleted ticket %s by %s", ticket_id, user_id)
