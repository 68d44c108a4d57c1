"""Ticket error taxonomy shared by the service, the client boundary and the coordinator."""

from __future__ import annotations

from enum import StrEnum


class TicketError(Exception):
    """Base class for all ticket operation failures."""

    status_code = 500
    default_message = "Ticket operation failed"

    def __init__(self, message: str | None = None, details: list[str] | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details or []


class TicketValidationError(TicketError):
    status_code = 400
    default_message = "Ticket data is invalid"


class UnauthorizedError(TicketError):
    status_code = 401
    default_message = "User authentication required"


class TicketForbiddenError(TicketError):
    status_code = 403
    default_message = "You don't have permission to perform this action on the ticket"


class TicketNotFoundError(TicketError):
    status_code = 404
    default_message = "Ticket not found"

    def __init__(self, ticket_id: str | None = None, message: str | None = None) -> None:
        if message is None and ticket_id:
            message = f"Ticket with ID '{ticket_id}' not found"
        super().__init__(message)
        self.ticket_id = ticket_id


class TicketConnectionError(TicketError):
    """Network failure, timeout, or anything the authority did not classify."""

    status_code = 0
    default_message = "Network error: failed to reach the server"


class FailureKind(StrEnum):
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    FORBIDDEN = "forbidden"
    CONNECTIVITY = "connectivity"

    @property
    def retryable(self) -> bool:
        return self is FailureKind.CONNECTIVITY


def classify(exc: BaseException) -> FailureKind:
    """Map an exception to the failure kind the coordinator reacts to."""
    if isinstance(exc, TicketNotFoundError):
        return FailureKind.NOT_FOUND
    if isinstance(exc, TicketValidationError):
        return FailureKind.VALIDATION
    if isinstance(exc, (TicketForbiddenError, UnauthorizedError)):
        return FailureKind.FORBIDDEN
    return FailureKind.CONNECTIVITY


def failure_message(kind: FailureKind, exc: BaseException | None = None, action: str = "move") -> str:
    """User-facing message for a failed mutation."""
    match kind:
        case FailureKind.NOT_FOUND:
            return "Ticket not found."
        case FailureKind.VALIDATION:
            reason = exc.message if isinstance(exc, TicketError) else ""
            if not reason or reason == TicketValidationError.default_message:
                return f"Invalid {'status' if action == 'move' else 'assignee'} update."
            return reason if reason.endswith(".") else f"{reason}."
        case FailureKind.FORBIDDEN:
            return f"You don't have permission to {action} this ticket."
        case _:
            return f"Failed to {action} ticket. Please try again."
