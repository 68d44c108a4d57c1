"""JSON workspace file holding users and tickets for the in-process service."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from tickboard.errors import TicketValidationError
from tickboard.models import Profile, Role, Ticket, TicketStatus, TicketType
from tickboard.service import TicketRepository, TicketService

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def profile_to_dict(profile: Profile) -> dict:
    return {"id": profile.id, "username": profile.username, "email": profile.email, "role": str(profile.role)}


def ticket_to_dict(ticket: Ticket) -> dict:
    return {
        "id": ticket.id,
        "title": ticket.title,
        "description": ticket.description,
        "type": str(ticket.type),
        "status": str(ticket.status),
        "reporter_id": ticket.reporter_id,
        "assignee_id": ticket.assignee_id,
        "ai_enhanced": ticket.ai_enhanced,
        "created_at": ticket.created_at.isoformat(),
        "updated_at": ticket.updated_at.isoformat(),
    }


def _ticket_from_dict(data: dict) -> Ticket:
    status = data.get("status", TicketStatus.OPEN)
    # Keep unknown statuses as raw strings, the projection files them under OPEN.
    if status in {s.value for s in TicketStatus}:
        status = TicketStatus(status)
    return Ticket(
        id=str(data["id"]),
        title=data["title"],
        description=data.get("description") or "",
        type=TicketType(data.get("type", TicketType.TASK)),
        status=status,
        reporter_id=data.get("reporter_id"),
        assignee_id=data.get("assignee_id"),
        ai_enhanced=bool(data.get("ai_enhanced", False)),
        created_at=datetime.fromisoformat(data["created_at"]),
        updated_at=datetime.fromisoformat(data.get("updated_at") or data["created_at"]),
    )


def load_workspace(path: str | Path) -> TicketService:
    """Load a workspace file. A missing file gives an empty service."""
    path = Path(path)
    repository = TicketRepository()
    if not path.exists():
        logger.debug("no workspace at %s, starting empty", path)
        return TicketService(repository)

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        for item in data.get("users", []):
            profile = Profile(
                id=str(item["id"]),
                username=item["username"],
                email=item.get("email", ""),
                role=Role(item.get("role", Role.USER)),
            )
            repository.profiles[profile.id] = profile
        for item in data.get("tickets", []):
            ticket = _ticket_from_dict(item)
            repository.tickets[ticket.id] = ticket
    except (json.JSONDecodeError, KeyError, ValueError, TypeError) as exc:
        raise TicketValidationError(f"Cannot read workspace {path}: {exc}") from exc

    logger.debug("loaded %d users and %d tickets from %s", len(repository.profiles), len(repository.tickets), path)
    return TicketService(repository)


def save_workspace(path: str | Path, service: TicketService) -> None:
    """Write the workspace atomically: temp file in the same directory, then rename."""
    path = Path(path)
    repository = service.repository
    with repository.lock:
        data = {
            "version": FORMAT_VERSION,
            "users": [profile_to_dict(p) for p in repository.profiles.values()],
            "tickets": [ticket_to_dict(t) for t in repository.tickets.values()],
        }
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
