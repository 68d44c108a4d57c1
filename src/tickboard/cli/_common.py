"""Shared helpers for CLI command handlers."""

import json
import sys

from tickboard.config import Settings, load_settings, resolve_acting_user
from tickboard.errors import TicketError
from tickboard.models import Profile, Ticket
from tickboard.service import TicketService
from tickboard.storage import load_workspace, profile_to_dict, save_workspace, ticket_to_dict


def open_workspace(repo: str, json_mode: bool) -> tuple[Settings, TicketService]:
    """Load settings and the workspace file. Exit 1 with message on failure."""
    settings = load_settings(repo)
    if not settings.data_path.exists():
        error(f"No workspace at {settings.data_path}. Run 'tickboard init' first.", json_mode)
    try:
        return settings, load_workspace(settings.data_path)
    except TicketError as e:
        error(e.message, json_mode)


def acting_user(settings: Settings, service: TicketService, as_user: str | None, json_mode: bool) -> Profile:
    """Resolve who is running the command. Exit 1 if nobody matches."""
    profile = resolve_acting_user(settings, service, as_user)
    if profile is None:
        who = as_user or settings.user or settings.user_email or "nobody"
        error(f"Unknown user '{who}'. Pass --as or set tickboard.user in git config.", json_mode)
    return profile


def find_user_or_die(service: TicketService, key: str, json_mode: bool) -> Profile:
    profile = service.find_user(key)
    if profile is None:
        available = [f"  {p.id}  {p.username}" for p in service.list_users()]
        error(f"User '{key}' not found. Available:\n" + "\n".join(available), json_mode)
    return profile


def save(settings: Settings, service: TicketService) -> None:
    save_workspace(settings.data_path, service)


def ticket_json(ticket: Ticket) -> dict:
    data = ticket_to_dict(ticket)
    data["reporter"] = {"id": ticket.reporter.id, "username": ticket.reporter.username} if ticket.reporter else None
    data["assignee"] = {"id": ticket.assignee.id, "username": ticket.assignee.username} if ticket.assignee else None
    return data


def user_json(profile: Profile) -> dict:
    return profile_to_dict(profile)


def format_ticket_line(ticket: Ticket, indent: str = "") -> str:
    """Format a ticket as a one-line summary."""
    assignee = f"  @{ticket.assignee.username}" if ticket.assignee else ""
    ai = "  [AI]" if ticket.ai_enhanced else ""
    return f"{indent}{ticket.id}  {ticket.type.label:<12} {ticket.title}{assignee}{ai}"


def output_json(data: dict | list) -> None:
    """Write JSON to stdout."""
    print(json.dumps(data, indent=2))


def output_result(data: dict, text: str, json_mode: bool) -> None:
    """Output mutation result as JSON or plain text."""
    if json_mode:
        output_json(data)
    else:
        print(text)


def error(message: str, json_mode: bool) -> None:
    """Print error to stderr and exit 1."""
    if json_mode:
        print(json.dumps({"error": message}), file=sys.stderr)
    else:
        print(f"error: {message}", file=sys.stderr)
    sys.exit(1)
