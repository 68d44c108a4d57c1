"""Handlers for 'tickboard ticket' commands."""

import asyncio

from tickboard.api import LocalTicketApi
from tickboard.cli._common import (
    acting_user,
    error,
    find_user_or_die,
    format_ticket_line,
    open_workspace,
    output_json,
    output_result,
    save,
    ticket_json,
)
from tickboard.coordinator import Coordinator, Outcome
from tickboard.errors import TicketError
from tickboard.ids import normalize_id
from tickboard.models import COLUMN_ORDER, STATUS_LABELS, TicketStatus, UserContext
from tickboard.store import BoardStore


def ticket_list(args) -> int:
    """List tickets grouped by status."""
    settings, service = open_workspace(args.repo, args.json)
    assignee_id = find_user_or_die(service, args.assignee, args.json).id if args.assignee else None
    reporter_id = find_user_or_die(service, args.reporter, args.json).id if args.reporter else None
    try:
        page = service.list_tickets(
            status=args.status,
            type=args.type,
            assignee_id=assignee_id,
            reporter_id=reporter_id,
            sort=args.sort,
            offset=args.offset,
            limit=args.limit,
        )
    except TicketError as e:
        error(e.message, args.json)

    if args.json:
        p = page.pagination
        output_json(
            {
                "tickets": [ticket_json(t) for t in page.tickets],
                "pagination": {"offset": p.offset, "limit": p.limit, "total": p.total, "page": p.page},
            }
        )
        return 0

    groups = {status: [] for status in COLUMN_ORDER}
    for t in page.tickets:
        groups[t.status if t.status in groups else TicketStatus.OPEN].append(t)
    for status, tickets in groups.items():
        if args.status and not tickets:
            continue
        print(f"{status.label} ({len(tickets)})")
        for t in tickets:
            print(format_ticket_line(t, indent="  "))
    shown = len(page.tickets)
    if shown < page.pagination.total:
        print(f"Showing {shown} of {page.pagination.total} tickets")
    return 0


def ticket_get(args) -> int:
    """Show one ticket."""
    args.id = normalize_id(args.id)
    settings, service = open_workspace(args.repo, args.json)
    try:
        ticket = service.get_ticket(args.id)
    except TicketError as e:
        error(e.message, args.json)

    if args.json:
        output_json(ticket_json(ticket))
        return 0

    print(f"{ticket.id}  {ticket.title}")
    print(f"  Status:   {STATUS_LABELS.get(ticket.status, ticket.status)}")
    print(f"  Type:     {ticket.type.label}")
    print(f"  Reporter: {ticket.reporter.username if ticket.reporter else '-'}")
    print(f"  Assignee: {ticket.assignee.username if ticket.assignee else '-'}")
    if ticket.ai_enhanced:
        print("  AI enhanced")
    if ticket.description:
        print()
        print(ticket.description)
    return 0


def ticket_add(args) -> int:
    """Create a new ticket reported by the acting user."""
    settings, service = open_workspace(args.repo, args.json)
    user = acting_user(settings, service, args.as_user, args.json)
    assignee_id = find_user_or_die(service, args.assignee, args.json).id if args.assignee else None
    try:
        ticket = service.create_ticket(
            args.title,
            reporter_id=user.id,
            description=args.description,
            type=args.type,
            assignee_id=assignee_id,
        )
    except TicketError as e:
        error(e.message, args.json)
    save(settings, service)

    output_result(ticket_json(ticket), f"Created ticket {ticket.id} in {TicketStatus.OPEN.label}", args.json)
    return 0


def _run_mutation(args, mutate) -> int:
    """Run one coordinator mutation against the workspace and report it."""
    settings, service = open_workspace(args.repo, args.json)
    user = acting_user(settings, service, args.as_user, args.json)
    api = LocalTicketApi(service, user.id, on_write=lambda s: save(settings, s))
    coordinator = Coordinator(
        api,
        BoardStore(),
        UserContext(user.id, user.role),
        request_timeout=settings.request_timeout,
    )

    async def _run():
        await coordinator.refresh()
        return await mutate(coordinator)

    try:
        outcome = asyncio.run(_run())
    except TicketError as e:
        error(e.message, args.json)

    match outcome.outcome:
        case Outcome.NOT_FOUND:
            error(f"Ticket '{args.id}' not found.", args.json)
        case Outcome.DENIED | Outcome.ROLLED_BACK | Outcome.BUSY:
            error(outcome.message, args.json)
        case Outcome.NO_CHANGE:
            text = f"Ticket {args.id} unchanged"
        case _:
            text = f"{outcome.message[:-1]} ({args.id})"

    output_result(ticket_json(service.get_ticket(args.id)), text, args.json)
    return 0


def ticket_move(args) -> int:
    """Move a ticket to another status column."""
    args.id = normalize_id(args.id)
    status = TicketStatus(args.status)
    return _run_mutation(args, lambda c: c.move_ticket(args.id, status))


def ticket_assign(args) -> int:
    """Assign a ticket to a user, or unassign it."""
    args.id = normalize_id(args.id)
    if args.unassign:
        return _run_mutation(args, lambda c: c.assign_ticket(args.id, None))

    settings, service = open_workspace(args.repo, args.json)
    assignee = find_user_or_die(service, args.to, args.json)
    return _run_mutation(args, lambda c: c.assign_ticket(args.id, assignee.id, assignee.username))


def ticket_edit(args) -> int:
    """Change a ticket's title, description or type."""
    args.id = normalize_id(args.id)
    if args.title is None and args.description is None and args.type is None:
        error("Nothing to change. Give --title, --description or --type.", args.json)
    settings, service = open_workspace(args.repo, args.json)
    user = acting_user(settings, service, args.as_user, args.json)
    try:
        ticket = service.update_ticket(
            args.id,
            user.id,
            title=args.title,
            description=args.description,
            type=args.type,
        )
    except TicketError as e:
        error(e.message, args.json)
    save(settings, service)

    output_result(ticket_json(ticket), f"Updated ticket {ticket.id}", args.json)
    return 0


def ticket_delete(args) -> int:
    """Delete a ticket. Only its reporter or an admin may."""
    args.id = normalize_id(args.id)
    settings, service = open_workspace(args.repo, args.json)
    user = acting_user(settings, service, args.as_user, args.json)
    try:
        service.delete_ticket(args.id, user.id)
    except TicketError as e:
        error(e.message, args.json)
    save(settings, service)

    output_result({"id": args.id, "deleted": True}, f"Deleted ticket {args.id}", args.json)
    return 0
