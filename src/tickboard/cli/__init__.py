"""CLI argument parser and dispatch for tickboard."""

import argparse

from tickboard.cli.init import init_workspace
from tickboard.cli.ticket import (
    ticket_add,
    ticket_assign,
    ticket_delete,
    ticket_edit,
    ticket_get,
    ticket_list,
    ticket_move,
)
from tickboard.cli.user import user_add, user_delete, user_list
from tickboard.models import TicketStatus, TicketType
from tickboard.service import MAX_PAGE_SIZE, SORT_FIELDS


def build_parser() -> argparse.ArgumentParser:
    """Build the full CLI argument parser."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--repo", default=".", help="Path to git repository (default: .)")
    common.add_argument("--json", action="store_true", help="Machine-readable JSON output")
    common.add_argument("--as", dest="as_user", metavar="USER", help="Act as this user (id, username or email)")

    parser = argparse.ArgumentParser(
        prog="tickboard",
        description="Ticket board with optimistic status and assignee updates",
        parents=[common],
    )

    nouns = parser.add_subparsers(dest="noun")

    statuses = [s.value for s in TicketStatus]
    types = [t.value for t in TicketType]

    # --- init ---
    init_p = nouns.add_parser("init", help="Initialize a tickboard workspace", parents=[common])
    init_p.add_argument("--username", help="Admin username (default: git user.name)")
    init_p.add_argument("--email", help="Admin email (default: git user.email)")
    init_p.set_defaults(func=init_workspace)

    # --- ticket ---
    ticket_p = nouns.add_parser("ticket", help="Ticket operations", parents=[common])
    ticket_verbs = ticket_p.add_subparsers(dest="verb")

    list_p = ticket_verbs.add_parser("list", help="List tickets", parents=[common])
    list_p.add_argument("--status", choices=statuses, help="Filter by status")
    list_p.add_argument("--type", choices=types, help="Filter by type")
    list_p.add_argument("--assignee", help="Filter by assignee")
    list_p.add_argument("--reporter", help="Filter by reporter")
    list_p.add_argument(
        "--sort", default="created_at desc", help=f"Sort field and direction ({', '.join(SORT_FIELDS)}; asc|desc)"
    )
    list_p.add_argument("--offset", type=int, default=0, help="Skip this many tickets")
    list_p.add_argument("--limit", type=int, default=MAX_PAGE_SIZE, help=f"Page size (max {MAX_PAGE_SIZE})")
    list_p.set_defaults(func=ticket_list)

    get_p = ticket_verbs.add_parser("get", help="Show a ticket", parents=[common])
    get_p.add_argument("id", help="Ticket ID")
    get_p.set_defaults(func=ticket_get)

    add_p = ticket_verbs.add_parser("add", help="Create a ticket", parents=[common])
    add_p.add_argument("title", help="Ticket title")
    add_p.add_argument("--description", default="", help="Ticket description")
    add_p.add_argument("--type", choices=types, default=TicketType.TASK.value, help="Ticket type (default: TASK)")
    add_p.add_argument("--assignee", help="Assign to this user")
    add_p.set_defaults(func=ticket_add)

    move_p = ticket_verbs.add_parser("move", help="Change a ticket's status", parents=[common])
    move_p.add_argument("id", help="Ticket ID")
    move_p.add_argument("--status", choices=statuses, required=True, help="Target status")
    move_p.set_defaults(func=ticket_move)

    assign_p = ticket_verbs.add_parser("assign", help="Assign or unassign a ticket", parents=[common])
    assign_p.add_argument("id", help="Ticket ID")
    who = assign_p.add_mutually_exclusive_group(required=True)
    who.add_argument("--to", metavar="USER", help="Assignee (id, username or email)")
    who.add_argument("--unassign", action="store_true", help="Clear the assignee")
    assign_p.set_defaults(func=ticket_assign)

    edit_p = ticket_verbs.add_parser("edit", help="Change title, description or type", parents=[common])
    edit_p.add_argument("id", help="Ticket ID")
    edit_p.add_argument("--title", help="New title")
    edit_p.add_argument("--description", help="New description")
    edit_p.add_argument("--type", choices=types, help="New type")
    edit_p.set_defaults(func=ticket_edit)

    delete_p = ticket_verbs.add_parser("delete", help="Delete a ticket", parents=[common])
    delete_p.add_argument("id", help="Ticket ID")
    delete_p.set_defaults(func=ticket_delete)

    # ticket with no verb = list
    ticket_p.set_defaults(
        func=ticket_list,
        status=None,
        type=None,
        assignee=None,
        reporter=None,
        sort="created_at desc",
        offset=0,
        limit=MAX_PAGE_SIZE,
    )

    # --- user ---
    user_p = nouns.add_parser("user", help="User operations", parents=[common])
    user_verbs = user_p.add_subparsers(dest="verb")

    user_list_p = user_verbs.add_parser("list", help="List users", parents=[common])
    user_list_p.set_defaults(func=user_list)

    user_add_p = user_verbs.add_parser("add", help="Create a user (admin only)", parents=[common])
    user_add_p.add_argument("username", help="Username")
    user_add_p.add_argument("--email", default="", help="Email address")
    user_add_p.add_argument("--admin", action="store_true", help="Give the user the ADMIN role")
    user_add_p.set_defaults(func=user_add)

    user_delete_p = user_verbs.add_parser("delete", help="Delete a user (admin only)", parents=[common])
    user_delete_p.add_argument("id", help="User id, username or email")
    user_delete_p.set_defaults(func=user_delete)

    # user with no verb = list
    user_p.set_defaults(func=user_list)

    return parser
