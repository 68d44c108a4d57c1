"""Handlers for 'tickboard user' commands."""

from tickboard.cli._common import (
    acting_user,
    error,
    find_user_or_die,
    open_workspace,
    output_json,
    output_result,
    save,
    user_json,
)
from tickboard.errors import TicketError
from tickboard.models import Role


def _require_admin(args, settings, service):
    user = acting_user(settings, service, args.as_user, args.json)
    if user.role != Role.ADMIN:
        error("Only administrators can manage users.", args.json)
    return user


def user_list(args) -> int:
    """List user accounts."""
    settings, service = open_workspace(args.repo, args.json)
    users = service.list_users()

    if args.json:
        output_json([user_json(u) for u in users])
    else:
        for u in users:
            admin = "  (admin)" if u.role == Role.ADMIN else ""
            email = f"  <{u.email}>" if u.email else ""
            print(f"{u.id}  {u.username}{email}{admin}")

    return 0


def user_add(args) -> int:
    """Create a user account. Admin only."""
    settings, service = open_workspace(args.repo, args.json)
    _require_admin(args, settings, service)
    try:
        profile = service.add_user(args.username, email=args.email, role=Role.ADMIN if args.admin else Role.USER)
    except TicketError as e:
        error(e.message, args.json)
    save(settings, service)

    output_result(user_json(profile), f"Created user {profile.id} ({profile.username})", args.json)
    return 0


def user_delete(args) -> int:
    """Delete a user account. Their tickets stay, with the reference cleared. Admin only."""
    settings, service = open_workspace(args.repo, args.json)
    admin = _require_admin(args, settings, service)
    target = find_user_or_die(service, args.id, args.json)
    if target.id == admin.id:
        error("You cannot delete your own account.", args.json)
    service.delete_user(target.id)
    save(settings, service)

    output_result({"id": target.id, "deleted": True}, f"Deleted user {target.id} ({target.username})", args.json)
    return 0
