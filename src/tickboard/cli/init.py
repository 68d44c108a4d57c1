"""Handler for 'tickboard init'."""

from pathlib import Path

from tickboard.cli._common import error, output_json, save, user_json
from tickboard.config import init_repo, is_git_repo, load_settings, read_git_config, write_git_config_key
from tickboard.errors import TicketError
from tickboard.models import Role
from tickboard.service import TicketService
from tickboard.storage import load_workspace


def init_workspace(args) -> int:
    """Create a workspace with a single admin account."""
    repo_path = Path(args.repo).resolve()

    if not is_git_repo(repo_path):
        init_repo(repo_path)

    settings = load_settings(repo_path)
    if settings.data_path.exists():
        service = load_workspace(settings.data_path)
        users = [u.username for u in service.list_users()]
        if args.json:
            output_json({"repo_path": str(repo_path), "users": users, "created": False})
        else:
            print(f"Workspace already initialized at {settings.data_path}")
        return 0

    git_user = read_git_config(repo_path).get("user", {})
    username = args.username or git_user.get("name") or "admin"
    email = args.email or git_user.get("email", "")

    service = TicketService()
    try:
        admin = service.add_user(username, email=email, role=Role.ADMIN)
    except TicketError as e:
        error(e.message, args.json)
    save(settings, service)
    write_git_config_key(repo_path, "tickboard", "user", admin.id)

    if args.json:
        output_json({"repo_path": str(repo_path), "user": user_json(admin), "created": True})
    else:
        print(f"Initialized tickboard workspace at {settings.data_path}")
        print(f"Admin user: {admin.username} ({admin.id})")

    return 0
