"""Main Textual application for tickboard."""

import logging
from pathlib import Path

from textual.app import App

from tickboard.api import LocalTicketApi, TicketApi
from tickboard.config import Settings, load_settings, resolve_acting_user
from tickboard.coordinator import Coordinator
from tickboard.errors import TicketError
from tickboard.models import UserContext
from tickboard.storage import load_workspace, save_workspace
from tickboard.store import BoardStore
from tickboard.ui.board import LOAD_FAILED, BoardScreen

logger = logging.getLogger(__name__)

READ_ONLY = "No matching user. The board is read-only."


class TickboardApp(App):
    """Ticket board TUI.

    By default the board is backed by the workspace file named in the repo's
    git config. ``api`` and ``user`` replace that, e.g. for a remote backend.
    """

    TITLE = "tickboard"
    BINDINGS = [("ctrl+q", "quit", "Quit")]

    def __init__(
        self,
        repo_path: Path,
        as_user: str | None = None,
        api: TicketApi | None = None,
        user: UserContext | None = None,
    ):
        super().__init__()
        self.repo_path = repo_path
        self.as_user = as_user
        self.settings: Settings = load_settings(repo_path)
        self.api = api
        self.user = user
        self.username: str | None = None
        self.coordinator: Coordinator | None = None

    def _build_local_api(self) -> None:
        data_path = self.settings.data_path
        try:
            service = load_workspace(data_path)
        except TicketError as exc:
            self.notify(exc.message, severity="error")
            logger.error("cannot load workspace %s: %s", data_path, exc)
            return
        if not data_path.exists():
            self.notify("No workspace found. Run 'tickboard init' to create one.", severity="warning")
        profile = resolve_acting_user(self.settings, service, self.as_user)
        self.api = LocalTicketApi(
            service,
            profile.id if profile else None,
            on_write=lambda s: save_workspace(data_path, s),
        )

    async def _resolve_user(self) -> None:
        """Ask the backend who we are. Without an answer the board is read-only."""
        try:
            profile = await self.api.fetch_current_user()
        except TicketError as exc:
            logger.info("no acting user: %s", exc)
            self.notify(READ_ONLY, severity="warning")
            return
        self.user = UserContext(profile.id, profile.role)
        self.username = profile.username
        self.sub_title = profile.username

    async def on_mount(self) -> None:
        if self.api is None:
            self._build_local_api()
            if self.api is None:
                return
        if self.user is None:
            await self._resolve_user()
        self.coordinator = Coordinator(
            self.api,
            BoardStore(),
            self.user,
            notify=lambda message, severity: self.notify(message, severity=severity),
            request_timeout=self.settings.request_timeout,
        )
        await self.push_screen(
            BoardScreen(
                self.coordinator,
                username=self.username,
                drag_threshold=self.settings.drag_threshold,
                keyboard_step=self.settings.keyboard_step,
            )
        )
        try:
            await self.coordinator.refresh()
        except TicketError as exc:
            logger.warning("initial load failed: %s", exc)
            self.notify(LOAD_FAILED, severity="error")
