"""Fixtures for UI tests."""

import asyncio

import pytest

from tickboard.ui.app import TickboardApp
from tickboard.ui.menu import MenuItem, MenuSeparator


@pytest.fixture
def menu_items():
    """A flat menu with disabled items and separators.

    Structure:
    - Title (disabled)
    - ---
    - Open
    - Save (disabled)
    - Close
    - ---
    - Quit
    """
    return [
        MenuItem("Title", disabled=True),
        MenuSeparator(),
        MenuItem("Open", item_id="open"),
        MenuItem("Save", item_id="save", disabled=True),
        MenuItem("Close", item_id="close"),
        MenuSeparator(),
        MenuItem("Quit", item_id="quit"),
    ]


@pytest.fixture
def make_app(tmp_path, make_api):
    """Build a TickboardApp over the shared service for the given user.

    Returns (app, api). Notifications are recorded on ``app.notes``.
    """

    def _make(user):
        api = make_api(user.id if user else None)
        app = TickboardApp(tmp_path, api=api, user=user)
        app.notes = []
        app.notify = lambda message, severity="information", **kwargs: app.notes.append((message, severity))
        return app, api

    return _make


async def _settle(pilot, screen=None):
    await pilot.pause()
    if screen is not None and screen.mutations:
        await asyncio.gather(*list(screen.mutations))
    await pilot.pause()
    await pilot.pause()


@pytest.fixture
def settle():
    """Let pending mutations finish and the board re-render."""
    return _settle
