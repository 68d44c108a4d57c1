"""Textual UI for tickboard."""

from tickboard.ui.announcer import LiveRegion
from tickboard.ui.app import TickboardApp
from tickboard.ui.board import BoardScreen
from tickboard.ui.card import TicketCard
from tickboard.ui.column import ColumnWidget
from tickboard.ui.menu import ContextMenu, MenuItem, MenuSeparator

__all__ = [
    "BoardScreen",
    "ColumnWidget",
    "ContextMenu",
    "LiveRegion",
    "MenuItem",
    "MenuSeparator",
    "TicketCard",
    "TickboardApp",
]
