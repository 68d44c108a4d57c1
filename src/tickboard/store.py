"""Observable holder for the board and per-ticket save state."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from tickboard.projection import Board, empty_board

Callback = Callable[["BoardStore", str, Any, Any], None]


class BoardStore:
    """The single piece of mutable client state.

    Holds the current Board and the set of ticket ids that are saving. Both
    are replaced wholesale; watchers on "board" or "saving" fire with
    (store, key, old, new) after each replacement.
    """

    def __init__(self, board: Board | None = None) -> None:
        self._board = board if board is not None else empty_board()
        self._saving: frozenset[str] = frozenset()
        self._watchers: dict[str, list[Callback]] = {}

    @property
    def board(self) -> Board:
        return self._board

    @property
    def saving(self) -> frozenset[str]:
        return self._saving

    def replace(self, board: Board) -> None:
        """Swap in a new board. No-op if it is the same object."""
        old = self._board
        if board is old:
            return
        self._board = board
        self._emit("board", old, board)

    def set_saving(self, ticket_id: str, saving: bool) -> None:
        old = self._saving
        new = old | {ticket_id} if saving else old - {ticket_id}
        if new == old:
            return
        self._saving = new
        self._emit("saving", old, new)

    def watch(self, key: str, callback: Callback) -> Callable[[], None]:
        """Watch "board" or "saving". Returns an unwatch callable."""
        callbacks = self._watchers.setdefault(key, [])
        callbacks.append(callback)

        def unwatch() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return unwatch

    def _emit(self, key: str, old: Any, new: Any) -> None:
        for cb in list(self._watchers.get(key, ())):
            cb(self, key, old, new)
        for cb in list(self._watchers.get("*", ())):
            cb(self, key, old, new)
