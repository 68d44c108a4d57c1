"""Drag and keyboard interaction state machine for moving cards between columns.

The machine knows nothing about widgets. It is fed pointer positions and key
names, asks injected callables for the column layout and whether a card is
disabled, and emits announcements and MoveIntents. Every method returns
immediately.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from textual.geometry import Offset, Region

from tickboard.coordinator import MoveIntent
from tickboard.models import TicketStatus

logger = logging.getLogger(__name__)

GRAB_KEYS = frozenset({"space", "enter", "g"})
DROP_KEYS = frozenset({"space", "enter", "d"})
CANCEL_KEYS = frozenset({"escape"})
ARROWS = {
    "left": (-1, 0),
    "right": (1, 0),
    "up": (0, -1),
    "down": (0, 1),
}


class DragState(StrEnum):
    IDLE = "idle"
    PRESSED = "pressed"
    GRABBED = "grabbed"
    DRAGGING = "dragging"


class DragResult(StrEnum):
    """What a finished gesture amounted to."""

    CLICK = "click"
    DROPPED = "dropped"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


@dataclass(frozen=True)
class DropZone:
    status: TicketStatus
    region: Region


class DragMachine:
    """Pointer and keyboard drag of a single card at a time.

    PRESSED only exists for pointer input: the card is held but has not yet
    moved past ``drag_threshold``. GRABBED is a keyboard pick-up, DRAGGING a
    pointer drag. Dropping or cancelling returns to IDLE.
    """

    def __init__(
        self,
        columns: Callable[[], list[DropZone]],
        is_disabled: Callable[[str], bool],
        announce: Callable[[str], None],
        on_intent: Callable[[MoveIntent], None],
        title_of: Callable[[str], str] | None = None,
        drag_threshold: int = 2,
        keyboard_step: int = 26,
    ) -> None:
        self.columns = columns
        self.is_disabled = is_disabled
        self.announce = announce
        self.on_intent = on_intent
        self.title_of = title_of or (lambda ticket_id: ticket_id)
        self.drag_threshold = drag_threshold
        self.keyboard_step = keyboard_step
        self._reset()

    def _reset(self) -> None:
        self.state = DragState.IDLE
        self.ticket_id: str | None = None
        self.source: TicketStatus | None = None
        self.hover: TicketStatus | None = None
        self.cursor = Offset(0, 0)
        self._press_pos: Offset | None = None

    @property
    def active(self) -> bool:
        """True while a card is picked up."""
        return self.state in (DragState.GRABBED, DragState.DRAGGING)

    def is_focusable(self, ticket_id: str) -> bool:
        """While a card is picked up, every other card is inert."""
        return not self.active or ticket_id == self.ticket_id

    # -- pointer --

    def pointer_down(self, ticket_id: str, status: TicketStatus, x: int, y: int) -> None:
        if self.state is not DragState.IDLE:
            return
        self.state = DragState.PRESSED
        self.ticket_id = ticket_id
        self.source = status
        self._press_pos = Offset(x, y)
        self.cursor = Offset(x, y)

    def pointer_move(self, x: int, y: int) -> None:
        if self.state is DragState.PRESSED:
            dx = abs(x - self._press_pos.x)
            dy = abs(y - self._press_pos.y)
            if dx <= self.drag_threshold and dy <= self.drag_threshold:
                return
            if not self._grab(DragState.DRAGGING):
                return
        if self.state is DragState.DRAGGING:
            self.cursor = Offset(x, y)
            self._update_hover()

    def pointer_up(self, x: int, y: int) -> DragResult | None:
        match self.state:
            case DragState.PRESSED:
                self._reset()
                return DragResult.CLICK
            case DragState.DRAGGING:
                self.cursor = Offset(x, y)
                self._update_hover()
                return self._drop()
        return None

    # -- keyboard --

    def key(self, name: str, focused: tuple[str, TicketStatus, int, int] | None = None) -> DragResult | bool:
        """Feed a key press.

        ``focused`` is (ticket_id, status, x, y) of the card with focus and is
        only needed to pick one up. Returns a DragResult when the gesture
        ends, otherwise whether the key was consumed.
        """
        if name in CANCEL_KEYS and self.state is not DragState.IDLE:
            return self.cancel()

        match self.state:
            case DragState.IDLE:
                if name in GRAB_KEYS and focused is not None:
                    ticket_id, status, x, y = focused
                    self.ticket_id = ticket_id
                    self.source = status
                    self.cursor = Offset(x, y)
                    if not self._grab(DragState.GRABBED):
                        return DragResult.REJECTED
                    return True
                return False
            case DragState.GRABBED:
                if name in DROP_KEYS:
                    return self._drop()
                if name in ARROWS:
                    dx, dy = ARROWS[name]
                    self.cursor = Offset(self.cursor.x + dx * self.keyboard_step, self.cursor.y + dy * self.keyboard_step)
                    self._update_hover()
                    return True
                return True
            case _:
                return False

    # -- transitions --

    def _grab(self, state: DragState) -> bool:
        ticket_id = self.ticket_id
        if self.is_disabled(ticket_id):
            self.announce(f"{self.title_of(ticket_id)} cannot be moved.")
            logger.debug("grab of %s rejected", ticket_id)
            self._reset()
            return False
        self.state = state
        self._press_pos = None
        self.hover = None
        self.announce(f"Picked up ticket {self.title_of(ticket_id)}.")
        logger.debug("picked up %s from %s (%s)", ticket_id, self.source, state)
        if state is DragState.GRABBED:
            self._update_hover()
        return True

    def _zone_at(self, x: int, y: int) -> TicketStatus | None:
        for zone in self.columns():
            if zone.region.contains(x, y):
                return zone.status
        return None

    def _update_hover(self) -> None:
        zone = self._zone_at(self.cursor.x, self.cursor.y)
        if zone == self.hover:
            return
        self.hover = zone
        title = self.title_of(self.ticket_id)
        if zone is None:
            self.announce(f"Ticket {title} is no longer over a droppable area.")
        else:
            self.announce(f"Ticket {title} is over column {zone.label}.")

    def _drop(self) -> DragResult:
        target = self.hover
        if target is None or target == self.source:
            return self.cancel()
        intent = MoveIntent(self.ticket_id, self.source, target)
        self.announce(f"Ticket {self.title_of(self.ticket_id)} was dropped into column {target.label}.")
        logger.debug("dropped %s into %s", self.ticket_id, target)
        self._reset()
        self.on_intent(intent)
        return DragResult.DROPPED

    def cancel(self) -> DragResult:
        """Abandon the gesture. The card stays in its source column."""
        if self.state in (DragState.IDLE, DragState.PRESSED):
            self._reset()
            return DragResult.CANCELLED
        title = self.title_of(self.ticket_id)
        source = self.source
        self._reset()
        self.announce(f"Dragging was cancelled. Ticket {title} was dropped back into {source.label}.")
        return DragResult.CANCELLED
