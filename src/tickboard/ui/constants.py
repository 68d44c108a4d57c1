"""Icons used across the tickboard UI."""

ICON_TICKET = "\U0001f3ab"
ICON_MOVE_TO = "➡"
ICON_PERSON = "\U0001f464"
ICON_UNASSIGN = "✖"
ICON_SAVING = "⏳"
ICON_LOCKED = "\U0001f512"
ICON_AI = "✨"

TYPE_ICONS = {
    "BUG": "\U0001f41b",
    "IMPROVEMENT": "\U0001f4a1",
    "TASK": "☑",
}
