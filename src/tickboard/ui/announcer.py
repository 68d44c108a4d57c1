"""Live region showing drag announcements for screen readers and sighted users alike."""

from collections import deque

from textual.widgets import Static


class LiveRegion(Static):
    """Shows the latest announcement and keeps a short history."""

    DEFAULT_CSS = """
    LiveRegion {
        dock: bottom;
        width: 100%;
        height: 1;
        padding: 0 1;
        color: $text-muted;
    }
    """

    HISTORY = 20

    def __init__(self, **kwargs) -> None:
        super().__init__("", **kwargs)
        self.messages: deque[str] = deque(maxlen=self.HISTORY)

    @property
    def last(self) -> str | None:
        return self.messages[-1] if self.messages else None

    def announce(self, text: str) -> None:
        self.messages.append(text)
        self.update(text)
