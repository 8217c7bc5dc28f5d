from __future__ import annotations

from textual import log
from textual.message import Message

# =============================================================================
# Custom Messages
# =============================================================================


class OpenTerminal(Message):
    """A message to request showing the terminal."""
    def __init__(self) -> None:
        log("Posting request to open the terminal.")
        super().__init__()


class TerminalClosed(Message):
    """Posted once the terminal session has closed (exit command or host request)."""
    def __init__(self, reason: str = "closed") -> None:
        log(f"Terminal closed ({reason}).")
        self.reason = reason
        super().__init__()


class UserScrolled(Message):
    """Posted by the output pane when its vertical offset changes."""
    def __init__(self, scroll_y: float, scroll_height: float, client_height: float) -> None:
        self.scroll_y = scroll_y
        self.scroll_height = scroll_height
        self.client_height = client_height
        super().__init__()
