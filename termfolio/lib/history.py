from __future__ import annotations

from collections import deque
from collections.abc import Iterator


class CommandHistory:
    """Submitted commands, oldest first, capped at ``LIMIT`` entries."""
    LIMIT = 1000

    def __init__(self, limit: int | None = None):
        self.limit = limit or self.LIMIT
        self._entries: deque[str] = deque(maxlen=self.limit)

    def add(self, command: str) -> None:
        """Records a command. Blank commands are not history."""
        if command.strip():
            self._entries.append(command)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> str:
        return self._entries[index]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
