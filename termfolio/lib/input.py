from __future__ import annotations

import os
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from termfolio.lib.console import log
from termfolio.lib.debounce import Debouncer, Scheduler
from termfolio.lib.errors import TerminalError
from termfolio.lib.history import CommandHistory
from termfolio.lib.interpreter import PATH_COMMANDS, CommandInterpreter


class Direction(Enum):
    UP = "up"
    DOWN = "down"


@dataclass
class CompletionState:
    """One completion episode; only meaningful for the buffer that produced it."""
    candidates: list[str]
    source_token: str
    head: str
    kind: str
    cursor_index: int = -1


@dataclass(frozen=True)
class _Candidates:
    buffer: str
    head: str
    token: str
    matches: tuple[str, ...]
    kind: str


class InputController:
    """
    Owns the editable prompt line: submission, history recall and tab
    completion.

    Every change coming from the user goes through :meth:`edit`. Values the
    controller writes itself (recalled history, completions) do not count as
    edits, so a second Tab can keep cycling through the same candidates.
    """
    COMPLETION_DELAY = 0.1

    def __init__(
        self,
        interpreter: CommandInterpreter,
        history: CommandHistory,
        on_submit: Callable[[str], object],
        cwd: Callable[[], str],
        on_candidates: Callable[[list[str]], object] | None = None,
        scheduler: Scheduler | None = None,
        delay: float | None = None,
    ):
        self.interpreter = interpreter
        self.history = history
        self.on_submit = on_submit
        self.cwd = cwd
        self.on_candidates = on_candidates
        self.debouncer = Debouncer(self.COMPLETION_DELAY if delay is None else delay, scheduler)

        self._buffer = ""
        self._history_index: int | None = None
        self.completion: CompletionState | None = None
        self._cache: _Candidates | None = None

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def history_index(self) -> int | None:
        return self._history_index

    def reset(self) -> None:
        """Empties the line and forgets every pointer; used when the session opens or closes."""
        self.debouncer.cancel()
        self._buffer = ""
        self._history_index = None
        self.completion = None
        self._cache = None

    # --- Editing ---

    def edit(self, value: str) -> None:
        if value == self._buffer:
            return
        self._buffer = value
        self._history_index = None
        self.completion = None
        self.debouncer.schedule(self._precompute)

    def submit(self, line: str | None = None) -> bool:
        """Runs the line (the buffer by default). Returns False for blank lines."""
        line = self._buffer if line is None else line
        self.reset()
        command = line.strip()
        if not command:
            return False
        self.history.add(command)
        log(f"Submitted: {command}", topic="input")
        self.on_submit(command)
        return True

    def navigate_history(self, direction: Direction | str) -> None:
        direction = Direction(direction)
        size = len(self.history)
        if size == 0:
            return
        index = self._history_index
        if direction is Direction.UP:
            if index == 0:
                return
            index = size - 1 if index is None else index - 1
        else:
            if index is None:
                return
            index = None if index >= size - 1 else index + 1

        self._history_index = index
        self._buffer = "" if index is None else self.history[index]
        self.completion = None
        self.debouncer.cancel()

    # --- Completion ---

    def _analyse(self, buffer: str) -> _Candidates | None:
        if not buffer.strip():
            return None
        token = re.split(r"\s", buffer)[-1]
        head = buffer[: len(buffer) - len(token)]
        if not head.strip():
            commands = tuple(name for name in self.interpreter.completable_commands if name.startswith(token))
            if commands:
                return _Candidates(buffer, head, token, commands, "command")
        elif head.split()[0] not in PATH_COMMANDS:
            return None
        paths = tuple(self.interpreter.vfs.get_completions(token, self.cwd()))
        return _Candidates(buffer, head, token, paths, "path")

    def _precompute(self) -> None:
        self._cache = self._analyse(self._buffer)

    def _suffix(self, kind: str, candidate: str) -> str:
        if kind == "command":
            return " "
        try:
            path = self.interpreter.vfs.resolve_path(self.cwd(), candidate)
        except TerminalError:
            return " "
        return "/" if self.interpreter.vfs.is_dir(path) else " "

    def tab_complete(self) -> None:
        """
        First Tab: complete a unique match, or extend to the longest common
        prefix of path matches and show every candidate. Further Tabs cycle
        through the candidates until the line is edited.
        """
        self.debouncer.flush()

        state = self.completion
        if state is not None:
            state.cursor_index = (state.cursor_index + 1) % len(state.candidates)
            candidate = state.candidates[state.cursor_index]
            self._buffer = state.head + candidate + self._suffix(state.kind, candidate)
            return

        found = self._cache if self._cache is not None and self._cache.buffer == self._buffer else None
        if found is None:
            found = self._analyse(self._buffer)
        if found is None or not found.matches:
            return

        if len(found.matches) == 1:
            match = found.matches[0]
            self._buffer = found.head + match + self._suffix(found.kind, match)
            self._cache = None
            return

        if found.kind == "path":
            prefix = os.path.commonprefix(found.matches)
            if len(prefix) > len(found.token):
                self._buffer = found.head + prefix
        self.completion = CompletionState(list(found.matches), found.token, found.head, found.kind)
        if self.on_candidates is not None:
            self.on_candidates(list(found.matches))
