from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field

from termfolio.lib.console import log
from termfolio.lib.debounce import Scheduler
from termfolio.lib.history import CommandHistory
from termfolio.lib.input import InputController
from termfolio.lib.interpreter import CommandInterpreter
from termfolio.lib.output import AutoScroll, OutputLine, OutputLog, command, info
from termfolio.lib.vfs import ROOT, VFS

EVENTS = ("append", "clear", "cwd")


@dataclass
class SessionState:
    """Everything a terminal remembers between two keystrokes."""
    current_directory: str = ROOT
    is_open: bool = False
    history: CommandHistory = field(default_factory=CommandHistory)
    output: OutputLog = field(default_factory=OutputLog)


class TerminalSession:
    """
    The single object a host talks to.

    It owns the VFS (built on the first open, reused afterwards), the
    interpreter, the input controller and the output log. Listeners added
    with :meth:`subscribe` live until the next :meth:`close`; ``on_open`` and
    ``on_close`` are the host's own hooks and stay for the page lifetime.
    """

    def __init__(
        self,
        snapshot: Mapping,
        *,
        banner: list[str] | None = None,
        scheduler: Scheduler | None = None,
        completion_delay: float | None = None,
        scroll_threshold: float | None = None,
        history_limit: int | None = None,
        on_open: Callable[[], object] | None = None,
        on_close: Callable[[], object] | None = None,
    ):
        self.snapshot = snapshot
        self.banner = banner or []
        self.scheduler = scheduler
        self.completion_delay = completion_delay
        self.on_open = on_open
        self.on_close = on_close

        self.state = SessionState(history=CommandHistory(history_limit))
        self.autoscroll = AutoScroll(scroll_threshold)
        self.vfs: VFS | None = None
        self.interpreter: CommandInterpreter | None = None
        self._input: InputController | None = None
        self._listeners: dict[str, list[Callable]] = defaultdict(list)

    # --- Lifecycle ---

    @property
    def is_open(self) -> bool:
        return self.state.is_open

    @property
    def input(self) -> InputController:
        if self._input is None:
            raise RuntimeError("the terminal session has never been opened")
        return self._input

    def open(self) -> None:
        """CLOSED -> OPEN: fresh output and root directory, history kept."""
        if self.state.is_open:
            return
        if self.vfs is None:
            self.vfs = VFS.from_snapshot(self.snapshot)
            self.interpreter = CommandInterpreter(self.vfs)
            self._input = InputController(
                self.interpreter,
                self.state.history,
                on_submit=self.execute,
                cwd=lambda: self.state.current_directory,
                on_candidates=self.show_candidates,
                delay=self.completion_delay,
            )
        self._input.debouncer.scheduler = self.scheduler
        self._input.reset()
        self.state.current_directory = ROOT
        self.state.output.clear()
        self.autoscroll.force()
        self.state.is_open = True
        if self.banner:
            self.state.output.extend(info(row) for row in self.banner)
        log(f"Session opened ({len(self.state.history)} commands in history).", topic="session")
        if self.on_open is not None:
            self.on_open()

    def close(self) -> None:
        """OPEN -> CLOSED: drops scoped listeners and any pending completion."""
        if not self.state.is_open:
            return
        self.state.is_open = False
        self.input.reset()
        self._listeners.clear()
        log("Session closed.", topic="session")
        if self.on_close is not None:
            self.on_close()

    @contextmanager
    def opened(self) -> Iterator[TerminalSession]:
        self.open()
        try:
            yield self
        finally:
            self.close()

    # --- Listeners ---

    def subscribe(self, event: str, callback: Callable) -> Callable[[], None]:
        """Registers ``callback`` for ``event`` and returns its unsubscribe function."""
        if event not in EVENTS:
            raise ValueError(f"unknown session event {event!r}")
        self._listeners[event].append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners.get(event, ()):
                self._listeners[event].remove(callback)

        return unsubscribe

    def _emit(self, event: str, *args) -> None:
        for callback in list(self._listeners.get(event, ())):
            callback(*args)

    # --- Commands ---

    def submit(self, line: str) -> bool:
        """Types ``line`` at the prompt and presses Enter."""
        if not self.state.is_open:
            return False
        return self.input.submit(line)

    def execute(self, line: str) -> list[OutputLine]:
        """Runs one command line and appends its echo and output to the log."""
        if not self.state.is_open or self.interpreter is None:
            return []
        cwd = self.state.current_directory
        result = self.interpreter.run(line, self.state)
        lines = self._append([command(f"{cwd}$ {line}"), *result.lines])

        if self.state.current_directory != cwd:
            self._emit("cwd", self.state.current_directory)
        if result.clear:
            self.state.output.clear()
            self._emit("clear")
        if result.close:
            self.close()
        return lines

    def show_candidates(self, candidates: list[str]) -> None:
        self._append([info("  ".join(candidates))])

    def _append(self, lines: list[OutputLine]) -> list[OutputLine]:
        added = self.state.output.extend(lines)
        self._emit("append", added)
        return added

    def lines(self) -> Iterator[OutputLine]:
        """Lazily yields the current output log, oldest first."""
        yield from self.state.output
