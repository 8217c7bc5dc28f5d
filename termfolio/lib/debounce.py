from __future__ import annotations

from collections.abc import Callable
from typing import Protocol


class Cancellable(Protocol):
    def stop(self) -> object: ...


# ``(delay, callback) -> handle``; Widget.set_timer fits this shape
Scheduler = Callable[[float, Callable[[], None]], Cancellable]


class Debouncer:
    """
    Holds at most one delayed task.

    Scheduling stops whatever is pending before arming the new task. Without
    a scheduler the task runs on the spot, which keeps tests synchronous.
    """

    def __init__(self, delay: float, scheduler: Scheduler | None = None):
        self.delay = delay
        self.scheduler = scheduler
        self._handle: Cancellable | None = None
        self._task: Callable[[], None] | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None

    def schedule(self, task: Callable[[], None]) -> None:
        self.cancel()
        if self.scheduler is None or self.delay <= 0:
            task()
            return
        self._task = task
        self._handle = self.scheduler(self.delay, self._fire)

    def _fire(self) -> None:
        task, self._task, self._handle = self._task, None, None
        if task is not None:
            task()

    def flush(self) -> None:
        """Runs the pending task now instead of waiting for the timer."""
        if self._handle is not None:
            self._handle.stop()
        self._fire()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.stop()
        self._handle = None
        self._task = None
