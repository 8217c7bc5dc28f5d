"""Shared fixtures for the termfolio test suite.

Every fixture works on the bundled sample portfolio, so the expected file
names below (``projects/cronwheel.md``, ``about/bio.txt``, ...) come from
``SAMPLE_PORTFOLIO``.
"""

import pytest

from termfolio.lib.interpreter import CommandInterpreter
from termfolio.lib.portfolio import SAMPLE_PORTFOLIO, to_snapshot
from termfolio.lib.session import SessionState, TerminalSession
from termfolio.lib.vfs import VFS


class FakeTimer:
    """Stands in for a Textual ``Timer``: remembers its callback, records ``stop()``."""

    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.stopped = False

    def stop(self):
        self.stopped = True

    def fire(self):
        if not self.stopped:
            self.callback()


class FakeScheduler:
    """Callable with the ``set_timer(delay, callback)`` shape; timers fire on demand."""

    def __init__(self):
        self.timers: list[FakeTimer] = []

    def __call__(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def live(self) -> list[FakeTimer]:
        return [timer for timer in self.timers if not timer.stopped]


def contents(lines):
    """Content strings of a sequence of output lines."""
    return [line.content for line in lines]


@pytest.fixture
def snapshot():
    return to_snapshot(SAMPLE_PORTFOLIO)


@pytest.fixture
def vfs(snapshot):
    return VFS.from_snapshot(snapshot)


@pytest.fixture
def interpreter(vfs):
    return CommandInterpreter(vfs)


@pytest.fixture
def state():
    return SessionState()


@pytest.fixture
def session(snapshot):
    """An open session with no scheduler, so completion work runs synchronously."""
    session = TerminalSession(snapshot)
    with session.opened():
        yield session


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def timed_session(snapshot, scheduler):
    """An open session whose debounce timers only fire when a test says so."""
    session = TerminalSession(snapshot, scheduler=scheduler)
    with session.opened():
        yield session
