"""Tests for the socket log client and the console server's line format."""

from types import SimpleNamespace

import pytest

from termfolio.lib import console


class FakeSocket:
    def __init__(self):
        self.sent = b""

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def sendall(self, data):
        self.sent += data


@pytest.fixture
def clock(monkeypatch):
    """Controls ``time.monotonic`` as seen by the console module."""
    now = [100.0]
    monkeypatch.setattr(console, "time", SimpleNamespace(monotonic=lambda: now[0]))
    monkeypatch.setattr(console, "_down_since", None)
    return now


# =============================================================================
# Client
# =============================================================================


class TestLog:
    """Tests for sending log lines without a server blocking the caller."""

    def test_no_listener_backs_off(self, monkeypatch, clock):
        attempts = []

        def refuse(address, timeout):
            attempts.append(timeout)
            raise ConnectionRefusedError

        monkeypatch.setattr(console.socket, "create_connection", refuse)
        console.log("first")
        console.log("second")
        console.log("third")
        assert attempts == [console.TIMEOUT]

    def test_retries_after_the_back_off(self, monkeypatch, clock):
        attempts = []

        def refuse(address, timeout):
            attempts.append(address)
            raise ConnectionRefusedError

        monkeypatch.setattr(console.socket, "create_connection", refuse)
        console.log("first")
        clock[0] += console.RETRY_AFTER
        console.log("second")
        assert len(attempts) == 2

    def test_sends_topic_and_message(self, monkeypatch, clock):
        sock = FakeSocket()
        monkeypatch.setattr(console.socket, "create_connection", lambda address, timeout: sock)
        console.log("VFS ready with ", 3, " nodes.", topic="vfs")
        assert sock.sent == b"vfs\tVFS ready with 3 nodes.\n"
        assert console._down_since is None

    def test_timeout_is_short(self):
        assert console.TIMEOUT <= 0.1


# =============================================================================
# Server format
# =============================================================================


class TestFormat:
    """Tests for turning a raw socket line into console text."""

    def test_topic_is_padded(self):
        line = console._format("shell\tls: cannot access 'x'")
        assert line.plain.endswith("shell    ls: cannot access 'x'")

    def test_line_without_topic_is_core(self):
        line = console._format("hello")
        assert "core" in line.plain
        assert line.plain.endswith(" hello")
