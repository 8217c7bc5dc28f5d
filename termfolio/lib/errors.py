"""Failures the terminal reports to the visitor.

Every error carries the exact line shown in the output pane, so the
interpreter can surface it without knowing which command raised it.
"""


class TerminalError(Exception):
    """Base class for all user-facing terminal failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class PathNotFound(TerminalError, FileNotFoundError):
    """A path (or one of its segments) does not exist."""


class NotADirectory(TerminalError, NotADirectoryError):
    """A directory was required but the path names a file."""


class IsADirectory(TerminalError, IsADirectoryError):
    """A file was required but the path names a directory."""


class CommandNotFound(TerminalError):
    """The first token of a line is not a registered command."""


class InvalidArguments(TerminalError, ValueError):
    """A command received arguments it cannot work with."""
