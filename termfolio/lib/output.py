from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from rich.highlighter import JSONHighlighter
from rich.style import Style
from rich.text import Text


class LineKind(Enum):
    COMMAND = "command"
    OUTPUT = "output"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class OutputLine:
    """One rendered unit of terminal output. Never changes after creation."""
    kind: LineKind
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
    syntax: str | None = None  # "json" or "markdown" for file contents


def output(content: str, syntax: str | None = None) -> OutputLine:
    return OutputLine(LineKind.OUTPUT, content, syntax=syntax)


def error(content: str) -> OutputLine:
    return OutputLine(LineKind.ERROR, content)


def info(content: str) -> OutputLine:
    return OutputLine(LineKind.INFO, content)


def command(content: str) -> OutputLine:
    return OutputLine(LineKind.COMMAND, content)


class OutputLog:
    """Append-only, ordered record of everything the terminal printed."""

    def __init__(self) -> None:
        self._lines: list[OutputLine] = []

    def __iter__(self) -> Iterator[OutputLine]:
        return iter(list(self._lines))

    def __len__(self) -> int:
        return len(self._lines)

    def __getitem__(self, index: int) -> OutputLine:
        return self._lines[index]

    def extend(self, lines: Iterable[OutputLine]) -> list[OutputLine]:
        added = list(lines)
        self._lines.extend(added)
        return added

    def append(self, line: OutputLine) -> None:
        self._lines.append(line)

    def clear(self) -> None:
        """Replaces the log with an empty one; old entries are left untouched."""
        self._lines = []


# ─────────────────────────────────────────────────────────────────────────────
#  Auto-scroll
# ─────────────────────────────────────────────────────────────────────────────
class AutoScroll:
    """
    Decides whether the output pane follows new output.

    Offsets are in whatever unit the pane scrolls by (rows in Textual).
    While enabled, every append pins the view to the bottom. A user scroll
    that ends further than ``threshold`` from the bottom turns following
    off; scrolling back within the threshold turns it on again.
    """
    THRESHOLD: float = 1

    def __init__(self, threshold: float | None = None):
        self.threshold = self.THRESHOLD if threshold is None else threshold
        self.enabled = True

    @staticmethod
    def bottom(scroll_height: float, client_height: float) -> float:
        return max(0, scroll_height - client_height)

    def is_at_bottom(self, scroll_top: float, scroll_height: float, client_height: float) -> bool:
        return self.bottom(scroll_height, client_height) - scroll_top <= self.threshold

    def after_append(self, scroll_height: float, client_height: float) -> float | None:
        """The offset to force after an append, or None to leave the view alone."""
        if not self.enabled:
            return None
        return self.bottom(scroll_height, client_height)

    def on_user_scroll(self, scroll_top: float, scroll_height: float, client_height: float) -> bool:
        self.enabled = self.is_at_bottom(scroll_top, scroll_height, client_height)
        return self.enabled

    def force(self) -> None:
        self.enabled = True


# ─────────────────────────────────────────────────────────────────────────────
#  Links
# ─────────────────────────────────────────────────────────────────────────────
URL_PATTERN = re.compile(r"https?://[^\s<>\"'`]+", re.IGNORECASE)
TRAILING_PUNCTUATION = ".,;:!?)]}"


@dataclass(frozen=True)
class LinkSegment:
    """A run of line content; ``url`` is set when the run is a link."""
    text: str
    url: str | None = None
    target: str = "_blank"
    rel: str = "noopener noreferrer"

    @property
    def is_link(self) -> bool:
        return self.url is not None


def find_links(content: str) -> list[LinkSegment]:
    """
    Splits ``content`` into plain and link segments, in order.

    Joining the segment texts gives back ``content`` exactly, spacing
    included. Sentence punctuation right after a URL stays plain text.
    """
    segments: list[LinkSegment] = []
    position = 0
    for match in URL_PATTERN.finditer(content):
        url = match.group(0).rstrip(TRAILING_PUNCTUATION)
        start, end = match.start(), match.start() + len(url)
        if url.count("(") > url.count(")") and content[end:end + 1] == ")":
            url, end = url + ")", end + 1
        if "://" not in url or url.endswith("://"):
            continue
        if start > position:
            segments.append(LinkSegment(content[position:start]))
        segments.append(LinkSegment(url, url=url))
        position = end
    if position < len(content) or not segments:
        segments.append(LinkSegment(content[position:]))
    return segments


LINE_STYLES = {
    LineKind.COMMAND: Style(bold=True),
    LineKind.OUTPUT: Style(),
    LineKind.ERROR: Style(color="red", bold=True),
    LineKind.INFO: Style(color="cyan"),
}
LINK_STYLE = Style(color="bright_blue", underline=True)


def link_style(url: str) -> Style:
    """Clickable style: a terminal hyperlink plus a Textual click action."""
    return LINK_STYLE + Style(link=url) + Style.from_meta({"@click": f"app.open_link({url!r})"})


# ─────────────────────────────────────────────────────────────────────────────
#  File contents
# ─────────────────────────────────────────────────────────────────────────────
SYNTAX_BY_SUFFIX = {".json": "json", ".md": "markdown", ".markdown": "markdown"}

MARKDOWN_STYLES = [
    (r"^#+ .*$", Style(color="magenta", bold=True)),
    (r"\*\*[^*]+\*\*", Style(bold=True)),
    (r"^\s*[-*] ", Style(color="cyan")),
    (r"`[^`]+`", Style(color="green")),
]

_json = JSONHighlighter()


def syntax_for(path: str) -> str | None:
    """``"json"`` / ``"markdown"`` from the file name, None for plain text."""
    _, dot, suffix = path.rpartition(".")
    return SYNTAX_BY_SUFFIX.get(f".{suffix.lower()}") if dot else None


def _highlight(text: Text, syntax: str | None) -> None:
    if syntax == "json":
        _json.highlight(text)
    elif syntax == "markdown":
        for pattern, style in MARKDOWN_STYLES:
            text.highlight_regex(pattern, style)


def render_line(line: OutputLine) -> Text:
    """Builds the Rich text for one output line, links and file syntax included."""
    text = Text(no_wrap=False, end="")
    base = LINE_STYLES[line.kind]
    for segment in find_links(line.content):
        text.append(segment.text, base + link_style(segment.url) if segment.is_link else base)
    _highlight(text, line.syntax)
    return text
