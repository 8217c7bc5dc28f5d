"""
termfolio v0.5
A portfolio you browse with a shell
Built with Textual v6.5.0

The app is the hosting shell: a landing view with the visitor's name and
role, and a terminal that opens on top of it. Inside the terminal the
portfolio is a read-only file system:

- about/, experience/, projects/, skills/, contact/
- ls, cd, cat, pwd, tree, help, clear, echo, whoami, date, neofetch
- about, experience, projects, skills, contact print a whole section
- exit (or gui) goes back to the landing view

Debug output goes to a socket console: run `python -m termfolio.lib.console`
in a second terminal before starting the app.
"""
from __future__ import annotations

import argparse

from textual import log, on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Static

from termfolio.bin.terminal import PortfolioTerminal
from termfolio.lib.console import redirect_stdout
from termfolio.lib.events import OpenTerminal, TerminalClosed
from termfolio.lib.portfolio import SAMPLE_PORTFOLIO, Portfolio, load_portfolio, to_snapshot
from termfolio.lib.session import TerminalSession


def welcome_banner(portfolio: Portfolio) -> list[str]:
    name = portfolio["about"]["name"]
    return [
        f"Welcome to {name}'s Portfolio Terminal",
        "Type 'help' to see available commands.",
        "Type 'exit' or 'gui' to return to the regular view.",
        "",
    ]


def landing_text(portfolio: Portfolio) -> str:
    about = portfolio["about"]
    return f"[b]{about['name']}[/b]\n{about['role']}\n\n[dim]Press ctrl+t to open the terminal.[/dim]"


# ─────────────────────────────────────────────────────────────────────────────
#  Main Application
# ─────────────────────────────────────────────────────────────────────────────
class Termfolio(App):
    """
    Hosts the terminal session: mounts the terminal widget when asked to
    open and removes it once the session reports that it closed.
    """
    CSS = """
    #landing {
        width: 100%;
        height: 1fr;
        content-align: center middle;
        text-align: center;
    }
    """
    BINDINGS = [
        Binding("ctrl+t", "toggle_terminal", "Terminal", priority=True),
        Binding("escape", "close_terminal", "Close terminal", priority=True),
    ]

    def __init__(self, portfolio: Portfolio | None = None, open_on_start: bool = True, **kwargs):
        super().__init__(**kwargs)
        self.portfolio = portfolio or SAMPLE_PORTFOLIO
        self.open_on_start = open_on_start
        self.session = TerminalSession(
            to_snapshot(self.portfolio),
            banner=welcome_banner(self.portfolio),
            on_close=lambda: self.post_message(TerminalClosed()),
        )

    def compose(self) -> ComposeResult:
        yield Static(landing_text(self.portfolio), id="landing")
        yield Footer()

    def on_mount(self) -> None:
        if self.open_on_start:
            self.post_message(OpenTerminal())

    @property
    def terminal(self) -> PortfolioTerminal | None:
        return next(iter(self.query(PortfolioTerminal)), None)

    @on(OpenTerminal)
    async def on_open_terminal(self, message: OpenTerminal) -> None:
        if self.terminal is not None:
            return
        self.query_one("#landing", Static).display = False
        await self.mount(PortfolioTerminal(self.session, id="terminal"), before=self.query_one(Footer))

    @on(TerminalClosed)
    async def on_terminal_closed(self, message: TerminalClosed) -> None:
        # also posted while the app shuts down and the DOM is already gone
        if not self.is_running:
            return
        terminal = self.terminal
        if terminal is not None:
            await terminal.remove()
        for landing in self.query("#landing"):
            landing.display = True

    def action_toggle_terminal(self) -> None:
        if self.session.is_open:
            self.session.close()
        else:
            self.post_message(OpenTerminal())

    def action_close_terminal(self) -> None:
        self.session.close()

    def action_open_link(self, url: str) -> None:
        """Target of the click action attached to every link in the output."""
        log(f"Opening {url}")
        self.open_url(url, new_tab=True)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="termfolio", description="Browse a portfolio from a shell.")
    parser.add_argument(
        "content",
        nargs="?",
        help="portfolio JSON file (about, experience, projects, skills, contact); "
        "the bundled sample is used when omitted",
    )
    args = parser.parse_args(argv)
    portfolio = load_portfolio(args.content) if args.content else None
    redirect_stdout()  # console log
    Termfolio(portfolio).run()


if __name__ == "__main__":
    main()
