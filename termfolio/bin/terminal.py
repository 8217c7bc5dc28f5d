from __future__ import annotations

from textual import log, on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, VerticalScroll
from textual.events import Key
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Input, Label, Static

from termfolio.lib.events import UserScrolled
from termfolio.lib.output import OutputLine, render_line
from termfolio.lib.session import TerminalSession


class PromptInput(Input):
    """The editable command line. Tab and the arrow keys belong to the shell."""

    BINDINGS = [
        Binding("tab", "complete", "Complete", show=False),
        Binding("up", "history('up')", "Previous command", show=False),
        Binding("down", "history('down')", "Next command", show=False),
    ]

    class Complete(Message):
        """Tab was pressed."""

    class Navigate(Message):
        """Up or Down was pressed."""
        def __init__(self, direction: str) -> None:
            self.direction = direction
            super().__init__()

    def action_complete(self) -> None:
        self.post_message(self.Complete())

    def action_history(self, direction: str) -> None:
        self.post_message(self.Navigate(direction))


class PromptWidget(Horizontal):
    """`guest:<cwd>$` followed by the editable line."""

    def compose(self) -> ComposeResult:
        yield Label("guest:", id="prompt-user")
        yield Label("", id="prompt-path")  # The path is dynamic
        yield Label("$", id="prompt-symbol")
        yield PromptInput(value="", id="prompt-input", valid_empty=True)

    def on_mount(self) -> None:
        self.focus_input()

    def focus_input(self) -> None:
        self.query_one("#prompt-input", PromptInput).focus()


class OutputPane(VerticalScroll):
    """Scrollable output that reports every change of its vertical offset."""

    def watch_scroll_y(self, old_value: float, new_value: float) -> None:
        super().watch_scroll_y(old_value, new_value)
        self.post_message(
            UserScrolled(new_value, self.virtual_size.height, self.scrollable_content_region.height)
        )


class PortfolioTerminal(Widget):
    """
    Textual front end for a :class:`TerminalSession`.

    Mounting the widget opens the session, unmounting closes it; the
    listeners it registers in between are released on both paths.
    """
    DEFAULT_CSS = """
    PortfolioTerminal {
        height: 1fr;
        border: round $primary-darken-1;
        border-title-color: $text-muted;
        background: $background;
        padding: 0 1;
    }
    PortfolioTerminal > OutputPane {
        height: 1fr;
        scrollbar-size-vertical: 1;
    }
    PortfolioTerminal #history-container {
        height: auto;
        layout: vertical;
    }
    PortfolioTerminal #history-container > Static {
        height: auto;
        width: 1fr;
    }
    PortfolioTerminal #current-prompt {
        height: 1;
        width: 1fr;
    }
    PortfolioTerminal PromptInput, PortfolioTerminal PromptInput:focus {
        border: none;
        background: transparent;
        height: 1;
        padding: 0;
        width: 1fr;
    }
    #prompt-user { color: $success; text-style: bold; }
    #prompt-path { color: $secondary; }
    #prompt-symbol { color: $foreground; padding-right: 1; }
    .command { text-style: bold; }
    """

    def __init__(self, session: TerminalSession, **kwargs):
        super().__init__(**kwargs)
        self.session = session
        self._unsubscribers: list = []

    def compose(self) -> ComposeResult:
        """Output rows first, the live prompt always last inside the same scroll pane."""
        with OutputPane():
            yield Container(id="history-container")
            yield PromptWidget(id="current-prompt")

    def on_mount(self) -> None:
        self.scroll_view = self.query_one(OutputPane)
        self.history_container = self.query_one("#history-container", Container)
        self.current_prompt = self.query_one("#current-prompt", PromptWidget)
        self.border_title = "guest@termfolio"

        self.session.scheduler = self.set_timer
        self.session.open()
        self._unsubscribers = [
            self.session.subscribe("append", self._on_append),
            self.session.subscribe("clear", self._on_clear),
            self.session.subscribe("cwd", self._on_cwd),
        ]
        self._mount_lines(list(self.session.lines()))
        self._update_prompt_label()
        log("Terminal widget mounted.")

    def on_unmount(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self.session.close()

    @property
    def prompt_input(self) -> PromptInput:
        return self.current_prompt.query_one("#prompt-input", PromptInput)

    # --- Session listeners ---

    def _on_append(self, lines: list[OutputLine]) -> None:
        self._mount_lines(lines)

    def _on_clear(self) -> None:
        self.history_container.remove_children()

    def _on_cwd(self, path: str) -> None:
        self._update_prompt_label()

    def _mount_lines(self, lines: list[OutputLine]) -> None:
        if not lines:
            return
        with self.app.batch_update():
            self.history_container.mount(
                *(Static(render_line(line), classes=line.kind.value) for line in lines)
            )
        self._follow_output()

    def _update_prompt_label(self) -> None:
        """Shows the working directory between `guest:` and `$`."""
        path_label = self.current_prompt.query_one("#prompt-path", Label)
        path_label.update(self.session.state.current_directory)

    def _sync_input(self) -> None:
        """Copies the controller's buffer into the Input, cursor at the end."""
        prompt = self.prompt_input
        prompt.value = self.session.input.buffer
        prompt.cursor_position = len(prompt.value)

    # --- Scrolling ---

    def _follow_output(self) -> None:
        pane = self.scroll_view

        def pin() -> None:
            target = self.session.autoscroll.after_append(
                pane.virtual_size.height, pane.scrollable_content_region.height
            )
            if target is not None:
                pane.scroll_to(y=target, animate=False)

        pane.call_after_refresh(pin)

    def scroll_to_bottom(self, animate: bool = False):
        """Snap the pane to its last row once the layout has settled."""
        self.scroll_view.call_after_refresh(lambda: self.scroll_view.scroll_end(animate=animate))

    @on(UserScrolled)
    def on_user_scrolled(self, event: UserScrolled) -> None:
        self.session.autoscroll.on_user_scroll(event.scroll_y, event.scroll_height, event.client_height)

    # --- Input ---

    def on_key(self, event: Key) -> None:
        """Printable keys typed while the prompt lost focus still land in it."""
        input_widget = self.prompt_input
        if event.is_printable and not input_widget.has_focus:
            self.scroll_to_bottom()
            input_widget.focus()
            input_widget.post_message(event)
            event.stop()

    @on(Input.Changed, "#prompt-input")
    def on_input_changed(self, event: Input.Changed) -> None:
        """Typing counts as an edit and snaps the view back down."""
        self.session.input.edit(event.value)
        self.scroll_to_bottom()

    @on(Input.Submitted, "#prompt-input")
    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.session.submit(event.value)
        if self.session.is_open:
            self._sync_input()

    @on(PromptInput.Complete)
    def on_complete(self, event: PromptInput.Complete) -> None:
        self.session.input.tab_complete()
        self._sync_input()

    @on(PromptInput.Navigate)
    def on_navigate(self, event: PromptInput.Navigate) -> None:
        self.session.input.navigate_history(event.direction)
        self._sync_input()
