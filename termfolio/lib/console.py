"""Out-of-process debug console for termfolio.

The Textual screen owns the real terminal, so the core logs over a local
socket instead. Run ``python -m termfolio.lib.console`` in another terminal
to watch the messages. Without a listener the client backs off and the
calls are no-ops.
"""

import datetime
import os
import socket
import sys
import threading
import time

from rich.console import Console
from rich.text import Text


def _address() -> tuple[str, int]:
    host, _, port = os.environ.get("TERMFOLIO_CONSOLE", "127.0.0.1:50505").rpartition(":")
    return host or "127.0.0.1", int(port)


HOST, PORT = _address()

TOPIC_STYLES = {
    "session": "bold green",
    "shell": "cyan",
    "vfs": "magenta",
    "input": "yellow",
    "app": "blue",
    "stdout": "dim",
}

# ──────────────────────────────
# CLIENT LOGGER
# ──────────────────────────────


# a connect that fails mutes the client for RETRY_AFTER seconds
TIMEOUT = 0.05
RETRY_AFTER = 5.0
_down_since: float | None = None


def log(*args: object, topic: str = "core") -> None:
    """Send one line to the console server, tagged with ``topic``."""
    global _down_since
    if _down_since is not None and time.monotonic() - _down_since < RETRY_AFTER:
        return
    message = "".join(str(arg) for arg in args)
    try:
        with socket.create_connection((HOST, PORT), timeout=TIMEOUT) as sock:
            sock.sendall(f"{topic}\t{message}\n".encode("utf-8"))
    except OSError:
        _down_since = time.monotonic()  # nobody listening
    else:
        _down_since = None


class ConsoleWriter:
    """File-like object that forwards print() output to the console."""

    def write(self, text):
        if text.strip():
            log(text.rstrip(), topic="stdout")

    def flush(self):
        pass


def redirect_stdout():
    sys.stdout = sys.stderr = ConsoleWriter()


# ──────────────────────────────
# SERVER
# ──────────────────────────────


def _format(raw: str) -> Text:
    topic, _, message = raw.partition("\t")
    if not message:
        topic, message = "core", topic
    now = datetime.datetime.now().strftime("%H:%M:%S")
    line = Text(f"[{now}] ", style="dim")
    line.append(f"{topic:<8}", style=TOPIC_STYLES.get(topic, "white"))
    line.append(f" {message}")
    return line


def _handle_client(conn, console: Console):
    with conn:
        buffer = ""
        while True:
            data = conn.recv(4096)
            if not data:
                break
            buffer += data.decode("utf-8", errors="replace")
            *lines, buffer = buffer.split("\n")
            for raw in lines:
                console.print(_format(raw))
        if buffer.strip():
            console.print(_format(buffer))


def run_server(host: str = HOST, port: int = PORT):
    console = Console(highlight=False)
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
        server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        server.bind((host, port))
        server.listen()
        console.print(Text(f"termfolio console listening on {host}:{port}", style="bold"))
        while True:
            conn, _ = server.accept()
            threading.Thread(target=_handle_client, args=(conn, console), daemon=True).start()


if __name__ == "__main__":
    run_server()
