"""Interactive console: prompts and severity-tagged status lines."""

from __future__ import annotations

import sys
from typing import IO, Any

from rich.console import Console
from rich.text import Text

from .errors import FatalIOError

# Marker text and style per severity
MARKERS: dict[str, tuple[str, str]] = {
    "info": ("[INFO]", "blue"),
    "success": ("[SUCCESS]", "green"),
    "warning": ("[WARNING]", "bold yellow"),
    "error": ("[ERROR]", "red"),
}


class RichConsole:
    """Console channel backed by :class:`rich.console.Console` and stdin."""

    def __init__(self, console: Console | None = None, stdin: IO[str] | None = None) -> None:
        """Initialize the console channel.

        Args:
            console: Rich console for output. A default one writes to stdout.
            stdin: Stream to read answers from. Defaults to ``sys.stdin``.

        """
        self.console = console or Console(highlight=False)
        self._stdin = stdin

    @property
    def stdin(self) -> IO[str] | None:
        return self._stdin if self._stdin is not None else sys.stdin

    def ensure_input(self) -> None:
        """Fail fast if there is no usable input stream.

        Raises:
            FatalIOError: If stdin is missing or closed.

        """
        stream = self.stdin
        if stream is None or stream.closed:
            raise FatalIOError("Input stream is closed")

    def ask(self, prompt: str) -> str:
        """Write a prompt and read one line of input.

        Blocks until a line arrives.

        Args:
            prompt: Question text, ending in ``(y/n):``.

        Returns:
            Line read, without the trailing newline.

        Raises:
            FatalIOError: If the input stream is closed or unreadable.

        """
        self.ensure_input()
        self.console.print()
        self.console.print(Text(prompt, style="yellow"), end=" ")

        try:
            line = self.stdin.readline()
        except (OSError, ValueError) as e:
            raise FatalIOError(f"Could not read from input: {e}") from e

        if line == "":
            raise FatalIOError("Input stream closed (EOF)")
        return line.rstrip("\r\n")

    def _status(self, severity: str, message: str) -> None:
        marker, style = MARKERS[severity]
        try:
            self.console.print(Text.assemble((marker, style), " ", message))
        except OSError as e:
            raise FatalIOError(f"Could not write to console: {e}") from e

    def info(self, message: str) -> None:
        self._status("info", message)

    def success(self, message: str) -> None:
        self._status("success", message)

    def warning(self, message: str) -> None:
        self._status("warning", message)

    def error(self, message: str) -> None:
        self._status("error", message)

    def show(self, renderable: Any = "") -> None:
        """Print a plain line or a rich renderable (tables, rules)."""
        try:
            self.console.print(renderable)
        except OSError as e:
            raise FatalIOError(f"Could not write to console: {e}") from e
