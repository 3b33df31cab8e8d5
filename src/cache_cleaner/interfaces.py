"""Protocols for the I/O seam the cleanup engine depends on.

The engine never touches the terminal, the disk, or subprocesses directly:
everything goes through a :class:`CleanupIO` bundle so tests can swap in
scripted answers and fake tools.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .filesystem import DiskUsage
    from .process import CommandResult


@runtime_checkable
class ConsoleChannel(Protocol):
    """Reads confirmations and writes status lines."""

    def ensure_input(self) -> None:
        """Raise FatalIOError if input cannot be read."""
        ...

    def ask(self, prompt: str) -> str:
        """Prompt and return one line of input."""
        ...

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def show(self, renderable: Any = "") -> None: ...


@runtime_checkable
class FileSystem(Protocol):
    """Size queries and deletions."""

    def exists(self, path: Path) -> bool: ...

    def is_dir(self, path: Path) -> bool: ...

    def size_of(self, path: Path) -> int: ...

    def erase_contents(self, path: Path) -> int: ...

    def delete_all(self, path: Path) -> int: ...

    def delete_matching(
        self,
        root: Path,
        patterns: Iterable[str],
        *,
        min_age_days: int | None = None,
        directories: bool = False,
        now: float | None = None,
    ) -> list[Path]: ...

    def disk_usage(self, path: Path = ...) -> DiskUsage: ...


@runtime_checkable
class ProcessRunner(Protocol):
    """Tool lookup and subprocess invocation."""

    def locate(self, name: str) -> str | None: ...

    def is_root(self) -> bool: ...

    def run(self, argv: Sequence[str], *, privileged: bool = False) -> CommandResult: ...


def _default_console() -> ConsoleChannel:
    from .console import RichConsole

    return RichConsole()


def _default_filesystem() -> FileSystem:
    from .filesystem import LocalFileSystem

    return LocalFileSystem()


def _default_processes() -> ProcessRunner:
    from .process import SubprocessRunner

    return SubprocessRunner()


@dataclass
class CleanupIO:
    """Everything the engine may use to talk to the outside world."""

    console: ConsoleChannel = field(default_factory=_default_console)
    fs: FileSystem = field(default_factory=_default_filesystem)
    processes: ProcessRunner = field(default_factory=_default_processes)
