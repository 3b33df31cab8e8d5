"""Shared fixtures and test doubles."""

from __future__ import annotations

import os
import time
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

import pytest

from cache_cleaner.errors import ExternalCommandError, FatalIOError
from cache_cleaner.filesystem import DiskUsage, LocalFileSystem
from cache_cleaner.interfaces import CleanupIO
from cache_cleaner.process import CommandResult

DAY = 86400


class ScriptedConsole:
    """Console double that answers prompts from a list and records output."""

    def __init__(self, answers: Iterable[str] = (), *, closed: bool = False) -> None:
        self.answers = list(answers)
        self.closed = closed
        self.prompts: list[str] = []
        self.lines: list[tuple[str, str]] = []
        self.shown: list[Any] = []

    def ensure_input(self) -> None:
        if self.closed:
            raise FatalIOError("Input stream is closed")

    def ask(self, prompt: str) -> str:
        self.ensure_input()
        self.prompts.append(prompt)
        if not self.answers:
            raise FatalIOError("Input stream closed (EOF)")
        return self.answers.pop(0)

    def info(self, message: str) -> None:
        self.lines.append(("info", message))

    def success(self, message: str) -> None:
        self.lines.append(("success", message))

    def warning(self, message: str) -> None:
        self.lines.append(("warning", message))

    def error(self, message: str) -> None:
        self.lines.append(("error", message))

    def show(self, renderable: Any = "") -> None:
        self.shown.append(renderable)

    def messages(self, severity: str) -> list[str]:
        return [message for level, message in self.lines if level == severity]


class FakeProcessRunner:
    """Process double with configurable installed tools and canned results."""

    def __init__(
        self,
        tools: Iterable[str] = (),
        results: dict[tuple[str, ...], CommandResult] | None = None,
        unlaunchable: Iterable[str] = (),
        root: bool = False,
    ) -> None:
        self.tools = set(tools)
        self.results = results or {}
        self.unlaunchable = set(unlaunchable)
        self.root = root
        self.calls: list[tuple[tuple[str, ...], bool]] = []

    def locate(self, name: str) -> str | None:
        return f"/usr/local/bin/{name}" if name in self.tools else None

    def is_root(self) -> bool:
        return self.root

    def run(self, argv: Sequence[str], *, privileged: bool = False) -> CommandResult:
        command = tuple(argv)
        self.calls.append((command, privileged))
        if command[0] in self.unlaunchable:
            raise ExternalCommandError(f"Could not launch {command[0]}: not found")
        return self.results.get(command, CommandResult(returncode=0))

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [command for command, _privileged in self.calls]


class FixedDiskFileSystem(LocalFileSystem):
    """Real filesystem with a fixed disk usage report."""

    def disk_usage(self, path: Path = Path("/")) -> DiskUsage:
        return DiskUsage(path=path, total=500 * 1024**3, used=200 * 1024**3, free=300 * 1024**3)


def make_io(
    answers: Iterable[str] = (),
    *,
    tools: Iterable[str] = (),
    results: dict[tuple[str, ...], CommandResult] | None = None,
    closed: bool = False,
    home: Path | None = None,
) -> CleanupIO:
    """Build an I/O bundle from test doubles around the real filesystem."""
    return CleanupIO(
        console=ScriptedConsole(answers, closed=closed),
        fs=FixedDiskFileSystem(home=home),
        processes=FakeProcessRunner(tools=tools, results=results),
    )


def populate(directory: Path, files: int = 2, subdirs: int = 1, hidden: bool = True) -> Path:
    """Fill a directory with files, nested subdirectories and a dotfile."""
    directory.mkdir(parents=True, exist_ok=True)
    for index in range(files):
        (directory / f"file{index}.cache").write_text(f"data {index}")
    for index in range(subdirs):
        nested = directory / f"sub{index}" / "deeper"
        nested.mkdir(parents=True)
        (nested / "blob.bin").write_bytes(b"\x00" * 128)
    if hidden:
        (directory / ".hidden").write_text("secret")
    return directory


def snapshot(directory: Path) -> dict[str, bytes | None]:
    """Map every path under ``directory`` to its bytes (None for directories)."""
    return {
        str(path.relative_to(directory)): None if path.is_dir() else path.read_bytes()
        for path in sorted(directory.rglob("*"))
    }


def set_age(path: Path, days: float) -> None:
    """Backdate a file's modification time by ``days``."""
    stamp = time.time() - days * DAY
    os.utime(path, (stamp, stamp))


@pytest.fixture
def console() -> ScriptedConsole:
    """Console with no scripted answers."""
    return ScriptedConsole()


@pytest.fixture
def processes() -> FakeProcessRunner:
    """Process runner with no tools installed."""
    return FakeProcessRunner()


@pytest.fixture
def fs() -> FixedDiskFileSystem:
    """Real filesystem adapter with a fixed disk report."""
    return FixedDiskFileSystem()
