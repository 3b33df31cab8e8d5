"""Locate and invoke external tools (brew, npm, docker, ...)."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass

from .errors import ExternalCommandError

logger = logging.getLogger("cache-cleaner")


@dataclass(frozen=True)
class CommandResult:
    """Exit status and captured output of a finished command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """True if the command exited with status 0."""
        return self.returncode == 0

    @property
    def last_line(self) -> str:
        """Last non-empty line of stderr, falling back to stdout."""
        text = self.stderr if self.stderr.strip() else self.stdout
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        return lines[-1] if lines else ""


class SubprocessRunner:
    """Runs commands with :mod:`subprocess`, no timeout."""

    @staticmethod
    def locate(name: str) -> str | None:
        """Find an executable on ``PATH``.

        Args:
            name: Executable name.

        Returns:
            Absolute path to the executable, or None if it is not installed.

        """
        return shutil.which(name)

    @staticmethod
    def is_root() -> bool:
        """Check whether the process already runs with uid 0."""
        return hasattr(os, "geteuid") and os.geteuid() == 0

    def run(self, argv: Sequence[str], *, privileged: bool = False) -> CommandResult:
        """Run a command and capture its output.

        Privileged commands are prefixed with ``sudo`` unless the process is
        already root. Stdin is inherited so ``sudo`` can ask for a password.

        Args:
            argv: Command and arguments.
            privileged: Whether the command needs admin rights.

        Returns:
            CommandResult with exit status and captured output.

        Raises:
            ExternalCommandError: If the command cannot be launched.

        """
        command = list(argv)
        if privileged and not self.is_root():
            command = ["sudo", *command]

        logger.debug("Running command: %s", " ".join(command))
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=False,
            )
        except (subprocess.SubprocessError, OSError) as e:
            raise ExternalCommandError(f"Could not launch {command[0]}: {e}") from e

        logger.debug("Command %s exited with %d", command[0], result.returncode)
        return CommandResult(
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )
