"""Base protocol and shared types for removal strategies."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, Union, runtime_checkable

from ..errors import ExternalCommandError

if TYPE_CHECKING:
    from ..interfaces import CleanupIO

logger = logging.getLogger("cache-cleaner")

ADMIN_HINT = "requires admin privileges"


@dataclass(frozen=True)
class ToolPath:
    """A directory only known at run time, printed by a tool (e.g. ``brew --cache``)."""

    argv: tuple[str, ...]
    suffix: str = ""

    def __str__(self) -> str:
        text = f"$({' '.join(self.argv)})"
        return f"{text}/{self.suffix}" if self.suffix else text


Target = Union[Path, ToolPath]


@dataclass
class StepContext:
    """Per-run context handed to every step."""

    io: CleanupIO
    now: float = field(default_factory=time.time)
    _resolved: dict[ToolPath, Path] = field(default_factory=dict, repr=False)
    _unresolvable: dict[ToolPath, str] = field(default_factory=dict, repr=False)

    def resolve(self, target: Target) -> Path:
        """Turn a target into a concrete path, querying the tool once per run.

        Args:
            target: Static path or tool-printed path.

        Returns:
            Concrete path.

        Raises:
            ExternalCommandError: If the tool fails or prints nothing.

        """
        if isinstance(target, Path):
            return target
        if target in self._resolved:
            return self._resolved[target]
        if target in self._unresolvable:
            raise ExternalCommandError(self._unresolvable[target])

        result = self.io.processes.run(target.argv)
        location = result.stdout.strip().splitlines()[-1].strip() if result.stdout.strip() else ""
        if not result.ok or not location:
            message = f"Could not query {' '.join(target.argv)}: {result.last_line or f'exit status {result.returncode}'}"
            self._unresolvable[target] = message
            raise ExternalCommandError(message)

        path = Path(location)
        if target.suffix:
            path = path / target.suffix
        self._resolved[target] = path
        return path

    def resolve_optional(self, target: Target) -> Path | None:
        """Like :meth:`resolve`, but a tool that cannot report its directory yields None."""
        try:
            return self.resolve(target)
        except ExternalCommandError as e:
            logger.debug("Skipping unresolvable %s: %s", target, e)
            return None


@runtime_checkable
class Strategy(Protocol):
    """Interface for one removal step of a cleanup task."""

    label: str
    privileged: bool
    optional: bool

    @property
    def targets(self) -> tuple[Target, ...]:
        """Paths this step may affect (empty for pure commands)."""
        ...

    def measure_target(self) -> Target | None:
        """Directory whose size is reported before running, if any."""
        ...

    def execute(self, ctx: StepContext) -> str:
        """Run the step.

        Args:
            ctx: Run context.

        Returns:
            Success message for the status line.

        Raises:
            CleanupError: On any soft failure.

        """
        ...
