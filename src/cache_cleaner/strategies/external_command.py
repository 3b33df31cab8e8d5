"""Run an external cleanup command (``npm cache clean --force`` etc.)."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import ExternalCommandError
from .base import ADMIN_HINT, StepContext, Target

logger = logging.getLogger("cache-cleaner")


@dataclass(frozen=True)
class InvokeExternalCommand:
    """Runs ``argv``; a non-zero exit becomes a soft failure."""

    argv: tuple[str, ...]
    label: str
    privileged: bool = False
    optional: bool = False

    @property
    def targets(self) -> tuple[Target, ...]:
        return ()

    def measure_target(self) -> Target | None:
        return None

    def execute(self, ctx: StepContext) -> str:
        command = " ".join(self.argv)
        ctx.io.console.info(f"Running {command}...")

        result = ctx.io.processes.run(self.argv, privileged=self.privileged)
        if not result.ok:
            reason = f"{self.label} failed: {command} exited with status {result.returncode}"
            if result.last_line:
                reason = f"{reason}: {result.last_line}"
            raise ExternalCommandError(reason, ADMIN_HINT if self.privileged else None)

        logger.info("Command succeeded: %s", command)
        return f"{self.label} done"
