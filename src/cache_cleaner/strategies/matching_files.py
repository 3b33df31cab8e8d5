"""Delete files matching glob patterns, optionally only old ones."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ..errors import TargetNotFoundError
from .base import StepContext, Target

logger = logging.getLogger("cache-cleaner")

DEFAULT_MIN_AGE_DAYS = 30


@dataclass(frozen=True)
class DeleteMatchingFiles:
    """Deletes entries of ``root`` matching any of ``patterns``.

    Patterns are relative globs: ``*.dmg`` only looks at the immediate
    contents of ``root``, ``V*/MailData/Envelope Index*`` or ``**/cache*``
    reach deeper. Every match is processed, not just the first.
    """

    root: Path
    patterns: tuple[str, ...]
    label: str
    min_age_days: int | None = DEFAULT_MIN_AGE_DAYS
    directories: bool = False
    optional: bool = False
    privileged: bool = False

    @property
    def targets(self) -> tuple[Target, ...]:
        return (self.root,)

    def measure_target(self) -> Target | None:
        # Only a subset of root is deleted; its total size would mislead.
        return None

    def execute(self, ctx: StepContext) -> str:
        if self.optional and not ctx.io.fs.is_dir(self.root):
            logger.debug("Optional directory absent, skipping: %s", self.root)
            return f"{self.label}: nothing to clean"

        try:
            removed = ctx.io.fs.delete_matching(
                self.root,
                self.patterns,
                min_age_days=self.min_age_days,
                directories=self.directories,
                now=ctx.now,
            )
        except TargetNotFoundError as e:
            raise TargetNotFoundError(f"{self.label} directory not found: {self.root}") from e

        for path in removed:
            logger.info("Deleted %s", path)
        noun = "entry" if len(removed) == 1 else "entries"
        return f"Removed {len(removed)} {noun}: {self.label}"
