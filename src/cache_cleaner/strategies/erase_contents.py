"""Erase everything inside a directory while keeping the directory."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import PermissionDeniedError, TargetNotFoundError
from .base import ADMIN_HINT, StepContext, Target

logger = logging.getLogger("cache-cleaner")


@dataclass(frozen=True)
class EraseDirectoryContents:
    """Removes files, subdirectories and dot entries inside ``target``."""

    target: Target
    label: str
    optional: bool = False
    privileged: bool = False

    @property
    def targets(self) -> tuple[Target, ...]:
        return (self.target,)

    def measure_target(self) -> Target | None:
        return self.target

    def execute(self, ctx: StepContext) -> str:
        """Erase the directory contents.

        A missing optional directory, or one whose tool cannot report it, is
        skipped quietly; a missing required one raises so the task is
        reported as failed.

        """
        if self.optional:
            path = ctx.resolve_optional(self.target)
            if path is None or not ctx.io.fs.is_dir(path):
                logger.debug("Optional directory absent, skipping: %s", path or self.target)
                return f"{self.label}: nothing to clean"
        else:
            path = ctx.resolve(self.target)

        try:
            removed = ctx.io.fs.erase_contents(path)
        except TargetNotFoundError as e:
            raise TargetNotFoundError(f"{self.label} directory not found: {path}") from e
        except PermissionDeniedError as e:
            if self.privileged:
                raise PermissionDeniedError(e.message, ADMIN_HINT) from e
            raise

        logger.info("Erased %d entries from %s", removed, path)
        return f"Cleaned {self.label}"
