"""Empty the user's Trash."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import TargetNotFoundError
from .base import StepContext, Target

logger = logging.getLogger("cache-cleaner")


@dataclass(frozen=True)
class EmptyTrash:
    """Deletes every entry, hidden ones included, inside the trash directory."""

    target: Target
    label: str = "Trash"
    optional: bool = False
    privileged: bool = False

    @property
    def targets(self) -> tuple[Target, ...]:
        return (self.target,)

    def measure_target(self) -> Target | None:
        return self.target

    def execute(self, ctx: StepContext) -> str:
        path = ctx.resolve(self.target)
        if not ctx.io.fs.is_dir(path):
            raise TargetNotFoundError(f"Trash directory not found: {path}")

        deleted = ctx.io.fs.delete_all(path)
        logger.info("Deleted %d entries from trash %s", deleted, path)
        return "Trash emptied"
