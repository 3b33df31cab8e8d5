"""Interactive engine: confirm, measure, delete and report for each task."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from rich.table import Table
from rich.text import Text

from .errors import CleanupError, ErrorKind, FatalIOError, error_from_os
from .filesystem import format_size
from .interfaces import CleanupIO
from .strategies import StepContext

if TYPE_CHECKING:
    from .catalog import CleanupTask
    from .strategies import Strategy

logger = logging.getLogger("cache-cleaner")

AFFIRMATIVE_ANSWERS = frozenset({"y", "yes"})
BANNER_TITLE = "macOS System Cache Cleaner"


def is_affirmative(answer: str) -> bool:
    """Check whether an answer grants consent.

    Only ``y`` and ``yes`` (any case, surrounding whitespace ignored)
    count; anything else is a decline.
    """
    return answer.strip().lower() in AFFIRMATIVE_ANSWERS


def confirmation_prompt(task: CleanupTask) -> str:
    """Prompt line shown before a task runs."""
    return f"Do you want to clean {task.description}? (y/n):"


class OutcomeStatus(Enum):
    """Final state of a task after the run."""

    COMPLETED = "completed"
    SKIPPED_BY_USER = "skipped_by_user"
    SKIPPED_TOOL_MISSING = "skipped_tool_missing"
    FAILED = "failed"


@dataclass(frozen=True)
class TaskOutcome:
    """Result of running one task."""

    task_id: int
    key: str
    description: str
    status: OutcomeStatus
    error_kind: ErrorKind | None = None
    reason: str | None = None
    measured_bytes: int = 0

    @property
    def success(self) -> bool:
        return self.status is OutcomeStatus.COMPLETED


@dataclass
class Summary:
    """Outcomes of a run, in catalog order."""

    outcomes: list[TaskOutcome] = field(default_factory=list)

    def statuses(self) -> list[OutcomeStatus]:
        return [outcome.status for outcome in self.outcomes]

    def _with_status(self, *statuses: OutcomeStatus) -> list[TaskOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status in statuses]

    @property
    def completed(self) -> list[TaskOutcome]:
        return self._with_status(OutcomeStatus.COMPLETED)

    @property
    def skipped(self) -> list[TaskOutcome]:
        return self._with_status(OutcomeStatus.SKIPPED_BY_USER, OutcomeStatus.SKIPPED_TOOL_MISSING)

    @property
    def failed(self) -> list[TaskOutcome]:
        return self._with_status(OutcomeStatus.FAILED)

    @property
    def measured_bytes(self) -> int:
        """Size measured before deletion, summed over tasks that ran."""
        return sum(o.measured_bytes for o in self.outcomes if o.status is not OutcomeStatus.SKIPPED_BY_USER)

    def outcome_for(self, key: str) -> TaskOutcome | None:
        """Look up the outcome of a task by key."""
        return next((o for o in self.outcomes if o.key == key), None)


@dataclass
class _StepFailure:
    label: str
    error: CleanupError


class CleanupEngine:
    """Runs a catalog of cleanup tasks one at a time, in order."""

    def __init__(self, io: CleanupIO | None = None) -> None:
        """Initialize the engine.

        Args:
            io: I/O seam. Defaults to the real console, filesystem and subprocesses.

        """
        self.io = io or CleanupIO()
        self.console = self.io.console

    def run(self, catalog: Sequence[CleanupTask]) -> Summary:
        """Run every task of the catalog.

        Args:
            catalog: Tasks in prompt order.

        Returns:
            Summary with one outcome per task.

        Raises:
            FatalIOError: If the console cannot be read or written. This is
                the only exception that leaves the engine.

        """
        self.console.ensure_input()

        ctx = StepContext(io=self.io)
        summary = Summary()

        self._print_header()
        self._report_disk_usage("Initial disk usage:")
        self.console.info("Starting cache cleanup process...")
        logger.info("Cleanup run started with %d tasks", len(catalog))

        for task in catalog:
            outcome = self.run_task(task, ctx)
            summary.outcomes.append(outcome)
            logger.info(
                "Task %d (%s): %s%s",
                task.id,
                task.key,
                outcome.status.value,
                f" - {outcome.reason}" if outcome.reason else "",
            )

        self.console.show()
        self.console.info("Cache cleanup completed!")
        self._report_disk_usage("Final disk usage:")
        self._print_summary(summary)
        logger.info(
            "Cleanup run finished: completed=%d, skipped=%d, failed=%d",
            len(summary.completed),
            len(summary.skipped),
            len(summary.failed),
        )
        return summary

    def run_task(self, task: CleanupTask, ctx: StepContext) -> TaskOutcome:
        """Run the confirm → tool-check → measure → execute → report protocol for one task.

        Args:
            task: Task to run.
            ctx: Run context shared by all tasks.

        Returns:
            Outcome of the task.

        Raises:
            FatalIOError: If the console fails.

        """
        answer = self.console.ask(confirmation_prompt(task))
        logger.debug("Answer for %s: %r", task.key, answer)

        if not is_affirmative(answer):
            self.console.info(f"Skipping {task.description} cleanup")
            return self._outcome(task, OutcomeStatus.SKIPPED_BY_USER)

        if task.requires_tool and self.io.processes.locate(task.requires_tool) is None:
            self.console.info(f"{task.requires_tool} not found, skipping {task.description} cleanup")
            return self._outcome(task, OutcomeStatus.SKIPPED_TOOL_MISSING, reason=f"{task.requires_tool} not found")

        if task.requires_path is not None and not self.io.fs.exists(task.requires_path):
            self.console.info(f"{task.requires_path} not found, skipping {task.description} cleanup")
            return self._outcome(task, OutcomeStatus.SKIPPED_TOOL_MISSING, reason=f"{task.requires_path} not found")

        self.console.info(f"Cleaning {task.description}...")
        failures: list[_StepFailure] = []
        measured = 0

        for step in task.steps:
            try:
                measured += self._measure(step, ctx)
                message = step.execute(ctx)
            except FatalIOError:
                raise
            except CleanupError as e:
                failures.append(_StepFailure(step.label, e))
            except OSError as e:
                failures.append(_StepFailure(step.label, error_from_os(e)))
            except Exception as e:
                logger.exception("Unexpected error in step %r of task %s", step.label, task.key)
                failures.append(_StepFailure(step.label, CleanupError(f"Unexpected error: {e}")))
                self.console.error(f"{step.label}: {failures[-1].error}")
                continue
            else:
                self.console.success(message)
                continue

            failure = failures[-1]
            self.console.warning(f"{failure.label}: {failure.error}")
            logger.warning("Step %r of task %s failed: %s", failure.label, task.key, failure.error)

        if failures:
            return self._outcome(
                task,
                OutcomeStatus.FAILED,
                error_kind=failures[0].error.kind,
                reason="; ".join(f"{f.label}: {f.error}" for f in failures),
                measured_bytes=measured,
            )

        self.console.success(f"Cleaned {task.description}")
        return self._outcome(task, OutcomeStatus.COMPLETED, measured_bytes=measured)

    def _measure(self, step: Strategy, ctx: StepContext) -> int:
        """Report the current size of a step's directory; missing counts as 0B."""
        target = step.measure_target()
        if target is None:
            return 0

        if step.optional:
            path = ctx.resolve_optional(target)
            if path is None or not self.io.fs.is_dir(path):
                return 0
        else:
            path = ctx.resolve(target)

        size = self.io.fs.size_of(path)
        self.console.info(f"Cleaning {step.label}... (Current size: {format_size(size)})")
        return size

    @staticmethod
    def _outcome(
        task: CleanupTask,
        status: OutcomeStatus,
        *,
        error_kind: ErrorKind | None = None,
        reason: str | None = None,
        measured_bytes: int = 0,
    ) -> TaskOutcome:
        return TaskOutcome(
            task_id=task.id,
            key=task.key,
            description=task.description,
            status=status,
            error_kind=error_kind,
            reason=reason,
            measured_bytes=measured_bytes,
        )

    def _print_header(self) -> None:
        self.console.show("=" * 46)
        self.console.show(f"    {BANNER_TITLE}")
        self.console.show("=" * 46)
        if self.io.processes.is_root():
            self.console.warning("Running as root. Some operations may not work as expected.")

    def _report_disk_usage(self, title: str, path: Path = Path("/")) -> None:
        self.console.info(title)
        try:
            self.console.show(str(self.io.fs.disk_usage(path)))
        except OSError as e:
            self.console.warning(f"Could not read disk usage for {path}: {e}")

    def _print_summary(self, summary: Summary) -> None:
        table = Table(title="Cleanup Summary")
        table.add_column("#", style="dim", justify="right")
        table.add_column("Category", style="cyan")
        table.add_column("Result")
        table.add_column("Details", style="dim")

        styles = {
            OutcomeStatus.COMPLETED: ("✓ cleaned", "green"),
            OutcomeStatus.SKIPPED_BY_USER: ("skipped", "dim"),
            OutcomeStatus.SKIPPED_TOOL_MISSING: ("not installed", "dim"),
            OutcomeStatus.FAILED: ("⚠ warnings", "yellow"),
        }
        for outcome in summary.outcomes:
            text, style = styles[outcome.status]
            table.add_row(
                str(outcome.task_id),
                Text(outcome.description),
                Text(text, style=style),
                Text(outcome.reason or ""),
            )

        self.console.show()
        self.console.show(table)
        self.console.info(f"Measured before cleanup: {format_size(summary.measured_bytes)}")
        self.console.info("You may need to restart some applications for changes to take effect.")
        self.console.info("Consider restarting your Mac to ensure all caches are properly cleared.")


def run(catalog: Sequence[CleanupTask], io: CleanupIO) -> Summary:
    """Run ``catalog`` with the given I/O seam. See :meth:`CleanupEngine.run`."""
    return CleanupEngine(io).run(catalog)
