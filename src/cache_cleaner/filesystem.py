"""Filesystem queries and deletions used by cleanup steps."""

from __future__ import annotations

import logging
import os
import shutil
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .errors import (
    CleanupError,
    PermissionDeniedError,
    ProtectedPathError,
    TargetNotFoundError,
)

logger = logging.getLogger("cache-cleaner")

SECONDS_PER_DAY = 86400

# Directories whose contents must never be erased wholesale.
PROTECTED_PATHS: frozenset[str] = frozenset({
    "/",
    "/Applications",
    "/Library",
    "/System",
    "/Users",
    "/bin",
    "/etc",
    "/opt",
    "/opt/homebrew",
    "/private",
    "/private/etc",
    "/private/var",
    "/sbin",
    "/usr",
    "/usr/local",
    "/var",
})


def format_size(num_bytes: int) -> str:
    """Format a byte count the way ``du -h`` does (``0B``, ``12K``, ``1.5G``).

    Args:
        num_bytes: Size in bytes.

    Returns:
        Human-readable size string.

    """
    if num_bytes <= 0:
        return "0B"

    size = float(num_bytes)
    for unit in ("B", "K", "M", "G", "T"):
        if size < 1024.0:
            if unit == "B" or size >= 10:
                return f"{size:.0f}{unit}"
            return f"{size:.1f}{unit}"
        size /= 1024.0
    return f"{size:.1f}P"


@dataclass(frozen=True)
class DiskUsage:
    """Usage figures for the volume holding a path."""

    path: Path
    total: int
    used: int
    free: int

    @property
    def percent_used(self) -> int:
        """Used space as a whole percentage of the total."""
        if self.total == 0:
            return 0
        return round(self.used * 100 / self.total)

    def __str__(self) -> str:
        return (
            f"{self.path}: {format_size(self.used)} used of {format_size(self.total)} "
            f"({self.percent_used}%), {format_size(self.free)} available"
        )


class LocalFileSystem:
    """Real filesystem implementation backed by :mod:`pathlib` and :mod:`shutil`."""

    def __init__(self, home: Path | None = None) -> None:
        """Initialize the filesystem adapter.

        Args:
            home: Home directory to protect. Defaults to ``Path.home()``.

        """
        self.home = home if home is not None else Path.home()

    @staticmethod
    def exists(path: Path) -> bool:
        """Check whether a path exists."""
        return path.exists()

    @staticmethod
    def is_dir(path: Path) -> bool:
        """Check whether a path is an existing directory."""
        return path.is_dir()

    def is_path_protected(self, path: Path) -> bool:
        """Check if a path is a directory that must never be emptied.

        Both the literal path and its symlink-resolved form are checked,
        so ``/tmp`` style aliases cannot slip through.

        Args:
            path: Path to check.

        Returns:
            True if the path is protected.

        """
        candidates = self._aliases(path)
        homes = self._aliases(self.home)
        return any(c in PROTECTED_PATHS or c in homes for c in candidates)

    @staticmethod
    def _aliases(path: Path) -> set[str]:
        aliases = {os.path.normpath(str(path))}
        try:
            aliases.add(str(path.resolve()))
        except OSError:
            pass
        return aliases

    @staticmethod
    def size_of(path: Path) -> int:
        """Total size of a file or directory tree in bytes.

        Symlinks are not followed. Unreadable entries are skipped and a
        missing path counts as 0.

        Args:
            path: File or directory to measure.

        Returns:
            Size in bytes.

        """
        if not path.exists():
            return 0

        if not path.is_dir() or path.is_symlink():
            try:
                return path.lstat().st_size
            except OSError:
                return 0

        total = 0
        for root, _dirs, files in os.walk(path, followlinks=False):
            for name in files:
                try:
                    total += os.lstat(os.path.join(root, name)).st_size
                except OSError:
                    continue
        return total

    def _check_directory(self, path: Path) -> None:
        if self.is_path_protected(path):
            raise ProtectedPathError(f"Refusing to erase protected path: {path}")
        if not path.is_dir():
            raise TargetNotFoundError(f"Directory not found: {path}")

    @staticmethod
    def _remove_entry(entry: Path) -> None:
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()

    def _remove_entries(self, entries: Iterable[Path], context: Path) -> list[Path]:
        """Remove each entry, collecting failures instead of stopping at the first.

        Returns:
            Entries that were removed.

        Raises:
            PermissionDeniedError: If any entry could not be removed for lack of permission.
            CleanupError: If any entry failed for another reason.

        """
        removed: list[Path] = []
        denied: list[Path] = []
        failed: list[tuple[Path, OSError]] = []

        for entry in entries:
            try:
                self._remove_entry(entry)
            except FileNotFoundError:
                # Vanished between listing and removal
                continue
            except PermissionError as e:
                logger.debug("Permission denied removing %s: %s", entry, e)
                denied.append(entry)
                continue
            except OSError as e:
                logger.debug("Error removing %s: %s", entry, e)
                failed.append((entry, e))
                continue
            removed.append(entry)

        if denied:
            raise PermissionDeniedError(
                f"Permission denied for {len(denied)} of "
                f"{len(denied) + len(failed) + len(removed)} entries in {context}"
            )
        if failed:
            entry, error = failed[0]
            raise CleanupError(f"Could not remove {len(failed)} entries in {context}: {entry}: {error}")
        return removed

    def erase_contents(self, path: Path) -> int:
        """Remove every entry inside a directory, keeping the directory itself.

        Hidden entries are removed too. Running it twice leaves the same
        empty directory.

        Args:
            path: Directory to empty.

        Returns:
            Number of top-level entries removed.

        Raises:
            ProtectedPathError: If the path is protected.
            TargetNotFoundError: If the directory does not exist.
            PermissionDeniedError: If some entries could not be removed.

        """
        self._check_directory(path)

        try:
            entries = list(path.iterdir())
        except PermissionError as e:
            raise PermissionDeniedError(f"Permission denied listing {path}: {e}") from e

        removed = self._remove_entries(entries, path)
        logger.debug("Erased %d entries in %s", len(removed), path)
        return len(removed)

    def delete_all(self, path: Path) -> int:
        """Delete every entry (including hidden ones) of a trash-like directory.

        Args:
            path: Directory whose entries are deleted outright.

        Returns:
            Number of entries deleted.

        """
        return self.erase_contents(path)

    def delete_matching(
        self,
        root: Path,
        patterns: Iterable[str],
        *,
        min_age_days: int | None = None,
        directories: bool = False,
        now: float | None = None,
    ) -> list[Path]:
        """Delete entries under ``root`` matching any glob pattern.

        A pattern without ``/`` or ``**`` only matches the immediate
        contents of ``root``. With ``min_age_days`` set, only entries whose
        whole days since last modification are strictly greater than it
        are deleted.

        Args:
            root: Directory to search.
            patterns: Glob patterns relative to ``root``.
            min_age_days: Age threshold in days, or None for no age filter.
            directories: Match directories instead of regular files.
            now: Reference timestamp, defaults to the current time.

        Returns:
            Paths that were deleted, in match order.

        Raises:
            TargetNotFoundError: If ``root`` does not exist.
            PermissionDeniedError: If some matches could not be deleted.

        """
        if not root.is_dir():
            raise TargetNotFoundError(f"Directory not found: {root}")

        reference = time.time() if now is None else now
        matches: list[Path] = []
        seen: set[Path] = set()

        for pattern in patterns:
            for candidate in sorted(root.glob(pattern)):
                if candidate in seen:
                    continue
                if any(parent in seen for parent in candidate.parents):
                    continue
                if not self._matches_kind(candidate, directories=directories):
                    continue
                if min_age_days is not None and self.age_in_days(candidate, reference) <= min_age_days:
                    continue
                seen.add(candidate)
                matches.append(candidate)

        removed = self._remove_entries(matches, root)
        logger.debug("Deleted %d matching entries under %s", len(removed), root)
        return removed

    @staticmethod
    def _matches_kind(path: Path, *, directories: bool) -> bool:
        if path.is_symlink():
            return not directories
        return path.is_dir() if directories else path.is_file()

    @staticmethod
    def age_in_days(path: Path, now: float) -> int:
        """Whole days elapsed since the path was last modified."""
        mtime = path.lstat().st_mtime
        return int((now - mtime) // SECONDS_PER_DAY)

    @staticmethod
    def disk_usage(path: Path = Path("/")) -> DiskUsage:
        """Get usage of the volume holding ``path``."""
        usage = shutil.disk_usage(path)
        return DiskUsage(path=path, total=usage.total, used=usage.used, free=usage.free)
