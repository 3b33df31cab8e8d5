"""The fixed, ordered catalog of cleanup tasks."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from .strategies import (
    DEFAULT_MIN_AGE_DAYS,
    DeleteMatchingFiles,
    EmptyTrash,
    EraseDirectoryContents,
    InvokeExternalCommand,
    Strategy,
    Target,
    ToolPath,
)

# System locations static targets may live under, besides home and $TMPDIR
ALLOWED_SYSTEM_ROOTS: tuple[Path, ...] = (
    Path("/Library/Caches"),
    Path("/private/tmp"),
    Path("/private/var/folders"),
    Path("/private/var/log"),
    Path("/tmp"),
    Path("/var/folders"),
    Path("/var/log"),
)

INSTALLER_PATTERNS: tuple[str, ...] = ("*.dmg", "*.zip", "*.pkg")


@dataclass(frozen=True)
class CleanupTask:
    """One consent unit of the catalog."""

    id: int
    key: str
    description: str
    steps: tuple[Strategy, ...]
    requires_tool: str | None = None
    requires_path: Path | None = None
    requires_elevated_privilege: bool = False

    @property
    def targets(self) -> tuple[Target, ...]:
        """Every path the task's steps may affect, in step order."""
        return tuple(target for step in self.steps for target in step.targets)


@dataclass(frozen=True)
class _Entry:
    key: str
    description: str
    steps: tuple[Strategy, ...]
    requires_tool: str | None = None
    requires_path: Path | None = None
    privileged: bool = False


def default_tmpdir() -> Path:
    """The per-user temporary directory (``$TMPDIR`` on macOS)."""
    return Path(os.environ.get("TMPDIR") or tempfile.gettempdir())


def build_catalog(
    home: Path | None = None,
    tmpdir: Path | None = None,
    downloads_min_age_days: int = DEFAULT_MIN_AGE_DAYS,
) -> tuple[CleanupTask, ...]:
    """Build the cleanup catalog.

    The order here is the prompt order.

    Args:
        home: Home directory, defaults to ``Path.home()``.
        tmpdir: User temp directory, defaults to ``$TMPDIR``.
        downloads_min_age_days: Age threshold for old installers in Downloads.

    Returns:
        Immutable tuple of tasks with ids 1..N.

    Raises:
        ValueError: If a static target lies outside the allowed locations.

    """
    home = home if home is not None else Path.home()
    tmpdir = tmpdir if tmpdir is not None else default_tmpdir()

    library = home / "Library"
    app_support = library / "Application Support"
    xcode = library / "Developer/Xcode"

    entries = [
        _Entry(
            key="homebrew",
            description="Homebrew cache and logs",
            requires_tool="brew",
            steps=(
                InvokeExternalCommand(("brew", "cleanup", "--prune=all"), "Homebrew cleanup"),
                InvokeExternalCommand(("brew", "autoremove"), "Homebrew autoremove"),
                EraseDirectoryContents(ToolPath(("brew", "--cache")), "Homebrew cache directory", optional=True),
                EraseDirectoryContents(ToolPath(("brew", "--prefix"), "var/log"), "Homebrew logs", optional=True),
            ),
        ),
        _Entry(
            key="user_caches",
            description="user Library caches",
            steps=(EraseDirectoryContents(library / "Caches", "User Library caches"),),
        ),
        _Entry(
            key="browser_caches",
            description="application-specific caches (Safari, Chrome, Firefox)",
            requires_path=app_support,
            steps=(
                EraseDirectoryContents(app_support / "Safari", "Safari cache"),
                EraseDirectoryContents(
                    app_support / "Google/Chrome/Default/Application Cache",
                    "Chrome application cache",
                ),
                DeleteMatchingFiles(
                    app_support / "Firefox/Profiles",
                    ("**/cache*",),
                    "Firefox cache",
                    min_age_days=None,
                    directories=True,
                    optional=True,
                ),
            ),
        ),
        _Entry(
            key="logs",
            description="system and user logs",
            privileged=True,
            steps=(
                EraseDirectoryContents(library / "Logs", "User logs"),
                EraseDirectoryContents(Path("/private/var/log"), "System logs", privileged=True),
            ),
        ),
        _Entry(
            key="downloads",
            description=f"old installer files from Downloads ({downloads_min_age_days}+ days old)",
            steps=(
                DeleteMatchingFiles(
                    home / "Downloads",
                    INSTALLER_PATTERNS,
                    "old installer files in Downloads",
                    min_age_days=downloads_min_age_days,
                ),
            ),
        ),
        _Entry(
            key="mail",
            description="Mail cache",
            steps=(
                DeleteMatchingFiles(
                    library / "Mail",
                    ("V*/MailData/Envelope Index*",),
                    "Mail envelope index cache",
                    min_age_days=None,
                ),
            ),
        ),
        _Entry(
            key="photos",
            description="Photos library cache",
            steps=(EraseDirectoryContents(library / "Caches/com.apple.photolibraryd", "Photos library cache"),),
        ),
        _Entry(
            key="xcode",
            description="Xcode cache (DerivedData, Archives, Simulator cache)",
            requires_path=xcode,
            steps=(
                EraseDirectoryContents(xcode / "DerivedData", "Xcode DerivedData"),
                EraseDirectoryContents(xcode / "Archives", "Xcode Archives"),
                EraseDirectoryContents(library / "Developer/CoreSimulator/Caches", "Xcode Simulator cache"),
            ),
        ),
        _Entry(
            key="npm",
            description="npm cache",
            requires_tool="npm",
            steps=(InvokeExternalCommand(("npm", "cache", "clean", "--force"), "npm cache clean"),),
        ),
        _Entry(
            key="yarn",
            description="yarn cache",
            requires_tool="yarn",
            steps=(InvokeExternalCommand(("yarn", "cache", "clean"), "yarn cache clean"),),
        ),
        _Entry(
            key="pip",
            description="pip cache",
            requires_tool="pip3",
            steps=(InvokeExternalCommand(("pip3", "cache", "purge"), "pip cache purge"),),
        ),
        _Entry(
            key="docker",
            description="Docker cache and unused containers/volumes",
            requires_tool="docker",
            steps=(InvokeExternalCommand(("docker", "system", "prune", "-af", "--volumes"), "Docker cleanup"),),
        ),
        _Entry(
            key="trash",
            description="Trash",
            steps=(EmptyTrash(home / ".Trash"),),
        ),
        _Entry(
            key="temp",
            description="temporary files",
            steps=(
                EraseDirectoryContents(Path("/private/tmp"), "System temporary files"),
                EraseDirectoryContents(tmpdir, "User temporary files"),
            ),
        ),
        _Entry(
            key="quicklook",
            description="Quick Look thumbnail cache",
            steps=(
                EraseDirectoryContents(
                    library / "Caches/com.apple.QuickLook.thumbnailcache",
                    "Quick Look thumbnail cache",
                ),
            ),
        ),
        _Entry(
            key="spotlight",
            description="Spotlight cache (requires admin privileges)",
            requires_tool="mdutil",
            privileged=True,
            steps=(InvokeExternalCommand(("mdutil", "-E", "/"), "Spotlight index rebuild", privileged=True),),
        ),
        _Entry(
            key="memory",
            description="memory purge (requires admin privileges)",
            requires_tool="purge",
            privileged=True,
            steps=(InvokeExternalCommand(("purge",), "Memory purge", privileged=True),),
        ),
    ]

    catalog = tuple(
        CleanupTask(
            id=position,
            key=entry.key,
            description=entry.description,
            steps=entry.steps,
            requires_tool=entry.requires_tool,
            requires_path=entry.requires_path,
            requires_elevated_privilege=entry.privileged,
        )
        for position, entry in enumerate(entries, start=1)
    )
    validate_catalog(catalog, home=home, tmpdir=tmpdir)
    return catalog


def is_allowed_target(path: Path, home: Path, tmpdir: Path) -> bool:
    """Check a static target against the allowed locations.

    Args:
        path: Target path.
        home: User home directory.
        tmpdir: User temp directory.

    Returns:
        True if the path is below home, or inside the temp directory or an allowed system root.

    """
    normalized = Path(os.path.normpath(path))
    home_root = Path(os.path.normpath(home))
    if normalized != home_root and normalized.is_relative_to(home_root):
        return True

    roots = (Path(os.path.normpath(tmpdir)), *ALLOWED_SYSTEM_ROOTS)
    return any(normalized.is_relative_to(root) for root in roots)


def validate_catalog(catalog: Sequence[CleanupTask], home: Path, tmpdir: Path) -> None:
    """Verify catalog invariants.

    Raises:
        ValueError: If ids are not 1..N in order, keys repeat, or a static
            target lies outside the allowed locations.

    """
    seen_keys: set[str] = set()

    for position, task in enumerate(catalog, start=1):
        if task.id != position:
            raise ValueError(f"Task {task.key!r} has id {task.id}, expected {position}")
        if task.key in seen_keys:
            raise ValueError(f"Duplicate task key: {task.key!r}")
        seen_keys.add(task.key)

        for target in task.targets:
            if isinstance(target, Path) and not is_allowed_target(target, home, tmpdir):
                raise ValueError(f"Task {task.key!r} targets a path outside allowed locations: {target}")
