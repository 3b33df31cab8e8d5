"""Tests for the cleanup catalog."""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from cache_cleaner.catalog import (
    CleanupTask,
    build_catalog,
    is_allowed_target,
    validate_catalog,
)
from cache_cleaner.strategies import (
    DeleteMatchingFiles,
    EmptyTrash,
    EraseDirectoryContents,
    InvokeExternalCommand,
    ToolPath,
)

EXPECTED_ORDER = [
    "homebrew",
    "user_caches",
    "browser_caches",
    "logs",
    "downloads",
    "mail",
    "photos",
    "xcode",
    "npm",
    "yarn",
    "pip",
    "docker",
    "trash",
    "temp",
    "quicklook",
    "spotlight",
    "memory",
]

FAKE_HOME = Path("/Users/tester")
FAKE_TMPDIR = Path("/private/var/folders/ab/T")


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Fake home directory."""
    return tmp_path / "home"


@pytest.fixture
def catalog(home: Path, tmp_path: Path) -> tuple[CleanupTask, ...]:
    """Catalog built for the fake home."""
    return build_catalog(home=home, tmpdir=tmp_path / "T")


def _task(catalog: tuple[CleanupTask, ...], key: str) -> CleanupTask:
    return next(task for task in catalog if task.key == key)


class TestCatalogOrder:
    """Catalog ordering and identity."""

    def test_keys_in_fixed_order(self, catalog: tuple[CleanupTask, ...]) -> None:
        """Tasks appear in the fixed prompt order."""
        assert [task.key for task in catalog] == EXPECTED_ORDER

    def test_ids_are_positions(self, catalog: tuple[CleanupTask, ...]) -> None:
        """Ids are the 1-based catalog positions."""
        assert [task.id for task in catalog] == list(range(1, len(EXPECTED_ORDER) + 1))

    def test_stable_across_builds(self, home: Path, tmp_path: Path) -> None:
        """Building twice yields equal catalogs."""
        assert build_catalog(home=home, tmpdir=tmp_path) == build_catalog(home=home, tmpdir=tmp_path)

    def test_tasks_are_immutable(self, catalog: tuple[CleanupTask, ...]) -> None:
        """Tasks cannot be mutated."""
        with pytest.raises(FrozenInstanceError):
            catalog[0].description = "changed"  # type: ignore[misc]


class TestCatalogContents:
    """Tests for individual catalog entries."""

    @pytest.mark.parametrize(
        ("key", "tool"),
        [
            ("homebrew", "brew"),
            ("npm", "npm"),
            ("yarn", "yarn"),
            ("pip", "pip3"),
            ("docker", "docker"),
            ("spotlight", "mdutil"),
            ("memory", "purge"),
        ],
    )
    def test_tool_requirements(self, catalog: tuple[CleanupTask, ...], key: str, tool: str) -> None:
        """Tool-backed tasks declare their executable."""
        assert _task(catalog, key).requires_tool == tool

    def test_homebrew_steps(self, catalog: tuple[CleanupTask, ...]) -> None:
        """Homebrew runs cleanup and autoremove, then erases its cache and logs if present."""
        steps = _task(catalog, "homebrew").steps

        assert [type(s) for s in steps] == [
            InvokeExternalCommand,
            InvokeExternalCommand,
            EraseDirectoryContents,
            EraseDirectoryContents,
        ]
        assert steps[0].argv == ("brew", "cleanup", "--prune=all")  # type: ignore[attr-defined]
        assert steps[2].target == ToolPath(("brew", "--cache"))  # type: ignore[attr-defined]
        assert steps[3].target == ToolPath(("brew", "--prefix"), "var/log")  # type: ignore[attr-defined]
        assert all(step.optional for step in steps[2:])

    def test_downloads_uses_threshold(self, home: Path, tmp_path: Path) -> None:
        """The Downloads task deletes old installers only."""
        catalog = build_catalog(home=home, tmpdir=tmp_path, downloads_min_age_days=45)
        (step,) = _task(catalog, "downloads").steps

        assert isinstance(step, DeleteMatchingFiles)
        assert step.root == home / "Downloads"
        assert step.patterns == ("*.dmg", "*.zip", "*.pkg")
        assert step.min_age_days == 45
        assert "45+ days" in _task(catalog, "downloads").description

    def test_mail_matches_every_version(self, catalog: tuple[CleanupTask, ...], home: Path) -> None:
        """Mail envelope indexes are matched across all V* directories."""
        (step,) = _task(catalog, "mail").steps

        assert isinstance(step, DeleteMatchingFiles)
        assert step.root == home / "Library/Mail"
        assert step.patterns == ("V*/MailData/Envelope Index*",)
        assert step.min_age_days is None

    def test_trash(self, catalog: tuple[CleanupTask, ...], home: Path) -> None:
        """The Trash task empties ~/.Trash."""
        (step,) = _task(catalog, "trash").steps

        assert isinstance(step, EmptyTrash)
        assert step.target == home / ".Trash"

    def test_temp_includes_user_tmpdir(self, catalog: tuple[CleanupTask, ...], tmp_path: Path) -> None:
        """Temporary files cover /private/tmp and $TMPDIR."""
        assert _task(catalog, "temp").targets == (Path("/private/tmp"), tmp_path / "T")

    def test_xcode_gated_on_install(self, catalog: tuple[CleanupTask, ...], home: Path) -> None:
        """Xcode cleanup requires the Xcode developer directory."""
        assert _task(catalog, "xcode").requires_path == home / "Library/Developer/Xcode"

    def test_privileged_tasks(self, catalog: tuple[CleanupTask, ...]) -> None:
        """Tasks touching system locations are flagged as needing privileges."""
        privileged = {task.key for task in catalog if task.requires_elevated_privilege}

        assert privileged == {"logs", "spotlight", "memory"}

    def test_browser_targets(self, catalog: tuple[CleanupTask, ...], home: Path) -> None:
        """Browser caches cover Safari, Chrome and Firefox."""
        support = home / "Library/Application Support"

        assert _task(catalog, "browser_caches").targets == (
            support / "Safari",
            support / "Google/Chrome/Default/Application Cache",
            support / "Firefox/Profiles",
        )


class TestTargetInvariants:
    """Static targets stay inside allowed locations."""

    def test_all_static_targets_allowed(self, catalog: tuple[CleanupTask, ...], home: Path, tmp_path: Path) -> None:
        """Every static target is under home, $TMPDIR or a system cache/temp/log root."""
        for task in catalog:
            for target in task.targets:
                if isinstance(target, Path):
                    assert is_allowed_target(target, home, tmp_path / "T"), target

    def test_home_itself_not_allowed(self) -> None:
        """The home directory is never a target."""
        assert not is_allowed_target(FAKE_HOME, FAKE_HOME, FAKE_TMPDIR)

    @pytest.mark.parametrize("path", ["/etc", "/usr/lib", "/Applications/Safari.app", "/private/var/db"])
    def test_outside_paths_rejected(self, path: str) -> None:
        """System paths outside the cache/temp/log roots are rejected."""
        assert not is_allowed_target(Path(path), FAKE_HOME, FAKE_TMPDIR)

    def test_dotdot_escape_rejected(self) -> None:
        """Paths escaping home through '..' are rejected."""
        assert not is_allowed_target(FAKE_HOME / "Library" / ".." / ".." / "other", FAKE_HOME, FAKE_TMPDIR)

    @pytest.mark.parametrize("path", ["/private/tmp", "/private/var/log/system.log", "/Library/Caches/x"])
    def test_system_roots_allowed(self, path: str) -> None:
        """Well-known system temp, log and cache locations are allowed."""
        assert is_allowed_target(Path(path), FAKE_HOME, FAKE_TMPDIR)

    def test_validate_rejects_bad_target(self, home: Path, tmp_path: Path) -> None:
        """validate_catalog raises on a target outside allowed locations."""
        bad = CleanupTask(id=1, key="bad", description="bad", steps=(EraseDirectoryContents(Path("/etc"), "etc"),))

        with pytest.raises(ValueError, match="outside allowed locations"):
            validate_catalog([bad], home=FAKE_HOME, tmpdir=FAKE_TMPDIR)

    def test_validate_rejects_bad_ids(self, home: Path, tmp_path: Path) -> None:
        """Ids must match catalog positions."""
        task = CleanupTask(id=2, key="a", description="a", steps=())

        with pytest.raises(ValueError, match="expected 1"):
            validate_catalog([task], home=home, tmpdir=tmp_path)

    def test_validate_rejects_duplicate_keys(self, home: Path, tmp_path: Path) -> None:
        """Keys must be unique."""
        tasks = [
            CleanupTask(id=1, key="a", description="a", steps=()),
            CleanupTask(id=2, key="a", description="b", steps=()),
        ]

        with pytest.raises(ValueError, match="Duplicate"):
            validate_catalog(tasks, home=home, tmpdir=tmp_path)

