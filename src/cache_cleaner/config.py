"""Configuration management for the cache cleaner."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .strategies import DEFAULT_MIN_AGE_DAYS

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _app_support_dir() -> Path:
    return Path.home() / "Library/Application Support/cache-cleaner"


@dataclass
class CleanupConfig:
    """Configuration for the cache cleaner.

    The catalog and its targets are fixed; only logging and the Downloads
    age threshold can be changed.
    """

    # Installer files in Downloads must be older than this many days
    downloads_min_age_days: int = DEFAULT_MIN_AGE_DAYS

    # Logging. The log lives outside every directory the cleaner erases.
    log_file: Path = field(default_factory=lambda: _app_support_dir() / "cache-cleaner.log")
    log_level: str = "INFO"

    @classmethod
    def get_config_path(cls) -> Path:
        """Get the default configuration file path."""
        return _app_support_dir() / "config.yaml"

    @classmethod
    def load(cls, config_path: Path | None = None) -> CleanupConfig:
        """Load configuration from YAML file.

        Args:
            config_path: Path to config file. Uses default if None.

        Returns:
            Loaded configuration, or defaults if the file does not exist.

        Raises:
            ValueError: If the file is not valid YAML or a setting is invalid.

        """
        if config_path is None:
            config_path = cls.get_config_path()

        if not config_path.exists():
            return cls()

        try:
            with config_path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid config file {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Invalid config file {config_path}: expected a mapping")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> CleanupConfig:
        """Create config from dictionary."""
        config = cls()

        if "downloads_min_age_days" in data:
            try:
                config.downloads_min_age_days = int(data["downloads_min_age_days"])
            except (TypeError, ValueError) as e:
                raise ValueError(f"downloads_min_age_days must be an integer: {e}") from e

        # Logging
        if "logging" in data:
            logging_cfg = data["logging"] or {}
            if not isinstance(logging_cfg, dict):
                raise ValueError("logging must be a mapping with 'file' and 'level' keys")
            if "file" in logging_cfg:
                config.log_file = Path(os.path.expanduser(str(logging_cfg["file"])))
            if "level" in logging_cfg:
                config.log_level = str(logging_cfg["level"]).upper()

        config.validate()
        return config

    def validate(self) -> None:
        """Check setting values.

        Raises:
            ValueError: If a setting is out of range.

        """
        if self.downloads_min_age_days < 0:
            raise ValueError(f"downloads_min_age_days must be >= 0, got {self.downloads_min_age_days}")
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level!r} (expected one of {', '.join(VALID_LOG_LEVELS)})")

    @property
    def logging_level(self) -> int:
        """Numeric :mod:`logging` level for ``log_level``."""
        self.validate()
        return getattr(logging, self.log_level)

    def save(self, config_path: Path | None = None) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path to save config. Uses default if None.

        """
        if config_path is None:
            config_path = self.get_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "downloads_min_age_days": self.downloads_min_age_days,
            "logging": {
                "file": str(self.log_file),
                "level": self.log_level,
            },
        }

        with config_path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
