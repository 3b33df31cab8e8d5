"""Main entry point for the cache cleaner."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from rich.console import Console
from rich.logging import RichHandler

from .catalog import build_catalog
from .config import CleanupConfig
from .console import RichConsole
from .engine import CleanupEngine
from .errors import FatalIOError
from .interfaces import CleanupIO

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INTERRUPTED = 130


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    The cleaner takes no options; only ``--help`` is available.

    Returns:
        Parsed arguments.

    """
    parser = argparse.ArgumentParser(
        prog="cache-cleaner",
        description=(
            "Interactively clear macOS caches, logs, temporary files and the Trash. "
            "Every category is confirmed before anything is deleted."
        ),
    )
    return parser.parse_args(argv)


def setup_logging(config: CleanupConfig) -> logging.Logger:
    """Set up logging for the cleaner.

    Everything goes to the log file; only errors are echoed to the
    terminal, which already shows the status lines.

    Args:
        config: Cleanup configuration.

    Returns:
        Configured logger instance.

    """
    logger = logging.getLogger("cache-cleaner")
    logger.setLevel(config.logging_level)

    # Clear existing handlers to avoid duplicates if setup runs twice
    if logger.handlers:
        logger.handlers.clear()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
    )
    console_handler.setLevel(logging.ERROR)
    logger.addHandler(console_handler)

    try:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_file)
    except OSError as e:
        logger.error("Cannot open log file %s: %s", config.log_file, e)
    else:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
        logger.addHandler(file_handler)

    return logger


def main(argv: Sequence[str] | None = None, io: CleanupIO | None = None) -> int:
    """Main entry point.

    Args:
        argv: Command line arguments, defaults to ``sys.argv[1:]``.
        io: I/O seam, defaults to the real console, disk and subprocesses.

    Returns:
        Exit code: 0 after the full catalog, 1 if the console failed,
        130 on interrupt.

    """
    parse_args(argv)

    console = Console(stderr=True)
    io = io or CleanupIO(console=RichConsole())

    config_error: Exception | None = None
    try:
        config = CleanupConfig.load()
    except (OSError, ValueError) as e:
        config_error = e
        config = CleanupConfig()

    logger = setup_logging(config)
    if config_error is not None:
        logger.warning("Ignoring configuration file %s: %s", CleanupConfig.get_config_path(), config_error)

    catalog = build_catalog(downloads_min_age_days=config.downloads_min_age_days)
    engine = CleanupEngine(io)

    try:
        if config_error is not None:
            io.console.warning(f"Invalid configuration, using defaults: {config_error}")
        summary = engine.run(catalog)
    except FatalIOError as e:
        logger.critical("Aborting: %s", e)
        return EXIT_FATAL
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        console.print("\n[yellow]Interrupted[/yellow]")
        return EXIT_INTERRUPTED

    if summary.failed:
        io.console.warning(f"{len(summary.failed)} categories finished with warnings; see {config.log_file}")
    else:
        io.console.success("System cache cleanup completed successfully!")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
