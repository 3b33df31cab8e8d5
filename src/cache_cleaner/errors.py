"""Error types raised by cleanup steps."""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Category of a soft failure recorded against a task."""

    TARGET_NOT_FOUND = "target_not_found"
    PERMISSION_DENIED = "permission_denied"
    EXTERNAL_COMMAND_FAILED = "external_command_failed"
    PROTECTED_PATH = "protected_path"
    IO_ERROR = "io_error"


class CleanupError(Exception):
    """A recoverable failure of a single cleanup step."""

    kind: ErrorKind = ErrorKind.IO_ERROR

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} ({self.hint})"
        return self.message


class TargetNotFoundError(CleanupError):
    """Expected directory does not exist."""

    kind = ErrorKind.TARGET_NOT_FOUND


class PermissionDeniedError(CleanupError):
    """Removal needs permissions the process does not have."""

    kind = ErrorKind.PERMISSION_DENIED


class ExternalCommandError(CleanupError):
    """A subprocess exited non-zero or could not be launched."""

    kind = ErrorKind.EXTERNAL_COMMAND_FAILED


class ProtectedPathError(CleanupError):
    """Refused to touch a path that must never be erased."""

    kind = ErrorKind.PROTECTED_PATH


class FatalIOError(Exception):
    """The interactive channel is unusable; the whole run must stop."""


def error_from_os(exc: OSError, hint: str | None = None) -> CleanupError:
    """Map an ``OSError`` onto the matching cleanup error.

    Args:
        exc: Error raised by a filesystem call.
        hint: Optional guidance shown next to the reason.

    Returns:
        CleanupError subclass instance carrying the OS message.

    """
    if isinstance(exc, PermissionError):
        return PermissionDeniedError(f"Permission denied: {exc}", hint)
    if isinstance(exc, FileNotFoundError):
        return TargetNotFoundError(f"Not found: {exc}", hint)
    return CleanupError(str(exc), hint)
