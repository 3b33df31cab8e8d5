"""Removal strategies a cleanup task can be built from."""

from __future__ import annotations

from .base import ADMIN_HINT, StepContext, Strategy, Target, ToolPath
from .empty_trash import EmptyTrash
from .erase_contents import EraseDirectoryContents
from .external_command import InvokeExternalCommand
from .matching_files import DEFAULT_MIN_AGE_DAYS, DeleteMatchingFiles

__all__ = [
    "ADMIN_HINT",
    "DEFAULT_MIN_AGE_DAYS",
    "DeleteMatchingFiles",
    "EmptyTrash",
    "EraseDirectoryContents",
    "InvokeExternalCommand",
    "StepContext",
    "Strategy",
    "Target",
    "ToolPath",
]
