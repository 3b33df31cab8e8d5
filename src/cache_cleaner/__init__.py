"""Interactive macOS cache, log and temp-file cleaner."""

__version__ = "0.1.0"
