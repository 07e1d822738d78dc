"""Tern error hierarchy.

All tern-specific errors inherit from TernError for easy catching.
"""

from __future__ import annotations

from pathlib import Path


class TernError(Exception):
    """Base error for all tern operations."""


class ConfigError(TernError):
    """Invalid or missing configuration."""


class TransformError(TernError):
    """A transform (style compile, prefix, markup assembly) rejected its input.

    Carries the offending file and, when the transform reports one, the line
    number, so the build log can point at the source.
    """

    def __init__(self, message: str, *, path: Path | None = None, line: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.line = line

    @property
    def location(self) -> str:
        """``file:line`` style location, or an empty string."""
        if self.path is None:
            return ""
        if self.line is None:
            return str(self.path)
        return f"{self.path}:{self.line}"

    def __str__(self) -> str:
        location = self.location
        return f"{location}: {self.message}" if location else self.message


class StageError(TernError):
    """A pipeline stage finished with one or more failed files."""


class PortExhaustedError(TernError):
    """No free port was found within the attempt budget."""

    def __init__(self, first: int, last: int) -> None:
        super().__init__(f"No available port in range {first}-{last}")
        self.first = first
        self.last = last
