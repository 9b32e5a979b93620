"""Errors raised while materializing and building with a dist bundle."""

from __future__ import annotations

from typing import Mapping, Optional


class DistError(RuntimeError):
    """Base error carrying the coordinate/path context of the failure."""

    def __init__(self, message: str, *, context: Optional[Mapping[str, object]] = None) -> None:
        super().__init__(message)
        self.context = {key: str(value) for key, value in (context or {}).items() if value is not None}

    def __str__(self) -> str:
        parts = [super().__str__()]
        for key, value in self.context.items():
            if value:
                parts.append(f"  {key}: {value}")
        return "\n".join(parts)


class ResolutionError(DistError):
    """Raised when a coordinate cannot be resolved to a local file."""


class ExtractionError(DistError):
    """Raised when the dist cannot be unpacked into its target directory."""


class NoSuchArchiverError(ExtractionError):
    """Raised when no unarchiver is registered for a file format."""


class ArchiveSafetyError(ExtractionError):
    """Raised when an archive entry would land outside the destination."""


class CompilationError(DistError):
    """Raised when the external compiler is missing or fails."""
