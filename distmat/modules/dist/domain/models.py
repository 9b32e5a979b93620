"""Dataclasses and enums for dist materialization and builds."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .artifact import ArtifactCoordinate

MARKER_FILE_NAME = ".distmat-complete.json"
UNPACKED_DIR_NAME = "unpacked"


class NamingScheme(str, Enum):
    VERSION = "version"
    COORDINATE = "coordinate"


class TargetOS(str, Enum):
    MACOSX = "macosx"
    LINUX = "linux"
    IOS = "ios"


class TargetArch(str, Enum):
    X86 = "x86"
    X86_64 = "x86_64"
    THUMBV7 = "thumbv7"


def _sanitize(value: str) -> str:
    for char in ("/", "\\", ":"):
        value = value.replace(char, "_")
    return value


def subdirectory_name(
    coordinate: ArtifactCoordinate,
    scheme: NamingScheme = NamingScheme.COORDINATE,
    prefix: str = "dist",
) -> str:
    """Return the version-suffixed directory name the dist is unpacked into.

    The VERSION scheme only looks at the version, so two artifacts sharing a
    version string map to the same name. The COORDINATE scheme appends a short
    digest of the artifact identity to keep them apart.
    """
    if NamingScheme(scheme) is NamingScheme.VERSION:
        return _sanitize(f"{prefix}-{coordinate.version}")
    identity = ":".join(
        (coordinate.group, coordinate.name, coordinate.packaging, coordinate.classifier)
    )
    digest = hashlib.sha256(identity.encode("utf-8")).hexdigest()[:8]
    parts = [coordinate.name, coordinate.version]
    if coordinate.classifier:
        parts.append(coordinate.classifier)
    parts.append(digest)
    return _sanitize("-".join(parts))


@dataclass(frozen=True)
class MaterializationTarget:
    base_directory: Path
    subdirectory_name: str

    @property
    def directory(self) -> Path:
        return self.base_directory / self.subdirectory_name

    @property
    def marker(self) -> Path:
        return self.directory / MARKER_FILE_NAME


@dataclass(frozen=True)
class MaterializationResult:
    directory: Path
    coordinate: ArtifactCoordinate
    source: Path
    reused: bool = False


@dataclass
class BuildConfig:
    home: Path
    main_class: str
    os: Optional[TargetOS] = None
    arch: Optional[TargetArch] = None
    classpath: List[Path] = field(default_factory=list)
    output_dir: Optional[Path] = None

    class Builder:
        """Fluent builder, every setter returns the builder."""

        def __init__(self) -> None:
            self._home: Optional[Path] = None
            self._main_class: Optional[str] = None
            self._os: Optional[TargetOS] = None
            self._arch: Optional[TargetArch] = None
            self._classpath: List[Path] = []
            self._output_dir: Optional[Path] = None

        def home(self, home: Path) -> "BuildConfig.Builder":
            self._home = Path(home)
            return self

        def main_class(self, main_class: str) -> "BuildConfig.Builder":
            self._main_class = main_class
            return self

        def os(self, target_os: Optional[TargetOS]) -> "BuildConfig.Builder":
            self._os = TargetOS(target_os) if target_os else None
            return self

        def arch(self, arch: Optional[TargetArch]) -> "BuildConfig.Builder":
            self._arch = TargetArch(arch) if arch else None
            return self

        def output_dir(self, output_dir: Optional[Path]) -> "BuildConfig.Builder":
            self._output_dir = Path(output_dir) if output_dir else None
            return self

        def add_classpath_entry(self, entry: Path) -> "BuildConfig.Builder":
            self._classpath.append(Path(entry))
            return self

        def build(self) -> "BuildConfig":
            if self._home is None:
                raise ValueError("home is required")
            if not self._main_class:
                raise ValueError("main_class is required")
            return BuildConfig(
                home=self._home,
                main_class=self._main_class,
                os=self._os,
                arch=self._arch,
                classpath=list(self._classpath),
                output_dir=self._output_dir,
            )


@dataclass
class BuildRequest:
    main_class: str
    classpath: List[str] = field(default_factory=list)
    os: Optional[str] = None
    arch: Optional[str] = None
    version: Optional[str] = None
    output_dir: Optional[str] = None


@dataclass
class BuildResult:
    dist_dir: Path
    command: List[str]
    returncode: int
    stdout: str = ""
