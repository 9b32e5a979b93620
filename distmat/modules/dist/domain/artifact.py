"""Domain objects describing artifacts and where they come from."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class ArtifactCoordinate:
    """Represents a Maven artifact coordinate."""

    group: str
    name: str
    packaging: str
    version: str
    classifier: str = ""

    @classmethod
    def parse(cls, text: str) -> "ArtifactCoordinate":
        """Parse ``group:name:packaging[:classifier]:version``."""
        parts = [part.strip() for part in (text or "").split(":")]
        if len(parts) == 4:
            group, name, packaging, version = parts
            classifier = ""
        elif len(parts) == 5:
            group, name, packaging, classifier, version = parts
            if not classifier:
                raise ValueError(f"Bad artifact coordinates {text!r}, empty classifier")
        else:
            raise ValueError(
                f"Bad artifact coordinates {text!r}, expected format "
                "<group>:<name>:<packaging>[:<classifier>]:<version>"
            )
        if not all((group, name, packaging, version)):
            raise ValueError(f"Bad artifact coordinates {text!r}, empty part")
        return cls(group=group, name=name, packaging=packaging, version=version, classifier=classifier)

    @property
    def filename(self) -> str:
        suffix = f"-{self.classifier}" if self.classifier else ""
        return f"{self.name}-{self.version}{suffix}.{self.packaging}"

    @property
    def path_segments(self) -> List[str]:
        group_path = self.group.replace(".", "/")
        return [group_path, self.name, self.version, self.filename]

    def __str__(self) -> str:
        if self.classifier:
            return f"{self.group}:{self.name}:{self.packaging}:{self.classifier}:{self.version}"
        return f"{self.group}:{self.name}:{self.packaging}:{self.version}"


@dataclass(frozen=True)
class RemoteRepository:
    id: str
    url: str
    username: Optional[str] = None
    password: Optional[str] = None

    @property
    def auth(self) -> Optional[tuple]:
        if self.username and self.password:
            return (self.username, self.password)
        return None

    def __str__(self) -> str:
        return f"{self.id} ({self.url})"


@dataclass(frozen=True)
class ResolvedArtifact:
    """A coordinate resolved to a file on the local disk."""

    coordinate: ArtifactCoordinate
    file: Path
    repository: str = "local"
