import io
import tarfile
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

from distmat.modules.dist.domain import (
    ArtifactCoordinate,
    RemoteRepository,
    ResolutionError,
    ResolvedArtifact,
)

DIST_FILES = {
    "bin/robovm": "#!/bin/sh\necho robovm\n",
    "lib/robovm-rt.jar": "runtime",
}


def write_tar_gz(path: Path, files: Dict[str, str], root: Optional[str] = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, "w:gz") as tf:
        for name, content in files.items():
            data = content.encode("utf-8")
            info = tarfile.TarInfo(f"{root}/{name}" if root else name)
            info.size = len(data)
            info.mode = 0o755 if name.startswith("bin/") else 0o644
            tf.addfile(info, io.BytesIO(data))
    return path


def write_zip(path: Path, files: Dict[str, str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return path


class FakeResolver:
    """Resolver returning a fixed file, recording every call."""

    def __init__(self, file: Path, repository: str = "central") -> None:
        self.file = file
        self.repository = repository
        self.calls: List[ArtifactCoordinate] = []

    def resolve(self, coordinate: ArtifactCoordinate, repositories: Sequence[RemoteRepository]) -> ResolvedArtifact:
        self.calls.append(coordinate)
        return ResolvedArtifact(coordinate=coordinate, file=self.file, repository=self.repository)


class FailingResolver:
    def resolve(self, coordinate, repositories):
        raise ResolutionError(f"Could not find artifact {coordinate}", context={"coordinate": coordinate})


class CountingArchiverManager:
    """Wraps an ArchiverManager and counts extractions."""

    def __init__(self, delegate) -> None:
        self.delegate = delegate
        self.extractions = 0

    def get_unarchiver(self, archive):
        unarchiver = self.delegate.get_unarchiver(archive)
        manager = self

        class _Counting:
            def extract(self, source, destination):
                manager.extractions += 1
                unarchiver.extract(source, destination)

        return _Counting()


@pytest.fixture
def coordinate() -> ArtifactCoordinate:
    return ArtifactCoordinate(group="org.robovm", name="robovm-dist", packaging="tar.gz", version="0.0.2")


@pytest.fixture
def dist_archive(tmp_path, coordinate) -> Path:
    repo_dir = tmp_path / "m2" / "org" / "robovm" / "robovm-dist" / "0.0.2"
    return write_tar_gz(repo_dir / coordinate.filename, DIST_FILES, root="robovm-0.0.2")
