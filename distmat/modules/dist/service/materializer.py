"""Idempotent fetch-and-unpack of versioned dist bundles."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import shutil
import threading
import uuid
import weakref
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from distmat.modules.dist.domain import (
    MARKER_FILE_NAME,
    UNPACKED_DIR_NAME,
    ArtifactCoordinate,
    DistError,
    ExtractionError,
    MaterializationResult,
    MaterializationTarget,
    NamingScheme,
    RemoteRepository,
    ResolutionError,
    ResolvedArtifact,
    subdirectory_name,
)
from distmat.modules.dist.fileget import ArtifactResolver
from distmat.modules.dist.unpack import ArchiverManager

class _TargetLock:
    __slots__ = ("_lock", "__weakref__")

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def __enter__(self) -> "_TargetLock":
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self._lock.release()


_LOCKS_GUARD = threading.Lock()
# Entries disappear once no caller holds the lock.
_TARGET_LOCKS: "weakref.WeakValueDictionary[str, _TargetLock]" = weakref.WeakValueDictionary()


def _target_lock(directory: Path) -> _TargetLock:
    key = os.path.normcase(os.path.abspath(directory))
    with _LOCKS_GUARD:
        lock = _TARGET_LOCKS.get(key)
        if lock is None:
            lock = _TargetLock()
            _TARGET_LOCKS[key] = lock
        return lock


def _sha256_of(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


class ArtifactMaterializer:
    """Resolve a dist bundle and unpack it once into a versioned directory.

    A directory only counts as materialized once its completion marker is
    present. Extraction happens in a temporary sibling directory that is
    renamed into place after the marker is written, so a failed or
    interrupted run never leaves a directory that looks complete.
    """

    def __init__(
        self,
        resolver: ArtifactResolver,
        archiver_manager: Optional[ArchiverManager] = None,
        *,
        repositories: Sequence[RemoteRepository] = (),
        naming: NamingScheme = NamingScheme.COORDINATE,
        prefix: str = "dist",
        strip_root: bool = True,
        repair_incomplete: bool = True,
    ) -> None:
        self.resolver = resolver
        self.archiver_manager = archiver_manager or ArchiverManager()
        self.repositories = list(repositories)
        self.naming = NamingScheme(naming)
        self.prefix = prefix
        self.strip_root = strip_root
        self.repair_incomplete = repair_incomplete
        self.log = logging.getLogger(self.__class__.__name__)

    def target_for(
        self,
        coordinate: ArtifactCoordinate,
        resolved_file: Path,
        base_directory: Optional[Path] = None,
    ) -> MaterializationTarget:
        if base_directory is not None:
            base = Path(base_directory)
        else:
            base = Path(resolved_file).parent / UNPACKED_DIR_NAME
        return MaterializationTarget(
            base_directory=base,
            subdirectory_name=subdirectory_name(coordinate, self.naming, self.prefix),
        )

    def materialize(
        self,
        coordinate: ArtifactCoordinate,
        base_directory: Optional[Path] = None,
        repositories: Optional[Sequence[RemoteRepository]] = None,
    ) -> MaterializationResult:
        repos = list(self.repositories if repositories is None else repositories)
        resolved = self._resolve(coordinate, repos)
        target = self.target_for(coordinate, resolved.file, base_directory)
        unpacked_dir = target.directory

        with _target_lock(unpacked_dir):
            if self.is_materialized(target):
                self.log.info("Using existing extracted dist in: %s", unpacked_dir)
                return MaterializationResult(
                    directory=unpacked_dir,
                    coordinate=coordinate,
                    source=resolved.file,
                    reused=True,
                )
            if unpacked_dir.exists():
                self._handle_incomplete(coordinate, unpacked_dir)

            self.log.info("Extracting dist %s to: %s", coordinate, target.base_directory)
            try:
                target.base_directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ExtractionError(
                    f"Unable to create base directory to unpack dist into: {target.base_directory}",
                    context={"coordinate": coordinate, "path": target.base_directory},
                ) from exc

            reused = self._extract_into_place(resolved, target)
            if reused:
                self.log.info("Dist %s was extracted concurrently, using %s", coordinate, unpacked_dir)
            else:
                self.log.debug("Dist extracted to: %s", unpacked_dir)
            return MaterializationResult(
                directory=unpacked_dir,
                coordinate=coordinate,
                source=resolved.file,
                reused=reused,
            )

    def is_materialized(self, target: MaterializationTarget) -> bool:
        return target.directory.is_dir() and target.marker.is_file()

    def verify(self, result: MaterializationResult) -> bool:
        """Check that the archive still matches the digest recorded at extraction time."""
        marker = Path(result.directory) / MARKER_FILE_NAME
        try:
            recorded = json.loads(marker.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            self.log.warning("Unreadable completion marker %s: %s", marker, exc)
            return False
        if not isinstance(recorded, dict) or not Path(result.source).is_file():
            return False
        return recorded.get("sha256") == _sha256_of(Path(result.source))

    def _resolve(self, coordinate: ArtifactCoordinate, repositories: Sequence[RemoteRepository]) -> ResolvedArtifact:
        self.log.debug(
            "Resolving artifact %s from %s",
            coordinate,
            [str(repo) for repo in repositories],
        )
        try:
            resolved = self.resolver.resolve(coordinate, repositories)
        except ResolutionError:
            raise
        except DistError as exc:
            raise ResolutionError(str(exc), context={"coordinate": coordinate}) from exc
        except Exception as exc:  # noqa: BLE001
            raise ResolutionError(
                f"Failed to resolve {coordinate}: {exc}",
                context={"coordinate": coordinate},
            ) from exc
        self.log.debug(
            "Resolved artifact %s to %s from %s",
            coordinate,
            resolved.file,
            resolved.repository,
        )
        return resolved

    def _handle_incomplete(self, coordinate: ArtifactCoordinate, unpacked_dir: Path) -> None:
        if not self.repair_incomplete:
            raise ExtractionError(
                f"Directory {unpacked_dir} exists but holds no completed extraction of {coordinate}; "
                "remove it and retry",
                context={"coordinate": coordinate, "path": unpacked_dir},
            )
        self.log.warning("Removing incomplete dist extraction in: %s", unpacked_dir)
        try:
            if unpacked_dir.is_dir() and not unpacked_dir.is_symlink():
                shutil.rmtree(unpacked_dir)
            else:
                unpacked_dir.unlink()
        except OSError as exc:
            raise ExtractionError(
                f"Unable to remove incomplete dist extraction in {unpacked_dir}",
                context={"coordinate": coordinate, "path": unpacked_dir},
            ) from exc

    def _extract_into_place(self, resolved: ResolvedArtifact, target: MaterializationTarget) -> bool:
        """Extract to a temp directory and rename it into place; True if another writer won."""
        coordinate = resolved.coordinate
        source = resolved.file
        unpacked_dir = target.directory
        staging = target.base_directory / f".{target.subdirectory_name}.tmp-{uuid.uuid4().hex[:12]}"
        try:
            unarchiver = self.archiver_manager.get_unarchiver(source)
            unarchiver.extract(source, staging)
            content_root = self._content_root(staging) if self.strip_root else staging
            self._write_marker(content_root, resolved)
            try:
                os.rename(content_root, unpacked_dir)
            except OSError:
                if self.is_materialized(target):
                    return True
                raise
            return False
        except ExtractionError as exc:
            if not exc.context.get("coordinate"):
                exc.context["coordinate"] = str(coordinate)
            raise
        except OSError as exc:
            raise ExtractionError(
                f"Unable to unpack dist from {source} to {unpacked_dir}",
                context={"coordinate": coordinate, "archive": source, "path": unpacked_dir},
            ) from exc
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)

    def _content_root(self, staging: Path) -> Path:
        entries = list(staging.iterdir())
        if len(entries) == 1 and entries[0].is_dir() and not entries[0].is_symlink():
            return entries[0]
        return staging

    def _write_marker(self, directory: Path, resolved: ResolvedArtifact) -> None:
        payload = {
            "coordinate": str(resolved.coordinate),
            "source": str(resolved.file),
            "repository": resolved.repository,
            "sha256": _sha256_of(resolved.file),
            "extracted_at": datetime.now(timezone.utc).isoformat(),
        }
        (directory / MARKER_FILE_NAME).write_text(
            json.dumps(payload, indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
