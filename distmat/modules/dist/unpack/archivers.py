"""Unarchivers keyed by file suffix."""

from __future__ import annotations

import logging
import lzma
import os
import stat
import tarfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, List, Optional
from zipfile import BadZipFile, ZipFile, ZipInfo

from distmat.modules.dist.domain import ArchiveSafetyError, ExtractionError, NoSuchArchiverError


def _safe_target(destination: Path, member_name: str, archive: Path) -> Path:
    """Return where ``member_name`` lands under ``destination`` or refuse it."""
    pure = PurePosixPath(member_name.replace("\\", "/"))
    if pure.is_absolute() or ".." in pure.parts:
        raise ArchiveSafetyError(
            f"Refusing to extract entry {member_name!r} outside the destination",
            context={"archive": archive, "destination": destination},
        )
    target = (destination / Path(*pure.parts)).resolve() if pure.parts else destination.resolve()
    root = destination.resolve()
    if target != root and root not in target.parents:
        raise ArchiveSafetyError(
            f"Refusing to extract entry {member_name!r} outside the destination",
            context={"archive": archive, "destination": destination},
        )
    return target


class UnArchiver:
    """Base class, subclasses implement ``_extract``."""

    def __init__(self) -> None:
        self.log = logging.getLogger(self.__class__.__name__)

    def extract(self, source: Path, destination: Path) -> None:
        source = Path(source)
        destination = Path(destination)
        if not source.is_file():
            raise ExtractionError(
                f"Archive {source} does not exist",
                context={"archive": source, "destination": destination},
            )
        destination.mkdir(parents=True, exist_ok=True)
        self.log.debug("Extracting archive %s into %s", source, destination)
        try:
            self._extract(source, destination)
        except ExtractionError:
            raise
        except (OSError, EOFError, BadZipFile, tarfile.TarError, lzma.LZMAError, zlib.error, ValueError) as exc:
            raise ExtractionError(
                f"Unable to extract {source} to {destination}: {exc}",
                context={"archive": source, "destination": destination},
            ) from exc
        self.log.debug("Archive extracted %s -> %s", source, destination)

    def _extract(self, source: Path, destination: Path) -> None:
        raise NotImplementedError


class ZipUnArchiver(UnArchiver):
    def _extract(self, source: Path, destination: Path) -> None:
        with ZipFile(source, "r") as zf:
            for info in zf.infolist():
                target = _safe_target(destination, info.filename, source)
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(target, "wb") as dst:
                    while True:
                        chunk = src.read(65536)
                        if not chunk:
                            break
                        dst.write(chunk)
                self._apply_mode(info, target)

    def _apply_mode(self, info: ZipInfo, target: Path) -> None:
        mode = (info.external_attr >> 16) & 0o777
        if mode:
            os.chmod(target, mode | stat.S_IRUSR)


class TarUnArchiver(UnArchiver):
    def __init__(self, mode: str = "r:*") -> None:
        super().__init__()
        self.mode = mode

    def _extract(self, source: Path, destination: Path) -> None:
        with tarfile.open(source, self.mode) as tf:
            members = tf.getmembers()
            for member in members:
                target = _safe_target(destination, member.name, source)
                if member.issym() or member.islnk():
                    root = destination.resolve()
                    if member.issym():
                        link = target.parent / member.linkname
                    else:
                        link = root / member.linkname
                    _safe_target(destination, os.path.relpath(link, root), source)
                elif member.isdev():
                    raise ArchiveSafetyError(
                        f"Refusing to extract device entry {member.name!r}",
                        context={"archive": source, "destination": destination},
                    )
            if hasattr(tarfile, "data_filter"):
                tf.extractall(destination, members=members, filter="fully_trusted")
            else:
                tf.extractall(destination, members=members)
            # Read to the end so the gzip CRC and xz integrity checks run.
            while tf.fileobj.read(65536):
                pass


UnArchiverFactory = Callable[[], UnArchiver]


class ArchiverManager:
    """Look up an unarchiver for an archive file by its suffix."""

    def __init__(self) -> None:
        self._factories: Dict[str, UnArchiverFactory] = {}
        self.register(".zip", ZipUnArchiver)
        self.register(".jar", ZipUnArchiver)
        self.register(".war", ZipUnArchiver)
        self.register(".tar", lambda: TarUnArchiver("r:"))
        self.register(".tar.gz", lambda: TarUnArchiver("r:gz"))
        self.register(".tgz", lambda: TarUnArchiver("r:gz"))
        self.register(".tar.bz2", lambda: TarUnArchiver("r:bz2"))
        self.register(".tbz2", lambda: TarUnArchiver("r:bz2"))
        self.register(".tar.xz", lambda: TarUnArchiver("r:xz"))
        self.register(".txz", lambda: TarUnArchiver("r:xz"))

    def register(self, suffix: str, factory: UnArchiverFactory) -> None:
        key = suffix.lower()
        if not key.startswith("."):
            key = f".{key}"
        self._factories[key] = factory

    @property
    def suffixes(self) -> List[str]:
        return sorted(self._factories, key=len, reverse=True)

    def find_suffix(self, archive: Path) -> Optional[str]:
        name = Path(archive).name.lower()
        for suffix in self.suffixes:
            if name.endswith(suffix):
                return suffix
        return None

    def get_unarchiver(self, archive: Path) -> UnArchiver:
        suffix = self.find_suffix(archive)
        if suffix is None:
            raise NoSuchArchiverError(
                f"No unarchiver registered for {Path(archive).name}",
                context={"archive": archive},
            )
        return self._factories[suffix]()
