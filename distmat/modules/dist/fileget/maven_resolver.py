"""Resolve artifact coordinates against a local repository and remote Maven repositories."""

from __future__ import annotations

import hashlib
import logging
import os
import time
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

import httpx

from distmat.modules.dist.domain import (
    ArtifactCoordinate,
    RemoteRepository,
    ResolutionError,
    ResolvedArtifact,
)
from distmat.settings import Settings

LOCAL_REPOSITORY_ID = "local"


class ArtifactResolver(Protocol):
    def resolve(
        self,
        coordinate: ArtifactCoordinate,
        repositories: Sequence[RemoteRepository],
    ) -> ResolvedArtifact:
        ...


def remote_repositories_from_settings(settings: Settings) -> List[RemoteRepository]:
    repos: List[RemoteRepository] = []
    for index, url in enumerate(settings.remote_repositories):
        repos.append(
            RemoteRepository(
                id="central" if index == 0 else f"remote-{index}",
                url=url.rstrip("/"),
                username=settings.remote_username,
                password=settings.remote_password,
            )
        )
    return repos


class MavenRepositoryResolver:
    """Resolve artifacts into a Maven-2 layout local repository, downloading when missing."""

    def __init__(
        self,
        local_repository: Path,
        *,
        client: Optional[httpx.Client] = None,
        offline: bool = False,
        force: bool = False,
        verify_checksums: bool = False,
        timeout: float = 30,
    ) -> None:
        self.local_repository = Path(local_repository)
        self.offline = offline
        self.force = force
        self.verify_checksums = verify_checksums
        self.log = logging.getLogger(self.__class__.__name__)
        self._client = client or httpx.Client(timeout=timeout, verify=True, follow_redirects=True)

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[httpx.Client] = None) -> "MavenRepositoryResolver":
        return cls(
            Path(settings.local_repository).expanduser(),
            client=client,
            offline=settings.offline,
            force=settings.force_download,
            verify_checksums=settings.verify_checksums,
            timeout=settings.http_timeout,
        )

    def local_path(self, coordinate: ArtifactCoordinate) -> Path:
        return self.local_repository.joinpath(*coordinate.path_segments)

    def resolve(
        self,
        coordinate: ArtifactCoordinate,
        repositories: Sequence[RemoteRepository],
    ) -> ResolvedArtifact:
        target = self.local_path(coordinate)
        if target.is_file() and (self.offline or not self.force):
            self.log.debug("Found %s in local repository %s", coordinate, target)
            return ResolvedArtifact(coordinate=coordinate, file=target, repository=LOCAL_REPOSITORY_ID)

        if self.offline:
            raise ResolutionError(
                f"Cannot access remote repositories in offline mode and artifact {coordinate} "
                "has not been downloaded from them before",
                context={"coordinate": coordinate, "path": target},
            )
        if not repositories:
            raise ResolutionError(
                f"Could not find artifact {coordinate}, no remote repositories configured",
                context={"coordinate": coordinate, "path": target},
            )

        failures: List[str] = []
        last_error: Optional[Exception] = None
        for repo in repositories:
            url = self._build_artifact_url(repo, coordinate)
            try:
                if self._download(repo, url, target, coordinate):
                    return ResolvedArtifact(coordinate=coordinate, file=target, repository=repo.id)
                failures.append(f"{repo.id}: not found")
            except ResolutionError:
                raise
            except (httpx.HTTPError, OSError) as exc:
                self.log.warning("Failed to fetch %s from %s: %s", coordinate, repo, exc)
                failures.append(f"{repo.id}: {exc}")
                last_error = exc

        error = ResolutionError(
            f"Could not find artifact {coordinate} in {', '.join(str(r) for r in repositories)}",
            context={"coordinate": coordinate, "path": target, "tried": "; ".join(failures)},
        )
        if last_error is not None:
            raise error from last_error
        raise error

    def _build_artifact_url(self, repo: RemoteRepository, coordinate: ArtifactCoordinate) -> str:
        path = "/".join(coordinate.path_segments)
        return f"{repo.url.rstrip('/')}/{path}"

    def _download(
        self,
        repo: RemoteRepository,
        url: str,
        target: Path,
        coordinate: ArtifactCoordinate,
    ) -> bool:
        """Stream ``url`` into ``target``; return False when the repository lacks the artifact."""
        target.parent.mkdir(parents=True, exist_ok=True)
        part = target.with_name(target.name + ".part")
        self.log.info("Downloading %s from %s url=%s", coordinate, repo.id, url)
        start_time = time.time()
        downloaded = 0
        digest = hashlib.sha1()
        try:
            with self._client.stream("GET", url, auth=repo.auth) as response:
                if response.status_code == 404:
                    self.log.debug("Artifact %s not present in %s", coordinate, repo.id)
                    return False
                response.raise_for_status()
                total = int(response.headers.get("content-length") or 0)
                next_percent = 10
                next_bytes_logged = 5 * 1024 * 1024  # log every 5MB when size unknown
                with open(part, "wb") as fh:
                    for chunk in response.iter_bytes(65536):
                        if not chunk:
                            continue
                        fh.write(chunk)
                        digest.update(chunk)
                        downloaded += len(chunk)
                        if total:
                            percent = int(downloaded * 100 / total)
                            if percent >= next_percent:
                                self.log.info(
                                    "Download progress %s %s%% (%d/%d bytes)",
                                    coordinate,
                                    percent,
                                    downloaded,
                                    total,
                                )
                                next_percent = (percent // 10 + 1) * 10
                        elif downloaded >= next_bytes_logged:
                            self.log.info("Download progress %s %d bytes", coordinate, downloaded)
                            next_bytes_logged += 5 * 1024 * 1024
            if self.verify_checksums:
                self._check_sha1(repo, url, digest.hexdigest(), coordinate)
            os.replace(part, target)
        finally:
            if part.exists():
                part.unlink()

        elapsed = max(time.time() - start_time, 1e-3)
        speed_mb_s = (downloaded / 1024 / 1024) / elapsed
        self.log.info(
            "Downloaded %s from %s -> %s (%d bytes, %.2f MB/s, %.2fs)",
            coordinate,
            repo.id,
            target,
            downloaded,
            speed_mb_s,
            elapsed,
        )
        return True

    def _check_sha1(self, repo: RemoteRepository, url: str, actual: str, coordinate: ArtifactCoordinate) -> None:
        resp = self._client.get(f"{url}.sha1", auth=repo.auth)
        if resp.status_code == 404:
            self.log.debug("No checksum published for %s in %s", coordinate, repo.id)
            return
        resp.raise_for_status()
        fields = resp.text.strip().split()
        expected = fields[0].lower() if fields else ""
        if expected != actual:
            raise ResolutionError(
                f"Checksum validation failed for {coordinate}",
                context={"coordinate": coordinate, "url": url, "expected": expected, "actual": actual},
            )
