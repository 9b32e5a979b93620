"""Runtime configuration for distmat."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import __version__


def _default_local_repository() -> str:
    return str(Path.home() / ".m2" / "repository")


class Settings(BaseSettings):
    """Configuration values mapped from environment variables.

    Every field reads the upper-cased environment variable of the same name,
    e.g. ``DIST_VERSION`` or ``REMOTE_REPOSITORIES`` (a JSON list).
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field("distmat")
    version: str = Field(__version__)
    log_level: str = Field("INFO")

    # Dist bundle coordinate
    dist_group: str = Field("org.robovm")
    dist_artifact: str = Field("robovm-dist")
    dist_packaging: str = Field("tar.gz")
    dist_version: str = Field("0.0.2")

    # Where and how the dist is unpacked
    dist_dir: Optional[str] = Field(None)
    dist_naming: str = Field("coordinate")
    dist_prefix: str = Field("robovm")
    dist_strip_root: bool = Field(True)
    dist_repair_incomplete: bool = Field(True)

    # Repository configuration
    local_repository: str = Field(default_factory=_default_local_repository)
    remote_repositories: List[str] = Field(
        default_factory=lambda: ["https://repo.maven.apache.org/maven2"],
    )
    remote_username: Optional[str] = Field(None)
    remote_password: Optional[str] = Field(None)
    offline: bool = Field(False)
    force_download: bool = Field(False)
    verify_checksums: bool = Field(False)
    http_timeout: float = Field(30)

    # External compiler
    compiler_executable: str = Field("robovm")
    compile_timeout: Optional[int] = Field(None)
    target_os: Optional[str] = Field(None)
    target_arch: Optional[str] = Field(None)

    @property
    def dist_coordinate(self) -> str:
        return f"{self.dist_group}:{self.dist_artifact}:{self.dist_packaging}:{self.dist_version}"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance for dependency injection."""
    return Settings()
