"""Wire services with shared settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from distmat.modules.dist import DistBuildService
from .settings import Settings

log = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Container that wires plain-Python services with shared settings."""

    settings: Settings
    dist_service: DistBuildService = field(init=False)

    def __post_init__(self) -> None:
        self.dist_service = DistBuildService(self.settings)


async def bootstrap_services(container: ServiceContainer) -> None:
    settings = container.settings
    log.info("...................RUN...................")
    log.info(
        "dist=%s naming=%s dist_dir=%s offline=%s",
        settings.dist_coordinate,
        settings.dist_naming,
        settings.dist_dir or "-",
        settings.offline,
    )
