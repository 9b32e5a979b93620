"""Materialize the configured dist and run the app build against it."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from distmat.modules.dist.compile import CompilerInvoker
from distmat.modules.dist.domain import (
    ArtifactCoordinate,
    BuildConfig,
    BuildRequest,
    BuildResult,
    MaterializationResult,
    NamingScheme,
)
from distmat.modules.dist.fileget import (
    ArtifactResolver,
    MavenRepositoryResolver,
    remote_repositories_from_settings,
)
from distmat.modules.dist.unpack import ArchiverManager
from distmat.settings import Settings

from .classpath import ClasspathAssembler
from .materializer import ArtifactMaterializer

log = logging.getLogger(__name__)


class DistBuildService:
    def __init__(
        self,
        settings: Settings,
        *,
        resolver: Optional[ArtifactResolver] = None,
        materializer: Optional[ArtifactMaterializer] = None,
        assembler: Optional[ClasspathAssembler] = None,
        compiler: Optional[CompilerInvoker] = None,
    ) -> None:
        self.settings = settings
        self.materializer = materializer or ArtifactMaterializer(
            resolver or MavenRepositoryResolver.from_settings(settings),
            ArchiverManager(),
            repositories=remote_repositories_from_settings(settings),
            naming=NamingScheme(settings.dist_naming),
            prefix=settings.dist_prefix,
            strip_root=settings.dist_strip_root,
            repair_incomplete=settings.dist_repair_incomplete,
        )
        self.assembler = assembler or ClasspathAssembler()
        self.compiler = compiler or CompilerInvoker(
            settings.compiler_executable,
            timeout=settings.compile_timeout,
        )

    def coordinate(self, version: Optional[str] = None) -> ArtifactCoordinate:
        return ArtifactCoordinate(
            group=self.settings.dist_group,
            name=self.settings.dist_artifact,
            packaging=self.settings.dist_packaging,
            version=(version or self.settings.dist_version).strip(),
        )

    def materialize_dist(
        self,
        *,
        coordinate: Optional[ArtifactCoordinate] = None,
        version: Optional[str] = None,
        base_dir: Optional[str] = None,
    ) -> MaterializationResult:
        if coordinate is not None and version:
            raise ValueError("coordinate and version are mutually exclusive")
        coords = coordinate or self.coordinate(version)
        override = base_dir or self.settings.dist_dir
        return self.materializer.materialize(
            coords,
            Path(override).expanduser() if override else None,
        )

    def build(self, request: BuildRequest) -> BuildResult:
        log.info("Building app %s", request.main_class)
        dist = self.materialize_dist(version=request.version)

        builder = (
            BuildConfig.Builder()
            .home(dist.directory)
            .main_class(request.main_class)
            .os(request.os or self.settings.target_os)
            .arch(request.arch or self.settings.target_arch)
            .output_dir(Path(request.output_dir) if request.output_dir else None)
        )
        for entry in self.assembler.assemble(request.classpath):
            builder.add_classpath_entry(entry)
        config = builder.build()

        completed = self.compiler.compile(config)
        return BuildResult(
            dist_dir=dist.directory,
            command=self.compiler.build_command(config),
            returncode=completed.returncode,
            stdout=completed.stdout or "",
        )
