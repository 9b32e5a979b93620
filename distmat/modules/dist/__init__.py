"""Dist module exports."""

from .service import ArtifactMaterializer, DistBuildService
from .controller import router as dist_router

__all__ = ["ArtifactMaterializer", "DistBuildService", "dist_router"]
