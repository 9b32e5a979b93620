from .build import DistBuildService
from .classpath import ClasspathAssembler
from .materializer import ArtifactMaterializer

__all__ = ["ArtifactMaterializer", "ClasspathAssembler", "DistBuildService"]
