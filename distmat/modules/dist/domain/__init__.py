from .artifact import ArtifactCoordinate, RemoteRepository, ResolvedArtifact
from .exceptions import (
    ArchiveSafetyError,
    CompilationError,
    DistError,
    ExtractionError,
    NoSuchArchiverError,
    ResolutionError,
)
from .models import (
    MARKER_FILE_NAME,
    UNPACKED_DIR_NAME,
    BuildConfig,
    BuildRequest,
    BuildResult,
    MaterializationResult,
    MaterializationTarget,
    NamingScheme,
    TargetArch,
    TargetOS,
    subdirectory_name,
)

__all__ = [
    "ArtifactCoordinate",
    "RemoteRepository",
    "ResolvedArtifact",
    "ArchiveSafetyError",
    "CompilationError",
    "DistError",
    "ExtractionError",
    "NoSuchArchiverError",
    "ResolutionError",
    "MARKER_FILE_NAME",
    "UNPACKED_DIR_NAME",
    "BuildConfig",
    "BuildRequest",
    "BuildResult",
    "MaterializationResult",
    "MaterializationTarget",
    "NamingScheme",
    "TargetArch",
    "TargetOS",
    "subdirectory_name",
]
