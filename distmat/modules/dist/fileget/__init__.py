from .maven_resolver import (
    LOCAL_REPOSITORY_ID,
    ArtifactResolver,
    MavenRepositoryResolver,
    remote_repositories_from_settings,
)

__all__ = [
    "LOCAL_REPOSITORY_ID",
    "ArtifactResolver",
    "MavenRepositoryResolver",
    "remote_repositories_from_settings",
]
