"""
Core modules for synres.

This package contains the resolution building blocks:
- types: Resource and dependency data structures
- manifest: pom.xml and archive descriptor parsing
- cache: Per-project dependency caches
- fetcher: Local and remote repository access
- connectors / projects: Dependency resolvers
- resolver: Download entry point
- merger: Cross-project resource merging (import from ``synres.core.merger``)
"""

from .cache import CacheManager, DependencyCache, project_cache_key
from .connectors import ConnectorResolver
from .errors import (
    DependencyError, DependencyFetchError, DownloadVerificationFailure,
    ManifestError, MissingDriverCoordinates, NoMatchingDriver, SynresError,
)
from .fetcher import ArchiveFetcher, LocalRepository, RemoteRepository, UnsupportedFetcher
from .manifest import ProjectManifest
from .projects import ProjectDependencyResolver
from .resolver import download_dependencies, resolve_project_dependencies
from .result import Err, Ok, Result
from .types import (
    CollisionReport, DependencyCacheDirectory, DependencyDetails,
    DependencyStatus, DownloadResult, RegistryResource, RequestedResource,
    Resource, ResourceBucket, ResourceMap, ResourceOrigin,
)

__all__ = [
    # Types
    "CollisionReport", "DependencyCacheDirectory", "DependencyDetails",
    "DependencyStatus", "DownloadResult", "RegistryResource",
    "RequestedResource", "Resource", "ResourceBucket", "ResourceMap",
    "ResourceOrigin",
    # Result
    "Ok", "Err", "Result",
    # Errors
    "SynresError", "DependencyError", "DependencyFetchError",
    "DownloadVerificationFailure", "ManifestError",
    "MissingDriverCoordinates", "NoMatchingDriver",
    # Manifest
    "ProjectManifest",
    # Cache
    "CacheManager", "DependencyCache", "project_cache_key",
    # Fetching
    "ArchiveFetcher", "LocalRepository", "RemoteRepository", "UnsupportedFetcher",
    # Resolution
    "ConnectorResolver", "ProjectDependencyResolver",
    "download_dependencies", "resolve_project_dependencies",
]
