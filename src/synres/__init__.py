"""
synres - Artifact discovery and dependency resolution for Synapse projects.

Given an integration project root, synres lists every typed artifact the
project owns and resolves the dependencies its pom declares into a local
per-project cache.

Key Components:
- parsing: Type classification and artifact scanning
- core: Data types, caches, dependency resolvers and cross-project merging
- cli: The ``synres`` command line

Usage:
    from synres.parsing import ArtifactScanner

    resources = ArtifactScanner().scan_project(project_root)
    sequences = resources["sequence"]
"""

__version__ = "0.1.0"

from .core.types import (
    CollisionReport, DependencyDetails, RegistryResource, RequestedResource,
    Resource, ResourceBucket, ResourceMap, ResourceOrigin,
)

__all__ = [
    "__version__",
    "CollisionReport",
    "DependencyDetails",
    "RegistryResource",
    "RequestedResource",
    "Resource",
    "ResourceBucket",
    "ResourceMap",
    "ResourceOrigin",
]
