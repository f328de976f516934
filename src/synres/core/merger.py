"""
Cross-project resource merging.

Integration projects pulled in as dependencies are extracted into the host
project's dependency cache. Their resources become visible to the host: each
extracted project is scanned and its buckets are folded into one map per
type. Under versioned deployment the runtime deploys dependent artifacts as
``{groupId}__{artifactId}__{name}``, so names are rewritten to match.

The same name appearing in more than one project is reported as a
collision. Collisions are warnings; the merged map still carries every
resource.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..parsing.classifier import DATA_SERVICE, PROXY_SERVICE
from ..parsing.scanner import ArtifactScanner, normalize_requests
from .cache import DependencyCache, project_cache
from .errors import ManifestError
from .manifest import ProjectManifest
from .types import (
    CollisionReport,
    RegistryResource,
    RequestedResource,
    Resource,
    ResourceBucket,
    ResourceMap,
)

logger = logging.getLogger(__name__)

NO_DEPENDENTS = "No dependent integration projects found"
SUCCESS_PREFIX = "Success: Dependent resources loaded successfully for project: "

# The runtime never exposes versioned names for these
UNQUALIFIED_TYPES = frozenset({DATA_SERVICE, PROXY_SERVICE})


@dataclass
class MergeResult:
    """
    Outcome of loading a project's dependent resources.

    Attributes:
        host: Resources the host project owns.
        dependents: Resources of every dependent project, merged per type.
        collisions: Names owned by more than one project.
        failures: Dependent projects that could not be scanned.
        message: Human-readable summary.
    """

    host: ResourceMap = field(default_factory=dict)
    dependents: ResourceMap = field(default_factory=dict)
    collisions: List[CollisionReport] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)
    message: str = NO_DEPENDENTS

    @property
    def has_collisions(self) -> bool:
        return bool(self.collisions)


def qualified_name(group_id: str, artifact_id: str, name: str) -> str:
    return f"{group_id}__{artifact_id}__{name}"


def qualify_resource(resource: Resource, group_id: str, artifact_id: str) -> Resource:
    """Rewrite a resource's name; data services and proxy services keep theirs."""
    if resource.type in UNQUALIFIED_TYPES:
        return resource
    return resource.model_copy(update={"name": qualified_name(group_id, artifact_id, resource.name)})


def qualify_registry_resource(resource: RegistryResource, group_id: str, artifact_id: str) -> RegistryResource:
    """Rewrite only the last segment of a registry key, keeping its directory prefix."""
    key = resource.registry_key
    slash = key.rfind("/")
    prefix, leaf = key[: slash + 1], key[slash + 1:]
    return resource.model_copy(update={"registry_key": prefix + qualified_name(group_id, artifact_id, leaf)})


def format_collisions(collisions: Iterable[CollisionReport]) -> str:
    lines = ["DUPLICATE ARTIFACTS", ""]
    lines.extend(str(collision) for collision in collisions)
    lines.append("")
    lines.append("Please avoid having artifacts with the same name and continue.")
    return "\n".join(lines) + "\n"


class CrossProjectMerger:
    """
    Folds the resources of extracted dependent projects into a host project.

    Example:
        ```python
        merger = CrossProjectMerger()
        result = merger.load_dependent_resources(project_root)
        if result.has_collisions:
            print(result.message)
        ```
    """

    def __init__(self, scanner: Optional[ArtifactScanner] = None, cache: Optional[DependencyCache] = None):
        self.scanner = scanner or ArtifactScanner()
        self.cache = cache or project_cache()

    def load_dependent_resources(self, project_path: Path) -> MergeResult:
        """
        Scan the host and every extracted dependent project, then merge.

        Never raises: a missing dependency cache yields an empty result and
        per-project failures are collected in ``failures``.
        """
        project_path = Path(project_path)
        result = MergeResult()
        owners: Dict[str, List[str]] = {}

        result.host = self.scanner.scan_project(project_path)
        for bucket in result.host.values():
            _record_owners(bucket, project_path.name, owners)

        cache_dir = self.cache.find_cache_dir(project_path)
        if cache_dir is None or not cache_dir.extracted.is_dir():
            logger.warning(f"No project dependency directory found for project: {project_path}")
            result.message = NO_DEPENDENTS
            return result

        try:
            versioned = ProjectManifest.load(project_path).versioned_deployment
        except ManifestError as e:
            result.message = f"Error loading dependent resources: {e}"
            return result

        for dependent in sorted(cache_dir.extracted.iterdir()):
            if not dependent.is_dir() or dependent.name.startswith("."):
                continue

            try:
                resources = self._scan_dependent(dependent, versioned)
            except ManifestError as e:
                logger.warning(f"Skipping dependent project {dependent.name}: {e}")
                result.failures.append(dependent.name)
                continue

            for artifact_type, bucket in resources.items():
                result.dependents.setdefault(artifact_type, ResourceBucket()).merge(bucket)
                _record_owners(bucket, dependent.name, owners)

        result.collisions = [
            CollisionReport(name=name, projects=projects)
            for name, projects in sorted(owners.items())
            if len(projects) > 1
        ]

        if result.collisions:
            result.message = format_collisions(result.collisions)
            logger.warning(result.message)
        else:
            result.message = SUCCESS_PREFIX + str(project_path)
        return result

    def find_resources(
        self,
        project_path: Path,
        requests: str | RequestedResource | Iterable[str | RequestedResource | dict],
        merged: Optional[MergeResult] = None,
    ) -> ResourceBucket:
        """
        Answer a resource request for the host, including dependent projects.

        Dependent buckets of every requested type are appended to the host's
        own matches.
        """
        requests = normalize_requests(requests)
        bucket = self.scanner.find_resources(project_path, requests)
        merged = merged or self.load_dependent_resources(project_path)

        for request in requests:
            dependent_bucket = merged.dependents.get(request.type)
            if dependent_bucket is not None:
                bucket.merge(dependent_bucket)
        return bucket

    def _scan_dependent(self, dependent: Path, versioned: bool) -> ResourceMap:
        resources = self.scanner.scan_project(dependent)
        if not versioned:
            return resources

        manifest = ProjectManifest.load(dependent)
        for bucket in resources.values():
            if bucket.resources is not None:
                bucket.resources = [
                    qualify_resource(r, manifest.group_id, manifest.artifact_id) for r in bucket.resources
                ]
            if bucket.registry_resources is not None:
                bucket.registry_resources = [
                    qualify_registry_resource(r, manifest.group_id, manifest.artifact_id)
                    for r in bucket.registry_resources
                ]
        return resources


def _record_owners(bucket: ResourceBucket, project_name: str, owners: Dict[str, List[str]]) -> None:
    for resource in bucket.resources or []:
        projects = owners.setdefault(resource.name, [])
        if project_name not in projects:
            projects.append(project_name)
