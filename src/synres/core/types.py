"""
Core type definitions for synres.

Resources are derived views over a project tree: they are rebuilt on every
scan and only ever changed by an explicit merge.
"""

from enum import StrEnum
from pathlib import Path
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

from ..config import DOWNLOADED, DRIVERS, EXTRACTED


class ResourceOrigin(StrEnum):
    """Where in the project tree a resource was found."""
    ARTIFACTS = "Artifacts"
    REGISTRY = "Registry"
    RESOURCES = "Resources"
    LOCAL_ENTRY = "LocalEntry"


class Resource(BaseModel):
    """
    A typed artifact found in the artifact or local-entry trees.

    For API artifacts the name carries a ``:v{version}`` suffix when the
    source declares a version.
    """
    name: str
    type: str
    origin: ResourceOrigin
    path: str
    artifact_path: str | None = None
    is_local_entry: bool = False

    model_config = ConfigDict(extra="ignore")


class RegistryResource(Resource):
    """
    A resource found in the registry tree.

    Attributes:
        registry_key: Path-like key rooted at ``gov:``, ``conf:`` or
            ``resources:``.
        registry_path: Absolute path of the backing file.
    """
    registry_key: str
    registry_path: str


class ResourceBucket(BaseModel):
    """
    All resources of one logical type.

    Either list may be ``None`` when that tree held nothing of this type.
    """
    resources: List[Resource] | None = None
    registry_resources: List[RegistryResource] | None = None

    def add_resource(self, resource: Resource) -> None:
        if self.resources is None:
            self.resources = []
        self.resources.append(resource)

    def add_registry_resource(self, resource: RegistryResource) -> None:
        if self.registry_resources is None:
            self.registry_resources = []
        self.registry_resources.append(resource)

    def merge(self, other: "ResourceBucket | None") -> "ResourceBucket":
        """Concatenate another bucket's sequences onto this one."""
        if other is None:
            return self
        self.resources = (self.resources or []) + (other.resources or [])
        self.registry_resources = (
            (self.registry_resources or []) + (other.registry_resources or [])
        )
        return self

    def resource_names(self) -> List[str]:
        return [r.name for r in self.resources or []]

    def registry_resource_names(self) -> List[str]:
        return [r.name for r in self.registry_resources or []]

    @property
    def count(self) -> int:
        return len(self.resources or []) + len(self.registry_resources or [])


ResourceMap = Dict[str, ResourceBucket]


class RequestedResource(BaseModel):
    """A single resource type requested by a caller."""
    model_config = ConfigDict(populate_by_name=True)

    type: str
    need_registry: bool = Field(default=True, alias="needRegistry")


class DependencyDetails(BaseModel):
    """
    Maven coordinates of a declared dependency.

    ``type`` is the packaging: ``zip`` for connectors, ``car`` for
    integration projects, ``jar`` for drivers.
    """
    group_id: str
    artifact_id: str
    version: str
    type: str = "zip"

    model_config = ConfigDict(frozen=True)

    @property
    def key(self) -> str:
        """Identity used for visited tracking: ``groupId:artifactId:version``."""
        return f"{self.group_id}:{self.artifact_id}:{self.version}"

    @property
    def failed_id(self) -> str:
        """Identity reported when resolution fails."""
        return f"{self.group_id}-{self.artifact_id}-{self.version}"

    @property
    def file_stem(self) -> str:
        return f"{self.artifact_id}-{self.version}"

    def __str__(self) -> str:
        return self.key


class DependencyCacheDirectory(BaseModel):
    """Directories owned by one project cache key."""
    root: Path
    downloaded: Path
    extracted: Path
    drivers: Path

    @classmethod
    def under(cls, root: Path) -> "DependencyCacheDirectory":
        return cls(
            root=root,
            downloaded=root / DOWNLOADED,
            extracted=root / EXTRACTED,
            drivers=root / DRIVERS,
        )


class CollisionReport(BaseModel):
    """An artifact name owned by more than one project."""
    name: str
    projects: List[str] = Field(default_factory=list)

    def __str__(self) -> str:
        return f"Artifact: '{self.name}' found in: [{', '.join(self.projects)}]"


class DependencyStatus(BaseModel):
    """Split of declared dependencies by cache presence."""
    downloaded: List[DependencyDetails] = Field(default_factory=list)
    pending: List[DependencyDetails] = Field(default_factory=list)


class DownloadResult(BaseModel):
    """
    Outcome of resolving a batch of dependencies.

    Attributes:
        failed: Identities that could not be resolved.
        no_descriptor: Identities whose archive carried no manifest.
    """
    failed: List[str] = Field(default_factory=list)
    no_descriptor: List[str] = Field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return not self.failed
