"""
Manifest parsing for integration projects and their dependencies.

Three manifests are read here:

- ``pom.xml`` at a project root: coordinates, the versioned-deployment
  switch and declared dependencies
- ``descriptor.xml`` inside a ``.car`` archive: the archive's own
  integration-project dependencies
- ``descriptor.yml`` inside an extracted connector: driver coordinates per
  connection type
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml

from ..config import POM_FILE
from .errors import ManifestError
from .types import DependencyDetails

logger = logging.getLogger(__name__)

CONNECTOR_TYPE = "zip"
PROJECT_TYPE = "car"
VERSIONED_DEPLOYMENT_PROPERTY = "versionedDeployment"

_PROPERTY_REF = re.compile(r"\$\{([^}]+)\}")


def _local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix ElementTree puts on tags."""
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element, name: str) -> ET.Element | None:
    for child in element:
        if _local_name(child.tag) == name:
            return child
    return None


def _child_text(element: ET.Element, name: str) -> str:
    child = _child(element, name)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


@dataclass
class ProjectManifest:
    """
    Contents of a project's ``pom.xml`` relevant to resolution.

    Attributes:
        name: Project directory name.
        group_id: Maven groupId of the project.
        artifact_id: Maven artifactId of the project.
        version: Project version.
        versioned_deployment: Whether dependent artifacts are deployed under
            qualified ``groupId__artifactId__name`` names.
        properties: ``<properties>`` of the pom, used for ``${}`` expansion.
        dependencies: Every declared dependency, in declaration order.
    """

    name: str
    group_id: str = ""
    artifact_id: str = ""
    version: str = ""
    versioned_deployment: bool = False
    properties: Dict[str, str] = field(default_factory=dict)
    dependencies: List[DependencyDetails] = field(default_factory=list)

    @property
    def connector_dependencies(self) -> List[DependencyDetails]:
        return [d for d in self.dependencies if d.type == CONNECTOR_TYPE]

    @property
    def project_dependencies(self) -> List[DependencyDetails]:
        return [d for d in self.dependencies if d.type == PROJECT_TYPE]

    @classmethod
    def load(cls, project_path: Path) -> ProjectManifest:
        """
        Load the ``pom.xml`` of a project.

        Args:
            project_path: Project root directory.

        Returns:
            ProjectManifest: Parsed manifest. A project without a pom gets an
            empty manifest named after its directory.

        Raises:
            ManifestError: If the pom exists but is not well-formed XML.
        """
        project_path = Path(project_path)
        pom = project_path / POM_FILE
        if not pom.exists():
            return cls(name=project_path.name)

        try:
            root = ET.parse(pom).getroot()
        except ET.ParseError as e:
            raise ManifestError(pom, str(e))

        properties = {}
        properties_element = _child(root, "properties")
        if properties_element is not None:
            for prop in properties_element:
                properties[_local_name(prop.tag)] = (prop.text or "").strip()

        manifest = cls(
            name=project_path.name,
            group_id=_child_text(root, "groupId"),
            artifact_id=_child_text(root, "artifactId"),
            version=_child_text(root, "version"),
            properties=properties,
        )
        manifest.properties.setdefault("project.groupId", manifest.group_id)
        manifest.properties.setdefault("project.artifactId", manifest.artifact_id)
        manifest.properties.setdefault("project.version", manifest.version)
        manifest.versioned_deployment = (
            manifest.expand(properties.get(VERSIONED_DEPLOYMENT_PROPERTY, "")).lower() == "true"
        )

        dependencies_element = _child(root, "dependencies")
        if dependencies_element is not None:
            for dependency in dependencies_element:
                if _local_name(dependency.tag) != "dependency":
                    continue
                details = manifest._parse_dependency(dependency)
                if details is not None:
                    manifest.dependencies.append(details)

        return manifest

    def expand(self, value: str) -> str:
        """Substitute ``${property}`` references; unknown ones are kept."""
        return _PROPERTY_REF.sub(lambda m: self.properties.get(m.group(1), m.group(0)), value)

    def _parse_dependency(self, element: ET.Element) -> DependencyDetails | None:
        group_id = self.expand(_child_text(element, "groupId"))
        artifact_id = self.expand(_child_text(element, "artifactId"))
        version = self.expand(_child_text(element, "version"))
        dep_type = self.expand(_child_text(element, "type")) or "jar"

        if not (group_id and artifact_id and version):
            logger.warning(f"Skipping incomplete dependency in {self.name}: {group_id}:{artifact_id}")
            return None
        return DependencyDetails(group_id=group_id, artifact_id=artifact_id, version=version, type=dep_type)


def parse_project_descriptor(content: bytes) -> List[DependencyDetails]:
    """
    Parse a ``descriptor.xml`` embedded in an integration-project archive.

    Entries missing any of groupId, artifactId, version or type are
    skipped.

    Raises:
        ManifestError: If the descriptor is not well-formed XML.
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise ManifestError("descriptor.xml", str(e))

    dependencies = []
    for element in root.iter():
        if _local_name(element.tag) != "dependency":
            continue
        attrs = {key: (element.get(key) or "").strip() for key in ("groupId", "artifactId", "version", "type")}
        if not all(attrs.values()):
            continue
        dependencies.append(
            DependencyDetails(
                group_id=attrs["groupId"],
                artifact_id=attrs["artifactId"],
                version=attrs["version"],
                type=attrs["type"],
            )
        )
    return dependencies


def load_connector_descriptor(path: Path) -> Dict[str, Any]:
    """
    Load a connector's ``descriptor.yml``.

    Raises:
        ManifestError: If the file is not valid YAML or not a mapping.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ManifestError(path, str(e))

    if not isinstance(data, dict):
        raise ManifestError(path, "expected a mapping at the top level")
    return data
