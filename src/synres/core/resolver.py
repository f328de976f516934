"""
Dependency download entry point.

Reads a project's pom, splits its dependencies into connectors and
integration projects, and resolves both into the project's caches. The
outcome is a summary string; nothing raises past this boundary except a
pom that exists but cannot be parsed.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .connectors import ConnectorResolver
from .manifest import ProjectManifest
from .projects import ProjectDependencyResolver

logger = logging.getLogger(__name__)

SUCCESS = "Success"


@dataclass
class ResolutionSummary:
    """
    Failures from one download pass.

    Attributes:
        failed_connectors: Connector identities that could not be resolved.
        failed_projects: Integration-project identities that could not be
            resolved.
    """

    failed_connectors: List[str] = field(default_factory=list)
    failed_projects: List[str] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return not self.failed_connectors and not self.failed_projects

    @property
    def message(self) -> str:
        if self.failed_connectors:
            return "Some connectors were not downloaded: " + ", ".join(self.failed_connectors)
        if self.failed_projects:
            return "Following integration project dependencies were unavailable: " + ", ".join(
                self.failed_projects
            )
        return SUCCESS


def resolve_project_dependencies(
    project_path: Path,
    connectors: Optional[ConnectorResolver] = None,
    projects: Optional[ProjectDependencyResolver] = None,
) -> ResolutionSummary:
    """Resolve both dependency kinds declared in a project's pom."""
    project_path = Path(project_path)
    manifest = ProjectManifest.load(project_path)
    connectors = connectors or ConnectorResolver()
    projects = projects or ProjectDependencyResolver()

    summary = ResolutionSummary(
        failed_connectors=connectors.resolve_all(project_path, manifest.connector_dependencies),
        failed_projects=projects.resolve_all(project_path, manifest.project_dependencies),
    )

    if summary.failed_connectors:
        logger.error(f"Some connectors were not downloaded: {', '.join(summary.failed_connectors)}")
    if summary.failed_projects:
        logger.error(
            f"Following integration project dependencies were unavailable: {', '.join(summary.failed_projects)}"
        )
    return summary


def download_dependencies(project_path: Path) -> str:
    """
    Download everything a project's pom declares.

    Returns:
        "Success", or a message naming the dependencies that failed.
        Connector failures are reported ahead of project failures.
    """
    return resolve_project_dependencies(project_path).message
