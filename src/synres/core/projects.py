"""
Integration-project dependency resolution.

A project may depend on other integration projects packaged as ``.car``
archives. Each archive can embed a ``descriptor.xml`` naming further
integration-project dependencies, so resolution is a depth-first walk over
that graph. A visited set scoped to one top-level call stops the walk from
cycling and from fetching a shared dependency twice.
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Iterable, List, Optional, Set

import networkx as nx

from ..config import PROJECT_DESCRIPTOR
from .cache import DependencyCache, project_cache
from .errors import DependencyFetchError
from .fetcher import ArchiveFetcher, LocalRepository, UnsupportedFetcher
from .manifest import parse_project_descriptor
from .types import DependencyCacheDirectory, DependencyDetails, DownloadResult

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSION = "car"


def archive_name(dep: DependencyDetails) -> str:
    """``{groupId}-{artifactId}-{version}.car``."""
    return f"{dep.failed_id}.{dep.type or ARCHIVE_EXTENSION}"


class ProjectDependencyResolver:
    """
    Resolves nested integration-project archives into the project cache.

    Archives come from the cache, then the local repository, then the
    configured fetcher. No remote source exists for integration projects
    by default; pass an ``ArchiveFetcher`` to add one.

    Attributes:
        graph: Dependency graph of the last resolution. Nodes are dependency
            keys plus the project name; edges point from dependent to
            dependency.
    """

    def __init__(
        self,
        cache: Optional[DependencyCache] = None,
        local_repository: Optional[LocalRepository] = None,
        fetcher: Optional[ArchiveFetcher] = None,
    ):
        self.cache = cache or project_cache()
        self.local_repository = local_repository or LocalRepository()
        self.fetcher = fetcher or UnsupportedFetcher(
            "remote retrieval of integration projects is not configured"
        )
        self.graph = nx.DiGraph()

    def resolve_all(self, project_path: Path, deps: Iterable[DependencyDetails]) -> List[str]:
        """
        Resolve every declared project dependency and its transitive closure.

        Returns:
            ``groupId-artifactId-version`` of every top-level dependency whose
            subtree failed.
        """
        return self.resolve(project_path, deps).failed

    def resolve(self, project_path: Path, deps: Iterable[DependencyDetails]) -> DownloadResult:
        project_path = Path(project_path)
        cache_dir = self.cache.cache_dir_for(project_path)
        result = DownloadResult()
        visited: Set[str] = set()

        self.graph = nx.DiGraph()
        self.graph.add_node(project_path.name, root=True)

        with self.cache.lock(project_path):
            for dep in deps:
                self.graph.add_edge(project_path.name, dep.key)
                try:
                    self.resolve_recursive(dep, cache_dir, visited, result)
                except Exception as e:
                    logger.warning(f"Error occurred while downloading dependency {dep.failed_id}: {e}")
                    result.failed.append(dep.failed_id)

            self._reconcile(cache_dir)

        return result

    def resolve_recursive(
        self,
        dep: DependencyDetails,
        cache_dir: DependencyCacheDirectory,
        visited: Set[str],
        result: Optional[DownloadResult] = None,
    ) -> None:
        """
        Fetch one archive, then everything its descriptor declares.

        Raises:
            DependencyFetchError: If the archive is missing after every source
                was tried.
        """
        if dep.key in visited:
            return
        visited.add(dep.key)
        self.graph.add_node(dep.key, dependency=dep)

        archive = self._fetch_archive(dep, cache_dir)
        if not archive.is_file():
            raise DependencyFetchError(dep.key, f"failed to fetch {archive.name}")

        transitive = self.parse_manifest(archive)
        if not transitive and result is not None and not _has_descriptor(archive):
            result.no_descriptor.append(dep.failed_id)

        self.cache.extract(archive, cache_dir.extracted)

        for child in transitive:
            self.graph.add_edge(dep.key, child.key)
            self.resolve_recursive(child, cache_dir, visited, result)

    def parse_manifest(self, archive: Path) -> List[DependencyDetails]:
        """
        Read the dependencies an archive declares in its ``descriptor.xml``.

        A missing descriptor means no transitive dependencies.
        """
        with zipfile.ZipFile(archive) as zf:
            try:
                content = zf.read(PROJECT_DESCRIPTOR)
            except KeyError:
                logger.info(f"{PROJECT_DESCRIPTOR} not found in {archive.name}")
                return []
        return parse_project_descriptor(content)

    def resolution_order(self) -> List[str]:
        """Dependency keys of the last resolution, dependencies first."""
        keys = [n for n in self.graph.nodes if not self.graph.nodes[n].get("root")]
        if nx.is_directed_acyclic_graph(self.graph):
            return [n for n in reversed(list(nx.topological_sort(self.graph))) if n in keys]
        return sorted(keys)

    def cycles(self) -> List[List[str]]:
        """Dependency cycles met during the last resolution."""
        return [cycle for cycle in nx.simple_cycles(self.graph)]

    def _reconcile(self, cache_dir: DependencyCacheDirectory) -> None:
        # Archives and extracted trees outside the closure just walked are stale
        closure = [data["dependency"] for _, data in self.graph.nodes(data=True) if "dependency" in data]
        failures = self.cache.reconcile(
            cache_dir.downloaded,
            closure,
            extracted_dir=cache_dir.extracted,
            naming=archive_name,
        )
        if failures:
            logger.warning(f"Could not remove stale project dependencies: {', '.join(failures)}")

    def _fetch_archive(self, dep: DependencyDetails, cache_dir: DependencyCacheDirectory) -> Path:
        archive = cache_dir.downloaded / archive_name(dep)
        if archive.is_file():
            logger.info(f"📦 {dep.key}: already downloaded")
            return archive

        copied = self.local_repository.copy_to(
            dep, cache_dir.downloaded, dep.type or ARCHIVE_EXTENSION, file_name=archive.name
        )
        if copied is not None:
            logger.info(f"📁 {dep.key}: copied from local repository")
            return copied

        return self.fetcher.fetch(dep, cache_dir.downloaded, dep.type or ARCHIVE_EXTENSION, file_name=archive.name)


def _has_descriptor(archive: Path) -> bool:
    with zipfile.ZipFile(archive) as zf:
        return PROJECT_DESCRIPTOR in zf.namelist()
