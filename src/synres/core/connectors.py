"""
Connector dependency resolution.

Connectors are ``.zip`` bundles declared in a project's pom. Each one is
resolved into the project's connector cache from, in order:

1. the cache itself (``downloaded/{artifactId}-{version}.zip``)
2. the local Maven repository
3. the remote Maven repository

A connector may also need a JDBC driver. Its ``descriptor.yml`` lists the
driver coordinates per connection type; drivers land in the cache's
``drivers/`` directory.
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..config import CONNECTOR_DESCRIPTOR, LEGACY_CONNECTORS_DIR
from .cache import DependencyCache, connector_cache
from .errors import (
    DependencyError,
    DownloadVerificationFailure,
    MissingDriverCoordinates,
    NoMatchingDriver,
)
from .fetcher import ArchiveFetcher, LocalRepository, RemoteRepository
from .manifest import load_connector_descriptor
from .result import Err, Ok, Result
from .types import DependencyCacheDirectory, DependencyDetails, DependencyStatus

logger = logging.getLogger(__name__)

CONNECTOR_EXTENSION = "zip"
DRIVER_EXTENSION = "jar"


class ConnectorResolver:
    """
    Resolves connector bundles and their drivers for a project.

    Example:
        ```python
        resolver = ConnectorResolver()
        failed = resolver.resolve_all(project_root, manifest.connector_dependencies)
        driver = resolver.resolve_driver(project_root, "mysql", "MYSQL")
        ```
    """

    def __init__(
        self,
        cache: Optional[DependencyCache] = None,
        local_repository: Optional[LocalRepository] = None,
        remote: Optional[ArchiveFetcher] = None,
    ):
        self.cache = cache or connector_cache()
        self.local_repository = local_repository or LocalRepository()
        self.remote = remote or RemoteRepository()

    def resolve(self, dep: DependencyDetails, cache_dir: DependencyCacheDirectory) -> Result[Path]:
        """
        Make one connector available in ``downloaded/``.

        Returns:
            Ok with the archive path, or Err describing why every source failed.
        """
        archive = cache_dir.downloaded / f"{dep.file_stem}.{CONNECTOR_EXTENSION}"
        try:
            if archive.is_file():
                logger.info(f"📦 {dep.artifact_id}: already downloaded")
                return Ok(archive)

            copied = self.local_repository.copy_to(dep, cache_dir.downloaded, CONNECTOR_EXTENSION)
            if copied is not None:
                logger.info(f"📁 {dep.artifact_id}: copied from local repository")
                return Ok(copied)

            fetched = self.remote.fetch(dep, cache_dir.downloaded, CONNECTOR_EXTENSION)
            logger.info(f"🌐 {dep.artifact_id}: downloaded")
            return Ok(fetched)
        except DependencyError as e:
            return Err(e)
        except Exception as e:
            return Err(DependencyError(dep.key, str(e)))

    def resolve_all(self, project_path: Path, deps: Iterable[DependencyDetails]) -> List[str]:
        """
        Reconcile the cache and resolve every declared connector.

        One failing connector never stops the others.

        Returns:
            ``groupId-artifactId-version`` of every connector that failed.
        """
        project_path = Path(project_path)
        deps = list(deps)
        cache_dir = self.cache.cache_dir_for(project_path)
        failed = []

        with self.cache.lock(project_path):
            legacy_dir = project_path / LEGACY_CONNECTORS_DIR
            self.cache.reconcile(
                cache_dir.downloaded,
                deps,
                legacy_dir if legacy_dir.is_dir() else None,
                extracted_dir=cache_dir.extracted,
            )

            for dep in deps:
                result = self.resolve(dep, cache_dir)
                if result.is_err():
                    logger.warning(f"Error occurred while downloading dependency {dep.failed_id}: {result.error}")
                    failed.append(dep.failed_id)
                    continue
                self._extract(result.unwrap(), cache_dir)

        return failed

    def dependency_status(self, project_path: Path, deps: Iterable[DependencyDetails]) -> DependencyStatus:
        cache_dir = self.cache.find_cache_dir(project_path)
        if cache_dir is None:
            return DependencyStatus(pending=list(deps))
        return self.cache.status(cache_dir.downloaded, deps, f".{CONNECTOR_EXTENSION}")

    def resolve_driver(self, project_path: Path, connector_name: str, connection_type: str) -> Path | None:
        """
        Locate or fetch the driver jar a connector needs for a connection type.

        Returns:
            Path to the driver jar, or None if it cannot be resolved. The
            reason is logged.
        """
        result = self.driver_result(project_path, connector_name, connection_type)
        if result.is_err():
            logger.error(f"Could not resolve driver for {connector_name} ({connection_type}): {result.error}")
            return None
        return result.unwrap()

    def driver_result(
        self, project_path: Path, connector_name: str, connection_type: str
    ) -> Result[Path]:
        try:
            return Ok(self._resolve_driver(Path(project_path), connector_name, connection_type))
        except DependencyError as e:
            return Err(e)
        except Exception as e:
            return Err(DependencyError(connector_name, str(e)))

    def _resolve_driver(self, project_path: Path, connector_name: str, connection_type: str) -> Path:
        cache_dir = self.cache.find_cache_dir(project_path)
        if cache_dir is None or not cache_dir.extracted.is_dir():
            raise DependencyError(connector_name, "connectors directory does not exist")

        connector_dir = self._find_extracted_connector(cache_dir.extracted, connector_name)
        if connector_dir is None:
            raise DependencyError(connector_name, "connector is not extracted")

        descriptor_path = connector_dir / CONNECTOR_DESCRIPTOR
        if not descriptor_path.is_file():
            raise DependencyError(connector_name, f"{CONNECTOR_DESCRIPTOR} not found")

        entry = find_driver_entry(load_connector_descriptor(descriptor_path), connection_type)
        if entry is None:
            raise NoMatchingDriver(connector_name, f"no driver found for connection type {connection_type}")

        coordinates = {key: _as_text(entry.get(key)) for key in ("groupId", "artifactId", "version")}
        if not all(coordinates.values()):
            raise MissingDriverCoordinates(connector_name, "invalid driver coordinates in descriptor")

        driver = DependencyDetails(
            group_id=coordinates["groupId"],
            artifact_id=coordinates["artifactId"],
            version=coordinates["version"],
            type=DRIVER_EXTENSION,
        )
        cache_dir.drivers.mkdir(parents=True, exist_ok=True)
        expected = cache_dir.drivers / f"{driver.file_stem}.{DRIVER_EXTENSION}"

        if expected.is_file():
            logger.info(f"📦 Driver already exists: {expected}")
            return expected

        copied = self.local_repository.copy_to(driver, cache_dir.drivers, DRIVER_EXTENSION)
        if copied is not None:
            logger.info(f"📁 Driver copied from local repository: {copied}")
            return copied

        self.remote.fetch(driver, cache_dir.drivers, DRIVER_EXTENSION)
        if not expected.is_file():
            raise DownloadVerificationFailure(
                driver.key, f"driver jar not found after download: {expected}"
            )

        logger.info(f"🌐 Driver downloaded: {expected}")
        return expected

    @staticmethod
    def _find_extracted_connector(extracted_dir: Path, connector_name: str) -> Path | None:
        exact = extracted_dir / connector_name
        if exact.is_dir():
            return exact
        for candidate in sorted(extracted_dir.iterdir()):
            if candidate.is_dir() and candidate.name.startswith(f"{connector_name}-"):
                return candidate
        return None

    def _extract(self, archive: Path, cache_dir: DependencyCacheDirectory) -> None:
        try:
            self.cache.extract(archive, cache_dir.extracted)
        except (zipfile.BadZipFile, ValueError, OSError) as e:
            logger.warning(f"Could not extract {archive.name}: {e}")


def find_driver_entry(descriptor: Dict[str, Any], connection_type: str) -> Dict[str, Any] | None:
    """First ``dependencies`` entry whose connectionType matches, ignoring case."""
    entries = descriptor.get("dependencies")
    if not isinstance(entries, list):
        return None

    for entry in entries:
        if not isinstance(entry, dict):
            continue
        candidate = entry.get("connectionType")
        if candidate is not None and str(candidate).lower() == connection_type.lower():
            return entry
    return None


def _as_text(value: Any) -> str:
    return "" if value is None else str(value).strip()
