"""
Retrieval strategies for dependency archives.

Resolvers try the per-project cache first, then the local Maven repository,
then a remote fetcher. Remote fetchers are pluggable: anything with a
``fetch(dependency, target_dir, extension, file_name)`` method will do.
Remote fetchers are not trusted to verify their own output, so callers
check that the expected file exists afterwards.
"""

from __future__ import annotations

import logging
import shutil
from http.client import HTTPException
from pathlib import Path
from typing import Optional, Protocol
from urllib import error, request

from ..config import get_settings
from .errors import DependencyFetchError
from .types import DependencyDetails

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def artifact_relative_path(dep: DependencyDetails, extension: str) -> str:
    """``group/with/slashes/artifact/version/artifact-version.ext``."""
    group_path = dep.group_id.replace(".", "/")
    return f"{group_path}/{dep.artifact_id}/{dep.version}/{dep.file_stem}.{extension}"


class LocalRepository:
    """A local Maven repository, by default ``~/.m2/repository``."""

    def __init__(self, root: Optional[Path] = None):
        self.root = root or get_settings().local_repository

    def find(self, dep: DependencyDetails, extension: str) -> Path | None:
        candidate = self.root / artifact_relative_path(dep, extension)
        if candidate.is_file():
            logger.debug(f"Found {dep} in local repository: {candidate}")
            return candidate
        return None

    def copy_to(
        self,
        dep: DependencyDetails,
        target_dir: Path,
        extension: str,
        file_name: Optional[str] = None,
    ) -> Path | None:
        """
        Copy the artifact into ``target_dir`` if the repository has it.

        Returns:
            The copied file, or None when the repository lacks the artifact.
        """
        source = self.find(dep, extension)
        if source is None:
            return None

        target_dir.mkdir(parents=True, exist_ok=True)
        destination = target_dir / (file_name or source.name)
        shutil.copy2(source, destination)
        return destination


class ArchiveFetcher(Protocol):
    """Retrieves an archive that neither the cache nor the local repository holds."""

    def fetch(
        self,
        dep: DependencyDetails,
        target_dir: Path,
        extension: str,
        file_name: Optional[str] = None,
    ) -> Path:
        ...


class RemoteRepository:
    """
    Downloads artifacts from a Maven repository over HTTP.

    The file is streamed to a temporary name and renamed into place, so a
    failed download never leaves a partial file under the final name.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        settings = get_settings()
        self.base_url = (base_url or settings.remote_repository).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.http_timeout

    def url_for(self, dep: DependencyDetails, extension: str) -> str:
        return f"{self.base_url}/{artifact_relative_path(dep, extension)}"

    def fetch(
        self,
        dep: DependencyDetails,
        target_dir: Path,
        extension: str,
        file_name: Optional[str] = None,
    ) -> Path:
        url = self.url_for(dep, extension)
        target_dir.mkdir(parents=True, exist_ok=True)
        destination = target_dir / (file_name or f"{dep.file_stem}.{extension}")
        partial = destination.with_name(destination.name + ".part")

        logger.info(f"⬇️  Downloading {dep} from {url}")
        try:
            with request.urlopen(url, timeout=self.timeout) as response, open(partial, "wb") as out:
                shutil.copyfileobj(response, out, CHUNK_SIZE)
            partial.replace(destination)
        except error.HTTPError as e:
            raise DependencyFetchError(dep.key, f"HTTP {e.code} fetching {url}") from e
        except (OSError, ValueError, HTTPException) as e:
            raise DependencyFetchError(dep.key, f"Could not fetch {url}: {e}") from e
        finally:
            partial.unlink(missing_ok=True)

        return destination


class UnsupportedFetcher:
    """Fetcher for sources with no remote retrieval configured."""

    def __init__(self, reason: str = "remote retrieval is not configured"):
        self.reason = reason

    def fetch(
        self,
        dep: DependencyDetails,
        target_dir: Path,
        extension: str,
        file_name: Optional[str] = None,
    ) -> Path:
        raise DependencyFetchError(dep.key, f"not found in cache or local repository ({self.reason})")
