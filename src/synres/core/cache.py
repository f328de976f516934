"""
Per-project dependency cache.

Every project instance owns a cache directory keyed by its name and a hash
of its absolute path:

    <cache-home>/<kind>/<projectName>_<hash>/
        downloaded/   archives as fetched
        extracted/    archives unpacked for scanning
        drivers/      driver jars resolved for connectors

``kind`` separates connector bundles from integration-project archives.
The directory survives across invocations; each resolution pass reconciles
it against the declared dependencies instead of rebuilding it.
"""

from __future__ import annotations

import hashlib
import logging
import shutil
import sys
import threading
import zipfile
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Generator, Iterable, List, Optional

from ..config import CONNECTORS_CACHE, LOCK_FILE, PROJECTS_CACHE, get_settings
from .types import DependencyCacheDirectory, DependencyDetails, DependencyStatus

if sys.platform != "win32":
    import fcntl

logger = logging.getLogger(__name__)

_process_locks: Dict[str, threading.RLock] = {}
_process_locks_guard = threading.Lock()
_lock_depth: Dict[str, int] = {}


def project_cache_key(project_path: Path) -> str:
    """``<projectName>_<sha256 of the absolute path>``."""
    absolute = Path(project_path).absolute()
    digest = hashlib.sha256(str(absolute).encode("utf-8")).hexdigest()
    return f"{absolute.name}_{digest}"


def _process_lock(key: str) -> threading.RLock:
    with _process_locks_guard:
        if key not in _process_locks:
            _process_locks[key] = threading.RLock()
        return _process_locks[key]


class DependencyCache:
    """
    Cache directories of one kind (connectors or integration projects).

    Example:
        ```python
        cache = DependencyCache(CONNECTORS_CACHE)
        cache_dir = cache.cache_dir_for(project_root)
        with cache.lock(project_root):
            cache.reconcile(cache_dir.downloaded, declared)
        ```
    """

    def __init__(self, kind: str, cache_home: Optional[Path] = None):
        self.kind = kind
        self.root = (cache_home or get_settings().cache_home) / kind

    def cache_dir_for(self, project_path: Path) -> DependencyCacheDirectory:
        """
        Return the project's cache directories, creating them if absent.

        Raises:
            OSError: If the directories cannot be created.
        """
        cache_dir = DependencyCacheDirectory.under(self.root / project_cache_key(project_path))
        cache_dir.downloaded.mkdir(parents=True, exist_ok=True)
        cache_dir.extracted.mkdir(parents=True, exist_ok=True)
        return cache_dir

    def find_cache_dir(self, project_path: Path) -> DependencyCacheDirectory | None:
        """Return the project's cache directories only if they already exist."""
        root = self.root / project_cache_key(project_path)
        if not root.is_dir():
            return None
        return DependencyCacheDirectory.under(root)

    @contextmanager
    def lock(self, project_path: Path) -> Generator[None, None, None]:
        """
        Hold the project's cache exclusively.

        Threads in this process serialize on an in-memory lock; other
        processes serialize on an exclusive lock over ``<root>/.lock``.
        Nested holds in one thread only take the file lock once.
        """
        key = str(self.root / project_cache_key(project_path))
        with _process_lock(key):
            depth = _lock_depth.get(key, 0)
            _lock_depth[key] = depth + 1
            try:
                if depth:
                    yield
                else:
                    with self._file_lock(project_path):
                        yield
            finally:
                _lock_depth[key] = depth

    @contextmanager
    def _file_lock(self, project_path: Path) -> Generator[None, None, None]:
        root = self.root / project_cache_key(project_path)
        root.mkdir(parents=True, exist_ok=True)
        with open(root / LOCK_FILE, "w") as handle:
            if sys.platform != "win32":
                fcntl.flock(handle, fcntl.LOCK_EX)
            try:
                yield
            finally:
                if sys.platform != "win32":
                    fcntl.flock(handle, fcntl.LOCK_UN)

    @staticmethod
    def reconcile(
        downloaded_dir: Path,
        declared: Iterable[DependencyDetails],
        legacy_dir: Optional[Path] = None,
        extension: str = ".zip",
        extracted_dir: Optional[Path] = None,
        naming: Optional[Callable[[DependencyDetails], str]] = None,
    ) -> List[str]:
        """
        Delete cached archives that are no longer declared.

        A file is kept when its name equals ``naming(dep)`` for a declared
        dependency, by default ``artifactId-version`` plus ``extension``.
        When ``legacy_dir`` is given the same file name is removed from it
        too. When ``extracted_dir`` is given, every unpacked directory that
        does not belong to a kept archive is removed as well.

        Returns:
            Names of files that could not be deleted.
        """
        naming = naming or (lambda dep: f"{dep.file_stem}{extension}")
        keep = {naming(dep) for dep in declared}
        failures = []

        if downloaded_dir.is_dir():
            for file_path in sorted(downloaded_dir.iterdir()):
                if not file_path.is_file() or file_path.name in keep:
                    continue

                try:
                    file_path.unlink()
                    logger.info(f"🗑️  Removed undeclared dependency {file_path.name}")
                    if legacy_dir is not None:
                        legacy_copy = legacy_dir / file_path.name
                        if legacy_copy.exists():
                            legacy_copy.unlink()
                except OSError as e:
                    logger.error(f"Error occurred while deleting removed dependency {file_path.name}: {e}")
                    failures.append(file_path.name)

        if extracted_dir is not None and extracted_dir.is_dir():
            keep_dirs = {Path(name).stem for name in keep}
            for unpacked in sorted(extracted_dir.iterdir()):
                if not unpacked.is_dir() or unpacked.name.startswith(".") or unpacked.name in keep_dirs:
                    continue
                try:
                    shutil.rmtree(unpacked)
                    logger.info(f"🗑️  Removed extracted dependency {unpacked.name}")
                except OSError as e:
                    logger.error(f"Error occurred while deleting extracted dependency {unpacked.name}: {e}")
                    failures.append(unpacked.name)

        return failures

    @staticmethod
    def status(
        downloaded_dir: Path, declared: Iterable[DependencyDetails], extension: str = ".zip"
    ) -> DependencyStatus:
        """Split declared dependencies into already downloaded and pending."""
        status = DependencyStatus()
        for dep in declared:
            if (downloaded_dir / f"{dep.file_stem}{extension}").is_file():
                status.downloaded.append(dep)
            else:
                status.pending.append(dep)
        return status

    @staticmethod
    def extract(archive: Path, extracted_dir: Path) -> Path:
        """
        Unpack an archive into ``extracted/<archive stem>``.

        Already extracted archives are left alone.

        Raises:
            zipfile.BadZipFile: If the archive is not a zip container.
            ValueError: If an entry would land outside the target directory.
        """
        target = extracted_dir / archive.stem
        if target.is_dir():
            return target

        staging = extracted_dir / f".{archive.stem}.partial"
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir(parents=True)

        try:
            with zipfile.ZipFile(archive) as zf:
                for member in zf.namelist():
                    destination = (staging / member).resolve()
                    if not destination.is_relative_to(staging.resolve()):
                        raise ValueError(f"Refusing to extract {member} outside {target}")
                zf.extractall(staging)
        except Exception:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        staging.rename(target)
        logger.debug(f"Extracted {archive.name} to {target}")
        return target


def connector_cache(cache_home: Optional[Path] = None) -> DependencyCache:
    return DependencyCache(CONNECTORS_CACHE, cache_home)


def project_cache(cache_home: Optional[Path] = None) -> DependencyCache:
    return DependencyCache(PROJECTS_CACHE, cache_home)


@dataclass
class CacheStats:
    """
    Statistics about the dependency caches.

    Attributes:
        total_projects: Number of project cache directories.
        total_size_bytes: Total size in bytes.
        oldest_update: Timestamp of the least recently touched cache.
        newest_update: Timestamp of the most recently touched cache.
    """

    total_projects: int
    total_size_bytes: int
    oldest_update: Optional[datetime] = None
    newest_update: Optional[datetime] = None

    @property
    def total_size_human(self) -> str:
        return _human_size(self.total_size_bytes)


@dataclass
class CacheItem:
    """
    One project cache directory.

    Attributes:
        kind: ``connectors`` or ``integration-project-dependencies``.
        key: Project cache key (directory name).
        path: Path to the cache directory.
        archives: Number of downloaded archives.
        last_updated: Most recent modification inside the directory.
        size_bytes: Total size of the directory.
        age_days: Days since last update.
    """

    kind: str
    key: str
    path: Path
    archives: int
    last_updated: datetime
    size_bytes: int
    age_days: int

    @property
    def size_human(self) -> str:
        return _human_size(self.size_bytes)

    @property
    def age_human(self) -> str:
        """Get human-readable age string."""
        if self.age_days == 0:
            return "today"
        elif self.age_days == 1:
            return "yesterday"
        elif self.age_days < 7:
            return f"{self.age_days} days ago"
        elif self.age_days < 30:
            weeks = self.age_days // 7
            return f"{weeks} week{'s' if weeks > 1 else ''} ago"
        elif self.age_days < 365:
            months = self.age_days // 30
            return f"{months} month{'s' if months > 1 else ''} ago"
        else:
            years = self.age_days // 365
            return f"{years} year{'s' if years > 1 else ''} ago"


def _human_size(size: float) -> str:
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


class CacheManager:
    """
    Maintenance utilities over every project cache under the cache home.

    Example:
        ```python
        manager = CacheManager()
        for item in manager.list():
            print(f"{item.key}: {item.size_human}, {item.age_human}")
        removed = manager.clean(older_than_days=30)
        ```
    """

    KINDS = (CONNECTORS_CACHE, PROJECTS_CACHE)

    def __init__(self, cache_home: Optional[Path] = None):
        self.cache_home = cache_home or get_settings().cache_home

    def list(self) -> List[CacheItem]:
        """List all project caches, sorted by kind then key."""
        items = []
        now = datetime.now(timezone.utc)

        for kind in self.KINDS:
            kind_dir = self.cache_home / kind
            if not kind_dir.is_dir():
                continue
            for entry in sorted(kind_dir.iterdir()):
                if not entry.is_dir():
                    continue
                files = [p for p in entry.rglob("*") if p.is_file()]
                mtimes = [p.stat().st_mtime for p in files] or [entry.stat().st_mtime]
                last_updated = datetime.fromtimestamp(max(mtimes), tz=timezone.utc)
                downloaded = entry / "downloaded"
                items.append(
                    CacheItem(
                        kind=kind,
                        key=entry.name,
                        path=entry,
                        archives=len(list(downloaded.iterdir())) if downloaded.is_dir() else 0,
                        last_updated=last_updated,
                        size_bytes=sum(p.stat().st_size for p in files),
                        age_days=(now - last_updated).days,
                    )
                )

        return items

    def get_stats(self) -> CacheStats:
        items = self.list()
        if not items:
            return CacheStats(total_projects=0, total_size_bytes=0)

        dates = [item.last_updated for item in items]
        return CacheStats(
            total_projects=len(items),
            total_size_bytes=sum(item.size_bytes for item in items),
            oldest_update=min(dates),
            newest_update=max(dates),
        )

    def clean(self, older_than_days: Optional[int] = None, dry_run: bool = False) -> List[str]:
        """
        Remove caches not touched for ``older_than_days`` days.

        With no age given every cache is removed.

        Returns:
            Keys that were (or with ``dry_run`` would be) removed.
        """
        to_remove = [
            item for item in self.list()
            if older_than_days is None or item.age_days > older_than_days
        ]

        if not dry_run:
            for item in to_remove:
                shutil.rmtree(item.path)
                logger.info(f"🗑️  Removed cache {item.kind}/{item.key}")

        return [item.key for item in to_remove]

    def invalidate(self, key: str) -> bool:
        """
        Remove every cache directory with the given key.

        Returns:
            True if anything was removed.
        """
        removed = False
        for kind in self.KINDS:
            path = self.cache_home / kind / key
            if path.is_dir():
                shutil.rmtree(path)
                removed = True
        return removed
