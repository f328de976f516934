"""
Global configuration for synres.

Paths and folder conventions of the Synapse project layout live here, along
with the cache and repository locations. Locations can be overridden with
environment variables or a per-project ``.synres.yaml`` file:

    cache_home: /tmp/wso2-mi
    local_repository: /opt/m2/repository
    remote_repository: https://repo.example.com/maven2
    http_timeout: 30
"""

import logging
import os
from pathlib import Path
from typing import Set

import yaml
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

# --- Project layout ---

SOURCE_ROOT = Path("src", "main", "wso2mi")
ARTIFACTS_DIR = SOURCE_ROOT / "artifacts"
RESOURCES_DIR = SOURCE_ROOT / "resources"
LOCAL_ENTRIES_DIR = SOURCE_ROOT / "local-entries"
LEGACY_CONNECTORS_DIR = RESOURCES_DIR / "connectors"
POM_FILE = "pom.xml"

# --- Cache layout ---

CONNECTORS_CACHE = "connectors"
PROJECTS_CACHE = "integration-project-dependencies"
DOWNLOADED = "downloaded"
EXTRACTED = "extracted"
DRIVERS = "drivers"
LOCK_FILE = ".lock"

# --- Manifests ---

CONNECTOR_DESCRIPTOR = "descriptor.yml"
PROJECT_DESCRIPTOR = "descriptor.xml"

# --- Registry traversal ---

REGISTRY_SKIP_DIRS: Set[str] = {".meta"}

# Registry-root relative paths that describe the registry itself
REGISTRY_RESERVED_FILES: Set[Path] = {
    Path("artifact.xml"),
    Path("registry", "artifact.xml"),
}

# Files dropped from unit-test registry listings
UNIT_TEST_REGISTRY_IGNORED: Set[str] = {"dm-utils.ts", ".gitkeep"}

# --- Defaults ---

DEFAULT_CACHE_HOME = Path.home() / ".wso2-mi"
DEFAULT_LOCAL_REPOSITORY = Path.home() / ".m2" / "repository"
DEFAULT_REMOTE_REPOSITORY = "https://maven.wso2.org/nexus/content/groups/public"
DEFAULT_HTTP_TIMEOUT = 60.0

PROJECT_CONFIG_FILE = ".synres.yaml"


class Settings(BaseModel):
    """
    Resolved runtime settings.

    Attributes:
        cache_home: Root of every per-project dependency cache.
        local_repository: Local Maven repository probed before any download.
        remote_repository: Base URL of the remote Maven repository.
        http_timeout: Seconds before a remote fetch gives up.
    """
    cache_home: Path = Field(default=DEFAULT_CACHE_HOME)
    local_repository: Path = Field(default=DEFAULT_LOCAL_REPOSITORY)
    remote_repository: str = DEFAULT_REMOTE_REPOSITORY
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    model_config = ConfigDict(extra="ignore")


def _from_environment() -> dict:
    env = {
        "cache_home": os.getenv("SYNRES_HOME"),
        "local_repository": os.getenv("SYNRES_M2_REPO"),
        "remote_repository": os.getenv("SYNRES_REMOTE_REPO"),
        "http_timeout": os.getenv("SYNRES_HTTP_TIMEOUT"),
    }
    return {key: value for key, value in env.items() if value}


def _from_project_file(project_path: Path | None) -> dict:
    if project_path is None:
        return {}

    config_file = Path(project_path) / PROJECT_CONFIG_FILE
    if not config_file.exists():
        return {}

    try:
        with open(config_file, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.warning(f"Ignoring malformed {config_file}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring {config_file}: expected a mapping")
        return {}
    return data


def get_settings(project_path: Path | None = None) -> Settings:
    """
    Resolve settings for a project.

    Precedence, highest first: environment variables, the project's
    ``.synres.yaml``, built-in defaults.
    """
    values = {**_from_project_file(project_path), **_from_environment()}
    settings = Settings(**values)
    settings.cache_home = settings.cache_home.expanduser()
    settings.local_repository = settings.local_repository.expanduser()
    return settings
