"""
Artifact scanner for Synapse integration projects.

Walks the three trees a project keeps its configuration in and turns every
recognisable file into a typed resource:

- ``src/main/wso2mi/artifacts/<folder>``: one folder per artifact type
- local entries: artifacts wrapped in a ``<localEntry>`` envelope, typed by
  the wrapped element
- ``src/main/wso2mi/resources``: the registry tree, keyed by path

Two entry points exist. ``scan_project`` lists everything a project owns,
grouped by type. ``find_resources`` answers a request for specific types and
returns a single bucket.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Generator, Iterable, List, Sequence

from ..config import (
    ARTIFACTS_DIR,
    LOCAL_ENTRIES_DIR,
    REGISTRY_RESERVED_FILES,
    REGISTRY_SKIP_DIRS,
    RESOURCES_DIR,
    UNIT_TEST_REGISTRY_IGNORED,
)
from ..core.types import (
    RegistryResource,
    RequestedResource,
    Resource,
    ResourceBucket,
    ResourceMap,
    ResourceOrigin,
)
from .classifier import (
    LOCAL_ENTRY,
    REGISTRY,
    TEMPLATE,
    UNIT_TEST_REGISTRY,
    TypeClassifier,
)
from .handlers import (
    HandlerChain,
    RegistryFileContext,
    build_handler_chain,
    build_registry_resource,
    build_scan_chain,
)
from .xml import (
    artifact_name,
    child_elements,
    first_child_element,
    is_xml_file,
    load_document,
    root_element,
)

logger = logging.getLogger(__name__)

PROPERTIES_SUFFIX = ".properties"


@dataclass
class ScanStats:
    files_scanned: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    resources_found: int = 0


def normalize_requests(
    requests: str | RequestedResource | dict | Iterable[str | RequestedResource | dict],
) -> List[RequestedResource]:
    """
    Accept a single type name or a sequence of requests.

    A bare type name always asks for a registry lookup as well.
    """
    if isinstance(requests, (str, RequestedResource, dict)):
        requests = [requests]

    normalized = []
    for request in requests:
        if isinstance(request, RequestedResource):
            normalized.append(request)
        elif isinstance(request, str):
            normalized.append(RequestedResource(type=request))
        else:
            normalized.append(RequestedResource.model_validate(request))
    return normalized


def _is_registry_properties_file(path: Path) -> bool:
    """``foo.xml.properties`` describes ``foo.xml`` and is not a resource itself."""
    if not path.name.endswith(PROPERTIES_SUFFIX):
        return False
    return path.with_name(path.name[: -len(PROPERTIES_SUFFIX)]).exists()


class ArtifactScanner:
    """
    Classifies project files into typed resources.

    The classification table is passed in rather than looked up globally,
    so scanners with different tables can coexist.
    """

    def __init__(self, classifier: TypeClassifier | None = None):
        self.classifier = classifier or TypeClassifier.default()
        self.stats = ScanStats()

    # --- Find-all mode ---

    def scan_project(self, root: Path) -> ResourceMap:
        """
        List every resource a project owns, grouped by type.

        Artifact, local-entry and registry results are unioned per type.
        A file that cannot be read or classified is skipped.
        """
        root = Path(root)
        self.stats = ScanStats()
        resources: ResourceMap = {}

        self._scan_artifact_tree(root / ARTIFACTS_DIR, resources)
        self._scan_local_entries(root / LOCAL_ENTRIES_DIR, resources)
        self._scan_registry_tree(root / RESOURCES_DIR, resources)

        logger.debug(
            f"Scanned {root}: {self.stats.files_scanned} files, "
            f"{self.stats.resources_found} resources, {self.stats.files_failed} unreadable"
        )
        return resources

    def _scan_artifact_tree(self, artifacts_dir: Path, resources: ResourceMap) -> None:
        for artifact_type in self.classifier.artifact_types:
            folder = self.classifier.folder_for(artifact_type)
            if folder is None:
                continue

            found = self._create_resources(
                _list_files(artifacts_dir / folder), artifact_type, ResourceOrigin.ARTIFACTS
            )
            if found:
                bucket = resources.setdefault(artifact_type, ResourceBucket())
                for resource in found:
                    bucket.add_resource(resource)

    def _scan_local_entries(self, local_entry_dir: Path, resources: ResourceMap) -> None:
        for file_path in _list_files(local_entry_dir):
            root = root_element(load_document(file_path))
            if root is None:
                self.stats.files_failed += 1
                continue

            wrapped = first_child_element(root)
            if wrapped is None:
                self.stats.files_skipped += 1
                continue

            inner = first_child_element(wrapped)
            artifact_type = self.classifier.classify(wrapped.nodeName, inner.nodeName if inner is not None else None)
            resource = self._create_resource(file_path, artifact_type, ResourceOrigin.LOCAL_ENTRY)
            if resource is not None:
                resources.setdefault(resource.type, ResourceBucket()).add_resource(resource)

    def _scan_registry_tree(self, registry_root: Path, resources: ResourceMap) -> None:
        chain = build_scan_chain(self.classifier)
        for file_path in self._walk_registry(registry_root):
            resource = self._classify_registry_file(file_path, registry_root, chain)
            if resource is not None:
                self.stats.resources_found += 1
                resources.setdefault(resource.type, ResourceBucket()).add_registry_resource(resource)
            else:
                self.stats.files_skipped += 1

    def _classify_registry_file(
        self, file_path: Path, registry_root: Path, chain: HandlerChain
    ) -> RegistryResource | None:
        """XML files typed by a known root tag; everything else goes to the handler chain."""
        ctx = RegistryFileContext(file_path=file_path, registry_root=registry_root)

        if is_xml_file(file_path):
            root = root_element(load_document(file_path))
            if root is None:
                self.stats.files_failed += 1
                return None

            first_child = first_child_element(root)
            detected = self.classifier.classify(
                root.nodeName, first_child.nodeName if first_child is not None else None
            )
            if self.classifier.tag_for(detected) is not None:
                return build_registry_resource(ctx, detected, artifact_name(root))

        return chain.handle(ctx)

    # --- Request mode ---

    def find_resources(
        self,
        root: Path,
        requests: str | RequestedResource | Iterable[str | RequestedResource | dict],
    ) -> ResourceBucket:
        """
        Find resources of the requested types.

        Artifact and local-entry matches land in ``resources``; registry
        matches land in ``registry_resources``. Registry-only types are
        never looked up in the artifact tree.
        """
        root = Path(root)
        requests = normalize_requests(requests)
        self.stats = ScanStats()
        artifacts_dir = root / ARTIFACTS_DIR

        found = self._find_in_artifacts(artifacts_dir, requests)
        found.extend(self._find_in_local_entries(artifacts_dir / self.classifier.folder_for(LOCAL_ENTRY), requests))

        registry = self._find_in_registry(root / RESOURCES_DIR, requests)
        if any(r.type == UNIT_TEST_REGISTRY for r in requests):
            registry = _filter_unit_test_registry(registry)

        return ResourceBucket(resources=found, registry_resources=registry)

    def _find_in_artifacts(self, artifacts_dir: Path, requests: Sequence[RequestedResource]) -> List[Resource]:
        found: List[Resource] = []
        for request in requests:
            if self.classifier.is_registry_only(request.type):
                continue
            folder = self.classifier.folder_for(request.type)
            if folder is None:
                continue
            found.extend(
                self._create_resources(_list_files(artifacts_dir / folder), request.type, ResourceOrigin.ARTIFACTS)
            )
        return found

    def _find_in_local_entries(self, local_entry_dir: Path, requests: Sequence[RequestedResource]) -> List[Resource]:
        found: List[Resource] = []
        if not local_entry_dir.is_dir():
            return found
        for request in requests:
            found.extend(
                self._create_resources(_list_files(local_entry_dir), request.type, ResourceOrigin.LOCAL_ENTRY)
            )
        return found

    def _find_in_registry(self, registry_root: Path, requests: Sequence[RequestedResource]) -> List[RegistryResource]:
        found: List[RegistryResource] = []

        if any(r.type in (REGISTRY, UNIT_TEST_REGISTRY) for r in requests):
            for file_path in self._walk_registry(registry_root):
                ctx = RegistryFileContext(file_path=file_path, registry_root=registry_root)
                found.append(build_registry_resource(ctx, REGISTRY))
            return found

        requested_tags = self.classifier.requested_tags(requests)
        chain = build_handler_chain(requests)

        for file_path in self._walk_registry(registry_root):
            if not file_path.suffix:
                continue

            resource = None
            if is_xml_file(file_path):
                resource = self._match_registry_xml(file_path, registry_root, requested_tags)
            if resource is None:
                resource = self._dispatch(chain, file_path, registry_root)
            if resource is not None:
                found.append(resource)

        return found

    def _match_registry_xml(
        self, file_path: Path, registry_root: Path, requested_tags: dict[str, str]
    ) -> RegistryResource | None:
        root = root_element(load_document(file_path))
        if root is None:
            self.stats.files_failed += 1
            return None

        tag = root.nodeName
        if tag == TEMPLATE:
            # Only the template flavour named by the inner element qualifies
            first_child = first_child_element(root)
            candidates = [self.classifier.classify(tag, first_child.nodeName if first_child is not None else None)]
        else:
            candidates = [t for t, requested_tag in requested_tags.items() if requested_tag == tag]

        matched = [t for t in candidates if t in requested_tags]
        if not matched:
            return None

        ctx = RegistryFileContext(file_path=file_path, registry_root=registry_root)
        return build_registry_resource(ctx, matched[0], artifact_name(root))

    @staticmethod
    def _dispatch(chain: HandlerChain, file_path: Path, registry_root: Path) -> RegistryResource | None:
        if not chain:
            return None
        return chain.handle(RegistryFileContext(file_path=file_path, registry_root=registry_root))

    # --- Shared ---

    def _create_resources(self, files: Iterable[Path], artifact_type: str, origin: ResourceOrigin) -> List[Resource]:
        resources = []
        for file_path in files:
            resource = self._create_resource(file_path, artifact_type, origin)
            if resource is not None:
                resources.append(resource)
        return resources

    def _create_resource(self, file_path: Path, artifact_type: str, origin: ResourceOrigin) -> Resource | None:
        """
        Build a resource when the file's root element declares the type.

        Local entries are located by their envelope; everything else by the
        type's own root tag.
        """
        self.stats.files_scanned += 1
        document = load_document(file_path)
        if document is None:
            self.stats.files_failed += 1
            return None

        is_local_entry = origin == ResourceOrigin.LOCAL_ENTRY
        expected_tag = LOCAL_ENTRY if is_local_entry else self.classifier.tag_for(artifact_type)
        root = root_element(document)
        if root is None or expected_tag is None or root.nodeName != expected_tag:
            self.stats.files_skipped += 1
            return None

        child_tags = [child.nodeName for child in child_elements(root)]
        if not self.classifier.is_valid(root.nodeName, child_tags, artifact_type, origin):
            self.stats.files_skipped += 1
            return None

        name = artifact_name(root)
        if name is None:
            self.stats.files_skipped += 1
            return None

        self.stats.resources_found += 1
        return Resource(
            name=name,
            type=artifact_type,
            origin=origin,
            path=str(file_path.absolute()),
            artifact_path=file_path.name,
            is_local_entry=is_local_entry,
        )

    def _walk_registry(self, registry_root: Path) -> Generator[Path, None, None]:
        """Registry files, skipping metadata folders, property side files and reserved files."""
        if not registry_root.is_dir():
            return

        for current, dirs, files in registry_root.walk():
            dirs[:] = sorted(d for d in dirs if d not in REGISTRY_SKIP_DIRS)

            for name in sorted(files):
                path = current / name
                if _is_registry_properties_file(path):
                    self.stats.files_skipped += 1
                    continue
                if path.relative_to(registry_root) in REGISTRY_RESERVED_FILES:
                    self.stats.files_skipped += 1
                    continue
                self.stats.files_scanned += 1
                yield path


def _list_files(folder: Path) -> List[Path]:
    if not folder.is_dir():
        return []
    return sorted(p for p in folder.iterdir() if p.is_file())


def _filter_unit_test_registry(resources: List[RegistryResource]) -> List[RegistryResource]:
    """Drop helper files and strip ``.ts`` from data-mapper keys."""
    filtered = []
    for resource in resources:
        if any(resource.name.endswith(ignored) for ignored in UNIT_TEST_REGISTRY_IGNORED):
            continue
        if "datamapper" in resource.registry_key and resource.name.endswith(".ts"):
            resource = resource.model_copy(update={"registry_key": resource.registry_key[:-3]})
        filtered.append(resource)
    return filtered
