"""
Artifact type classification.

Maps logical artifact types to the root XML tag that declares them and to
the folder that holds them in a project's artifact tree. The table is built
once and handed to whichever scanner needs it; nothing in here touches the
filesystem.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence, Tuple

from ..core.types import RequestedResource, ResourceOrigin

API = "api"
SEQUENCE = "sequence"
ENDPOINT = "endpoint"
TEMPLATE = "template"
SEQUENCE_TEMPLATE = "sequenceTemplate"
ENDPOINT_TEMPLATE = "endpointTemplate"
LOCAL_ENTRY = "localEntry"
DATA_SERVICE = "dataService"
PROXY_SERVICE = "proxyService"
UNKNOWN = "unknown"

REGISTRY = "registry"
UNIT_TEST_REGISTRY = "unitTestRegistry"
SWAGGER = "swagger"
SCHEMA = "schema"
DATA_MAPPER = "dataMapper"

TYPE_TO_TAG: Mapping[str, str] = MappingProxyType({
    API: "api",
    ENDPOINT: "endpoint",
    SEQUENCE: "sequence",
    "messageStore": "messageStore",
    "messageProcessor": "messageProcessor",
    ENDPOINT_TEMPLATE: TEMPLATE,
    SEQUENCE_TEMPLATE: TEMPLATE,
    "task": "task",
    LOCAL_ENTRY: "localEntry",
    "inbound-endpoint": "inboundEndpoint",
    DATA_SERVICE: "data",
    "dataSource": "dataSource",
    "ws_policy": "wsp:Policy",
    "smooksConfig": "smooks-resource-list",
    PROXY_SERVICE: "proxy",
    "xsl": "xsl:stylesheet",
    "xslt": "xsl:stylesheet",
    "xsd": "xs:schema",
    "wsdl": "wsdl:definitions",
})

TYPE_TO_FOLDER: Mapping[str, str] = MappingProxyType({
    API: "apis",
    ENDPOINT: "endpoints",
    SEQUENCE: "sequences",
    "messageStore": "message-stores",
    "messageProcessor": "message-processors",
    ENDPOINT_TEMPLATE: "templates",
    SEQUENCE_TEMPLATE: "templates",
    "task": "tasks",
    LOCAL_ENTRY: "local-entries",
    "inbound-endpoint": "inbound-endpoints",
    DATA_SERVICE: "data-services",
    "dataSource": "data-sources",
    PROXY_SERVICE: "proxy-services",
})

# Scanned in this order when listing everything a project owns
ARTIFACT_TYPES: Tuple[str, ...] = (
    API, ENDPOINT, SEQUENCE,
    "messageStore", "messageProcessor",
    ENDPOINT_TEMPLATE, SEQUENCE_TEMPLATE,
    "task", LOCAL_ENTRY,
    "inbound-endpoint", DATA_SERVICE,
    "dataSource", PROXY_SERVICE,
)

REGISTRY_ONLY_TYPES = frozenset({
    DATA_MAPPER, "js", "json", "smooksConfig", "wsdl", "ws_policy", "xsd",
    "xsl", "xslt", "yaml", REGISTRY, UNIT_TEST_REGISTRY, SCHEMA, SWAGGER,
})


@dataclass(frozen=True)
class TypeClassifier:
    """
    Immutable classification table.

    Attributes:
        type_to_tag: Logical type to expected root tag.
        type_to_folder: Logical type to artifact folder name.
        artifact_types: Types scanned from the artifact tree, in order.
        registry_only: Types that only ever live in the registry tree.
    """
    type_to_tag: Mapping[str, str] = field(default_factory=lambda: TYPE_TO_TAG)
    type_to_folder: Mapping[str, str] = field(default_factory=lambda: TYPE_TO_FOLDER)
    artifact_types: Tuple[str, ...] = ARTIFACT_TYPES
    registry_only: frozenset = REGISTRY_ONLY_TYPES

    @classmethod
    def default(cls) -> "TypeClassifier":
        return cls()

    def tag_for(self, artifact_type: str) -> str | None:
        return self.type_to_tag.get(artifact_type)

    def folder_for(self, artifact_type: str) -> str | None:
        """Artifact folder for a type, matched case-insensitively."""
        for known, folder in self.type_to_folder.items():
            if known.lower() == artifact_type.lower():
                return folder
        return None

    def is_registry_only(self, artifact_type: str) -> bool:
        return artifact_type in self.registry_only

    def types_for_tag(self, tag: str) -> list[str]:
        return [t for t, known in self.type_to_tag.items() if known == tag]

    def classify(self, root_tag: str | None, first_child_tag: str | None = None) -> str:
        """
        Classify a parsed document by its root and first child element.

        A ``template`` root becomes ``sequenceTemplate`` or
        ``endpointTemplate`` depending on its first child. Roots that no
        type declares are returned unchanged.
        """
        if not root_tag:
            return UNKNOWN

        if root_tag == TEMPLATE:
            if first_child_tag == SEQUENCE:
                return SEQUENCE_TEMPLATE
            if first_child_tag == ENDPOINT:
                return ENDPOINT_TEMPLATE
            return TEMPLATE

        matches = self.types_for_tag(root_tag)
        # xsl and xslt share a tag; the last declared wins
        return matches[-1] if matches else root_tag

    @staticmethod
    def classify_extension(file_name: str) -> str:
        """Type of non-XML content: its extension, or ``unknown``."""
        dot = file_name.rfind(".")
        if 0 < dot < len(file_name) - 1:
            return file_name[dot + 1:]
        return UNKNOWN

    def is_valid(
        self,
        root_tag: str,
        child_tags: Sequence[str],
        artifact_type: str,
        origin: ResourceOrigin,
    ) -> bool:
        """
        Check a located root element against the requested type.

        For local entries ``root_tag`` is the envelope and the first child
        must carry the type's tag. Template roots must contain the child
        that matches the requested template flavour.
        """
        if origin == ResourceOrigin.LOCAL_ENTRY:
            expected = self.type_to_tag.get(artifact_type, artifact_type)
            return bool(child_tags) and child_tags[0] == expected

        if root_tag == TEMPLATE:
            if artifact_type == SEQUENCE_TEMPLATE:
                return SEQUENCE in child_tags
            if artifact_type == ENDPOINT_TEMPLATE:
                return ENDPOINT in child_tags
            return False

        return True

    def requested_tags(self, requests: Iterable[RequestedResource]) -> dict[str, str]:
        """Tags of requested types that want registry lookups."""
        return {
            r.type: self.type_to_tag[r.type]
            for r in requests
            if r.need_registry and r.type in self.type_to_tag
        }
