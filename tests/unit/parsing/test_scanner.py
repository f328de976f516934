"""
Unit tests for the artifact scanner.
"""

from pathlib import Path

import pytest

from synres.core.types import RequestedResource, ResourceOrigin
from synres.parsing.scanner import ArtifactScanner, normalize_requests
from tests.helpers import SYNAPSE_NS, write_files

ARTIFACTS = "src/main/wso2mi/artifacts"
REGISTRY = "src/main/wso2mi/resources/registry/gov"
RESOURCES = "src/main/wso2mi/resources"


def _xml(body: str) -> str:
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'


@pytest.fixture
def project(tmp_path) -> Path:
    """A project with artifacts, local entries and a populated registry."""
    return write_files(tmp_path / "sample-project", {
        f"{ARTIFACTS}/apis/testApi.xml": _xml(
            f'<api xmlns="{SYNAPSE_NS}" name="testApi" context="/test"><resource methods="GET"/></api>'
        ),
        f"{ARTIFACTS}/apis/versionedApi.xml": _xml(
            f'<api xmlns="{SYNAPSE_NS}" name="orders" context="/orders" version="2.0"/>'
        ),
        f"{ARTIFACTS}/sequences/testSequence1.xml": _xml(
            f'<sequence xmlns="{SYNAPSE_NS}" name="testSequence1"><log/></sequence>'
        ),
        f"{ARTIFACTS}/sequences/misplaced.xml": _xml(
            f'<endpoint xmlns="{SYNAPSE_NS}" name="notASequence"/>'
        ),
        f"{ARTIFACTS}/sequences/broken.xml": "<sequence name=",
        f"{ARTIFACTS}/templates/seqTemplate.xml": _xml(
            f'<template xmlns="{SYNAPSE_NS}" name="testSequenceTemplate">'
            '<parameter name="p"/><sequence><log/></sequence></template>'
        ),
        f"{ARTIFACTS}/templates/epTemplate.xml": _xml(
            f'<template xmlns="{SYNAPSE_NS}" name="testEndpointTemplate"><endpoint name="ep"/></template>'
        ),
        f"{ARTIFACTS}/local-entries/wrappedSequence.xml": _xml(
            f'<localEntry xmlns="{SYNAPSE_NS}" key="wrappedSequence"><sequence name="inner"/></localEntry>'
        ),
        f"{ARTIFACTS}/local-entries/plainEntry.xml": _xml(
            f'<localEntry xmlns="{SYNAPSE_NS}" key="plainEntry">value</localEntry>'
        ),
        f"{REGISTRY}/sequences/testSequence1.xml": _xml(
            f'<sequence xmlns="{SYNAPSE_NS}" name="testSequence1"/>'
        ),
        f"{REGISTRY}/sequences/testSequence1.xml.properties": "mediaType=application/vnd.wso2.sequence\n",
        f"{REGISTRY}/sequences/testSequence2.xml": _xml(
            f'<sequence xmlns="{SYNAPSE_NS}" name="testSequence2"/>'
        ),
        f"{REGISTRY}/templates/regSeqTemplate.xml": _xml(
            f'<template xmlns="{SYNAPSE_NS}" name="registrySequenceTemplate"><sequence/></template>'
        ),
        f"{REGISTRY}/scripts/transform.js": "function transform() {}\n",
        f"{REGISTRY}/schemas/order.xsd": _xml(
            '<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"/>'
        ),
        f"{REGISTRY}/policies/policy.xml": _xml(
            '<wsp:Policy xmlns:wsp="http://schemas.xmlsoap.org/ws/2004/09/policy"/>'
        ),
        f"{REGISTRY}/.meta/hidden.xml": _xml(f'<sequence xmlns="{SYNAPSE_NS}" name="hidden"/>'),
        f"{RESOURCES}/api-definitions/petstore.yaml": "openapi: 3.0.1\ninfo:\n  title: Pets\n",
        f"{RESOURCES}/artifact.xml": _xml("<artifacts/>"),
        f"{RESOURCES}/registry/artifact.xml": _xml("<artifacts/>"),
    })


class TestScanProject:
    """Tests for listing everything a project owns."""

    def test_api_and_sequence_buckets(self, project):
        resources = ArtifactScanner().scan_project(project)

        assert resources["api"].resource_names() == ["testApi", "orders:v2.0"]
        assert resources["api"].registry_resources is None
        assert resources["sequence"].resource_names() == ["testSequence1"]
        assert resources["sequence"].registry_resource_names() == ["testSequence1", "testSequence2"]

    def test_misplaced_and_malformed_files_are_skipped(self, project):
        scanner = ArtifactScanner()
        resources = scanner.scan_project(project)

        names = [r.name for bucket in resources.values() for r in bucket.resources or []]
        assert "notASequence" not in names
        assert scanner.stats.files_failed >= 1

    def test_templates_split_by_flavour(self, project):
        resources = ArtifactScanner().scan_project(project)

        assert resources["sequenceTemplate"].resource_names() == ["testSequenceTemplate"]
        assert resources["endpointTemplate"].resource_names() == ["testEndpointTemplate"]
        assert resources["sequenceTemplate"].registry_resource_names() == ["registrySequenceTemplate"]

    def test_registry_keys_and_origins(self, project):
        resources = ArtifactScanner().scan_project(project)
        sequence = resources["sequence"].registry_resources[0]

        assert sequence.registry_key == "gov:sequences/testSequence1.xml"
        assert sequence.origin == ResourceOrigin.REGISTRY

        swagger = resources["swagger"].registry_resources[0]
        assert swagger.registry_key == "resources:api-definitions/petstore.yaml"
        assert swagger.origin == ResourceOrigin.RESOURCES

    def test_non_xml_registry_files_go_through_handlers(self, project):
        resources = ArtifactScanner().scan_project(project)

        assert resources["swagger"].registry_resource_names() == ["petstore.yaml"]
        assert resources["schema"].registry_resource_names() == ["order.xsd"]
        assert resources["js"].registry_resource_names() == ["transform.js"]
        assert resources["ws_policy"].registry_resource_names() == ["policy.xml"]
        assert "yaml" not in resources
        assert "xsd" not in resources

    def test_unmatched_registry_files_are_dropped(self, project):
        write_files(project, {
            f"{REGISTRY}/misc/unknown.xml": _xml("<foo/>"),
            f"{REGISTRY}/misc/notes.txt": "plain text\n",
            f"{REGISTRY}/misc/bareTemplate.xml": _xml(f'<template xmlns="{SYNAPSE_NS}" name="bare"/>'),
        })

        resources = ArtifactScanner().scan_project(project)

        assert "foo" not in resources
        assert "txt" not in resources
        assert "template" not in resources
        all_keys = [r.registry_key for b in resources.values() for r in b.registry_resources or []]
        assert not any(k.startswith("gov:misc/") for k in all_keys)

    def test_data_mapper_files_in_full_scan(self, project):
        write_files(project, {f"{REGISTRY}/datamapper/orders/orders.ts": "export function map() {}\n"})

        resources = ArtifactScanner().scan_project(project)

        assert resources["dataMapper"].registry_resource_names() == ["orders.ts"]

    def test_side_files_meta_and_reserved_files_are_ignored(self, project):
        resources = ArtifactScanner().scan_project(project)

        assert "properties" not in resources
        assert "artifacts" not in resources
        all_names = [r.name for b in resources.values() for r in b.registry_resources or []]
        assert "hidden" not in all_names

    def test_local_entries_folder(self, project):
        write_files(project, {
            "src/main/wso2mi/local-entries/entry.xml": _xml(
                f'<localEntry xmlns="{SYNAPSE_NS}" key="entry"><endpoint name="wrappedEndpoint"/></localEntry>'
            ),
        })

        resources = ArtifactScanner().scan_project(project)
        wrapped = resources["endpoint"].resources

        assert [r.name for r in wrapped] == ["entry"]
        assert wrapped[0].is_local_entry
        assert wrapped[0].origin == ResourceOrigin.LOCAL_ENTRY

    def test_empty_project(self, tmp_path):
        assert ArtifactScanner().scan_project(tmp_path) == {}


class TestFindResources:
    """Tests for request mode."""

    def test_sequences_from_all_trees(self, project):
        bucket = ArtifactScanner().find_resources(project, "sequence")

        assert bucket.resource_names() == ["testSequence1", "wrappedSequence"]
        assert bucket.registry_resource_names() == ["testSequence1", "testSequence2"]

    def test_local_entry_matches_are_flagged(self, project):
        bucket = ArtifactScanner().find_resources(project, "sequence")
        local = [r for r in bucket.resources if r.is_local_entry]

        assert [r.name for r in local] == ["wrappedSequence"]

    def test_without_registry_lookup(self, project):
        bucket = ArtifactScanner().find_resources(project, RequestedResource(type="sequence", need_registry=False))

        assert bucket.resource_names() == ["testSequence1", "wrappedSequence"]
        assert bucket.registry_resources == []

    def test_template_flavour_filters_registry(self, project):
        bucket = ArtifactScanner().find_resources(project, ["endpointTemplate"])

        assert bucket.resource_names() == ["testEndpointTemplate"]
        assert bucket.registry_resource_names() == []

    def test_registry_only_type_skips_artifacts(self, project):
        bucket = ArtifactScanner().find_resources(project, "swagger")

        assert bucket.resources == []
        assert bucket.registry_resource_names() == ["petstore.yaml"]
        assert bucket.registry_resources[0].type == "swagger"

    def test_generic_extension_request(self, project):
        bucket = ArtifactScanner().find_resources(project, "js")
        assert bucket.registry_resource_names() == ["transform.js"]

    def test_registry_request_lists_every_file(self, project):
        bucket = ArtifactScanner().find_resources(project, "registry")
        keys = [r.registry_key for r in bucket.registry_resources]

        assert "gov:sequences/testSequence1.xml" in keys
        assert "resources:api-definitions/petstore.yaml" in keys
        assert all(r.type == "registry" for r in bucket.registry_resources)
        assert not any(k.endswith(".properties") for k in keys)

    def test_unit_test_registry_filtering(self, project):
        write_files(project, {
            f"{REGISTRY}/datamapper/orders/orders.ts": "export function map() {}\n",
            f"{REGISTRY}/datamapper/orders/dm-utils.ts": "// helpers\n",
            f"{REGISTRY}/datamapper/.gitkeep": "",
        })

        bucket = ArtifactScanner().find_resources(project, "unitTestRegistry")
        keys = [r.registry_key for r in bucket.registry_resources]

        assert "gov:datamapper/orders/orders" in keys
        assert not any("dm-utils" in k for k in keys)
        assert not any(k.endswith(".gitkeep") for k in keys)


class TestNormalizeRequests:

    def test_single_string(self):
        assert normalize_requests("api") == [RequestedResource(type="api")]

    def test_mixed_sequence(self):
        requests = normalize_requests(["api", {"type": "sequence", "need_registry": False}])

        assert requests[0].need_registry
        assert requests[1] == RequestedResource(type="sequence", need_registry=False)

    def test_camel_case_registry_flag(self):
        requests = normalize_requests([{"type": "sequence", "needRegistry": False}])

        assert requests == [RequestedResource(type="sequence", need_registry=False)]
