"""
Unit tests for cross-project resource merging.
"""

from pathlib import Path

import pytest

from synres.core.cache import project_cache
from synres.core.merger import (
    NO_DEPENDENTS,
    SUCCESS_PREFIX,
    CrossProjectMerger,
    format_collisions,
    qualified_name,
    qualify_registry_resource,
)
from synres.core.types import CollisionReport, RegistryResource, ResourceOrigin
from tests.helpers import SYNAPSE_NS, pom, write_files

SEQUENCES = "src/main/wso2mi/artifacts/sequences"
PROXIES = "src/main/wso2mi/artifacts/proxy-services"


def _sequence(name: str) -> str:
    return f'<sequence xmlns="{SYNAPSE_NS}" name="{name}"><log/></sequence>'


def _proxy(name: str) -> str:
    return f'<proxy xmlns="{SYNAPSE_NS}" name="{name}"><target/></proxy>'


@pytest.fixture
def cache(tmp_path):
    return project_cache(tmp_path / "home")


@pytest.fixture
def merger(cache):
    return CrossProjectMerger(cache=cache)


def _host(tmp_path: Path, versioned: bool = False, files=None) -> Path:
    properties = "<versionedDeployment>true</versionedDeployment>" if versioned else ""
    return write_files(tmp_path / "host", {"pom.xml": pom(artifact_id="host", properties=properties), **(files or {})})


def _dependent(cache, host: Path, name: str, group_id: str, files: dict) -> Path:
    extracted = cache.cache_dir_for(host).extracted
    return write_files(extracted / name, {"pom.xml": pom(group_id=group_id, artifact_id=name), **files})


class TestLoadDependentResources:

    def test_without_dependency_cache(self, merger, tmp_path):
        host = _host(tmp_path, files={f"{SEQUENCES}/Main.xml": _sequence("Main")})

        result = merger.load_dependent_resources(host)

        assert result.message == NO_DEPENDENTS
        assert result.host["sequence"].resource_names() == ["Main"]
        assert result.dependents == {}

    def test_collision_between_dependents(self, merger, cache, tmp_path):
        host = _host(tmp_path)
        _dependent(cache, host, "dep1", "g", {f"{SEQUENCES}/X.xml": _sequence("X")})
        _dependent(cache, host, "dep2", "g", {f"{SEQUENCES}/X.xml": _sequence("X")})

        result = merger.load_dependent_resources(host)

        assert result.has_collisions
        assert result.collisions == [CollisionReport(name="X", projects=["dep1", "dep2"])]
        assert result.dependents["sequence"].resource_names() == ["X", "X"]
        assert result.message.startswith("DUPLICATE ARTIFACTS")
        assert "Artifact: 'X' found in: [dep1, dep2]" in result.message

    def test_collision_with_host(self, merger, cache, tmp_path):
        host = _host(tmp_path, files={f"{SEQUENCES}/X.xml": _sequence("X")})
        _dependent(cache, host, "dep1", "g", {f"{SEQUENCES}/X.xml": _sequence("X")})

        result = merger.load_dependent_resources(host)

        assert result.collisions[0].projects == ["host", "dep1"]

    def test_success_message(self, merger, cache, tmp_path):
        host = _host(tmp_path)
        _dependent(cache, host, "dep1", "g", {f"{SEQUENCES}/A.xml": _sequence("A")})

        result = merger.load_dependent_resources(host)

        assert not result.has_collisions
        assert result.message == SUCCESS_PREFIX + str(host)

    def test_versioned_deployment_qualifies_names(self, merger, cache, tmp_path):
        host = _host(tmp_path, versioned=True)
        _dependent(cache, host, "a", "g", {
            f"{SEQUENCES}/Foo.xml": _sequence("Foo"),
            f"{PROXIES}/Front.xml": _proxy("Front"),
        })

        result = merger.load_dependent_resources(host)

        assert result.dependents["sequence"].resource_names() == ["g__a__Foo"]
        assert result.dependents["proxyService"].resource_names() == ["Front"]

    def test_unversioned_names_are_kept(self, merger, cache, tmp_path):
        host = _host(tmp_path, versioned=False)
        _dependent(cache, host, "a", "g", {f"{SEQUENCES}/Foo.xml": _sequence("Foo")})

        result = merger.load_dependent_resources(host)

        assert result.dependents["sequence"].resource_names() == ["Foo"]

    def test_versioned_names_avoid_collisions(self, merger, cache, tmp_path):
        host = _host(tmp_path, versioned=True)
        _dependent(cache, host, "dep1", "g", {f"{SEQUENCES}/X.xml": _sequence("X")})
        _dependent(cache, host, "dep2", "g", {f"{SEQUENCES}/X.xml": _sequence("X")})

        result = merger.load_dependent_resources(host)

        assert not result.has_collisions
        assert result.dependents["sequence"].resource_names() == ["g__dep1__X", "g__dep2__X"]

    def test_hidden_directories_are_skipped(self, merger, cache, tmp_path):
        host = _host(tmp_path)
        _dependent(cache, host, ".dep1.partial", "g", {f"{SEQUENCES}/X.xml": _sequence("X")})

        assert merger.load_dependent_resources(host).dependents == {}

    def test_malformed_host_pom(self, merger, cache, tmp_path):
        host = write_files(tmp_path / "host", {"pom.xml": "<project>"})
        cache.cache_dir_for(host)

        result = merger.load_dependent_resources(host)

        assert result.message.startswith("Error loading dependent resources:")

    def test_malformed_dependent_pom_is_a_failure(self, merger, cache, tmp_path):
        host = _host(tmp_path, versioned=True)
        extracted = cache.cache_dir_for(host).extracted
        write_files(extracted / "broken", {"pom.xml": "<project>", f"{SEQUENCES}/X.xml": _sequence("X")})
        _dependent(cache, host, "good", "g", {f"{SEQUENCES}/Y.xml": _sequence("Y")})

        result = merger.load_dependent_resources(host)

        assert result.failures == ["broken"]
        assert result.dependents["sequence"].resource_names() == ["g__good__Y"]


class TestFindResources:

    def test_includes_dependent_resources(self, merger, cache, tmp_path):
        host = _host(tmp_path, files={f"{SEQUENCES}/Main.xml": _sequence("Main")})
        _dependent(cache, host, "dep1", "g", {f"{SEQUENCES}/Shared.xml": _sequence("Shared")})

        bucket = merger.find_resources(host, "sequence")

        assert bucket.resource_names() == ["Main", "Shared"]

    def test_unrequested_types_are_left_out(self, merger, cache, tmp_path):
        host = _host(tmp_path)
        _dependent(cache, host, "dep1", "g", {f"{PROXIES}/Front.xml": _proxy("Front")})

        assert merger.find_resources(host, "sequence").resource_names() == []


class TestQualification:

    def test_qualified_name(self):
        assert qualified_name("g", "a", "Foo") == "g__a__Foo"

    def test_registry_key_keeps_prefix(self):
        resource = RegistryResource(
            name="Foo",
            type="sequence",
            origin=ResourceOrigin.REGISTRY,
            path="/tmp/Foo.xml",
            registry_key="gov:sequences/Foo.xml",
            registry_path="/tmp/Foo.xml",
        )

        assert qualify_registry_resource(resource, "g", "a").registry_key == "gov:sequences/g__a__Foo.xml"

    def test_format_collisions(self):
        text = format_collisions([CollisionReport(name="X", projects=["p1", "p2"])])

        assert text == (
            "DUPLICATE ARTIFACTS\n\n"
            "Artifact: 'X' found in: [p1, p2]\n\n"
            "Please avoid having artifacts with the same name and continue.\n"
        )
