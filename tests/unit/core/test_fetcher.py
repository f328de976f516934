"""
Unit tests for local and remote repository access.
"""

import io
from http.client import IncompleteRead
from unittest.mock import MagicMock, patch
from urllib import error

import pytest

from synres.core.errors import DependencyFetchError
from synres.core.fetcher import LocalRepository, RemoteRepository, UnsupportedFetcher, artifact_relative_path
from synres.core.types import DependencyDetails
from tests.helpers import write_files

DEP = DependencyDetails(group_id="org.wso2.integration.connector", artifact_id="mi-connector-http", version="0.1.8")


def test_artifact_relative_path():
    assert artifact_relative_path(DEP, "zip") == (
        "org/wso2/integration/connector/mi-connector-http/0.1.8/mi-connector-http-0.1.8.zip"
    )


class TestLocalRepository:

    def test_copy_to(self, tmp_path):
        write_files(tmp_path / "m2", {artifact_relative_path(DEP, "zip"): "archive"})
        repo = LocalRepository(tmp_path / "m2")

        copied = repo.copy_to(DEP, tmp_path / "target", "zip")

        assert copied == tmp_path / "target" / "mi-connector-http-0.1.8.zip"
        assert copied.read_text() == "archive"

    def test_copy_to_with_file_name(self, tmp_path):
        write_files(tmp_path / "m2", {artifact_relative_path(DEP, "car"): "car"})

        copied = LocalRepository(tmp_path / "m2").copy_to(DEP, tmp_path / "t", "car", file_name="renamed.car")

        assert copied.name == "renamed.car"

    def test_missing_artifact(self, tmp_path):
        assert LocalRepository(tmp_path / "m2").copy_to(DEP, tmp_path / "target", "zip") is None
        assert not (tmp_path / "target").exists()

    def test_default_root_from_settings(self, tmp_path):
        assert LocalRepository().root == tmp_path / "m2"


class TestRemoteRepository:

    def test_url_for(self):
        repo = RemoteRepository("https://repo.example.com/maven2/", timeout=5)

        assert repo.url_for(DEP, "zip") == (
            "https://repo.example.com/maven2/org/wso2/integration/connector/"
            "mi-connector-http/0.1.8/mi-connector-http-0.1.8.zip"
        )

    def test_settings_from_environment(self):
        repo = RemoteRepository()

        assert repo.base_url == "http://127.0.0.1:9/unreachable"
        assert repo.timeout == 1.0

    @patch("synres.core.fetcher.request.urlopen")
    def test_fetch_writes_file(self, mock_urlopen, tmp_path):
        mock_urlopen.return_value = io.BytesIO(b"zip-bytes")

        path = RemoteRepository("https://repo.example.com").fetch(DEP, tmp_path, "zip")

        assert path == tmp_path / "mi-connector-http-0.1.8.zip"
        assert path.read_bytes() == b"zip-bytes"
        assert not list(tmp_path.glob("*.part"))

    @patch("synres.core.fetcher.request.urlopen")
    def test_http_error(self, mock_urlopen, tmp_path):
        mock_urlopen.side_effect = error.HTTPError("https://repo.example.com", 404, "Not Found", None, None)

        with pytest.raises(DependencyFetchError, match="HTTP 404"):
            RemoteRepository("https://repo.example.com").fetch(DEP, tmp_path, "zip")

        assert list(tmp_path.iterdir()) == []

    @patch("synres.core.fetcher.request.urlopen")
    def test_network_error(self, mock_urlopen, tmp_path):
        mock_urlopen.side_effect = error.URLError("connection refused")

        with pytest.raises(DependencyFetchError):
            RemoteRepository("https://repo.example.com").fetch(DEP, tmp_path, "zip")

    @patch("synres.core.fetcher.request.urlopen")
    def test_truncated_body_leaves_no_partial_file(self, mock_urlopen, tmp_path):
        response = MagicMock()
        response.__enter__.return_value = response
        response.read.side_effect = [b"zip-", IncompleteRead(b"zip-", 10)]
        mock_urlopen.return_value = response

        with pytest.raises(DependencyFetchError):
            RemoteRepository("https://repo.example.com").fetch(DEP, tmp_path, "zip")

        assert list(tmp_path.iterdir()) == []

    def test_base_url_without_scheme(self, tmp_path):
        with pytest.raises(DependencyFetchError, match="Could not fetch"):
            RemoteRepository("repo.example.com/maven2", timeout=1).fetch(DEP, tmp_path, "zip")

        assert list(tmp_path.iterdir()) == []


def test_unsupported_fetcher(tmp_path):
    with pytest.raises(DependencyFetchError, match="not configured"):
        UnsupportedFetcher("remote retrieval is not configured").fetch(DEP, tmp_path, "car")
