"""
Shared fixtures for the synres test suite.
"""

import pytest


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point every cache and repository location into the test's tmp_path."""
    home = tmp_path / "synres-home"
    monkeypatch.setenv("SYNRES_HOME", str(home))
    monkeypatch.setenv("SYNRES_M2_REPO", str(tmp_path / "m2"))
    monkeypatch.setenv("SYNRES_REMOTE_REPO", "http://127.0.0.1:9/unreachable")
    monkeypatch.setenv("SYNRES_HTTP_TIMEOUT", "1")
    return home
