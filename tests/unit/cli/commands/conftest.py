import pytest
from click.testing import CliRunner

from tests.helpers import SEQUENCES_DIR, SYNAPSE_NS, pom, pom_dependency, write_files


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def project(tmp_path):
    """A project declaring one connector and owning one sequence."""
    return write_files(tmp_path / "project", {
        "pom.xml": pom(dependencies=pom_dependency("org.wso2", "mi-connector-http", "0.1.8", "zip")),
        f"{SEQUENCES_DIR}/Main.xml": f'<sequence xmlns="{SYNAPSE_NS}" name="Main"><log/></sequence>',
    })
