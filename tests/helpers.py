"""
Builders for project trees, poms and archives used across the tests.
"""

import zipfile
from pathlib import Path
from typing import Dict

SYNAPSE_NS = "http://ws.apache.org/ns/synapse"
SEQUENCES_DIR = "src/main/wso2mi/artifacts/sequences"


def write_files(root: Path, files: Dict[str, str]) -> Path:
    """Write ``{relative path: content}`` under root and return root."""
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
    return root


def make_zip(path: Path, entries: Dict[str, str | bytes]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    return path


def pom(
    group_id: str = "com.example",
    artifact_id: str = "sample",
    version: str = "1.0.0",
    dependencies: str = "",
    properties: str = "",
) -> str:
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
    <modelVersion>4.0.0</modelVersion>
    <groupId>{group_id}</groupId>
    <artifactId>{artifact_id}</artifactId>
    <version>{version}</version>
    <properties>{properties}</properties>
    <dependencies>{dependencies}</dependencies>
</project>
"""


def pom_dependency(group_id: str, artifact_id: str, version: str, dep_type: str) -> str:
    return (
        f"<dependency><groupId>{group_id}</groupId><artifactId>{artifact_id}</artifactId>"
        f"<version>{version}</version><type>{dep_type}</type></dependency>"
    )


def descriptor(*deps: tuple) -> str:
    """``descriptor.xml`` content listing ``(group, artifact, version)`` car dependencies."""
    entries = "".join(
        f'<dependency groupId="{g}" artifactId="{a}" version="{v}" type="car"/>' for g, a, v in deps
    )
    return f'<?xml version="1.0"?><project><dependencies>{entries}</dependencies></project>'
