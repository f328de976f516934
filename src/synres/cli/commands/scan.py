"""
Scan Command - List every artifact an integration project owns.

Usage:
    synres scan [DIRECTORY]
    synres scan ./my-project --names
    synres scan ./my-project --json
"""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from ...parsing.scanner import ArtifactScanner
from ..utils import echo_warning

console = Console()


@click.command()
@click.argument("directory", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--names", is_flag=True, help="List resource names under each type")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scan(directory: str, names: bool, as_json: bool):
    """
    Scan a project and list its artifacts by type.

    Artifacts, local entries and registry resources are all included.
    """
    project_root = Path(directory).resolve()
    scanner = ArtifactScanner()
    resources = scanner.scan_project(project_root)

    if as_json:
        payload = {
            artifact_type: bucket.model_dump(mode="json", exclude_none=True)
            for artifact_type, bucket in sorted(resources.items())
        }
        click.echo(json.dumps(payload, indent=2))
        return

    if not resources:
        echo_warning(f"No artifacts found in {project_root}")
        return

    table = Table(title=f"📦 {project_root.name}")
    table.add_column("Type", style="cyan")
    table.add_column("Artifacts", justify="right")
    table.add_column("Registry", justify="right")
    if names:
        table.add_column("Names")

    for artifact_type, bucket in sorted(resources.items()):
        row = [
            artifact_type,
            str(len(bucket.resources or [])),
            str(len(bucket.registry_resources or [])),
        ]
        if names:
            row.append(", ".join(bucket.resource_names() + bucket.registry_resource_names()))
        table.add_row(*row)

    console.print(table)
    console.print(
        f"[dim]{scanner.stats.files_scanned} files scanned, "
        f"{scanner.stats.resources_found} resources found[/dim]"
    )
