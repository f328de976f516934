"""
Resources Command - Answer a request for specific artifact types.

Usage:
    synres resources sequence endpoint
    synres resources swagger --project-dir ./my-project
    synres resources sequence --no-registry --with-dependents
"""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from ...config import get_settings
from ...core.cache import project_cache
from ...core.merger import CrossProjectMerger
from ...core.types import RequestedResource
from ...parsing.scanner import ArtifactScanner
from ..utils import echo_warning, project_option

console = Console()


@click.command()
@click.argument("types", nargs=-1, required=True)
@project_option
@click.option("--no-registry", is_flag=True, help="Skip the registry lookup")
@click.option("--with-dependents", is_flag=True, help="Include resources of dependent projects")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def resources(types: tuple, project_dir: str, no_registry: bool, with_dependents: bool, as_json: bool):
    """
    Find resources of the requested TYPES.

    \b
    Examples:
        synres resources sequence
        synres resources registry
        synres resources sequenceTemplate endpointTemplate
    """
    project_root = Path(project_dir).resolve()
    requests = [RequestedResource(type=t, need_registry=not no_registry) for t in types]
    scanner = ArtifactScanner()

    if with_dependents:
        merger = CrossProjectMerger(scanner, project_cache(get_settings(project_root).cache_home))
        bucket = merger.find_resources(project_root, requests)
    else:
        bucket = scanner.find_resources(project_root, requests)

    if as_json:
        click.echo(json.dumps(bucket.model_dump(mode="json"), indent=2))
        return

    if not bucket.count:
        echo_warning(f"No resources of type {', '.join(types)} found")
        return

    table = Table(title=f"🔎 {', '.join(types)}")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Origin")
    table.add_column("Location", style="dim")

    for resource in bucket.resources or []:
        table.add_row(resource.name, resource.type, resource.origin.value, resource.artifact_path or "")
    for resource in bucket.registry_resources or []:
        table.add_row(resource.name, resource.type, resource.origin.value, resource.registry_key)

    console.print(table)
