"""
Merge Command - Load the resources of dependent integration projects.

Usage:
    synres merge
    synres merge --project-dir ./my-project
"""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from ...config import get_settings
from ...core.cache import project_cache
from ...core.merger import CrossProjectMerger
from ..utils import echo_info, echo_success, echo_warning, project_option

console = Console()


@click.command()
@project_option
@click.option("--strict", is_flag=True, help="Exit non-zero when artifact names collide")
def merge(project_dir: str, strict: bool):
    """
    Merge resources of extracted dependent projects into this project.

    Reports artifact names owned by more than one project.
    """
    project_root = Path(project_dir).resolve()
    merger = CrossProjectMerger(cache=project_cache(get_settings(project_root).cache_home))
    result = merger.load_dependent_resources(project_root)

    if result.dependents:
        table = Table(title="📚 Dependent resources")
        table.add_column("Type", style="cyan")
        table.add_column("Artifacts", justify="right")
        table.add_column("Registry", justify="right")
        for artifact_type, bucket in sorted(result.dependents.items()):
            table.add_row(
                artifact_type,
                str(len(bucket.resources or [])),
                str(len(bucket.registry_resources or [])),
            )
        console.print(table)

    for failure in result.failures:
        echo_info(f"Skipped {failure}")

    if result.has_collisions:
        echo_warning(result.message)
        if strict:
            sys.exit(1)
        return

    echo_success(result.message)
