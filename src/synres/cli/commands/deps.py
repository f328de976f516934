"""
Deps Command - Dependency download and inspection.

Usage:
    synres deps download     # Fetch everything pom.xml declares
    synres deps status       # Show which connectors are cached
    synres deps tree         # Show the integration project dependency tree
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
import networkx as nx
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from ...config import get_settings
from ...core.errors import ManifestError
from ...core.manifest import ProjectManifest
from ...core.resolver import resolve_project_dependencies
from ..utils import connector_resolver, echo_error, echo_success, project_option, project_resolver

console = Console()


def _load_manifest(project_root: Path) -> ProjectManifest:
    try:
        return ProjectManifest.load(project_root)
    except ManifestError as e:
        echo_error(str(e))
        sys.exit(1)


@click.group()
def deps():
    """
    Manage connector and integration project dependencies.

    Dependencies are read from the project's pom.xml and cached per project
    under the cache home.
    """
    pass


@deps.command("download")
@project_option
def deps_download(project_dir: str):
    """
    Download every declared dependency.

    Connectors are fetched from the local repository or the remote Maven
    repository; integration projects from the local repository.
    """
    project_root = Path(project_dir).resolve()
    _load_manifest(project_root)
    settings = get_settings(project_root)

    summary = resolve_project_dependencies(
        project_root,
        connectors=connector_resolver(settings),
        projects=project_resolver(settings),
    )

    if summary.is_success:
        echo_success(summary.message)
        return

    echo_error(summary.message)
    sys.exit(1)


@deps.command("status")
@project_option
def deps_status(project_dir: str):
    """Show which declared connectors are already cached."""
    project_root = Path(project_dir).resolve()
    manifest = _load_manifest(project_root)
    connectors = manifest.connector_dependencies

    if not connectors:
        console.print("[dim]No connector dependencies declared[/dim]")
        return

    status = connector_resolver(get_settings(project_root)).dependency_status(project_root, connectors)

    table = Table(title=f"🔌 Connectors of {manifest.name or project_root.name}")
    table.add_column("Connector", style="cyan")
    table.add_column("Version")
    table.add_column("Status")

    for dep in status.downloaded:
        table.add_row(dep.artifact_id, dep.version, "[green]✓ downloaded[/green]")
    for dep in status.pending:
        table.add_row(dep.artifact_id, dep.version, "[yellow]⚠ pending[/yellow]")

    console.print(table)


@deps.command("tree")
@project_option
def deps_tree(project_dir: str):
    """
    Show the dependency tree.

    Integration project dependencies are expanded through the descriptors
    of their archives, which are resolved from the cache and the local
    repository.
    """
    project_root = Path(project_dir).resolve()
    manifest = _load_manifest(project_root)
    settings = get_settings(project_root)

    tree = Tree(f"📦 [bold]{manifest.name or project_root.name}[/bold] ({manifest.version or '?'})")

    if not manifest.dependencies:
        tree.add("[dim]No dependencies declared[/dim]")
        console.print(tree)
        return

    if manifest.connector_dependencies:
        branch = tree.add("🔌 Connectors")
        for dep in manifest.connector_dependencies:
            branch.add(f"[cyan]{dep.artifact_id}[/cyan] {dep.version}")

    if manifest.project_dependencies:
        resolver = project_resolver(settings)
        result = resolver.resolve(project_root, manifest.project_dependencies)
        failed = set(result.failed)

        branch = tree.add("📚 Integration projects")
        for dep in manifest.project_dependencies:
            icon = "[red]✗[/red]" if dep.failed_id in failed else "[green]✓[/green]"
            _add_subtree(branch.add(f"{icon} [cyan]{dep.key}[/cyan]"), resolver.graph, dep.key, {dep.key})

        for cycle in resolver.cycles():
            tree.add(f"[yellow]⚠ cycle: {' → '.join(cycle)}[/yellow]")

    console.print(tree)


def _add_subtree(node: Tree, graph: nx.DiGraph, key: str, seen: set) -> None:
    if key not in graph:
        return
    for child in sorted(graph.successors(key)):
        if child in seen:
            node.add(f"[dim]{child} (already shown)[/dim]")
            continue
        _add_subtree(node.add(f"[cyan]{child}[/cyan]"), graph, child, seen | {child})
