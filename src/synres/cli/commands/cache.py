"""
Cache CLI Command.

Manage the per-project dependency caches under the cache home.

Usage:
    synres cache list
    synres cache clean [--older-than DAYS] [--all] [--dry-run]
    synres cache invalidate <key>
    synres cache stats
"""

import click
from rich.console import Console
from rich.table import Table

from ...core.cache import CacheManager

console = Console()


@click.group()
def cache():
    """Manage dependency caches."""
    pass


@cache.command("list")
def cache_list():
    """List all project caches."""
    manager = CacheManager()
    items = manager.list()

    if not items:
        click.echo("📦 Cache is empty.")
        return

    table = Table(title=f"📦 Project caches ({len(items)})")
    table.add_column("Kind")
    table.add_column("Key", style="cyan")
    table.add_column("Archives", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Updated")

    for item in items:
        table.add_row(item.kind, item.key, str(item.archives), item.size_human, item.age_human)

    console.print(table)


@cache.command("stats")
def cache_stats():
    """Show cache statistics."""
    manager = CacheManager()
    stats = manager.get_stats()

    click.echo("📊 Cache Statistics:\n")
    click.echo(f"   Total projects: {stats.total_projects}")
    click.echo(f"   Total size: {stats.total_size_human}")

    if stats.oldest_update:
        click.echo(f"   Oldest update: {stats.oldest_update.strftime('%Y-%m-%d %H:%M')}")
    if stats.newest_update:
        click.echo(f"   Newest update: {stats.newest_update.strftime('%Y-%m-%d %H:%M')}")


@cache.command("clean")
@click.option("--older-than", type=int, help="Remove caches older than N days")
@click.option("--all", "clean_all", is_flag=True, help="Remove every cache")
@click.option("--dry-run", is_flag=True, help="Show what would be removed without removing")
def cache_clean(older_than: int | None, clean_all: bool, dry_run: bool):
    """Clean old project caches."""
    if older_than is None and not clean_all:
        click.echo("Specify --older-than or --all to clean caches.")
        return

    manager = CacheManager()
    removed = manager.clean(older_than_days=None if clean_all else older_than, dry_run=dry_run)

    if not removed:
        click.echo("✅ No caches match the criteria.")
        return

    action = "Would remove" if dry_run else "Removed"
    click.echo(f"🗑️  {action} {len(removed)} cache(s):")
    for key in removed:
        click.echo(f"   - {key}")


@cache.command("invalidate")
@click.argument("key")
def cache_invalidate(key: str):
    """Remove a specific project cache."""
    manager = CacheManager()

    if manager.invalidate(key):
        click.echo(f"✅ Invalidated cache: {key}")
    else:
        click.echo(f"❌ Cache not found: {key}")
