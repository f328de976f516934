"""
CLI Utilities - Shared helper functions for command line operations.

Formatted printing plus the wiring that turns a project directory into
resolvers configured from its settings.
"""

import logging

import click

from ..config import Settings
from ..core.cache import connector_cache, project_cache
from ..core.connectors import ConnectorResolver
from ..core.fetcher import LocalRepository, RemoteRepository
from ..core.projects import ProjectDependencyResolver


def echo_success(message: str) -> None:
    """
    Print a success message with a green checkmark.

    Args:
        message (str): The message to display.
    """
    click.echo(click.style(f"✅ {message}", fg="green"))


def echo_error(message: str) -> None:
    """
    Print an error message with a red cross.

    Args:
        message (str): The error message to display.
    """
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def echo_warning(message: str) -> None:
    """
    Print a warning message with a yellow alert symbol.

    Args:
        message (str): The warning message to display.
    """
    click.echo(click.style(f"⚠️  {message}", fg="yellow"))


def echo_info(message: str) -> None:
    """
    Print an informational message, dimmed.

    Args:
        message (str): The info message to display.
    """
    click.echo(click.style(f"   {message}", dim=True))


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(message)s",
        datefmt="[%X]",
    )


def project_option(func):
    """Shared ``--project-dir`` option, defaulting to the working directory."""
    return click.option(
        "--project-dir",
        "-p",
        type=click.Path(exists=True, file_okay=False),
        default=".",
        help="Integration project root (the directory holding pom.xml)",
    )(func)


def connector_resolver(settings: Settings) -> ConnectorResolver:
    return ConnectorResolver(
        cache=connector_cache(settings.cache_home),
        local_repository=LocalRepository(settings.local_repository),
        remote=RemoteRepository(settings.remote_repository, settings.http_timeout),
    )


def project_resolver(settings: Settings) -> ProjectDependencyResolver:
    return ProjectDependencyResolver(
        cache=project_cache(settings.cache_home),
        local_repository=LocalRepository(settings.local_repository),
    )


