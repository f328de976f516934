"""
Driver Command - Resolve the JDBC driver a connector needs.

Usage:
    synres driver mysql-connector MYSQL
"""

import sys
from pathlib import Path

import click

from ...config import get_settings
from ..utils import connector_resolver, echo_error, echo_success, project_option


@click.command()
@click.argument("connector")
@click.argument("connection_type")
@project_option
def driver(connector: str, connection_type: str, project_dir: str):
    """
    Locate or download the driver CONNECTOR needs for CONNECTION_TYPE.

    The connector must already be downloaded with 'synres deps download'.
    """
    project_root = Path(project_dir).resolve()
    resolver = connector_resolver(get_settings(project_root))

    result = resolver.driver_result(project_root, connector, connection_type)
    if result.is_err():
        echo_error(f"Could not resolve driver: {result.error}")
        sys.exit(1)

    echo_success(f"Driver: {result.unwrap()}")
