"""
synres CLI - Main entry point.

This module registers all CLI commands. Each command is implemented
in its own module under cli/commands/.
"""

import click

from .commands import cache, deps, driver, merge, resources, scan
from .utils import configure_logging


@click.group()
@click.version_option(package_name="synres")
@click.option("-v", "--verbose", is_flag=True, help="Log resolution progress")
def main(verbose: bool):
    """synres: Artifact discovery and dependency resolution for Synapse projects.

    Lists the artifacts an integration project owns and resolves the
    connectors and integration projects its pom.xml declares.

    \b
    Quick Start:
      synres scan ./my-project
      synres resources sequence -p ./my-project
      synres deps download -p ./my-project
      synres merge -p ./my-project
    """
    configure_logging(verbose)


# Register commands
main.add_command(scan.scan)
main.add_command(resources.resources)
main.add_command(deps.deps)
main.add_command(driver.driver)
main.add_command(merge.merge)
main.add_command(cache.cache)

if __name__ == "__main__":
    main()
