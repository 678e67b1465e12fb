import logging

import click
from wiregen_cli.catalog.catalog import catalog
from wiregen_cli.fabric.fabric import fabric


@click.group()
@click.option("--verbose", "-v", count=True, help="Log progress to stderr (-vv for debug).")
def cli(verbose: int) -> None:
    """Generate wiring manifests for spine-leaf fabrics."""
    if verbose:
        from wiregen_core.codebase.debug import configure_logging

        configure_logging(logging.DEBUG if verbose > 1 else logging.INFO)


# add cli groups here

cli.add_command(catalog)
cli.add_command(fabric)
