from typing import Optional

import click

CATALOG_OPTION_HELP = "Switch catalog YAML overriding the bundled profiles."


@click.group()
def catalog() -> None:
    """Inspect the switch profile catalog."""
    pass


@catalog.command("list")
@click.option(
    "--catalog",
    "catalog_path",
    type=click.Path(path_type=str, dir_okay=False, exists=True),
    envvar="WIREGEN_CATALOG",
    help=CATALOG_OPTION_HELP,
)
def list_models(catalog_path: Optional[str]) -> None:
    """List switch models with port counts per role."""
    import sys

    from rich.console import Console
    from rich.table import Table

    console = Console()

    try:
        from wiregen_core.data.catalog import resolve_catalog

        cat = resolve_catalog(catalog_path)
    except Exception as e:
        console.print(f"[red]Error loading catalog: {e}[/red]")
        sys.exit(1)

    table = Table(title="Switch Catalog")
    table.add_column("Model", style="cyan")
    table.add_column("Name")
    table.add_column("Short")
    table.add_column("Fabric", justify="right")
    table.add_column("Server", justify="right")
    table.add_column("Mgmt", justify="right")

    for profile in cat.profiles():
        table.add_row(
            profile.model,
            profile.name,
            profile.short_name,
            str(len(profile.ports_for_role("fabric"))),
            str(len(profile.ports_for_role("server"))),
            str(len(profile.ports_for_role("management"))),
        )
    console.print(table)


@catalog.command("show")
@click.argument("model")
@click.option(
    "--catalog",
    "catalog_path",
    type=click.Path(path_type=str, dir_okay=False, exists=True),
    envvar="WIREGEN_CATALOG",
    help=CATALOG_OPTION_HELP,
)
def show(model: str, catalog_path: Optional[str]) -> None:
    """Show every port of MODEL with its roles, speed and breakout modes."""
    import sys

    from rich.console import Console
    from rich.table import Table

    console = Console()

    try:
        from wiregen_core.data.catalog import resolve_catalog

        profile = resolve_catalog(catalog_path).get_profile(model)
    except Exception as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    table = Table(title=f"{profile.name} ({profile.model})")
    table.add_column("Port", style="cyan")
    table.add_column("Roles")
    table.add_column("Speed", justify="right")
    table.add_column("Breakouts")
    table.add_column("Default")

    for port in profile.ports:
        table.add_row(
            port.id,
            ", ".join(port.roles),
            port.speed or "-",
            ", ".join(m.mode for m in port.breakout_modes) or "-",
            port.default_breakout or "-",
        )
    console.print(table)
