from typing import Optional

import click

SEVERITY_COLORS = {"FAIL": "red", "WARN": "yellow", "INFO": "blue"}


@click.group()
def fabric() -> None:
    """Validate fabric requests and generate wiring manifests."""
    pass


def _load(request: str, catalog_path: Optional[str]):
    from wiregen_core.data.catalog import resolve_catalog
    from wiregen_core.data.request import load_fabric_request

    return load_fabric_request(request), resolve_catalog(catalog_path)


@fabric.command("validate")
@click.option(
    "--request",
    type=click.Path(path_type=str, dir_okay=False, exists=False),
    default="fabric.yaml",
    show_default=True,
    help="Path to fabric request YAML (switch models, counts, redundancy).",
)
@click.option(
    "--catalog",
    "catalog_path",
    type=click.Path(path_type=str, dir_okay=False, exists=True),
    envvar="WIREGEN_CATALOG",
    help="Switch catalog YAML overriding the bundled profiles.",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Treat warnings as failures (exit code 2).",
)
@click.option(
    "--export",
    type=click.Path(path_type=str, dir_okay=False),
    help="Export validation findings to YAML file.",
)
def validate(request: str, catalog_path: Optional[str], strict: bool, export: Optional[str]) -> None:
    """Check a fabric request against switch capacities and redundancy rules."""
    import sys

    import yaml
    from rich.console import Console
    from rich.table import Table

    console = Console()

    try:
        from wiregen_core.validation.topology import TopologyValidator

        console.print("\n[bold cyan]Fabric Validation[/bold cyan]")
        req, cat = _load(request, catalog_path)
        result = TopologyValidator(cat).validate(req)

        if export:
            with open(export, "w") as f:
                yaml.dump(
                    {"summary": result.summary, "findings": [finding.model_dump() for finding in result.findings]},
                    f,
                    default_flow_style=False,
                    sort_keys=True,
                )
            console.print(f"[green]✓[/green] Findings exported to {export}")

        table = Table(title="Validation Summary")
        table.add_column("Severity", style="cyan")
        table.add_column("Count", justify="right")
        table.add_row("INFO", str(result.summary["info"]), style="blue")
        table.add_row("WARN", str(result.summary["warn"]), style="yellow")
        table.add_row("FAIL", str(result.summary["fail"]), style="red")
        console.print(table)

        for finding in result.findings:
            color = SEVERITY_COLORS.get(finding.severity, "white")
            console.print(f"[{color}]{finding.severity}[/{color}] {finding.code}: {finding.message}")

        fail_count = result.summary["fail"]
        warn_count = result.summary["warn"]
        if fail_count > 0:
            console.print(f"\n[red]✗[/red] Validation failed with {fail_count} errors")
            sys.exit(1)
        elif strict and warn_count > 0:
            console.print(f"\n[yellow]⚠[/yellow] Validation completed with {warn_count} warnings (strict mode)")
            sys.exit(2)
        else:
            console.print("\n[green]✓[/green] Validation completed successfully")
            sys.exit(0)

    except Exception as e:
        console.print(f"[red]Error during validation: {e}[/red]")
        sys.exit(1)


@fabric.command("generate")
@click.option(
    "--request",
    type=click.Path(path_type=str, dir_okay=False, exists=False),
    default="fabric.yaml",
    show_default=True,
    help="Path to fabric request YAML (switch models, counts, redundancy).",
)
@click.option(
    "--catalog",
    "catalog_path",
    type=click.Path(path_type=str, dir_okay=False, exists=True),
    envvar="WIREGEN_CATALOG",
    help="Switch catalog YAML overriding the bundled profiles.",
)
@click.option(
    "--export",
    type=click.Path(path_type=str, dir_okay=False),
    default="outputs/fabric.yaml",
    show_default=True,
    help="Where to write the multi-document wiring YAML.",
)
def generate(request: str, catalog_path: Optional[str], export: str) -> None:
    """Generate switch, connection and server manifests for a fabric request."""
    import sys

    from rich.console import Console
    from rich.table import Table

    console = Console()

    try:
        from wiregen_core.engine import generate_fabric
        from wiregen_core.errors import InvalidRequest
        from wiregen_core.manifest.export import write_manifests

        req, cat = _load(request, catalog_path)
        try:
            result = generate_fabric(req, cat)
        except InvalidRequest as e:
            console.print("[red]✗[/red] Fabric request is invalid:")
            for finding in e.findings:
                console.print(f"[red]FAIL[/red] {finding.code}: {finding.message}")
            sys.exit(1)

        out = write_manifests(result.manifests, export)

        table = Table(title="Generated Manifests")
        table.add_column("Kind", style="cyan")
        table.add_column("Count", justify="right")
        for kind, count in result.count_by_kind().items():
            table.add_row(kind, str(count))
        table.add_row("Total", str(len(result.manifests)), style="bold")
        console.print(table)
        console.print(f"[green]✓[/green] Manifests written to {out}")

    except Exception as e:
        console.print(f"[red]Error during generation: {e}[/red]")
        sys.exit(1)
