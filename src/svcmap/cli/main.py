"""svcmap CLI -- build service topologies from metric snapshots."""
# mypy: disable-error-code="misc,untyped-decorator"

from __future__ import annotations

import sys

import click

from svcmap.cli.output import print_json, print_topology
from svcmap.config import settings
from svcmap.exceptions import SnapshotError
from svcmap.logconfig import configure_logging
from svcmap.topology.snapshot import build_from_snapshot, load_snapshot


@click.group()
@click.option(
    "--log-level",
    envvar="SVCMAP_LOG_LEVEL",
    default=settings.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Minimum level of emitted log events.",
)
@click.version_option(version=settings.app_version, prog_name=settings.app_name)
def cli(log_level: str) -> None:
    """svcmap -- service dependency topology for monitoring dashboards."""
    configure_logging(log_level, json_output=settings.log_json)


@cli.command()
@click.argument("snapshot", type=click.Path(dir_okay=False))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format.",
)
def build(snapshot: str, output_format: str) -> None:
    """Build the topology of a metric SNAPSHOT file."""
    try:
        loaded = load_snapshot(snapshot)
    except SnapshotError as e:
        click.echo(f"Error: {e.detail}", err=True)
        sys.exit(1)

    topology = build_from_snapshot(loaded)
    if output_format == "json":
        print_json(topology.model_dump(mode="json"))
    else:
        print_topology(topology)


@cli.command()
def status() -> None:
    """Show svcmap configuration."""
    click.echo(f"{settings.app_name} v{settings.app_version}")
    click.echo(f"Environment: {settings.environment}")
    click.echo(f"User node id: {settings.none_application_id}")
    click.echo(f"Invalid application id: {settings.invalid_application_id}")
    click.echo(f"Unknown label: {settings.unknown_label}")


if __name__ == "__main__":
    cli()
