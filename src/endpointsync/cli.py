"""CLI entrypoint for endpointsync."""

import logging
import sys

import click
from rich.logging import RichHandler

from endpointsync.aws.client import EC2Client
from endpointsync.errors import ManifestError
from endpointsync.external import External
from endpointsync.formatter import format_json, format_table
from endpointsync.hooks import VPCEndpointHooks
from endpointsync.manifest import load_manifest
from endpointsync.reconciler import Reconciler


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )


@click.command()
@click.argument("manifests", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--apply/--plan",
    default=False,
    help="Create, modify or delete endpoints instead of only reporting the action.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format.",
)
@click.option("--max-concurrent", type=int, default=5, help="Max concurrent reconciles.")
@click.option("--region", default=None, help="AWS region.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(manifests, apply, output_format, max_concurrent, region, verbose):
    """Reconcile VPC endpoints declared in JSON MANIFESTS."""
    _configure_logging(verbose)

    try:
        resources = [load_manifest(path) for path in manifests]
    except ManifestError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    # One client per run; manifests in other regions need a separate run.
    region = region or next((r.spec.region for r in resources if r.spec.region), None)
    client = EC2Client(region=region)
    external = External(client, VPCEndpointHooks(client))
    reconciler = Reconciler(external, max_concurrent=max_concurrent)
    report = reconciler.reconcile_all(resources, apply=apply)

    formatters = {
        "table": format_table,
        "json": format_json,
    }
    click.echo(formatters[output_format](report))

    if report.failed:
        click.echo(f"Failed to reconcile: {', '.join(sorted(report.failed))}", err=True)
        sys.exit(2)

    out_of_sync = any(not r.in_sync for r in report.results)
    sys.exit(1 if out_of_sync else 0)
