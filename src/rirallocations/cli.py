"""Command-line interface for rirallocations."""

import json
import logging
import sys

import click

from . import __version__
from .cache import MAX_AGE, FileCacheStore
from .data_fetcher import RIR_SOURCES, DataFetcher
from .errors import RIRAllocationsError
from .parser import FAMILIES
from .service import AllocationService

cache_dir_option = click.option(
    "--cache-dir", type=click.Path(file_okay=False), help="Custom cache directory"
)


def _make_service(cache_dir, show_progress=False):
    return AllocationService(
        fetcher=DataFetcher(show_progress=show_progress),
        cache_store=FileCacheStore(cache_dir),
    )


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
def cli(verbose):
    """IP allocations by country from RIR delegated files."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("registry", type=click.Choice(list(RIR_SOURCES), case_sensitive=False))
@click.argument("family", type=click.Choice(FAMILIES, case_sensitive=False))
@click.argument("country", required=False)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["list", "json"]),
    default="list",
    help="Output format",
)
@cache_dir_option
def query(registry, family, country, output_format, cache_dir):
    """Show the prefixes REGISTRY has allocated, optionally for one COUNTRY."""
    try:
        service = _make_service(cache_dir, show_progress=sys.stderr.isatty())
        result = service.query(registry, family, country)
    except RIRAllocationsError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if output_format == "json":
        click.echo(json.dumps(result, indent=2))
    elif isinstance(result, dict):
        for cc, cidrs in sorted(result.items()):
            for cidr in cidrs:
                click.echo(f"{cc} {cidr}")
    else:
        for cidr in result:
            click.echo(cidr)


@cli.command()
@click.argument(
    "registries", nargs=-1, type=click.Choice(list(RIR_SOURCES), case_sensitive=False)
)
@cache_dir_option
def update(registries, cache_dir):
    """Force a refresh of the cached data for REGISTRIES (default: all)."""
    service = _make_service(cache_dir, show_progress=sys.stderr.isatty())
    failed = False

    for registry in registries or RIR_SOURCES:
        try:
            index = service.refresh(registry)
        except RIRAllocationsError as e:
            click.echo(f"Failed to update {registry.upper()}: {e}", err=True)
            failed = True
            continue

        counts = ", ".join(
            f"{sum(len(cidrs) for cidrs in index[family].values()):,} {family}"
            for family in FAMILIES
        )
        click.echo(f"{registry.upper()}: {counts}")

    if failed:
        sys.exit(1)


@cli.command()
@cache_dir_option
def status(cache_dir):
    """Show status of cached data."""
    store = FileCacheStore(cache_dir)

    click.echo("RIR Allocations Status")
    click.echo("=" * 50)
    click.echo(f"Cache directory: {store.cache_dir}")

    for registry in RIR_SOURCES:
        age = store.age(registry)
        path = store.path_for(registry)
        if age is None:
            click.echo(f"  [MISSING] {registry}: {path}")
            continue

        state = "FRESH" if age <= MAX_AGE else "STALE"
        click.echo(f"  [{state}] {registry}: {path} ({age / 3600:.1f}h old)")


@cli.command()
def registries():
    """List the registries and the feeds they are fetched from."""
    for registry, url in RIR_SOURCES.items():
        click.echo(f"{registry:<10} {url}")


if __name__ == "__main__":
    cli()
