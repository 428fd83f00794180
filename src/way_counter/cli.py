"""Command-line interface for way-counter."""

import asyncio
import json
import logging
import sys

import click

from . import schema
from .api.dependencies import build_service
from .config import Settings, get_settings
from .exceptions import WayCounterError
from .reference import load_reference_ways


def _parse_key_spec(value: str | None) -> tuple[str, str] | None:
    """Parse ``NAME:TYPE`` (TYPE is S or N, default S)."""
    if value is None:
        return None
    name, _, type_code = value.partition(":")
    type_code = (type_code or schema.TYPE_STRING).upper()
    if not name or type_code not in (schema.TYPE_STRING, schema.TYPE_NUMBER):
        raise click.BadParameter(f"expected NAME:S or NAME:N, got {value!r}")
    return name, type_code


@click.group()
@click.version_option(package_name="way-counter")
@click.option("--table-name", help="DynamoDB table name (default: WayConfig)")
@click.option(
    "--endpoint-url",
    help="DynamoDB endpoint URL (e.g., http://localhost:8000 for DynamoDB Local)",
)
@click.option("--region", help="AWS region (default: us-east-1)")
@click.option("--log-level", help="Logging level (default: INFO)")
@click.pass_context
def cli(
    ctx: click.Context,
    table_name: str | None,
    endpoint_url: str | None,
    region: str | None,
    log_level: str | None,
) -> None:
    """way-counter service and table management CLI."""
    overrides = {
        "table_name": table_name,
        "aws_endpoint_url": endpoint_url,
        "aws_region": region,
        "log_level": log_level,
    }
    settings = get_settings().model_copy(
        update={k: v for k, v in overrides.items() if v is not None}
    )
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = settings


@cli.command()
@click.option("--host", help="Bind address (default from settings)")
@click.option("--port", type=int, help="Bind port (default: 3000)")
@click.pass_obj
def serve(settings: Settings, host: str | None, port: int | None) -> None:
    """Run the HTTP API."""
    import uvicorn

    from .api import create_app

    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


@cli.command("create-table")
@click.option(
    "--partition-key",
    default=f"{schema.ATTR_WAY_ID}:{schema.TYPE_NUMBER}",
    show_default=True,
    help="Partition key as NAME:S or NAME:N",
)
@click.option("--sort-key", help="Optional sort key as NAME:S or NAME:N")
@click.pass_obj
def create_table(settings: Settings, partition_key: str, sort_key: str | None) -> None:
    """Create the counter table (for DynamoDB Local and tests)."""
    pk = _parse_key_spec(partition_key)
    sk = _parse_key_spec(sort_key)
    assert pk is not None

    async def _create() -> None:
        async with build_service(settings) as service:
            await service.repository.create_table(partition_key=pk, sort_key=sk)

    asyncio.run(_create())
    click.echo(f"Table {settings.table_name} is ready")


@cli.command()
@click.argument("reference_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def seed(settings: Settings, reference_file: str) -> None:
    """Create counters for ways in REFERENCE_FILE that aren't stored yet."""
    ways = load_reference_ways(reference_file)

    async def _seed() -> None:
        async with build_service(settings) as service:
            result = await service.seed_missing(ways)
        click.echo(
            f"Created {result.created}, skipped {result.skipped}, "
            f"failed {len(result.errors)} of {len(ways)} reference ways"
        )
        for error in result.errors:
            click.echo(f"  {error}", err=True)

    try:
        asyncio.run(_seed())
    except WayCounterError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command("list")
@click.pass_obj
def list_counters(settings: Settings) -> None:
    """Print every counter as JSON."""

    async def _list() -> None:
        async with build_service(settings) as service:
            counters = await service.list_counters()
        click.echo(json.dumps([counter.to_dict() for counter in counters], indent=2))

    try:
        asyncio.run(_list())
    except WayCounterError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
