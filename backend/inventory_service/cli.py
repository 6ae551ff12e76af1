"""Command-line entry point: run the inventory service under uvicorn."""

from typing import Optional

import click
import uvicorn
from pydantic import ValidationError as SettingsError

from inventory_service import __version__
from inventory_service.config import Settings
from inventory_service.main import create_app


# -h is taken by --host, so help is only available as --help
@click.command(context_settings={"help_option_names": ["--help"]})
@click.version_option(version=__version__, prog_name="inventory-service")
@click.option("--host", "-h", required=True, help="Server host address")
@click.option(
    "--port",
    "-p",
    required=True,
    type=click.IntRange(1, 65535),
    help="Server port",
)
@click.option(
    "--cache",
    "-c",
    required=True,
    type=click.Path(file_okay=False, dir_okay=True),
    help="Cache directory (inventory.json and photos/)",
)
@click.option(
    "--backend",
    type=click.Choice(["file", "sql"]),
    default=None,
    help="Record storage backend (default: STORAGE_BACKEND or 'file')",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Logging verbosity (default: LOG_LEVEL or INFO)",
)
def main(
    host: str,
    port: int,
    cache: str,
    backend: Optional[str],
    log_level: Optional[str],
) -> None:
    """Inventory Service - HTTP API for inventory items and their photos.

    Database settings for the sql backend are read from the environment
    (DATABASE_URL, or DB_HOST / DB_PORT / DB_USER / DB_PASSWORD / DB_NAME).
    """
    overrides = {"backend_host": host, "backend_port": port, "cache_dir": cache}
    if backend:
        overrides["storage_backend"] = backend
    if log_level:
        overrides["log_level"] = log_level

    try:
        settings = Settings(**overrides)
        settings.validate_backend()
    except (SettingsError, ValueError) as e:
        raise click.ClickException(str(e))

    click.echo(f"Server running at http://{host}:{port}")
    uvicorn.run(
        create_app(settings),
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
    )
