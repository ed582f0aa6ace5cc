"""
Main entry point for the console uploader.

This module provides the command-line interface for uploading source
archives and managing the uploader configuration.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from .application.startup import UploaderStartup
from .core.domain.uploads import ApiInfoDto
from .core.exceptions import UploadError
from .infrastructure.config.loader import ConfigLoader
from .infrastructure.config.models import ApplicationConfig
from .infrastructure.logging.setup import setup_logging

cli = typer.Typer(
    name="console-uploader",
    help="Upload source code archives to a console analysis server in chunks"
)

logger = logging.getLogger(__name__)


@cli.command()
def upload(
    app_guid: str = typer.Argument(..., help="Target application GUID"),
    archive: Path = typer.Argument(..., help="Source archive to upload"),
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file path"
    ),
    chunk_size: Optional[int] = typer.Option(
        None, "--chunk-size", help="Chunk size in bytes (capped at 50 MiB)"
    ),
    no_extract: bool = typer.Option(
        False, "--no-extract", help="Never extract the archive on the server"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level"
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Enable debug mode"
    )
) -> None:
    """Upload a source archive and extract it on the server."""

    config = _load_config(config_file)

    if chunk_size is not None:
        config.upload.chunk_size = chunk_size
    if no_extract:
        config.upload.extract = False
    if log_level:
        config.logging.level = log_level.upper()
    if debug:
        config.debug = True
        config.logging.level = "DEBUG"

    setup_logging(config.logging)
    logger.info(f"Uploading {archive} to application {app_guid}")

    try:
        result = asyncio.run(run_upload(config, app_guid, archive))
    except UploadError as e:
        logger.error(f"Upload failed during {e.phase.value}: {e}")
        typer.echo(f"Upload failed: {e}", err=True)
        sys.exit(1)
    except ValueError as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(1)

    if not result:
        typer.echo("Upload did not complete: the server did not report the archive as ready", err=True)
        sys.exit(1)

    typer.echo(f"Archive {archive.name} uploaded successfully")


@cli.command()
def info(
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file path"
    )
) -> None:
    """Show the server API information."""

    config = _load_config(config_file)
    setup_logging(config.logging)

    try:
        api_info = asyncio.run(fetch_server_info(config))
    except (UploadError, ValueError) as e:
        typer.echo(f"Unable to retrieve server information: {e}", err=True)
        sys.exit(1)

    typer.echo(f"API version: {api_info.api_version or 'unknown'}")
    typer.echo(f"Package path check enabled: {api_info.enable_package_path_check}")


@cli.command()
def init_config(
    output: str = typer.Option(
        "config.yaml", "--output", "-o", help="Output configuration file"
    ),
    format: str = typer.Option(
        "yaml", "--format", "-f", help="Configuration format (yaml/json)"
    )
) -> None:
    """Generate a default configuration file."""

    config = ApplicationConfig()
    config_loader = ConfigLoader()

    try:
        config_loader.save_config(config, output, format)
        typer.echo(f"Default configuration saved to {output}")
    except (OSError, ValueError) as e:
        typer.echo(f"Error saving configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
def validate_config(
    config_file: str = typer.Argument(..., help="Configuration file to validate")
) -> None:
    """Validate a configuration file."""

    config_loader = ConfigLoader()

    try:
        config = config_loader.load_config(config_file)
        config.server.check()
    except (FileNotFoundError, ValueError, TypeError) as e:
        typer.echo(f"Configuration validation failed: {e}", err=True)
        sys.exit(1)

    typer.echo(f"Configuration file {config_file} is valid")
    typer.echo(f"Server: {config.server.url}")
    typer.echo(f"Chunk size: {config.upload.to_settings().chunk_size.size} bytes")


async def run_upload(config: ApplicationConfig, app_guid: str, archive: Path) -> bool:
    """
    Run one upload with the given configuration.

    Args:
        config: Application configuration
        app_guid: Target application GUID
        archive: Archive to upload

    Returns:
        Upload (and extraction) outcome
    """
    async with UploaderStartup(config) as uploader:
        return await uploader.upload(app_guid, archive)


async def fetch_server_info(config: ApplicationConfig) -> ApiInfoDto:
    async with UploaderStartup(config) as uploader:
        return await uploader.server_info()


def _load_config(config_file: Optional[str]) -> ApplicationConfig:
    try:
        return ConfigLoader().load_config(config_file)
    except (FileNotFoundError, ValueError, TypeError) as e:
        typer.echo(f"Unable to load configuration: {e}", err=True)
        sys.exit(1)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
