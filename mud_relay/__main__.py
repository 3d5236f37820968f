"""Main entry point for MUD Relay."""

import asyncio
import signal
import sys
from pathlib import Path

import click
import structlog
from dotenv import load_dotenv

from mud_relay import __version__
from mud_relay.app import MudRelay
from mud_relay.config import Settings, load_config
from mud_relay.utils.logging import setup_logging


logger = structlog.get_logger()


def handle_signal(sig: int, relay: MudRelay | None) -> None:
    """Handle shutdown signals."""
    sig_name = signal.Signals(sig).name
    logger.info(f"{sig_name} received, closing connections...")
    if relay:
        asyncio.create_task(relay.shutdown())


async def run(settings: Settings) -> None:
    """Run the relay until a shutdown signal arrives."""
    relay = MudRelay(settings)

    for sig in (signal.SIGTERM, signal.SIGINT):
        signal.signal(sig, lambda s, f: handle_signal(s, relay))

    try:
        await relay.start()
        await relay.wait_for_shutdown()
    finally:
        await relay.shutdown()


@click.command()
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default="config/config.yaml",
    help="Path to configuration file",
)
@click.option(
    "-e",
    "--env-file",
    type=click.Path(path_type=Path),
    default=".env",
    help="Path to environment file",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Override log level from config",
)
@click.option("--dry-run", is_flag=True, help="Validate configuration without starting the relay")
@click.version_option(__version__)
def main(config: Path, env_file: Path, log_level: str | None, dry_run: bool) -> None:
    """MUD Relay - Discord to MUD chat bridge.

    Relays chat between mapped Discord channels and a MUD's JSON line
    relay port, in both directions.
    """
    # Load environment variables
    if env_file.exists():
        load_dotenv(env_file)

    # Load configuration
    try:
        settings = load_config(config)
        if log_level:
            settings.logging.level = log_level
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    # Setup logging
    setup_logging(
        level=settings.logging.level,
        format_type=settings.logging.format,
        log_file=settings.logging.file if not dry_run else None,
        error_file=settings.logging.error_file if not dry_run else None,
        max_size=settings.logging.max_size,
        backup_count=settings.logging.backup_count,
    )

    logger.info(
        "Starting MUD Relay",
        version=__version__,
        config_file=str(config),
        channels=len(settings.channels),
    )

    if dry_run:
        logger.info("Configuration validated successfully")
        click.echo("Configuration is valid!")
        sys.exit(0)

    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    except Exception as e:
        logger.exception("Fatal error", error=str(e))
        sys.exit(1)
    finally:
        logger.info("MUD Relay stopped")


if __name__ == "__main__":
    main()
