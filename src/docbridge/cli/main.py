"""
Main CLI entry point for docbridge.

This module provides the command-line interface for importing catalog
records into the target document store.
"""

import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from docbridge import __version__
from docbridge.cli.commands import config as config_commands
from docbridge.cli.commands import importer as import_commands
from docbridge.cli.context import MigrationContext
from docbridge.utils.logging import configure_logging, get_logger

# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="docbridge")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
    envvar="DOCBRIDGE_CONFIG",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Set console logging level (file logging stays at DEBUG)",
    envvar="DOCBRIDGE_LOG_LEVEL",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    help="Write JSON logs to this file",
    envvar="DOCBRIDGE_LOG_FILE",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    log_level: str,
    log_file: Path | None,
) -> None:
    """docbridge - Bulk-import catalog records into a document store.

    Examples:

        # Validate configuration
        docbridge --config config.yaml config validate

        # Run the import
        docbridge --config config.yaml import run

        # Show backlog status
        docbridge --config config.yaml status
    """
    configure_logging(level=log_level, log_file=str(log_file) if log_file else None)

    ctx.obj = MigrationContext(
        config_path=config,
        log_level=log_level,
        log_file=log_file,
    )
    ctx.call_on_close(ctx.obj.cleanup)

    logger.debug(
        "cli_initialized",
        config=str(config) if config else None,
        log_level=log_level,
    )


cli.add_command(config_commands.config)
cli.add_command(import_commands.import_group)
cli.add_command(import_commands.status)


def main() -> int:
    """Main entry point for CLI."""
    try:
        cli(standalone_mode=False)
        return 0
    except click.exceptions.Exit as e:
        return e.exit_code
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except Exception as e:
        logger.error("unexpected_error", error=str(e), exc_info=True)
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
