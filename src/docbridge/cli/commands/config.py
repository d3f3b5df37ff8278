"""
Configuration management commands.

This module provides commands for validating and inspecting the
docbridge configuration.
"""

import click
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from docbridge.cli.context import MigrationContext
from docbridge.cli.decorators import handle_errors, pass_context, requires_config
from docbridge.cli.utils import echo_error, echo_info, echo_success, echo_warning, print_settings
from docbridge.config import MigrationConfig
from docbridge.migration.database import validate_database_connection
from docbridge.utils.logging import get_logger

logger = get_logger(__name__)


@click.group(name="config")
def config() -> None:
    """Configuration management commands."""
    pass


@config.command(name="validate")
@click.option(
    "--check-connectivity",
    is_flag=True,
    help="Test connectivity to the source catalog and the document store",
)
@pass_context
@requires_config
@handle_errors
def validate(ctx: MigrationContext, check_connectivity: bool) -> None:
    """Validate the configuration file.

    Examples:

        docbridge --config config.yaml config validate

        docbridge --config config.yaml config validate --check-connectivity
    """
    echo_info(f"Validating configuration: {ctx.config_path}")
    cfg = ctx.config

    click.echo()
    _display_config_summary(cfg)

    warnings = _check_settings(cfg)
    for warning in warnings:
        echo_warning(warning)

    if check_connectivity:
        click.echo()
        echo_info("Checking connectivity...")
        failures = 0

        if validate_database_connection(ctx.engine):
            echo_success("Source catalog reachable")
        else:
            echo_error("Source catalog unreachable")
            failures += 1

        if ctx.store_client.ping():
            echo_success("Document store reachable")
        else:
            echo_error("Document store unreachable")
            failures += 1

        if failures:
            raise click.exceptions.Exit(1)

    click.echo()
    echo_success("Configuration is valid")


@config.command(name="show")
@pass_context
@requires_config
@handle_errors
def show(ctx: MigrationContext) -> None:
    """Show the effective configuration (token redacted)."""
    _display_config_summary(ctx.config)


def _display_config_summary(cfg: MigrationConfig) -> None:
    rows = [
        ["Source catalog", _redact_url(cfg.source.database_url)],
        ["Document store", cfg.target.url],
        ["Target site", cfg.target.site_url],
        ["Buffer size", cfg.importer.buffer_size],
        ["Block size", cfg.importer.block_size],
        ["Max to process", cfg.importer.max_to_process],
        ["Threads", cfg.importer.thread_count],
        ["Duplicate name code", cfg.importer.duplicate_name_error_code],
        ["Max rename attempts", cfg.importer.max_rename_attempts],
        ["Shared name registry", cfg.importer.shared_name_registry],
        ["Store retry attempts", cfg.retry.attempts],
        ["Log level", cfg.logging.level],
    ]
    print_settings("Configuration", rows)


def _check_settings(cfg: MigrationConfig) -> list[str]:
    warnings = []
    if not cfg.importer.shared_name_registry and cfg.importer.thread_count > 1:
        warnings.append(
            "File names are only unique per range; concurrent ranges may "
            "produce the same disambiguated name (set importer.shared_name_registry)"
        )
    if cfg.importer.buffer_size % cfg.importer.block_size:
        warnings.append("buffer_size is not a multiple of block_size; each range ends short")
    if not cfg.target.verify_ssl:
        warnings.append("SSL verification is disabled for the document store")
    return warnings


def _redact_url(url: str) -> str:
    """Hide the password part of a database URL."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<unparseable database URL>"
