"""
Import execution commands.

This module provides the command that runs the bulk import from the source
catalog into the document store, and a status command for the backlog.
"""

import click

from docbridge.cli.context import MigrationContext
from docbridge.cli.decorators import handle_errors, pass_context, requires_config
from docbridge.cli.utils import (
    echo_error,
    echo_info,
    echo_success,
    echo_warning,
    print_counts,
    print_import_summary,
)
from docbridge.migration.importer import Importer
from docbridge.reporting.progress import ProgressTracker
from docbridge.utils import logging as app_logging
from docbridge.utils.logging import get_logger

logger = get_logger(__name__)


@click.group(name="import")
def import_group() -> None:
    """Import pending catalog records into the document store."""
    pass


@import_group.command(name="run")
@click.option("--buffer-size", type=click.IntRange(min=1), help="Items per range (one worker each)")
@click.option("--block-size", type=click.IntRange(min=1), help="Documents per store commit")
@click.option(
    "--max", "max_to_process", type=click.IntRange(min=0), help="Maximum items to process"
)
@click.option("--threads", type=click.IntRange(min=1), help="Concurrent range workers")
@click.option("--no-progress", is_flag=True, help="Disable the progress bar")
@pass_context
@requires_config
@handle_errors
def run(
    ctx: MigrationContext,
    buffer_size: int | None,
    block_size: int | None,
    max_to_process: int | None,
    threads: int | None,
    no_progress: bool,
) -> None:
    """Run the import.

    Press Ctrl+C once to stop gracefully: running ranges finish their
    current block and no new ranges are started.

    Examples:

        docbridge --config config.yaml import run

        docbridge --config config.yaml import run --max 500 --threads 2
    """
    cfg = ctx.config
    log_file = str(ctx.log_file) if ctx.log_file else cfg.logging.file
    app_logging.configure_logging(
        level=ctx.log_level,
        log_format=cfg.logging.format,
        log_file=log_file,
        file_level=cfg.logging.file_level,
    )

    import_config = cfg.importer
    if block_size is not None:
        import_config = import_config.model_copy(update={"block_size": block_size})

    repository_factory = ctx.repository_factory()
    with repository_factory.create() as repository:
        pending = repository.total_pending_count()

    cap = import_config.max_to_process if max_to_process is None else max_to_process
    planned = min(pending, cap)
    echo_info(f"Pending: {pending:,}  Planned: {planned:,}")

    if planned == 0:
        echo_success("Nothing to import")
        return

    show_progress = not (no_progress or cfg.logging.disable_progress)
    with ProgressTracker(total_items=planned, enable=show_progress) as tracker:
        importer = Importer(
            repository_factory=repository_factory,
            store=ctx.store_client,
            config=import_config,
            target_site=cfg.target.site_url,
            on_progress=tracker.range_dispatched,
            on_block_committed=tracker.block_committed,
        )
        importer.start(buffer_size, max_to_process, threads)

        try:
            summary = importer.wait()
        except KeyboardInterrupt:
            echo_warning("Stopping: waiting for running blocks to finish...")
            importer.stop()
            summary = importer.wait()

    click.echo()
    print_import_summary(summary)

    if summary.failed_item_ids:
        echo_warning(f"Items in failed blocks: {', '.join(summary.failed_item_ids)}")
    for error in summary.errors:
        echo_error(error)

    if summary.succeeded:
        echo_success(f"Imported {summary.items_processed:,} documents")
    else:
        echo_error("Import aborted" if summary.aborted else "Import finished with errors")
        raise click.exceptions.Exit(1)


@click.command(name="status")
@pass_context
@requires_config
@handle_errors
def status(ctx: MigrationContext) -> None:
    """Show pending and processed item counts."""
    with ctx.repository_factory().create() as repository:
        counts = {
            "Pending": repository.total_pending_count(),
            "Processed": repository.processed_count(),
        }
    print_counts("Catalog Status", counts)
