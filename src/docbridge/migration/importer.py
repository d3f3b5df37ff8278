"""Import scheduler.

The importer splits the pending backlog into ranges and runs one range
worker per range on a bounded thread pool. A permit must be acquired before
each range is dispatched, so at most ``thread_count`` ranges are in flight.
Any failed block raises the run-wide abort flag; running ranges stop at their
next block and no new ranges are dispatched.
"""

import threading
import time
from collections.abc import Callable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from typing import Any

from docbridge.client.exceptions import MigrationError, RangeCrashedError, RepositoryError
from docbridge.config import ImportConfig
from docbridge.migration.commit import CommitManager, DocumentStore
from docbridge.migration.control import EngineState
from docbridge.migration.documents import RangeDescriptor
from docbridge.migration.names import NameRegistry
from docbridge.migration.repository import RepositoryFactory
from docbridge.migration.translator import DocumentTranslator
from docbridge.migration.worker import RangeResult, RangeWorker
from docbridge.utils.logging import get_logger, log_error, log_import_progress

logger = get_logger(__name__)

ProgressCallback = Callable[[int], None]
CompletedCallback = Callable[["ImportSummary"], None]
BlockCallback = Callable[[RangeDescriptor, int], None]


def compute_ranges(total: int, max_to_process: int, buffer_size: int) -> Iterator[RangeDescriptor]:
    """Split ``[0, min(total, max_to_process))`` into buffer-size ranges.

    The last range is truncated at the cap. Empty ranges are never produced.

    Raises:
        ValueError: If buffer_size is not positive
    """
    if buffer_size <= 0:
        raise ValueError(f"buffer_size must be positive, got {buffer_size}")

    limit = max(0, min(total, max_to_process))
    for offset in range(0, limit, buffer_size):
        yield RangeDescriptor(offset=offset, size=min(buffer_size, limit - offset))


@dataclass
class ImportSummary:
    """Statistics for one import run."""

    total_pending: int = 0
    planned_items: int = 0
    ranges_dispatched: int = 0
    ranges_completed: int = 0
    ranges_aborted: int = 0
    ranges_failed: int = 0
    blocks_committed: int = 0
    blocks_failed: int = 0
    items_processed: int = 0
    commit_attempts: int = 0
    renames: int = 0
    aborted: bool = False
    duration_seconds: float = 0.0
    errors: list[str] = field(default_factory=list)
    failed_item_ids: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.aborted and not self.errors

    def add(self, result: RangeResult) -> None:
        self.blocks_committed += result.blocks_committed
        self.blocks_failed += result.blocks_failed
        self.items_processed += result.items_processed
        self.commit_attempts += result.commit_attempts
        self.renames += result.renames
        self.failed_item_ids.extend(result.failed_item_ids)

        if result.aborted:
            self.ranges_aborted += 1
        elif result.error is not None:
            self.ranges_failed += 1
        else:
            self.ranges_completed += 1

        if result.error is not None:
            self.errors.append(f"range {result.range}: {result.error}")

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["errors"] = len(self.errors)
        data["failed_item_ids"] = len(self.failed_item_ids)
        data["duration_seconds"] = round(self.duration_seconds, 2)
        return data


class Importer:
    """Bulk importer from the source catalog into the document store.

    Usage:
        importer = Importer(factory, store, config.importer, config.target.site_url)
        importer.start()
        summary = importer.wait()
    """

    def __init__(
        self,
        repository_factory: RepositoryFactory,
        store: DocumentStore,
        config: ImportConfig,
        target_site: str,
        on_progress: ProgressCallback | None = None,
        on_completed: CompletedCallback | None = None,
        on_block_committed: BlockCallback | None = None,
    ):
        """Initialize importer and load the role table.

        Args:
            repository_factory: Creates one catalog repository per worker
            store: Target document store
            config: Import engine settings
            target_site: Site location recorded on imported items
            on_progress: Called with each range's start offset as it is dispatched
            on_completed: Called once with the summary when the run ends
            on_block_committed: Called from worker threads after each committed block

        Raises:
            RepositoryError: If the role table cannot be loaded
        """
        self.repository_factory = repository_factory
        self.store = store
        self.config = config
        self.target_site = target_site
        self.on_progress = on_progress
        self.on_completed = on_completed
        self.on_block_committed = on_block_committed

        with repository_factory.create() as repository:
            role_table = repository.role_table()

        self.translator = DocumentTranslator(role_table)
        self.commit_manager = CommitManager(
            store,
            duplicate_name_error_code=config.duplicate_name_error_code,
            max_attempts=config.max_rename_attempts,
        )

        self._lock = threading.Lock()
        self._state: EngineState | None = None
        self._future: Future | None = None

        logger.info(
            "importer_initialized",
            roles=len(role_table),
            target_site=target_site,
            block_size=config.block_size,
        )

    @property
    def running(self) -> bool:
        return self._future is not None and not self._future.done()

    def start(
        self,
        buffer_size: int | None = None,
        max_to_process: int | None = None,
        thread_count: int | None = None,
    ) -> "Future[ImportSummary]":
        """Begin importing in the background and return immediately.

        Arguments left as None fall back to the configured values.

        Returns:
            Future resolving to the run's ImportSummary

        Raises:
            ValueError: If a size or thread count is out of range
            MigrationError: If a run is already in progress
        """
        if buffer_size is None:
            buffer_size = self.config.buffer_size
        if max_to_process is None:
            max_to_process = self.config.max_to_process
        if thread_count is None:
            thread_count = self.config.thread_count

        if buffer_size < 1:
            raise ValueError(f"buffer_size must be positive, got {buffer_size}")
        if thread_count < 1:
            raise ValueError(f"thread_count must be positive, got {thread_count}")
        if max_to_process < 0:
            raise ValueError(f"max_to_process must not be negative, got {max_to_process}")

        with self._lock:
            if self.running:
                raise MigrationError("An import run is already in progress")

            state = EngineState(thread_count)
            self._state = state

            scheduler = ThreadPoolExecutor(max_workers=1, thread_name_prefix="docbridge-scheduler")
            self._future = scheduler.submit(
                self._schedule, state, buffer_size, max_to_process, thread_count
            )
            scheduler.shutdown(wait=False)

        logger.info(
            "import_started",
            buffer_size=buffer_size,
            max_to_process=max_to_process,
            thread_count=thread_count,
        )
        return self._future

    def stop(self) -> None:
        """Ask the run to stop; in-flight blocks finish first."""
        if self._state is not None:
            logger.warning("import_stop_requested")
            self._state.abort()

    def wait(self, timeout: float | None = None) -> "ImportSummary":
        """Block until the current run finishes and return its summary."""
        if self._future is None:
            raise MigrationError("No import run has been started")
        return self._future.result(timeout=timeout)

    def run(
        self,
        buffer_size: int | None = None,
        max_to_process: int | None = None,
        thread_count: int | None = None,
    ) -> "ImportSummary":
        """Start a run and wait for it."""
        self.start(buffer_size, max_to_process, thread_count)
        return self.wait()

    def _schedule(
        self,
        state: EngineState,
        buffer_size: int,
        max_to_process: int,
        thread_count: int,
    ) -> ImportSummary:
        summary = ImportSummary()
        started = time.monotonic()
        results: list[Future] = []

        try:
            with self.repository_factory.create() as repository:
                summary.total_pending = repository.total_pending_count()
            summary.planned_items = max(0, min(summary.total_pending, max_to_process))

            logger.info(
                "import_planned",
                total_pending=summary.total_pending,
                planned_items=summary.planned_items,
            )

            worker = RangeWorker(
                repository_factory=self.repository_factory,
                translator=self.translator,
                commit_manager=self.commit_manager,
                engine_state=state,
                target_site=self.target_site,
                block_size=self.config.block_size,
                registry_factory=self._registry_factory(),
                on_block_committed=self.on_block_committed,
            )

            with ThreadPoolExecutor(
                max_workers=thread_count, thread_name_prefix="docbridge-range"
            ) as pool:
                for descriptor in compute_ranges(
                    summary.total_pending, max_to_process, buffer_size
                ):
                    if state.aborted:
                        break

                    state.acquire_permit()
                    if state.aborted:
                        state.release_permit()
                        break

                    try:
                        future = pool.submit(worker.run, descriptor)
                    except RuntimeError:
                        state.release_permit()
                        raise
                    future.add_done_callback(self._on_range_done)
                    results.append(future)
                    summary.ranges_dispatched += 1

                    log_import_progress(
                        logger,
                        range_offset=descriptor.offset,
                        completed=descriptor.end,
                        total=summary.planned_items,
                    )
                    if self.on_progress is not None:
                        self.on_progress(descriptor.offset)

                logger.info("import_finishing", ranges_dispatched=summary.ranges_dispatched)
                state.wait_for_all_permits()

            for future in results:
                error = future.exception()
                if isinstance(error, RangeCrashedError):
                    summary.add(error.result)
                elif error is not None:
                    summary.ranges_failed += 1
                    summary.errors.append(str(error))
                else:
                    summary.add(future.result())

        except RepositoryError as e:
            log_error(logger, e, context="import_planning")
            summary.errors.append(str(e))

        finally:
            summary.aborted = state.aborted
            summary.duration_seconds = time.monotonic() - started
            logger.info("import_finished", **summary.to_dict())
            if self.on_completed is not None:
                self.on_completed(summary)

        return summary

    def _registry_factory(self) -> Callable[[], NameRegistry]:
        if self.config.shared_name_registry:
            shared = NameRegistry()
            return lambda: shared
        return NameRegistry

    @staticmethod
    def _on_range_done(future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.error("range_crashed", error_type=type(error).__name__, error=str(error))
