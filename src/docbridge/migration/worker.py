"""Range worker: imports one contiguous slice of the pending backlog."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from docbridge.client.exceptions import DocBridgeError, RangeCrashedError, RepositoryError
from docbridge.migration.blocks import create_blocks
from docbridge.migration.commit import CommitManager
from docbridge.migration.control import EngineState
from docbridge.migration.documents import PendingItem, RangeDescriptor
from docbridge.migration.names import NameRegistry
from docbridge.migration.repository import ContentRepository, RepositoryFactory
from docbridge.migration.translator import DocumentTranslator
from docbridge.utils.logging import get_logger, log_error

logger = get_logger(__name__)


@dataclass
class RangeResult:
    """Outcome of one range."""

    range: RangeDescriptor
    items_fetched: int = 0
    items_processed: int = 0
    blocks_committed: int = 0
    blocks_failed: int = 0
    commit_attempts: int = 0
    renames: int = 0
    aborted: bool = False
    error: str | None = None
    failed_item_ids: list[str] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return not self.aborted and self.error is None


class RangeWorker:
    """Fetches, translates and commits one range block by block.

    A failed block stops the range and raises the run-wide abort flag. Blocks
    committed before the failure stay committed.
    """

    def __init__(
        self,
        repository_factory: RepositoryFactory,
        translator: DocumentTranslator,
        commit_manager: CommitManager,
        engine_state: EngineState,
        target_site: str,
        block_size: int,
        registry_factory: Callable[[], NameRegistry] = NameRegistry,
        on_block_committed: Callable[[RangeDescriptor, int], None] | None = None,
    ):
        self.repository_factory = repository_factory
        self.translator = translator
        self.commit_manager = commit_manager
        self.engine_state = engine_state
        self.target_site = target_site
        self.block_size = block_size
        self.registry_factory = registry_factory
        self.on_block_committed = on_block_committed

    def run(self, descriptor: RangeDescriptor) -> RangeResult:
        """Import one range, releasing the worker permit when done.

        Raises:
            RangeCrashedError: If the range stopped on an unexpected error. The
                abort flag is raised before the permit is released.
        """
        result = RangeResult(range=descriptor)
        try:
            return self._run(descriptor, result)
        except Exception as e:
            self.engine_state.abort()
            result.error = f"{type(e).__name__}: {e}"
            log_error(
                logger,
                e,
                context="range_crashed",
                range_offset=descriptor.offset,
                blocks_committed=result.blocks_committed,
            )
            raise RangeCrashedError(f"range {descriptor} crashed: {e}", result=result) from e
        finally:
            self.engine_state.release_permit()

    def _run(self, descriptor: RangeDescriptor, result: RangeResult) -> RangeResult:
        registry = self.registry_factory()
        log = logger.bind(range_offset=descriptor.offset, range_size=descriptor.size)
        log.info("range_started")

        try:
            with self.repository_factory.create() as repository:
                items = repository.pending_items(descriptor.offset, descriptor.size)
                result.items_fetched = len(items)

                for block in create_blocks(items, self.block_size):
                    if self.engine_state.aborted:
                        result.aborted = True
                        break

                    if not self._process_block(block, registry, repository, result, log):
                        self.engine_state.abort()
                        result.aborted = True
                        break

        except RepositoryError as e:
            # Catalog failures end this range only
            result.error = str(e)
            log_error(log, e, context="range_repository")

        if result.aborted:
            log.warning("range_aborted", blocks_committed=result.blocks_committed)
        else:
            log.info(
                "range_completed",
                blocks_committed=result.blocks_committed,
                items_processed=result.items_processed,
            )
        return result

    def _process_block(
        self,
        block: list[PendingItem],
        registry: NameRegistry,
        repository: ContentRepository,
        result: RangeResult,
        log: Any,
    ) -> bool:
        ids = [str(item.id) for item in block]

        try:
            documents = self.translator.translate_block(block)
            report = self.commit_manager.commit(documents, registry)
        except DocBridgeError as e:
            result.blocks_failed += 1
            result.failed_item_ids.extend(ids)
            result.error = str(e)
            log.error(
                "block_failed",
                item_ids=",".join(ids),
                error_type=type(e).__name__,
                error=str(e),
            )
            return False

        result.commit_attempts += report.attempts
        result.renames += report.renames

        try:
            repository.mark_processed(block, self.target_site)
        except RepositoryError:
            # A committed block must not outlive a failed mark
            self.commit_manager.rollback(documents)
            result.blocks_failed += 1
            result.failed_item_ids.extend(ids)
            raise

        result.blocks_committed += 1
        result.items_processed += len(block)
        log.info("block_imported", items=len(block), attempts=report.attempts)

        if self.on_block_committed is not None:
            self.on_block_committed(result.range, len(block))
        return True
