"""Block commits against the target document store.

A block is attempted as one add-documents call. When the store reports that
a file name already exists, the block is rolled back, the named documents
are renamed and the block is attempted again. Any other failure rolls the
block back and is raised to the caller.
"""

import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from docbridge.client.exceptions import CommitError, RenameLimitExceededError
from docbridge.migration.documents import CommitOutcome, Document
from docbridge.migration.names import NameRegistry, bump_named_in_error, enforce_unique_file_names
from docbridge.utils.logging import get_logger

logger = get_logger(__name__)


class DocumentStore(Protocol):
    """Target store operations used by the engine."""

    def add_documents(self, documents: Sequence[Document]) -> CommitOutcome: ...

    def remove_documents(self, ids: Sequence[uuid.UUID]) -> None: ...


class CommitState(str, Enum):
    INIT = "init"
    ATTEMPTING = "attempting"
    RETRYING = "retrying"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class CommitReport:
    """What it took to commit one block."""

    outcome: CommitOutcome
    attempts: int
    renames: int


class CommitManager:
    """Commits document blocks with rename-and-retry on duplicate names."""

    def __init__(
        self,
        store: DocumentStore,
        duplicate_name_error_code: str,
        max_attempts: int = 25,
    ):
        """Initialize commit manager.

        Args:
            store: Target document store
            duplicate_name_error_code: Error code marking a retriable name clash
            max_attempts: Add-documents calls allowed per block
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.duplicate_name_error_code = str(duplicate_name_error_code)
        self.max_attempts = max_attempts

    def commit(self, documents: list[Document], registry: NameRegistry) -> CommitReport:
        """Commit one block, retrying on duplicate file names.

        Args:
            documents: Block of documents; names may be changed in place
            registry: Names claimed in the worker's scope

        Returns:
            CommitReport for the successful commit

        Raises:
            CommitError: If the block failed and was rolled back
        """
        state = CommitState.INIT
        attempts = 0
        renames = 0
        ids = [document.id for document in documents]

        while True:
            state = CommitState.ATTEMPTING
            attempts += 1
            renames += enforce_unique_file_names(documents, registry)

            try:
                outcome = self.store.add_documents(documents)
            except Exception as e:
                self.rollback(documents)
                raise CommitError(
                    f"Document store call failed: {e}",
                    error_code=type(e).__name__,
                    detail=str(e),
                    document_ids=ids,
                ) from e

            if outcome.success:
                state = CommitState.SUCCESS
                logger.debug(
                    "block_committed",
                    state=state.value,
                    documents=len(documents),
                    attempts=attempts,
                    renames=renames,
                )
                return CommitReport(outcome=outcome, attempts=attempts, renames=renames)

            self.rollback(documents)

            if not self.is_duplicate_name(outcome):
                state = CommitState.FAILED
                logger.warning(
                    "block_commit_failed",
                    state=state.value,
                    error_code=outcome.error_code,
                    detail=outcome.detail,
                    attempts=attempts,
                )
                raise CommitError(
                    f"Document store rejected block: {outcome.detail or outcome.error_code}",
                    error_code=outcome.error_code,
                    detail=outcome.detail,
                    document_ids=ids,
                )

            state = CommitState.RETRYING
            bumped = bump_named_in_error(documents, outcome.detail)
            renames += len(bumped)

            if not bumped:
                raise RenameLimitExceededError(
                    "Duplicate name reported for a file name not in the block",
                    error_code=outcome.error_code,
                    detail=outcome.detail,
                    document_ids=ids,
                )
            if attempts >= self.max_attempts:
                raise RenameLimitExceededError(
                    f"Gave up renaming after {attempts} attempts",
                    error_code=outcome.error_code,
                    detail=outcome.detail,
                    document_ids=ids,
                )

            logger.info(
                "block_retrying_after_rename",
                state=state.value,
                attempt=attempts,
                renamed=[document.file_name for document in bumped],
            )

    def is_duplicate_name(self, outcome: CommitOutcome) -> bool:
        return str(outcome.error_code) == self.duplicate_name_error_code

    def rollback(self, documents: Sequence[Document]) -> None:
        """Remove every document of the block from the store."""
        ids = [document.id for document in documents]
        logger.info("block_rollback", documents=len(ids))
        self.store.remove_documents(ids)
