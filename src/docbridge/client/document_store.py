"""Client for the target document store.

The store accepts a block of documents in one batch call and reports
failures with an error code and a message. The message names the file
names involved when the code is a duplicate-name failure.
"""

import uuid
from collections.abc import Sequence

from docbridge.client.base_client import BaseAPIClient
from docbridge.client.exceptions import APIError, NetworkError, NotFoundError
from docbridge.config import RetryConfig, TargetConfig
from docbridge.migration.documents import CommitOutcome, Document
from docbridge.utils.logging import get_logger
from docbridge.utils.retry import call_with_retry

logger = get_logger(__name__)

TIMEOUT_ERROR_CODE = "timeout"


class DocumentStoreClient(BaseAPIClient):
    """Document store API client used by the commit manager."""

    def __init__(
        self,
        config: TargetConfig,
        retry_config: RetryConfig | None = None,
        **kwargs,
    ):
        """Initialize document store client.

        Args:
            config: Target store configuration
            retry_config: Retry policy for store calls
            **kwargs: Passed to BaseAPIClient (e.g. transport)
        """
        super().__init__(
            base_url=config.url,
            token=config.token,
            verify_ssl=config.verify_ssl,
            timeout=config.timeout,
            **kwargs,
        )
        self.site_url = config.site_url
        self.retry_config = retry_config or RetryConfig()

    def add_documents(self, documents: Sequence[Document]) -> CommitOutcome:
        """Add a block of documents in one batch call.

        Store-reported failures are returned as a failed outcome, never
        raised. Timeouts and network errors that outlast the retry policy
        are reported with the ``timeout`` error code.
        """
        payload = {
            "site": self.site_url,
            "documents": [document.to_payload() for document in documents],
        }

        try:
            self._call("documents/batch", payload)
        except NetworkError as e:
            return CommitOutcome.failed(TIMEOUT_ERROR_CODE, str(e))
        except APIError as e:
            response = e.response or {}
            error_code = response.get("error_code") or f"http_{e.status_code}"
            detail = str(response.get("message") or response.get("detail") or e.message)
            logger.info(
                "add_documents_rejected",
                documents=len(documents),
                error_code=error_code,
                detail=detail,
            )
            return CommitOutcome.failed(str(error_code), detail)

        logger.debug("add_documents_succeeded", documents=len(documents))
        return CommitOutcome.ok()

    def remove_documents(self, ids: Sequence[uuid.UUID]) -> None:
        """Remove documents by id; ids the store does not hold are ignored."""
        if not ids:
            return

        try:
            self._call("documents/delete", {"site": self.site_url, "ids": [str(i) for i in ids]})
        except NotFoundError:
            logger.debug("remove_documents_nothing_to_remove", documents=len(ids))
            return

        logger.debug("remove_documents_succeeded", documents=len(ids))

    def ping(self) -> bool:
        """Check that the store is reachable with the configured token."""
        try:
            self.get("health")
        except (APIError, NetworkError) as e:
            logger.warning("document_store_unreachable", error=str(e))
            return False
        return True

    def _call(self, endpoint: str, payload: dict) -> dict:
        return call_with_retry(
            self.post,
            endpoint,
            payload,
            max_attempts=self.retry_config.attempts,
            min_wait=self.retry_config.backoff_min,
            max_wait=self.retry_config.backoff_max,
        )
