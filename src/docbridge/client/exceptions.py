"""Custom exceptions for docbridge.

This module defines exception classes for handling the error conditions
that can occur while talking to the document store, reading the source
catalog, and committing document blocks.
"""

from typing import Any


class DocBridgeError(Exception):
    """Base exception for all docbridge errors."""

    pass


class APIError(DocBridgeError):
    """Base class for document store API errors."""

    def __init__(self, message: str, status_code: int | None = None, response: dict | None = None):
        """Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code
            response: API response body
        """
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with status code and response."""
        msg = self.message
        if self.status_code:
            msg = f"[{self.status_code}] {msg}"
        if self.response:
            msg = f"{msg}: {self.response}"
        return msg


class AuthenticationError(APIError):
    """Raised when authentication fails (401 Unauthorized)."""

    pass


class AuthorizationError(APIError):
    """Raised when authorization fails (403 Forbidden)."""

    pass


class NotFoundError(APIError):
    """Raised when a resource is not found (404 Not Found)."""

    pass


class ConflictError(APIError):
    """Raised when the store rejects a request with 409 Conflict."""

    pass


class RateLimitError(APIError):
    """Raised when API rate limit is exceeded (429 Too Many Requests)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: dict | None = None,
        retry_after: int | None = None,
    ):
        super().__init__(message, status_code, response)
        self.retry_after = retry_after


class ServerError(APIError):
    """Raised when server returns 5xx error."""

    pass


class NetworkError(DocBridgeError):
    """Raised when network-related errors occur (timeouts, connection failures)."""

    pass


class ConfigurationError(DocBridgeError):
    """Raised when configuration is invalid or missing."""

    pass


class StateError(DocBridgeError):
    """Raised when reading or updating the source catalog fails."""

    pass


class RepositoryError(StateError):
    """Raised when a repository query or update fails.

    Fatal for the range being processed, but does not abort other ranges.
    """

    pass


class MigrationError(DocBridgeError):
    """Raised when migration operations fail."""

    pass


class TranslationError(MigrationError):
    """Raised when a pending item cannot be turned into a document.

    Attributes:
        item_id: Identifier of the offending pending item
        file_path: Content path that could not be read
    """

    def __init__(self, message: str, item_id: Any = None, file_path: str | None = None):
        super().__init__(message)
        self.item_id = item_id
        self.file_path = file_path


class CommitError(MigrationError):
    """Raised when a block could not be committed to the document store.

    Attributes:
        error_code: Store error classification of the last attempt
        detail: Store error detail of the last attempt
        document_ids: Identifiers of the documents in the failed block
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        detail: str | None = None,
        document_ids: list | None = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.detail = detail
        self.document_ids = document_ids or []


class DuplicateNameError(CommitError):
    """Raised when a duplicate file name escapes the rename-and-retry loop."""

    pass


class RenameLimitExceededError(DuplicateNameError):
    """Raised when duplicate-name retries stop making progress."""

    pass


class RangeCrashedError(MigrationError):
    """Raised when a range worker stops on an unexpected error.

    Attributes:
        result: Counters the range had reached before the crash
    """

    def __init__(self, message: str, result: Any = None):
        super().__init__(message)
        self.result = result
