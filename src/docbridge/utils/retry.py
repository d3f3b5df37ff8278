"""Retry logic for document store calls using tenacity.

Only transient failures are retried: timeouts, dropped connections, 5xx
responses and rate limiting. A store call that still fails after the last
attempt surfaces to the caller unchanged.
"""

from collections.abc import Callable
from typing import Any, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from docbridge.client.exceptions import NetworkError, RateLimitError, ServerError
from docbridge.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

TRANSIENT_ERRORS: tuple[type[Exception], ...] = (NetworkError, ServerError, RateLimitError)


def _log_retry(retry_state: RetryCallState) -> None:
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.info(
        "retry_attempt",
        function=getattr(retry_state.fn, "__name__", "call"),
        attempt=retry_state.attempt_number,
        error=str(exception) if exception else None,
    )


def call_with_retry(
    func: Callable[..., T],
    *args: Any,
    max_attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 30.0,
    retry_on_exceptions: tuple[type[Exception], ...] = TRANSIENT_ERRORS,
    **kwargs: Any,
) -> T:
    """Call ``func`` with exponential backoff and jitter on transient errors.

    Args:
        func: Callable to invoke
        max_attempts: Maximum number of attempts
        min_wait: Minimum wait time in seconds
        max_wait: Maximum wait time in seconds
        retry_on_exceptions: Exception types that trigger another attempt

    Returns:
        Whatever ``func`` returns

    Raises:
        The last exception once attempts are exhausted
    """
    retrying = Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_random_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(retry_on_exceptions),
        before_sleep=_log_retry,
        reraise=True,
    )
    return retrying(func, *args, **kwargs)
