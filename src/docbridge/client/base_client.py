"""Base HTTP client for docbridge.

This module provides a blocking HTTP client with connection pooling,
request logging and mapping of error responses to exceptions. Range
workers run on plain threads, so every call blocks its calling thread.
"""

import time
from typing import Any
from urllib.parse import urljoin

import httpx

from docbridge.client.exceptions import (
    APIError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError,
)
from docbridge.utils.logging import get_logger

logger = get_logger(__name__)


class BaseAPIClient:
    """Base HTTP client shared by all worker threads.

    httpx.Client is thread-safe, so one instance and its connection pool
    serve every range worker.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        verify_ssl: bool = True,
        timeout: int = 120,
        max_connections: int = 50,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize base API client.

        Args:
            base_url: Base URL for API requests
            token: Authentication token
            verify_ssl: Whether to verify SSL certificates
            timeout: Request timeout in seconds
            max_connections: Maximum number of connections in the pool
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.token = token

        self.client = httpx.Client(
            headers=self._build_headers(),
            timeout=httpx.Timeout(timeout, connect=10.0),
            limits=httpx.Limits(max_connections=max_connections),
            verify=verify_ssl,
            follow_redirects=True,
            transport=transport,
        )

        logger.info("client_initialized", base_url=self.base_url, timeout=timeout)

    def __enter__(self) -> "BaseAPIClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def _build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _build_url(self, endpoint: str) -> str:
        endpoint = endpoint.lstrip("/")
        return urljoin(f"{self.base_url}/", endpoint)

    def _handle_error_response(self, response: httpx.Response) -> None:
        """Raise the exception matching an error response.

        Raises:
            AuthenticationError: For 401 responses
            AuthorizationError: For 403 responses
            NotFoundError: For 404 responses
            ConflictError: For 409 responses
            RateLimitError: For 429 responses
            ServerError: For 5xx responses
            APIError: For other error responses
        """
        status_code = response.status_code

        try:
            error_data = response.json()
        except ValueError:
            error_data = {"detail": response.text}

        if not isinstance(error_data, dict):
            error_data = {"detail": str(error_data)}

        error_message = error_data.get("message", error_data.get("detail", "Unknown error"))

        if status_code == 401:
            raise AuthenticationError("Authentication failed", status_code, error_data)
        elif status_code == 403:
            raise AuthorizationError("Authorization failed", status_code, error_data)
        elif status_code == 404:
            raise NotFoundError("Resource not found", status_code, error_data)
        elif status_code == 409:
            raise ConflictError(str(error_message), status_code, error_data)
        elif status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                "Rate limit exceeded",
                status_code,
                error_data,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        elif 500 <= status_code < 600:
            raise ServerError(f"Server error: {error_message}", status_code, error_data)
        else:
            raise APIError(f"API error: {error_message}", status_code, error_data)

    def request(
        self,
        method: str,
        endpoint: str,
        json_data: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            NetworkError: On connection failures and timeouts
            APIError: On error responses (see _handle_error_response)
        """
        url = self._build_url(endpoint)
        started = time.monotonic()

        try:
            response = self.client.request(method, url, json=json_data, params=params)
        except httpx.TimeoutException as e:
            logger.warning("api_request_timeout", method=method, url=url)
            raise NetworkError(f"Request timed out: {method} {url}") from e
        except httpx.TransportError as e:
            logger.warning("api_request_network_error", method=method, url=url, error=str(e))
            raise NetworkError(f"Network error: {method} {url}: {e}") from e

        duration_ms = round((time.monotonic() - started) * 1000, 2)
        if response.is_success:
            logger.debug(
                "api_request_success",
                method=method,
                url=url,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
        else:
            logger.warning(
                "api_request_error",
                method=method,
                url=url,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
            self._handle_error_response(response)

        if not response.content:
            return {}
        return response.json()

    def post(self, endpoint: str, json_data: Any = None) -> Any:
        return self.request("POST", endpoint, json_data=json_data)

    def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("GET", endpoint, params=params)
