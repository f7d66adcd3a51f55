"""Hosted record store client.

Async HTTP client for a PostgREST endpoint serving the ``tea_records`` table,
with retry logic for timeouts, network errors and server errors. Rows are
scoped to their owner through the ``user_id`` column.
"""

import asyncio
import logging
import os
from collections.abc import Mapping
from typing import Any

import httpx

from tea_records import __version__
from tea_records.models import OWNER_COLUMN, ProductionRecord
from tea_records.store.base import StoreError

logger = logging.getLogger(__name__)


def load_api_key(env_name: str) -> str:
    """Load the store API key from an environment variable.

    Raises:
        StoreError: If the variable is unset or empty.
    """
    api_key = os.environ.get(env_name, "").strip()
    if not api_key:
        msg = f"Store API key not found. Set the {env_name} environment variable"
        raise StoreError(msg)
    return api_key


class RestRecordStore:
    """Async record store over a PostgREST HTTP API.

    Features:
    - API key authentication (apikey and Bearer headers)
    - Retry with exponential backoff on timeouts, network errors and 5xx
    - Immediate StoreError on 4xx responses
    """

    REST_PREFIX = "/rest/v1"
    DEFAULT_TIMEOUT = 30.0
    DEFAULT_MAX_RETRIES = 3
    INITIAL_BACKOFF = 1.0
    BACKOFF_MULTIPLIER = 2.0

    def __init__(
        self,
        url: str,
        api_key: str,
        table: str = "tea_records",
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        """Initialize REST record store.

        Args:
            url: Base URL of the hosted project, e.g. "https://xyz.example.co".
            api_key: Project API key.
            table: Table holding production records.
            timeout: Request timeout in seconds.
            max_retries: Maximum number of retries for failed requests.
        """
        self._base_url = url.rstrip("/")
        self._api_key = api_key
        self._table = table
        self._timeout = timeout
        self._max_retries = max_retries
        self._client: httpx.AsyncClient | None = None

    @property
    def table_path(self) -> str:
        """API path of the records table."""
        return f"{self.REST_PREFIX}/{self._table}"

    def _get_headers(self) -> dict[str, str]:
        """Get headers for API requests."""
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": f"tea-records/{__version__}",
        }

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure async client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=self._get_headers(),
            )
        return self._client

    async def _retry_request(
        self,
        method: str,
        path: str,
        retry_count: int,
        **kwargs: Any,
    ) -> httpx.Response:
        """Retry a request with exponential backoff.

        Raises:
            StoreError: If max retries exceeded.
        """
        if retry_count >= self._max_retries:
            msg = f"Max retries ({self._max_retries}) exceeded for {method} {path}"
            raise StoreError(msg)

        wait_seconds = self.INITIAL_BACKOFF * (self.BACKOFF_MULTIPLIER**retry_count)
        logger.debug(
            "Retry %d/%d for %s %s after %.1fs",
            retry_count + 1,
            self._max_retries,
            method,
            path,
            wait_seconds,
        )
        await asyncio.sleep(wait_seconds)

        return await self._do_request(method, path, retry_count + 1, **kwargs)

    async def _do_request(
        self,
        method: str,
        path: str,
        retry_count: int = 0,
        **kwargs: Any,
    ) -> httpx.Response:
        """Execute HTTP request with retry logic.

        Args:
            method: HTTP method.
            path: API path (without base URL).
            retry_count: Current retry attempt number.
            **kwargs: Additional arguments passed to httpx.

        Returns:
            Successful HTTP response.

        Raises:
            StoreError: On client errors, or failure after retries.
        """
        client = await self._ensure_client()

        logger.debug("%s %s (attempt %d)", method, path, retry_count + 1)

        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("Timeout for %s %s", method, path)
            if retry_count < self._max_retries:
                return await self._retry_request(method, path, retry_count, **kwargs)
            msg = f"Request timeout: {e}"
            raise StoreError(msg) from e
        except httpx.NetworkError as e:
            logger.warning("Network error for %s %s: %s", method, path, e)
            if retry_count < self._max_retries:
                return await self._retry_request(method, path, retry_count, **kwargs)
            msg = f"Network error: {e}"
            raise StoreError(msg) from e
        except httpx.HTTPError as e:
            logger.warning("HTTP error for %s %s: %s", method, path, e)
            msg = f"HTTP error for {method} {path}: {e}"
            raise StoreError(msg) from e

        if 500 <= response.status_code < 600:
            logger.warning("Server error %d for %s %s", response.status_code, method, path)
            return await self._retry_request(method, path, retry_count, **kwargs)

        if 400 <= response.status_code < 500:
            logger.error(
                "Client error %d for %s %s: %s",
                response.status_code,
                method,
                path,
                response.text,
            )
            msg = f"Store rejected {method} {path} ({response.status_code}): {response.text}"
            raise StoreError(msg)

        return response

    def _decode_rows(self, response: httpx.Response) -> list[Mapping[str, Any]]:
        """Decode a response body as a list of row objects.

        Raises:
            StoreError: If the body is not JSON or not a list of objects.
        """
        try:
            data = response.json()
        except ValueError as e:
            msg = f"Invalid JSON from {self.table_path}: {e}"
            raise StoreError(msg) from e

        if not isinstance(data, list) or not all(isinstance(row, Mapping) for row in data):
            msg = f"Unexpected response from {self.table_path}: expected a list of rows"
            raise StoreError(msg)
        return data

    async def insert(self, record: ProductionRecord) -> ProductionRecord:
        """Insert a record and return the stored row.

        Raises:
            StoreError: If the record has no owner or the insert fails.
        """
        if not record.owner_id:
            msg = "Cannot insert a record without owner_id"
            raise StoreError(msg)

        response = await self._do_request(
            "POST",
            self.table_path,
            json=[record.to_mapping()],
            headers={"Prefer": "return=representation"},
        )

        if not response.content:
            return record

        rows = self._decode_rows(response)
        if rows:
            return ProductionRecord.from_mapping(rows[0])
        return record

    async def query_by_owner(self, owner_id: str) -> list[ProductionRecord]:
        """Fetch the owner's records in the order the store returns them.

        Raises:
            StoreError: If the request fails or the response is not a list.
        """
        response = await self._do_request(
            "GET",
            self.table_path,
            params={"select": "*", OWNER_COLUMN: f"eq.{owner_id}"},
        )

        rows = self._decode_rows(response)

        logger.debug("Fetched %d records from %s", len(rows), self.table_path)
        return [ProductionRecord.from_mapping(row) for row in rows]

    async def close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RestRecordStore":
        """Async context manager entry."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
