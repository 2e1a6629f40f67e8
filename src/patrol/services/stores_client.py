"""HTTP client for loading the store dataset from the API."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import httpx

from ..config import settings
from ..models.domain import StoreRecord
from .stores import flatten_store_data

logger = logging.getLogger(__name__)


class DataLoadError(Exception):
    """The store dataset could not be fetched or parsed."""

    def __init__(self, message: str, *, source: str, attempts: int) -> None:
        self.source = source
        self.attempts = attempts
        super().__init__(message)


class StoresClient:
    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.url = url or settings.stores_api_url
        if not self.url:
            raise ValueError("Stores API URL is not configured.")
        self.timeout = timeout if timeout is not None else settings.stores_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.stores_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.stores_backoff_seconds
        self._transport = transport
        self._sleep = sleep

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )

    def fetch(self) -> Any:
        """Fetch the raw nested payload, retrying with exponential backoff."""
        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(self.url)
                    response.raise_for_status()
                    return response.json()
                except (httpx.HTTPError, ValueError) as error:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"Giving up on store data from {self.url} after {attempt} attempts: {error}")
                        raise DataLoadError(
                            f"Unable to load store data from {self.url}: {error}",
                            source=self.url,
                            attempts=attempt,
                        ) from error
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(
                        f"Store data request failed, retrying in {wait_time:.1f}s "
                        f"(attempt {attempt}/{self.max_retries}): {error}"
                    )
                    self._sleep(wait_time)
        finally:
            client.close()

    def fetch_stores(self) -> tuple[StoreRecord, ...]:
        return flatten_store_data(self.fetch())
