"""Retrieval of the four JSON source documents.

A location is either an ``http(s)://`` URL, fetched with httpx, or a
local file path. The four sources are independent and are loaded
concurrently; any single failure aborts the whole load.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when a source document cannot be retrieved or decoded."""

    pass


def is_remote(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def _is_transient(exc: BaseException) -> bool:
    """Timeouts, connection failures and 5xx responses are worth another try."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


@dataclass
class SourceDocuments:
    """The four decoded inputs of a fusion run."""

    audio_manifest: Any
    image_manifest: Any
    audio_annotations: Any
    image_annotations: Any


class SourceFetcher:
    """Loads JSON documents from URLs or local files.

    Usage::

        fetcher = SourceFetcher(timeout=30.0)
        documents = await fetcher.load_all(config.sources())

    Args:
        timeout: Per-request timeout in seconds.
        headers: Extra request headers.
        retries: Attempts per remote document, including the first.
        retry_wait: Base of the exponential backoff between attempts, in seconds.
        transport: Optional httpx transport (tests pass a MockTransport).
    """

    def __init__(
        self,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        retries: int = 3,
        retry_wait: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._headers = {"Accept": "application/json", **(headers or {})}
        self._retries = max(1, retries)
        self._retry_wait = retry_wait
        self._transport = transport

    async def fetch_json(self, location: str, client: httpx.AsyncClient | None = None) -> Any:
        """Fetch and decode one document.

        Raises:
            FetchError: On HTTP errors, network errors, missing files or bad JSON.
        """
        if not is_remote(location):
            return await asyncio.to_thread(self._read_local, location)

        if client is None:
            async with self._client() as own_client:
                return await self._fetch_remote(location, own_client)
        return await self._fetch_remote(location, client)

    async def load_all(self, locations: dict[str, str]) -> SourceDocuments:
        """Load the four sources concurrently.

        Args:
            locations: Mapping with keys ``audio_manifest``, ``image_manifest``,
                ``audio_annotations`` and ``image_annotations``.

        Raises:
            FetchError: If any source fails; no partial result is returned.
        """
        roles = ["audio_manifest", "image_manifest", "audio_annotations", "image_annotations"]
        async with self._client() as client:
            tasks = [
                asyncio.create_task(self.fetch_json(locations[role], client)) for role in roles
            ]
            try:
                results = await asyncio.gather(*tasks)
            except BaseException:
                # Siblings must not outlive the client they share
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise
        logger.info("Loaded %d source documents", len(results))
        return SourceDocuments(**dict(zip(roles, results)))

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            headers=self._headers,
            follow_redirects=True,
            transport=self._transport,
        )

    async def _fetch_remote(self, url: str, client: httpx.AsyncClient) -> Any:
        try:
            async for attempt in AsyncRetrying(
                wait=wait_exponential(multiplier=self._retry_wait, max=30),
                stop=stop_after_attempt(self._retries),
                retry=retry_if_exception(_is_transient),
                reraise=True,
            ):
                with attempt:
                    logger.debug("GET %s (attempt %d)", url, attempt.retry_state.attempt_number)
                    response = await client.get(url)
                    response.raise_for_status()
        except httpx.TimeoutException as e:
            raise FetchError(f"Failed to fetch {url}: timed out after {self._timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Failed to fetch {url}: HTTP {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch {url}: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise FetchError(f"Failed to fetch {url}: response is not JSON ({e})") from e

    @staticmethod
    def _read_local(location: str) -> Any:
        path = Path(location)
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except OSError as e:
            raise FetchError(f"Failed to read {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise FetchError(f"Failed to read {path}: invalid JSON ({e})") from e
