"""
Async client for per-release documents on the publication host.

Only JSON documents are downloaded; binaries are referenced by URL.
The soft/hard failure split is decided here and nowhere else:
- 404 means the release (or one of its files) is not published yet
  and surfaces as NotFoundError.
- Everything else (transport errors, other HTTP errors, bad JSON, wrong
  document shape) surfaces as FetchError.
No request is retried.
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp
import orjson

from programindex.connectors.types import (
    ADDRESSES_FILE,
    CHECKSUMS_FILE,
    FetcherConfig,
    idl_file,
)

logger = logging.getLogger(__name__)


class PublicationError(Exception):
    """Base class for failures to obtain a published document."""

    def __init__(self, message: str, *, url: str, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class NotFoundError(PublicationError):
    """The host answered "resource absent" (HTTP 404)."""


class FetchError(PublicationError):
    """Any failure other than an absent resource."""


class ArtifactFetcher:
    """
    Fetches addresses.json, checksums.json and IDLs for a release slug.

    Usage:
        async with ArtifactFetcher() as fetcher:
            addresses = await fetcher.get_addresses("acme__vault-v1.1.0")
    """

    def __init__(self, config: FetcherConfig | None = None) -> None:
        self._config = config or FetcherConfig()
        self._session: aiohttp.ClientSession | None = None

    @property
    def config(self) -> FetcherConfig:
        return self._config

    async def __aenter__(self) -> ArtifactFetcher:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._config.request_timeout_ms / 1000)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    def build_url(self, slug: str, file: str) -> str:
        """URL of a file within a release's published branch."""
        host = self._config.host.rstrip("/")
        return f"{host}/{self._config.branch_prefix}-{slug}/{file}"

    async def fetch_json(self, slug: str, file: str) -> Any:
        """
        Fetch and parse one JSON document of a release.

        Args:
            slug: Release slug.
            file: Path of the document within the release.

        Returns:
            Parsed JSON value.

        Raises:
            NotFoundError: If the host responds 404.
            FetchError: On any other failure.
        """
        url = self.build_url(slug, file)
        logger.debug("Fetching document", extra={"slug": slug, "document": file})

        session = await self._get_session()
        try:
            async with session.request("GET", url) as response:
                if response.status == 404:
                    raise NotFoundError(f"Not found: {url}", url=url, status=404)
                if response.status >= 400:
                    text = await response.text()
                    logger.error(
                        "HTTP error",
                        extra={"status": response.status, "slug": slug, "document": file},
                    )
                    raise FetchError(
                        f"HTTP {response.status} for {url}: {text[:200]}",
                        url=url,
                        status=response.status,
                    )
                body = await response.read()
        except aiohttp.ClientError as e:
            raise FetchError(f"Request failed for {url}: {e}", url=url) from e
        except TimeoutError as e:
            raise FetchError(f"Request timed out for {url}", url=url) from e

        try:
            return orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise FetchError(f"Malformed JSON at {url}: {e}", url=url, status=200) from e

    async def _fetch_string_map(self, slug: str, file: str) -> dict[str, str]:
        data = await self.fetch_json(slug, file)
        url = self.build_url(slug, file)
        if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
            raise FetchError(f"Expected a string to string mapping at {url}", url=url, status=200)
        if not all(key and value for key, value in data.items()):
            raise FetchError(f"Empty name or value in mapping at {url}", url=url, status=200)
        return data

    async def get_addresses(self, slug: str) -> dict[str, str]:
        """Program name -> deployed address for a release."""
        return await self._fetch_string_map(slug, ADDRESSES_FILE)

    async def get_checksums(self, slug: str) -> dict[str, str]:
        """Checksum -> file path within the release."""
        return await self._fetch_string_map(slug, CHECKSUMS_FILE)

    async def get_idl(self, slug: str, program_name: str) -> Any:
        """Interface description of one program, returned as parsed."""
        return await self.fetch_json(slug, idl_file(program_name))
