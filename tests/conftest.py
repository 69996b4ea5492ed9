"""Shared fixtures: an in-memory publication host."""

from __future__ import annotations

from typing import Any

import pytest

from programindex.connectors.fetcher import ArtifactFetcher, FetchError, NotFoundError
from programindex.connectors.types import FetcherConfig

TEST_HOST = "https://raw.example.com/DeployDAO/verified-program-artifacts"

VAULT_IDL: dict[str, Any] = {
    "version": "1.1.0",
    "name": "vault",
    "instructions": [{"name": "deposit", "accounts": [], "args": [{"name": "amount", "type": "u64"}]}],
}

# Published state for the acme/vault scenario: only v1.1.0 has been verified.
VAULT_RELEASES: dict[str, dict[str, Any]] = {
    "acme__vault-v1.1.0": {
        "addresses.json": {"vault": "Addr111"},
        "checksums.json": {"chk111": "artifacts/verifiable/vault.so"},
        "idl/vault.json": VAULT_IDL,
    },
}


class FakeFetcher(ArtifactFetcher):
    """ArtifactFetcher serving documents from a slug -> {file: document} dict.

    Missing slugs or files answer like a 404. A document that is an
    exception instance is raised instead of returned.
    """

    def __init__(self, releases: dict[str, dict[str, Any]]) -> None:
        super().__init__(FetcherConfig(host=TEST_HOST))
        self.releases = releases
        self.calls: list[tuple[str, str]] = []

    async def fetch_json(self, slug: str, file: str) -> Any:
        self.calls.append((slug, file))
        url = self.build_url(slug, file)
        documents = self.releases.get(slug, {})
        if file not in documents:
            raise NotFoundError(f"Not found: {url}", url=url, status=404)
        document = documents[file]
        if isinstance(document, Exception):
            raise document
        return document


@pytest.fixture
def make_fetcher() -> type[FakeFetcher]:
    """Factory for in-memory fetchers."""
    return FakeFetcher


@pytest.fixture
def vault_fetcher() -> FakeFetcher:
    return FakeFetcher(VAULT_RELEASES)


@pytest.fixture
def server_error() -> FetchError:
    url = f"{TEST_HOST}/verify-acme__vault-v1.1.0/checksums.json"
    return FetchError(f"HTTP 500 for {url}", url=url, status=500)


@pytest.fixture
def vault_idl() -> dict[str, Any]:
    return VAULT_IDL
