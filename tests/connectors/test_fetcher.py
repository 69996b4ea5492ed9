"""Tests for the artifact fetcher."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from programindex.connectors.fetcher import (
    ArtifactFetcher,
    FetchError,
    NotFoundError,
    PublicationError,
)
from programindex.connectors.types import FetcherConfig, idl_file

SLUG = "acme__vault-v1.1.0"


class TestFetcherConfig:
    """Tests for FetcherConfig and file naming."""

    def test_defaults(self) -> None:
        config = FetcherConfig()
        assert config.host == "https://raw.githubusercontent.com/DeployDAO/verified-program-artifacts"
        assert config.branch_prefix == "verify"

    def test_invalid_timeout(self) -> None:
        with pytest.raises(ValueError, match="request_timeout_ms"):
            FetcherConfig(request_timeout_ms=0)

    def test_idl_file(self) -> None:
        assert idl_file("vault") == "idl/vault.json"


class TestBuildUrl:
    """Tests for URL construction."""

    def test_default_host(self) -> None:
        url = ArtifactFetcher().build_url(SLUG, "addresses.json")
        assert url == (
            "https://raw.githubusercontent.com/DeployDAO/verified-program-artifacts/"
            "verify-acme__vault-v1.1.0/addresses.json"
        )

    def test_custom_host_trailing_slash(self) -> None:
        fetcher = ArtifactFetcher(FetcherConfig(host="https://h.example/", branch_prefix="build"))
        assert fetcher.build_url(SLUG, "artifacts/verifiable/vault.so") == (
            "https://h.example/build-acme__vault-v1.1.0/artifacts/verifiable/vault.so"
        )


class TestArtifactFetcher:
    """Tests for ArtifactFetcher HTTP handling."""

    @pytest.fixture
    def fetcher(self) -> ArtifactFetcher:
        return ArtifactFetcher()

    @pytest.fixture
    def mock_response(self) -> MagicMock:
        """Create mock aiohttp response."""
        response = MagicMock()
        response.status = 200
        response.headers = {}
        response.read = AsyncMock(return_value=b"{}")
        response.text = AsyncMock(return_value="")
        response.__aenter__ = AsyncMock(return_value=response)
        response.__aexit__ = AsyncMock(return_value=None)
        return response

    @pytest.mark.asyncio
    async def test_get_addresses(self, fetcher: ArtifactFetcher, mock_response: MagicMock) -> None:
        """Parses addresses.json from the raw body."""
        mock_response.read = AsyncMock(return_value=b'{"vault": "Addr111", "pool": "Addr222"}')

        with patch.object(aiohttp.ClientSession, "request", return_value=mock_response) as request:
            addresses = await fetcher.get_addresses(SLUG)

        assert addresses == {"vault": "Addr111", "pool": "Addr222"}
        assert list(addresses) == ["vault", "pool"]
        request.assert_called_once_with("GET", fetcher.build_url(SLUG, "addresses.json"))

        await fetcher.close()

    @pytest.mark.asyncio
    async def test_get_checksums(self, fetcher: ArtifactFetcher, mock_response: MagicMock) -> None:
        mock_response.read = AsyncMock(return_value=b'{"chk111": "artifacts/verifiable/vault.so"}')

        with patch.object(aiohttp.ClientSession, "request", return_value=mock_response) as request:
            checksums = await fetcher.get_checksums(SLUG)

        assert checksums == {"chk111": "artifacts/verifiable/vault.so"}
        request.assert_called_once_with("GET", fetcher.build_url(SLUG, "checksums.json"))

        await fetcher.close()

    @pytest.mark.asyncio
    async def test_get_idl_returned_opaque(
        self, fetcher: ArtifactFetcher, mock_response: MagicMock
    ) -> None:
        mock_response.read = AsyncMock(return_value=b'{"name": "vault", "instructions": []}')

        with patch.object(aiohttp.ClientSession, "request", return_value=mock_response) as request:
            idl = await fetcher.get_idl(SLUG, "vault")

        assert idl == {"name": "vault", "instructions": []}
        request.assert_called_once_with("GET", fetcher.build_url(SLUG, "idl/vault.json"))

        await fetcher.close()

    @pytest.mark.asyncio
    async def test_404_raises_not_found(
        self, fetcher: ArtifactFetcher, mock_response: MagicMock
    ) -> None:
        mock_response.status = 404

        with (
            patch.object(aiohttp.ClientSession, "request", return_value=mock_response),
            pytest.raises(NotFoundError) as exc_info,
        ):
            await fetcher.get_addresses(SLUG)

        assert exc_info.value.status == 404
        assert exc_info.value.url.endswith("/verify-acme__vault-v1.1.0/addresses.json")
        assert not isinstance(exc_info.value, FetchError)
        assert isinstance(exc_info.value, PublicationError)

        await fetcher.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 403, 429, 500, 503])
    async def test_other_http_errors_raise_fetch_error(
        self, fetcher: ArtifactFetcher, mock_response: MagicMock, status: int
    ) -> None:
        mock_response.status = status
        mock_response.text = AsyncMock(return_value="upstream failure")

        with (
            patch.object(aiohttp.ClientSession, "request", return_value=mock_response),
            pytest.raises(FetchError) as exc_info,
        ):
            await fetcher.get_checksums(SLUG)

        assert exc_info.value.status == status
        assert "upstream failure" in str(exc_info.value)

        await fetcher.close()

    @pytest.mark.asyncio
    async def test_transport_error_raises_fetch_error(self, fetcher: ArtifactFetcher) -> None:
        with (
            patch.object(
                aiohttp.ClientSession,
                "request",
                side_effect=aiohttp.ClientConnectionError("connection reset"),
            ),
            pytest.raises(FetchError, match="Request failed") as exc_info,
        ):
            await fetcher.get_addresses(SLUG)

        assert exc_info.value.status is None
        assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)

        await fetcher.close()

    @pytest.mark.asyncio
    async def test_timeout_raises_fetch_error(self, fetcher: ArtifactFetcher) -> None:
        with (
            patch.object(aiohttp.ClientSession, "request", side_effect=TimeoutError()),
            pytest.raises(FetchError, match="timed out"),
        ):
            await fetcher.get_addresses(SLUG)

        await fetcher.close()

    @pytest.mark.asyncio
    async def test_malformed_json_raises_fetch_error(
        self, fetcher: ArtifactFetcher, mock_response: MagicMock
    ) -> None:
        mock_response.read = AsyncMock(return_value=b"<html>not json</html>")

        with (
            patch.object(aiohttp.ClientSession, "request", return_value=mock_response),
            pytest.raises(FetchError, match="Malformed JSON"),
        ):
            await fetcher.get_idl(SLUG, "vault")

        await fetcher.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [b'["vault"]', b'{"vault": 1}', b'{"vault": null}', b'"Addr111"'],
    )
    async def test_wrong_shape_raises_fetch_error(
        self, fetcher: ArtifactFetcher, mock_response: MagicMock, body: bytes
    ) -> None:
        mock_response.read = AsyncMock(return_value=body)

        with (
            patch.object(aiohttp.ClientSession, "request", return_value=mock_response),
            pytest.raises(FetchError, match="string to string mapping"),
        ):
            await fetcher.get_addresses(SLUG)

        await fetcher.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b'{"vault": ""}', b'{"": "Addr111"}'])
    async def test_empty_entries_raise_fetch_error(
        self, fetcher: ArtifactFetcher, mock_response: MagicMock, body: bytes
    ) -> None:
        mock_response.read = AsyncMock(return_value=body)

        with (
            patch.object(aiohttp.ClientSession, "request", return_value=mock_response),
            pytest.raises(FetchError, match="Empty name or value"),
        ):
            await fetcher.get_addresses(SLUG)

        await fetcher.close()

    @pytest.mark.asyncio
    async def test_context_manager_closes_session(self, mock_response: MagicMock) -> None:
        with patch.object(aiohttp.ClientSession, "request", return_value=mock_response):
            async with ArtifactFetcher() as fetcher:
                await fetcher.fetch_json(SLUG, "addresses.json")
                assert fetcher._session is not None

        assert fetcher._session is None
