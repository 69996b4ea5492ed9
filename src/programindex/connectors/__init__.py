"""Connectors for the verified-artifacts publication host."""

from programindex.connectors.fetcher import (
    ArtifactFetcher,
    FetchError,
    NotFoundError,
    PublicationError,
)
from programindex.connectors.types import (
    ADDRESSES_FILE,
    CHECKSUMS_FILE,
    FetcherConfig,
    idl_file,
)

__all__ = [
    "ADDRESSES_FILE",
    "CHECKSUMS_FILE",
    "ArtifactFetcher",
    "FetchError",
    "FetcherConfig",
    "NotFoundError",
    "PublicationError",
    "idl_file",
]
