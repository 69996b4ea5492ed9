"""
Types and configuration for the verified-artifacts publication host.

Each verified release is published on its own branch of the artifacts
repository, named "<branch_prefix>-<release slug>", and served raw:

    <host>/verify-acme__vault-v1.1.0/addresses.json
    <host>/verify-acme__vault-v1.1.0/checksums.json
    <host>/verify-acme__vault-v1.1.0/idl/vault.json
    <host>/verify-acme__vault-v1.1.0/artifacts/verifiable/vault.so
"""

from __future__ import annotations

from dataclasses import dataclass

ADDRESSES_FILE = "addresses.json"
CHECKSUMS_FILE = "checksums.json"
IDL_DIR = "idl"


@dataclass(frozen=True)
class FetcherConfig:
    """
    Configuration for the artifact fetcher.

    Attributes:
        host: Raw-content base URL of the artifacts repository.
        branch_prefix: Prefix of per-release branches.
        request_timeout_ms: Total timeout per request.
    """

    host: str = "https://raw.githubusercontent.com/DeployDAO/verified-program-artifacts"
    branch_prefix: str = "verify"
    request_timeout_ms: int = 30000

    def __post_init__(self) -> None:
        if self.request_timeout_ms <= 0:
            raise ValueError(f"request_timeout_ms must be > 0, got {self.request_timeout_ms}")


def idl_file(program_name: str) -> str:
    """Logical file name of a program's IDL within a release."""
    return f"{IDL_DIR}/{program_name}.json"
