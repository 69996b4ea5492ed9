"""Index output records.

ProgramRecord is one entry of index/programs.json; ArtifactLocation is the
body of index/artifacts/<checksum>.json. Field order is the serialized key
order, so it must not be changed without regenerating the index.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ProgramRecord(BaseModel):
    """A resolved program from a repository's latest release (frozen)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    label: str = Field(description="Display label, e.g. 'Acme - Vault'")
    name: str = Field(min_length=1, description="Program name as published in addresses.json")
    repo: str = Field(description="Source repository in org/name form")
    tag: str = Field(description="Release tag the program was resolved from")
    address: str = Field(min_length=1, description="Deployed program address")
    shasum: str = Field(min_length=1, description="Checksum of the verifiable binary")


class ArtifactLocation(BaseModel):
    """Where the binary for a checksum can be downloaded (frozen)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = Field(min_length=1)
