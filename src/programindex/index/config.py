"""Index generation configuration.

IndexConfig is frozen (immutable) and holds the output layout and the
resolution policies shared by both index passes.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MissingIdlPolicy(str, Enum):
    """What to do when a published address has no idl/<program>.json.

    SKIP: leave the program out of the index and log a warning.
    FAIL: abort the run with IntegrityError.
    """

    SKIP = "skip"
    FAIL = "fail"


class IndexConfig(BaseModel):
    """Index generation configuration (frozen)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    out_dir: Path = Field(default=Path("index"), description="Root of the generated index")
    binary_extension: str = Field(
        default=".so",
        description="Extension of compiled program binaries listed in checksums.json",
    )
    verifiable_dir: str = Field(
        default="artifacts/verifiable",
        description="Directory of verifiable binaries within a release",
    )
    missing_idl: MissingIdlPolicy = Field(default=MissingIdlPolicy.SKIP)

    @field_validator("binary_extension")
    @classmethod
    def check_extension(cls, v: str) -> str:
        if not v.startswith(".") or len(v) < 2:
            raise ValueError(f"binary_extension must look like '.so', got {v!r}")
        return v

    @field_validator("verifiable_dir")
    @classmethod
    def strip_slashes(cls, v: str) -> str:
        v = v.strip("/")
        if not v:
            raise ValueError("verifiable_dir must not be empty")
        return v

    @property
    def idls_dir(self) -> Path:
        return self.out_dir / "idls"

    @property
    def artifacts_dir(self) -> Path:
        return self.out_dir / "artifacts"

    @property
    def programs_file(self) -> Path:
        return self.out_dir / "programs.json"

    def verifiable_binary_path(self, program_name: str) -> str:
        """Path checksums.json must list for a program's verifiable binary."""
        return f"{self.verifiable_dir}/{program_name}{self.binary_extension}"
