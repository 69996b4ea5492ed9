"""Index aggregation.

Runs the two index passes over a manifest and writes the output tree:

    index/
        programs.json              ordered ProgramRecord catalog
        idls/<address>.json        IDL per program address (latest tags)
        artifacts/<checksum>.json  {"url": ...} per binary (all tags)

Releases are processed strictly one after another, in manifest order, so
programs.json order is the manifest order. JSON is written compact with
insertion-ordered keys; identical remote state produces identical bytes.
Each file is overwritten independently, there is no atomic swap.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import TYPE_CHECKING, Any

import orjson

from programindex.index.config import IndexConfig
from programindex.index.exporter import ADDRESS_PASS, CHECKSUM_PASS, IndexMetrics
from programindex.index.resolver import IntegrityError, resolve_checksums, resolve_release
from programindex.registry.models import ArtifactLocation, ProgramRecord

if TYPE_CHECKING:
    from pathlib import Path

    from programindex.connectors.fetcher import ArtifactFetcher
    from programindex.registry.manifest import Manifest, ReleaseSlug

logger = logging.getLogger(__name__)


@dataclass
class AddressIndex:
    """Result of the address table pass.

    Attributes:
        idls: Address -> IDL (last write wins).
        programs: Every resolved program, manifest order.
        skipped: Latest releases that are not published.
    """

    idls: dict[str, Any] = field(default_factory=dict)
    programs: list[ProgramRecord] = field(default_factory=list)
    skipped: list[ReleaseSlug] = field(default_factory=list)


@dataclass
class ChecksumIndex:
    """Result of the checksum table pass.

    Attributes:
        artifacts: Checksum -> binary URL.
        skipped: Releases whose checksums.json is not published.
    """

    artifacts: dict[str, str] = field(default_factory=dict)
    skipped: list[ReleaseSlug] = field(default_factory=list)


@dataclass
class IndexSummary:
    """Outcome of a full run."""

    address_index: AddressIndex
    checksum_index: ChecksumIndex

    def to_dict(self) -> dict[str, Any]:
        return {
            "programs": len(self.address_index.programs),
            "idls": len(self.address_index.idls),
            "artifacts": len(self.checksum_index.artifacts),
            "skipped_latest": [str(r) for r in self.address_index.skipped],
            "skipped_releases": [str(r) for r in self.checksum_index.skipped],
        }


def dump_json(value: Any) -> bytes:
    """Compact JSON with keys in insertion order."""
    return orjson.dumps(value)


def _index_filename(key: str) -> str:
    """File name for an address or checksum key.

    Keys come from remote documents, so anything that is not a single plain
    path component is rejected.
    """
    pure = PurePath(key)
    if not key or key in (".", "..") or pure.is_absolute() or len(pure.parts) != 1:
        raise IntegrityError(f"Invalid index key (not a plain file name): {key!r}")
    if "/" in key or "\\" in key:
        raise IntegrityError(f"Invalid index key (contains path separator): {key!r}")
    return f"{key}.json"


class IndexAggregator:
    """
    Builds and persists the address and checksum tables.

    Usage:
        async with ArtifactFetcher() as fetcher:
            summary = await IndexAggregator(fetcher).run(manifest)
    """

    def __init__(
        self,
        fetcher: ArtifactFetcher,
        config: IndexConfig | None = None,
        metrics: IndexMetrics | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._config = config or IndexConfig()
        self._metrics = metrics or IndexMetrics()

    @property
    def config(self) -> IndexConfig:
        return self._config

    @property
    def metrics(self) -> IndexMetrics:
        return self._metrics

    def prepare_output(self) -> None:
        """Create the output directories."""
        self._config.idls_dir.mkdir(parents=True, exist_ok=True)
        self._config.artifacts_dir.mkdir(parents=True, exist_ok=True)

    def _write(self, path: Path, payload: bytes) -> None:
        with path.open("wb") as f:
            f.write(payload)

    def write_idls(self, idls: dict[str, Any]) -> None:
        """Write one file per address; all keys are checked before the first write."""
        targets = [
            (self._config.idls_dir / _index_filename(address), idl) for address, idl in idls.items()
        ]
        for path, idl in targets:
            self._write(path, dump_json(idl))

    def write_programs(self, programs: list[ProgramRecord]) -> None:
        self._write(
            self._config.programs_file,
            dump_json([record.model_dump() for record in programs]),
        )

    def write_artifacts(self, artifacts: dict[str, str]) -> None:
        """Write one file per checksum; all keys are checked before the first write."""
        targets = [
            (self._config.artifacts_dir / _index_filename(checksum), ArtifactLocation(url=url))
            for checksum, url in artifacts.items()
        ]
        for path, location in targets:
            self._write(path, dump_json(location.model_dump()))

    async def build_address_index(self, manifest: Manifest) -> AddressIndex:
        """
        Address table pass over the latest tag of every repository.

        IDLs are written as each release resolves; programs.json is written
        once the pass completes.
        """
        index = AddressIndex()

        for release in manifest.latest_releases():
            resolution = await resolve_release(self._fetcher, release, self._config)
            self._metrics.record_release(ADDRESS_PASS, skipped=resolution.skipped)
            if resolution.skipped:
                index.skipped.append(release)
                continue

            self.write_idls(resolution.idls)
            index.idls.update(resolution.idls)
            index.programs.extend(resolution.records)
            self._metrics.record_programs(
                indexed=len(resolution.records),
                skipped=len(resolution.skipped_programs),
            )

        self.write_programs(index.programs)
        logger.info(
            "Address table written",
            extra={"programs": len(index.programs), "skipped_releases": len(index.skipped)},
        )
        return index

    async def build_checksum_index(self, manifest: Manifest) -> ChecksumIndex:
        """Checksum table pass over every tag of every repository."""
        index = ChecksumIndex()

        for release in manifest.all_releases():
            artifacts = await resolve_checksums(self._fetcher, release, self._config)
            self._metrics.record_release(CHECKSUM_PASS, skipped=artifacts is None)
            if artifacts is None:
                index.skipped.append(release)
                continue

            self.write_artifacts(artifacts)
            index.artifacts.update(artifacts)
            self._metrics.record_artifacts(len(artifacts))

        logger.info(
            "Checksum table written",
            extra={"artifacts": len(index.artifacts), "skipped_releases": len(index.skipped)},
        )
        return index

    async def run(self, manifest: Manifest) -> IndexSummary:
        """Prepare the output tree, then run both passes."""
        self.prepare_output()
        address_index = await self.build_address_index(manifest)
        checksum_index = await self.build_checksum_index(manifest)
        return IndexSummary(address_index=address_index, checksum_index=checksum_index)
