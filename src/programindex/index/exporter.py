"""
Prometheus metrics for an index generation run.

Counters live on a private CollectorRegistry and can be dumped in the
textfile-collector format at the end of a run. Labels stay low-cardinality:
only the pass name ("address" / "checksum"), never repository, tag or
address.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from prometheus_client import Counter, write_to_textfile
from prometheus_client.registry import CollectorRegistry

if TYPE_CHECKING:
    from pathlib import Path

ADDRESS_PASS = "address"
CHECKSUM_PASS = "checksum"


class IndexMetrics:
    """
    Run counters for the index generator.

    Usage:
        metrics = IndexMetrics()
        metrics.record_release(ADDRESS_PASS, skipped=False)
        metrics.write_textfile(Path("index.prom"))
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

        self._releases_resolved = Counter(
            "programindex_releases_resolved",
            "Releases whose documents were found and indexed",
            ["stage"],
            registry=self._registry,
        )
        self._releases_skipped = Counter(
            "programindex_releases_skipped",
            "Releases skipped because they are not published (404)",
            ["stage"],
            registry=self._registry,
        )
        self._programs_indexed = Counter(
            "programindex_programs_indexed",
            "Programs written to the address table",
            registry=self._registry,
        )
        self._programs_skipped = Counter(
            "programindex_programs_skipped",
            "Programs left out because their IDL is not published",
            registry=self._registry,
        )
        self._artifacts_indexed = Counter(
            "programindex_artifacts_indexed",
            "Binary checksums written to the checksum table",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_release(self, stage: str, *, skipped: bool) -> None:
        if skipped:
            self._releases_skipped.labels(stage=stage).inc()
        else:
            self._releases_resolved.labels(stage=stage).inc()

    def record_programs(self, *, indexed: int, skipped: int = 0) -> None:
        self._programs_indexed.inc(indexed)
        self._programs_skipped.inc(skipped)

    def record_artifacts(self, count: int) -> None:
        self._artifacts_indexed.inc(count)

    def value(self, name: str, **labels: str) -> float:
        """Current value of a counter sample (0.0 if never touched)."""
        sample = self._registry.get_sample_value(f"{name}_total", labels or None)
        return sample if sample is not None else 0.0

    def write_textfile(self, path: Path) -> None:
        """Write all counters in the Prometheus text format."""
        write_to_textfile(str(path), self._registry)
