"""Index construction: release resolution, aggregation and run metrics."""

from programindex.index.aggregator import (
    AddressIndex,
    ChecksumIndex,
    IndexAggregator,
    IndexSummary,
    dump_json,
)
from programindex.index.config import IndexConfig, MissingIdlPolicy
from programindex.index.exporter import ADDRESS_PASS, CHECKSUM_PASS, IndexMetrics
from programindex.index.resolver import (
    IntegrityError,
    ReleaseResolution,
    find_binary_checksum,
    program_label,
    resolve_checksums,
    resolve_release,
    start_case,
)

__all__ = [
    "ADDRESS_PASS",
    "CHECKSUM_PASS",
    "AddressIndex",
    "ChecksumIndex",
    "IndexAggregator",
    "IndexConfig",
    "IndexMetrics",
    "IndexSummary",
    "IntegrityError",
    "MissingIdlPolicy",
    "ReleaseResolution",
    "dump_json",
    "find_binary_checksum",
    "program_label",
    "resolve_checksums",
    "resolve_release",
    "start_case",
]
