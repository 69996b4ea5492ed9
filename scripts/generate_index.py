#!/usr/bin/env python3
"""Generate the verified program index.

Usage:
    python scripts/generate_index.py
    python scripts/generate_index.py --manifest programs.yml --out index --log-format simple

Reads programs.yml and writes:
    index/programs.json           - catalog of programs at each repository's latest tag
    index/idls/<address>.json     - IDL per program address
    index/artifacts/<sha>.json    - download URL per verifiable binary (all tags)

Exit code 0 on success (unpublished releases are skipped with a warning),
1 on manifest, fetch or integrity errors.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from programindex.connectors import ArtifactFetcher, FetchError
from programindex.index import (
    IndexAggregator,
    IndexConfig,
    IndexMetrics,
    IntegrityError,
    MissingIdlPolicy,
)
from programindex.logging_config import setup_logging
from programindex.registry import ManifestError, load_manifest

logger = logging.getLogger("generate_index")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate the verified program index")
    parser.add_argument(
        "--manifest",
        type=Path,
        default=Path("programs.yml"),
        help="Repository -> tags manifest (default: programs.yml)",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=Path("index"),
        help="Output directory (default: index)",
    )
    parser.add_argument(
        "--missing-idl",
        choices=[p.value for p in MissingIdlPolicy],
        default=MissingIdlPolicy.SKIP.value,
        help="Skip programs without a published IDL, or fail the run (default: skip)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        default="json",
        choices=["json", "simple"],
        help="Log output format (default: json)",
    )
    parser.add_argument(
        "--metrics-file",
        type=Path,
        default=None,
        help="Write run counters in Prometheus text format to this file",
    )
    return parser


async def generate(config: IndexConfig, manifest_path: Path, metrics: IndexMetrics) -> dict[str, object]:
    """Load the manifest and run both index passes."""
    manifest = load_manifest(manifest_path)
    logger.info("Loaded manifest", extra={"repos": len(manifest.repos)})

    async with ArtifactFetcher() as fetcher:
        aggregator = IndexAggregator(fetcher, config=config, metrics=metrics)
        summary = await aggregator.run(manifest)
    return summary.to_dict()


def main(argv: list[str] | None = None) -> int:
    """Generate the index."""
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, json_format=args.log_format == "json")

    config = IndexConfig(out_dir=args.out, missing_idl=MissingIdlPolicy(args.missing_idl))
    metrics = IndexMetrics()

    try:
        summary = asyncio.run(generate(config, args.manifest, metrics))
    except (ManifestError, FetchError, IntegrityError) as e:
        logger.error("Index generation failed: %s", e, exc_info=True)
        return 1
    except Exception as e:
        logger.error("Index generation failed with unexpected error: %s", e, exc_info=True)
        return 1
    finally:
        if args.metrics_file is not None:
            metrics.write_textfile(args.metrics_file)

    logger.info("Index generated", extra=summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
