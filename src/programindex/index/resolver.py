"""Release resolution.

Turns the raw documents of one published release into index entries:

- resolve_release(): addresses.json + checksums.json + idl/<program>.json
  -> ProgramRecords and address -> IDL entries (address table pass).
- resolve_checksums(): checksums.json -> checksum -> binary URL
  (checksum table pass).

Both functions only read through the fetcher and return plain values, so
they can be exercised without touching the filesystem.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from programindex.connectors.fetcher import NotFoundError
from programindex.index.config import IndexConfig, MissingIdlPolicy
from programindex.registry.models import ProgramRecord

if TYPE_CHECKING:
    from programindex.connectors.fetcher import ArtifactFetcher
    from programindex.registry.manifest import ReleaseSlug

logger = logging.getLogger(__name__)


class IntegrityError(Exception):
    """The published artifact set of a release is internally inconsistent."""


_APOSTROPHE_PATTERN = re.compile(r"['’]")
# Letters and digits of any script; everything else separates words
_CHUNK_PATTERN = re.compile(r"[^\W_]+")
# English ordinals stay one word ("1st", "22nd") when followed by a capital or the end
_ORDINAL_PATTERN = re.compile(r"(\d*(?:1st|2nd|3rd|(?![123])\dth))(?=[A-Z]|$)")


def _split_case(chunk: str) -> list[str]:
    """Split at digit/letter, lower/upper and acronym/word boundaries."""
    words: list[str] = []
    start = 0
    for i in range(1, len(chunk)):
        prev, cur = chunk[i - 1], chunk[i]
        nxt = chunk[i + 1] if i + 1 < len(chunk) else ""
        if (
            prev.isdigit() != cur.isdigit()
            or (prev.islower() and cur.isupper())
            or (prev.isupper() and cur.isupper() and nxt.islower())
        ):
            words.append(chunk[start:i])
            start = i
    words.append(chunk[start:])
    return words


def _words(text: str) -> list[str]:
    words: list[str] = []
    for chunk in _CHUNK_PATTERN.findall(_APOSTROPHE_PATTERN.sub("", text)):
        for i, piece in enumerate(_ORDINAL_PATTERN.split(chunk)):
            if i % 2:
                words.append(piece)
            elif piece:
                words.extend(_split_case(piece))
    return words


def start_case(text: str) -> str:
    """Split an identifier into words and capitalize each one.

    Apostrophes are dropped rather than treated as separators.

    Examples:
        >>> start_case("saber-periphery")
        'Saber Periphery'
        >>> start_case("quarryMine")
        'Quarry Mine'
        >>> start_case("café-vault")
        'Café Vault'
    """
    return " ".join(word[0].upper() + word[1:] for word in _words(text))


def program_label(owner: str, program_name: str) -> str:
    return f"{start_case(owner)} - {start_case(program_name)}"


def find_binary_checksum(checksums: dict[str, str], path: str) -> str | None:
    """First checksum (document order) whose recorded path is exactly `path`."""
    for checksum, file_path in checksums.items():
        if file_path == path:
            return checksum
    return None


@dataclass
class ReleaseResolution:
    """Address-table output of one release.

    Attributes:
        release: The resolved release.
        records: Programs in addresses.json order.
        idls: Address -> IDL document.
        skipped_programs: Programs left out because their IDL is not published.
        skipped: True when the release itself is not published.
    """

    release: ReleaseSlug
    records: list[ProgramRecord] = field(default_factory=list)
    idls: dict[str, Any] = field(default_factory=dict)
    skipped_programs: list[str] = field(default_factory=list)
    skipped: bool = False


async def resolve_release(
    fetcher: ArtifactFetcher,
    release: ReleaseSlug,
    config: IndexConfig | None = None,
) -> ReleaseResolution:
    """
    Resolve every program published by a release.

    Args:
        fetcher: Source of release documents.
        release: Release to resolve.
        config: Index configuration (default IndexConfig()).

    Returns:
        ReleaseResolution; flagged skipped if addresses.json or
        checksums.json is not published.

    Raises:
        IntegrityError: If an address has no verifiable binary checksum, or
            its IDL is missing under MissingIdlPolicy.FAIL.
        FetchError: On any non-404 fetch failure.
    """
    config = config or IndexConfig()
    slug = release.slug

    try:
        addresses = await fetcher.get_addresses(slug)
        checksums = await fetcher.get_checksums(slug)
    except NotFoundError as e:
        logger.warning(
            "Release not verified yet, skipping",
            extra={"repo": release.repo, "tag": release.tag, "url": e.url},
        )
        return ReleaseResolution(release=release, skipped=True)

    resolution = ReleaseResolution(release=release)

    for program_name, address in addresses.items():
        try:
            idl = await fetcher.get_idl(slug, program_name)
        except NotFoundError as e:
            if config.missing_idl is MissingIdlPolicy.FAIL:
                msg = f"IDL not found for program: {release.repo} {release.tag} {program_name}"
                raise IntegrityError(msg) from e
            logger.warning(
                "Could not find IDL, skipping program",
                extra={"repo": release.repo, "tag": release.tag, "program": program_name},
            )
            resolution.skipped_programs.append(program_name)
            continue

        shasum = find_binary_checksum(checksums, config.verifiable_binary_path(program_name))
        if shasum is None:
            msg = f"shasum not found for program: {release.repo} {release.tag} {program_name}"
            raise IntegrityError(msg)

        resolution.idls[address] = idl
        resolution.records.append(
            ProgramRecord(
                label=program_label(release.owner, program_name),
                name=program_name,
                repo=release.repo,
                tag=release.tag,
                address=address,
                shasum=shasum,
            )
        )

    logger.info(
        "Resolved release",
        extra={
            "repo": release.repo,
            "tag": release.tag,
            "programs": len(resolution.records),
            "skipped_programs": len(resolution.skipped_programs),
        },
    )
    return resolution


async def resolve_checksums(
    fetcher: ArtifactFetcher,
    release: ReleaseSlug,
    config: IndexConfig | None = None,
) -> dict[str, str] | None:
    """
    Map every binary checksum of a release to its download URL.

    Returns:
        Checksum -> URL in checksums.json order, or None if the release's
        checksums.json is not published.
    """
    config = config or IndexConfig()
    slug = release.slug

    try:
        checksums = await fetcher.get_checksums(slug)
    except NotFoundError as e:
        logger.warning(
            "Could not find checksums, skipping release",
            extra={"repo": release.repo, "tag": release.tag, "url": e.url},
        )
        return None

    return {
        checksum: fetcher.build_url(slug, file_path)
        for checksum, file_path in checksums.items()
        if file_path.endswith(config.binary_extension)
    }
