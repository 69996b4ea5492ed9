"""Program manifest loading.

The manifest (programs.yml) maps each source repository to the release tags
that have been submitted for verifiable builds:

    acme/vault:
      - v1.0.0
      - v1.1.0
    saber-hq/quarry:
      - v1.11.3

Tags are listed oldest-first, so the last tag of each repository is the
latest release. Every (repository, tag) pair is addressed remotely through
its release slug, e.g. ``acme__vault-v1.1.0``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import yaml  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from pathlib import Path


class ManifestError(Exception):
    """Raised when the manifest is missing or malformed."""


# Replaces the "/" of "org/name" so a slug never collides with a tag containing "/"
SLUG_REPO_SEPARATOR = "__"


@dataclass(frozen=True)
class ReleaseSlug:
    """One (repository, tag) pair.

    Attributes:
        repo: Repository identifier in "org/name" form.
        tag: Release tag.
    """

    repo: str
    tag: str

    @property
    def owner(self) -> str:
        return self.repo.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.repo.split("/", 1)[1]

    @property
    def slug(self) -> str:
        """URL path segment identifying this release."""
        return f"{self.repo.replace('/', SLUG_REPO_SEPARATOR, 1)}-{self.tag}"

    def __str__(self) -> str:
        return f"{self.repo}@{self.tag}"


@dataclass
class Manifest:
    """Repository -> tags mapping, in file order.

    Attributes:
        repos: Repository identifier to tags (oldest first).
    """

    repos: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def latest_releases(self) -> list[ReleaseSlug]:
        """The last tag of every repository, in manifest order."""
        return [ReleaseSlug(repo, tags[-1]) for repo, tags in self.repos.items()]

    def all_releases(self) -> list[ReleaseSlug]:
        """Every tag of every repository, in manifest order."""
        return [ReleaseSlug(repo, tag) for repo, tags in self.repos.items() for tag in tags]

    def to_dict(self) -> dict[str, list[str]]:
        return {repo: list(tags) for repo, tags in self.repos.items()}


def _validate_repo(repo: Any) -> str:
    if not isinstance(repo, str):
        raise ManifestError(f"Repository key must be a string, got {type(repo).__name__}: {repo!r}")
    parts = repo.split("/")
    if len(parts) != 2 or not all(part.strip() for part in parts):
        raise ManifestError(f"Invalid repository format (expected org/name): {repo!r}")
    return repo


def _validate_tags(repo: str, tags: Any) -> tuple[str, ...]:
    if not isinstance(tags, list):
        raise ManifestError(f"Tags for {repo} must be a list, got {type(tags).__name__}")
    if not tags:
        raise ManifestError(f"No tags for {repo}")
    for tag in tags:
        # Unquoted 1.0 is parsed as a float by YAML; refuse rather than reformat it
        if not isinstance(tag, str) or not tag.strip():
            raise ManifestError(f"Invalid tag for {repo}: {tag!r} (tags must be non-empty strings)")
    return tuple(tags)


def parse_manifest(data: Any) -> Manifest:
    """Validate an already-parsed manifest document.

    Args:
        data: Result of parsing programs.yml.

    Returns:
        Manifest preserving document order.

    Raises:
        ManifestError: If the document is not a mapping of "org/name" to a
            non-empty list of tag strings.
    """
    if not isinstance(data, dict):
        kind = "empty document" if data is None else type(data).__name__
        raise ManifestError(f"Manifest must be a mapping of repository to tags, got {kind}")

    repos: dict[str, tuple[str, ...]] = {}
    for repo, tags in data.items():
        repos[_validate_repo(repo)] = _validate_tags(repo, tags)
    return Manifest(repos=repos)


def load_manifest(path: Path) -> Manifest:
    """Load and validate programs.yml.

    Args:
        path: Path to the manifest file.

    Returns:
        Loaded Manifest.

    Raises:
        ManifestError: If the file is missing, unreadable or invalid.
    """
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ManifestError(f"Manifest not found: {path}") from e
    except OSError as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ManifestError(f"Malformed manifest {path}: {e}") from e

    return parse_manifest(data)
