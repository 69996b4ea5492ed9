"""Program manifest and index record types.

- programs.yml loader with fail-fast validation
- ReleaseSlug addressing for (repository, tag) pairs
- ProgramRecord / ArtifactLocation output models
"""

from programindex.registry.manifest import (
    SLUG_REPO_SEPARATOR,
    Manifest,
    ManifestError,
    ReleaseSlug,
    load_manifest,
    parse_manifest,
)
from programindex.registry.models import (
    ArtifactLocation,
    ProgramRecord,
)

__all__ = [
    "SLUG_REPO_SEPARATOR",
    "ArtifactLocation",
    "Manifest",
    "ManifestError",
    "ProgramRecord",
    "ReleaseSlug",
    "load_manifest",
    "parse_manifest",
]
