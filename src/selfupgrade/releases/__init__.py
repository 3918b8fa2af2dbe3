"""Release discovery: version comparison and release index lookups."""

from selfupgrade.releases.catalog import ReleaseCatalog, github_releases, matching_assets
from selfupgrade.releases.versions import (
    compare_parsed,
    compare_versions,
    parse_version,
    version_sort_key,
)

__all__ = [
    "ReleaseCatalog",
    "compare_parsed",
    "compare_versions",
    "github_releases",
    "matching_assets",
    "parse_version",
    "version_sort_key",
]
