"""Release catalog backed by a GitHub-style release index.

Fetches the first page of releases for a project, drops everything that is
not an acceptable upgrade from the current version and returns the newest
few candidates, newest first.
"""

import logging
import re
from typing import Self

import httpx
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from selfupgrade.config import UpgradeConfig
from selfupgrade.domain import Asset, Relation, Release
from selfupgrade.errors import DecodeError, FetchError
from selfupgrade.releases.versions import compare_versions, version_sort_key
from selfupgrade.transport import build_client


class _IndexEntry(BaseModel):
    """One release as published by the index.

    Kept separate from Release so index-specific field names stay out of
    the public model.
    """

    tag: str = Field(alias="tag_name")
    prerelease: bool
    assets: list[Asset]


_index_adapter = TypeAdapter(list[_IndexEntry])


class ReleaseCatalog:
    """Lists releases that are eligible upgrades from a given version."""

    def __init__(
        self,
        client: httpx.Client | None = None,
        config: UpgradeConfig | None = None,
        logger: logging.Logger | None = None,
    ):
        self.config = config or UpgradeConfig()
        self._owns_client = client is None
        self._client = client or build_client(self.config)
        self._logger = logger or logging.getLogger(__name__)

    def close(self) -> None:
        """Close the HTTP client if this catalog created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def index_url(self, project: str) -> str:
        return f"{self.config.api_url.rstrip('/')}/repos/{project}/releases"

    def fetch_index(self, project: str) -> list[_IndexEntry]:
        """Fetch and decode the first page of the release index."""
        url = self.index_url(project)
        self._logger.debug("Loading release index %s", url)

        try:
            response = self._client.get(
                url,
                params={"per_page": self.config.page_size},
                headers={"Accept": "application/vnd.github+json"},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(url, f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise FetchError(
                url,
                f"API call returned HTTP error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            return _index_adapter.validate_json(response.content)
        except ValidationError as e:
            raise DecodeError(f"Malformed release index from {url}: {e}") from e

    def list_releases(
        self,
        project: str,
        current_version: str,
        allow_major_upgrade: bool = False,
        allow_prerelease: bool = False,
    ) -> list[Release]:
        """Return releases of the project that are newer than current_version.

        Args:
            project: Index project path, e.g. "owner/name".
            current_version: Version of the running binary.
            allow_major_upgrade: Keep releases that are majorly newer.
            allow_prerelease: Keep releases flagged as prereleases.

        Returns:
            At most ``config.max_releases`` releases, newest first. An empty
            list means no error occurred but nothing newer meets the criteria.

        Raises:
            FetchError: The index could not be fetched.
            DecodeError: The index response did not match the expected schema.
        """
        releases = []
        for entry in self.fetch_index(project):
            if entry.prerelease and not allow_prerelease:
                self._logger.debug("Skipping %s: prerelease", entry.tag)
                continue

            relation = compare_versions(entry.tag, current_version)
            if not relation.is_newer:
                self._logger.debug("Skipping %s: not newer than %s", entry.tag, current_version)
                continue
            if relation == Relation.MAJOR_NEWER and not allow_major_upgrade:
                self._logger.debug("Skipping %s: major upgrade not allowed", entry.tag)
                continue

            releases.append(Release(version=entry.tag, assets=tuple(entry.assets)))

        releases.sort(key=lambda r: version_sort_key(r.version), reverse=True)
        return releases[: self.config.max_releases]


def github_releases(
    project: str,
    current_version: str,
    allow_major_upgrade: bool = False,
    allow_prerelease: bool = False,
    config: UpgradeConfig | None = None,
) -> list[Release]:
    """List eligible releases using a default catalog.

        rels = github_releases("owner/project", "v1.2.3", allow_major_upgrade=True)
    """
    with ReleaseCatalog(config=config) as catalog:
        return catalog.list_releases(
            project,
            current_version,
            allow_major_upgrade=allow_major_upgrade,
            allow_prerelease=allow_prerelease,
        )


def matching_assets(pattern: str | re.Pattern[str], release: Release) -> list[Asset]:
    """Return the assets of a release whose names match the expression.

    To get the assets suitable for Darwin/AMD64, where the convention is for
    asset names to contain "<os>-<arch>":

        assets = matching_assets(r"darwin-amd64", release)
    """
    expression = re.compile(pattern) if isinstance(pattern, str) else pattern
    return [asset for asset in release.assets if expression.search(asset.name)]
