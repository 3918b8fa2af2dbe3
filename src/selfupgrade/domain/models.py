"""Domain models for releases and parsed versions.

- Release/Asset: immutable entries from a release index
- Version: transient parse result of a version string
- PrereleaseIdentifier: one dotted field of a prerelease tag, numeric or text
"""

from collections.abc import Iterable
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict


class Asset(BaseModel):
    """An archive file for a given OS and architecture."""

    model_config = ConfigDict(frozen=True)

    # The asset name or description
    name: str

    # The download URL
    url: str


class Release(BaseModel):
    """A published software release.

    The version should be in semver format, i.e. "0.1.2" or "v2.3.4".
    """

    model_config = ConfigDict(frozen=True)

    version: str
    assets: tuple[Asset, ...] = ()

    def with_assets(self, assets: Iterable[Asset]) -> "Release":
        """Return a copy of this release carrying only the given assets."""
        return self.model_copy(update={"assets": tuple(assets)})


@dataclass(frozen=True)
class PrereleaseIdentifier:
    """A prerelease field holding either a number or a string, never both."""

    number: int | None = None
    text: str | None = None

    @property
    def is_numeric(self) -> bool:
        return self.number is not None

    def __str__(self) -> str:
        return str(self.number) if self.is_numeric else str(self.text)


@dataclass(frozen=True)
class Version:
    """A parsed version: release components plus prerelease identifiers.

    Build metadata is dropped during parsing and has no representation here.
    """

    release: tuple[int, ...]
    prerelease: tuple[PrereleaseIdentifier, ...] = ()

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def __str__(self) -> str:
        text = ".".join(str(n) for n in self.release)
        if self.prerelease:
            text += "-" + ".".join(str(p) for p in self.prerelease)
        return text
