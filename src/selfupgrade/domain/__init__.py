"""Domain models for selfupgrade."""

from selfupgrade.domain.enums import PlatformKind, Relation
from selfupgrade.domain.models import (
    Asset,
    PrereleaseIdentifier,
    Release,
    Version,
)

__all__ = [
    "Asset",
    "PlatformKind",
    "PrereleaseIdentifier",
    "Relation",
    "Release",
    "Version",
]
