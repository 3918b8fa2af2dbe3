"""Enumerations for version relations and target platforms."""

import platform
from enum import Enum, IntEnum


class Relation(IntEnum):
    """How one version compares to another.

    The sign orders the versions; a magnitude of 2 means the difference
    crosses a major boundary (x in x.y.z, or y in 0.y.z).
    """

    MAJOR_OLDER = -2
    OLDER = -1
    EQUAL = 0
    NEWER = 1
    MAJOR_NEWER = 2

    @property
    def is_newer(self) -> bool:
        return self > 0

    @property
    def is_older(self) -> bool:
        return self < 0

    @property
    def is_major(self) -> bool:
        return abs(self) == 2

    def inverse(self) -> "Relation":
        """The relation seen from the other side of the comparison."""
        return Relation(-self.value)


class PlatformKind(str, Enum):
    """Archive flavour used for a target platform."""

    POSIX = "posix"  # tar+gzip
    WINDOWS = "windows"  # zip

    @classmethod
    def current(cls) -> "PlatformKind":
        """Platform kind of the running interpreter."""
        if platform.system().lower() == "windows":
            return cls.WINDOWS
        return cls.POSIX
