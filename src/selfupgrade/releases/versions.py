"""Version parsing and comparison.

Versions look like semver ("1.2.3", "v0.9.0-beta.2+build.7") but the
release part may have any number of dotted components. Comparison reports
not only the ordering but also whether the difference crosses a major
boundary; for 0.y.z versions the second component plays the major role.
"""

import functools
import re
from collections.abc import Callable
from typing import Any

from selfupgrade.domain import PrereleaseIdentifier, Relation, Version

# Integer syntax accepted for numeric fields: optional sign, ASCII digits
_NUMERIC = re.compile(r"[+-]?[0-9]+")


def _to_int(field: str) -> int | None:
    if _NUMERIC.fullmatch(field):
        return int(field)
    return None


def parse_version(version: str) -> Version:
    """Split a version string into its parts.

    "1.2.3-beta.2+45" -> release (1, 2, 3), prerelease ("beta", 2)

    A leading "v" or "V" is stripped and build metadata after "+" is
    discarded. Release fields that are not integers are read as 0.
    """
    if version[:1] in ("v", "V"):
        version = version[1:]
    version = version.split("+", 1)[0]
    main, sep, pre = version.partition("-")

    release = tuple(_to_int(field) or 0 for field in main.split("."))

    prerelease: tuple[PrereleaseIdentifier, ...] = ()
    if sep:
        identifiers = []
        for field in pre.split("."):
            number = _to_int(field)
            if number is not None:
                identifiers.append(PrereleaseIdentifier(number=number))
            else:
                identifiers.append(PrereleaseIdentifier(text=field))
        prerelease = tuple(identifiers)

    return Version(release=release, prerelease=prerelease)


def _compare_identifiers(a: PrereleaseIdentifier, b: PrereleaseIdentifier) -> Relation:
    # Numeric identifiers always sort before alphanumeric ones
    if a.is_numeric and not b.is_numeric:
        return Relation.OLDER
    if not a.is_numeric and b.is_numeric:
        return Relation.NEWER

    av: Any = a.number if a.is_numeric else a.text
    bv: Any = b.number if b.is_numeric else b.text
    if av < bv:
        return Relation.OLDER
    if av > bv:
        return Relation.NEWER
    return Relation.EQUAL


def compare_parsed(a: Version, b: Version) -> Relation:
    """Return the relation of parsed version a to parsed version b."""
    # First compare major-minor-patch components
    for i, (av, bv) in enumerate(zip(a.release, b.release)):
        if av == bv:
            continue
        major = i == 0 or (i == 1 and a.release[0] == 0)
        if av < bv:
            return Relation.MAJOR_OLDER if major else Relation.OLDER
        return Relation.MAJOR_NEWER if major else Relation.NEWER

    # Longer version is newer when the shared components are equal
    if len(a.release) != len(b.release):
        return Relation.OLDER if len(a.release) < len(b.release) else Relation.NEWER

    # A prerelease is older than the release it leads up to
    if not a.prerelease and b.prerelease:
        return Relation.NEWER
    if a.prerelease and not b.prerelease:
        return Relation.OLDER

    for ap, bp in zip(a.prerelease, b.prerelease):
        relation = _compare_identifiers(ap, bp)
        if relation != Relation.EQUAL:
            return relation

    # All else equal, the longer prerelease tag is newer
    if len(a.prerelease) != len(b.prerelease):
        return Relation.OLDER if len(a.prerelease) < len(b.prerelease) else Relation.NEWER

    return Relation.EQUAL


def compare_versions(a: str, b: str) -> Relation:
    """Return a relation describing how version a compares to version b.

    >>> compare_versions("0.3.0", "0.1.2")
    <Relation.MAJOR_NEWER: 2>
    """
    return compare_parsed(parse_version(a), parse_version(b))


def _compare_for_sort(a: str, b: str) -> int:
    return int(compare_versions(a, b))


version_sort_key: Callable[[str], Any] = functools.cmp_to_key(_compare_for_sort)
