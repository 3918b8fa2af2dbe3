"""Self-update of the running binary from signed release archives.

- Extract the binary and its signature from tar+gzip or zip archives
- Verify the ECDSA signature against a trusted key
- Swap the binary in place, keeping the previous one as "<binary>.old"
"""

from selfupgrade.updater.applier import UpgradeApplier, current_executable, upgrade_to_url
from selfupgrade.updater.archive import (
    ArchiveReader,
    ArtifactNames,
    ExtractedRelease,
    TarGzReader,
    ZipReader,
    extract,
    reader_for,
)

__all__ = [
    "ArchiveReader",
    "ArtifactNames",
    "ExtractedRelease",
    "TarGzReader",
    "UpgradeApplier",
    "ZipReader",
    "current_executable",
    "extract",
    "reader_for",
    "upgrade_to_url",
]
