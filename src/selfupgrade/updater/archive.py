"""Extraction of the binary and its detached signature from a release archive.

POSIX releases ship as tar+gzip and are read as a stream. Windows releases
ship as zip, which needs random access, so the whole archive is buffered in
memory first; release archives are small enough for that.
"""

import gzip
import io
import logging
import os
import posixpath
import tarfile
import tempfile
import zipfile
import zlib
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from selfupgrade.config import SIGNATURE_SUFFIX
from selfupgrade.domain import PlatformKind
from selfupgrade.errors import ArchiveError, UpgradeIOError

_CHUNK_SIZE = 64 * 1024

# Errors meaning the container itself is unreadable or truncated
_CONTAINER_ERRORS = (
    tarfile.TarError,
    zipfile.BadZipFile,
    gzip.BadGzipFile,
    zlib.error,
    EOFError,
)


@dataclass(frozen=True)
class ArtifactNames:
    """Base names of the binary and signature entries to look for."""

    binaries: tuple[str, ...]
    signatures: tuple[str, ...]
    prefix: str

    @classmethod
    def for_binary(cls, name: str, signature_suffix: str = SIGNATURE_SUFFIX) -> "ArtifactNames":
        """Accept both the POSIX and the Windows name of an executable.

        "app" or "app.exe" -> binaries ("app", "app.exe"),
        signatures ("app.sig", "app.exe.sig")
        """
        base = name[: -len(".exe")] if name.lower().endswith(".exe") else name
        binaries = (base, f"{base}.exe")
        return cls(
            binaries=binaries,
            signatures=tuple(f"{b}{signature_suffix}" for b in binaries),
            prefix=base,
        )


@dataclass
class ExtractedRelease:
    """Artifacts found in an archive; either may be missing."""

    binary_path: Path | None = None
    signature: bytes | None = None

    @property
    def complete(self) -> bool:
        return self.binary_path is not None and self.signature is not None

    def discard(self) -> None:
        """Remove the extracted binary, if any."""
        if self.binary_path is not None:
            self.binary_path.unlink(missing_ok=True)
            self.binary_path = None


class ArchiveReader(ABC):
    """Iterates over the regular files of one archive format."""

    @abstractmethod
    def entries(self, stream: BinaryIO) -> Iterator[tuple[str, BinaryIO]]:
        """Yield (entry name, readable data) for each regular file.

        The data object is only valid until the next entry is requested.
        """


class TarGzReader(ArchiveReader):
    """Streaming tar+gzip reader used for POSIX targets."""

    def entries(self, stream: BinaryIO) -> Iterator[tuple[str, BinaryIO]]:
        with tarfile.open(fileobj=stream, mode="r|gz") as archive:
            for member in archive:
                if not member.isfile():
                    continue
                data = archive.extractfile(member)
                if data is not None:
                    yield member.name, data


class ZipReader(ArchiveReader):
    """Buffered zip reader used for Windows targets."""

    def entries(self, stream: BinaryIO) -> Iterator[tuple[str, BinaryIO]]:
        body = stream.read()
        with zipfile.ZipFile(io.BytesIO(body)) as archive:
            for info in archive.infolist():
                if info.is_dir():
                    continue
                try:
                    data = archive.open(info)
                except (NotImplementedError, RuntimeError) as e:
                    # Unsupported compression method or encrypted entry
                    raise ArchiveError(f"Cannot open {info.filename}: {e}") from e
                with data:
                    yield info.filename, data


_READERS: dict[PlatformKind, type[ArchiveReader]] = {
    PlatformKind.POSIX: TarGzReader,
    PlatformKind.WINDOWS: ZipReader,
}


def reader_for(platform_kind: PlatformKind) -> ArchiveReader:
    """Return the archive reader for a platform."""
    return _READERS[platform_kind]()


def _copy(source: BinaryIO, target: BinaryIO) -> None:
    while True:
        try:
            chunk = source.read(_CHUNK_SIZE)
        except _CONTAINER_ERRORS as e:
            raise ArchiveError(f"Corrupt archive entry: {e}") from e
        if not chunk:
            return
        target.write(chunk)


def write_binary(directory: Path, prefix: str, data: BinaryIO) -> Path:
    """Write the binary to an executable temporary file inside directory.

    The file is created next to its final destination so that the final
    rename stays on one filesystem.
    """
    try:
        fd, name = tempfile.mkstemp(dir=directory, prefix=prefix)
    except OSError as e:
        raise UpgradeIOError(directory, "Cannot create temporary file") from e

    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as out:
            _copy(data, out)
        path.chmod(0o755)
    except OSError as e:
        path.unlink(missing_ok=True)
        raise UpgradeIOError(path, "Cannot write temporary file") from e
    except BaseException:
        path.unlink(missing_ok=True)
        raise
    return path


def extract(
    target_dir: Path,
    platform_kind: PlatformKind,
    stream: BinaryIO,
    names: ArtifactNames,
    logger: logging.Logger | None = None,
) -> ExtractedRelease:
    """Pull the binary and its signature out of a release archive.

    Stops reading as soon as both have been found. Missing artifacts are
    reported as None rather than as an error; verification rejects them.

    Raises:
        ArchiveError: The stream is not a readable archive of the expected format.
        UpgradeIOError: The temporary binary could not be written.
    """
    log = logger or logging.getLogger(__name__)
    reader = reader_for(platform_kind)
    result = ExtractedRelease()

    try:
        for entry_name, data in reader.entries(stream):
            short_name = posixpath.basename(entry_name)
            log.debug("Considering file %r", short_name)

            if short_name in names.binaries:
                log.debug("Reading binary")
                result.discard()
                result.binary_path = write_binary(Path(target_dir), names.prefix, data)
            elif short_name in names.signatures:
                log.debug("Reading signature")
                result.signature = data.read()

            if result.complete:
                break
    except _CONTAINER_ERRORS as e:
        result.discard()
        raise ArchiveError(f"Cannot read {platform_kind.value} release archive: {e}") from e
    except BaseException:
        result.discard()
        raise

    return result
