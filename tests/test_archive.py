"""Tests for release archive extraction."""

import io
import os
import stat
import sys
import tarfile
from pathlib import Path
from unittest.mock import patch

import pytest

from selfupgrade.domain import PlatformKind
from selfupgrade.errors import ArchiveError, UpgradeIOError
from selfupgrade.updater.archive import (
    ArtifactNames,
    TarGzReader,
    ZipReader,
    extract,
    reader_for,
)

from helpers import make_targz, make_zip

NAMES = ArtifactNames.for_binary("app")


class CountingStream(io.BytesIO):
    """BytesIO that records how many bytes were read from it."""

    def __init__(self, data: bytes):
        super().__init__(data)
        self.bytes_read = 0

    def read(self, size: int | None = -1) -> bytes:
        chunk = super().read(size)
        self.bytes_read += len(chunk)
        return chunk


def temp_files(directory: Path) -> list[Path]:
    return sorted(p for p in directory.iterdir() if p.name.startswith("app"))


class TestArtifactNames:
    """Tests for ArtifactNames.for_binary()."""

    def test_posix_name(self) -> None:
        names = ArtifactNames.for_binary("app")
        assert names.binaries == ("app", "app.exe")
        assert names.signatures == ("app.sig", "app.exe.sig")
        assert names.prefix == "app"

    def test_windows_name(self) -> None:
        assert ArtifactNames.for_binary("app.exe") == ArtifactNames.for_binary("app")

    def test_custom_signature_suffix(self) -> None:
        names = ArtifactNames.for_binary("app", signature_suffix=".asc")
        assert names.signatures == ("app.asc", "app.exe.asc")


class TestReaderFor:
    """Tests for reader_for()."""

    def test_posix_uses_tar(self) -> None:
        assert isinstance(reader_for(PlatformKind.POSIX), TarGzReader)

    def test_windows_uses_zip(self) -> None:
        assert isinstance(reader_for(PlatformKind.WINDOWS), ZipReader)


@pytest.mark.parametrize(
    ("platform_kind", "builder"),
    [(PlatformKind.POSIX, make_targz), (PlatformKind.WINDOWS, make_zip)],
)
class TestExtract:
    """Tests for extract() with both archive formats."""

    def test_finds_binary_and_signature(self, tmp_path: Path, platform_kind, builder) -> None:
        archive = builder(
            {
                "app-v1.4.0/README.txt": b"read me",
                "app-v1.4.0/app": b"new binary",
                "app-v1.4.0/app.sig": b"signature bytes",
            }
        )

        result = extract(tmp_path, platform_kind, io.BytesIO(archive), NAMES)

        assert result.complete
        assert result.binary_path is not None
        assert result.binary_path.parent == tmp_path
        assert result.binary_path.read_bytes() == b"new binary"
        assert result.signature == b"signature bytes"

    def test_accepts_windows_executable_names(self, tmp_path: Path, platform_kind, builder) -> None:
        archive = builder({"app.exe": b"exe", "app.exe.sig": b"sig"})

        result = extract(tmp_path, platform_kind, io.BytesIO(archive), NAMES)

        assert result.binary_path is not None
        assert result.binary_path.read_bytes() == b"exe"
        assert result.signature == b"sig"

    def test_missing_signature(self, tmp_path: Path, platform_kind, builder) -> None:
        archive = builder({"dist/app": b"new binary"})

        result = extract(tmp_path, platform_kind, io.BytesIO(archive), NAMES)

        assert result.binary_path is not None
        assert result.signature is None
        assert not result.complete

    def test_missing_binary(self, tmp_path: Path, platform_kind, builder) -> None:
        archive = builder({"dist/app.sig": b"sig", "dist/other": b"x"})

        result = extract(tmp_path, platform_kind, io.BytesIO(archive), NAMES)

        assert result.binary_path is None
        assert result.signature == b"sig"
        assert temp_files(tmp_path) == []

    def test_ignores_similar_names(self, tmp_path: Path, platform_kind, builder) -> None:
        archive = builder({"app.txt": b"x", "myapp": b"y", "app.sig.bak": b"z"})

        result = extract(tmp_path, platform_kind, io.BytesIO(archive), NAMES)

        assert result.binary_path is None
        assert result.signature is None

    def test_corrupt_archive(self, tmp_path: Path, platform_kind, builder) -> None:
        with pytest.raises(ArchiveError):
            extract(tmp_path, platform_kind, io.BytesIO(b"this is not an archive"), NAMES)

        assert temp_files(tmp_path) == []

    def test_unwritable_directory(self, tmp_path: Path, platform_kind, builder) -> None:
        archive = builder({"app": b"new binary", "app.sig": b"sig"})

        with pytest.raises(UpgradeIOError):
            extract(tmp_path / "missing", platform_kind, io.BytesIO(archive), NAMES)

    def test_failed_write_removes_temp_file(self, tmp_path: Path, platform_kind, builder) -> None:
        archive = builder({"app": b"new binary", "app.sig": b"sig"})

        with patch.object(Path, "chmod", side_effect=PermissionError("denied")):
            with pytest.raises(UpgradeIOError):
                extract(tmp_path, platform_kind, io.BytesIO(archive), NAMES)

        assert temp_files(tmp_path) == []


def with_zip_header_field(archive: bytes, local_offset: int, central_offset: int, value: int) -> bytes:
    """Overwrite a two-byte field in every local and central zip header."""
    data = bytearray(archive)
    for signature, offset in ((b"PK\x03\x04", local_offset), (b"PK\x01\x02", central_offset)):
        start = data.find(signature)
        while start != -1:
            data[start + offset : start + offset + 2] = value.to_bytes(2, "little")
            start = data.find(signature, start + 4)
    return bytes(data)


class TestZipExtract:
    """Behaviour specific to the buffered zip reader."""

    @pytest.mark.parametrize(
        ("local_offset", "central_offset", "value"),
        [
            pytest.param(8, 10, 99, id="unsupported-compression"),
            pytest.param(6, 8, 0x1, id="encrypted"),
        ],
    )
    def test_unreadable_entry(
        self, tmp_path: Path, local_offset: int, central_offset: int, value: int
    ) -> None:
        archive = with_zip_header_field(
            make_zip({"app": b"bin", "app.sig": b"sig"}), local_offset, central_offset, value
        )

        with pytest.raises(ArchiveError):
            extract(tmp_path, PlatformKind.WINDOWS, io.BytesIO(archive), NAMES)

        assert temp_files(tmp_path) == []


class TestTarGzExtract:
    """Behaviour specific to the streaming tar+gzip reader."""

    def test_stops_after_both_artifacts(self, tmp_path: Path) -> None:
        """Entries after the binary and signature are never decompressed."""
        padding = os.urandom(512 * 1024)
        archive = make_targz({"app": b"bin", "app.sig": b"sig", "zz-padding": padding})
        stream = CountingStream(archive)

        result = extract(tmp_path, PlatformKind.POSIX, stream, NAMES)

        assert result.complete
        assert stream.bytes_read < len(archive)

    def test_truncated_archive_removes_temp_file(self, tmp_path: Path) -> None:
        payload = os.urandom(256 * 1024)
        archive = make_targz({"app": payload, "app.sig": b"sig"})

        with pytest.raises(ArchiveError):
            extract(tmp_path, PlatformKind.POSIX, io.BytesIO(archive[: len(archive) // 2]), NAMES)

        assert temp_files(tmp_path) == []

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_binary_is_executable(self, tmp_path: Path) -> None:
        archive = make_targz({"app": b"bin", "app.sig": b"sig"})

        result = extract(tmp_path, PlatformKind.POSIX, io.BytesIO(archive), NAMES)

        assert result.binary_path is not None
        assert result.binary_path.stat().st_mode & stat.S_IXUSR

    def test_directory_entries_are_skipped(self, tmp_path: Path) -> None:
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
            directory = tarfile.TarInfo("app")
            directory.type = tarfile.DIRTYPE
            tar.addfile(directory)
            for name, content in (("app/app", b"bin"), ("app/app.sig", b"sig")):
                info = tarfile.TarInfo(name)
                info.size = len(content)
                tar.addfile(info, io.BytesIO(content))

        result = extract(tmp_path, PlatformKind.POSIX, io.BytesIO(buffer.getvalue()), NAMES)

        assert result.binary_path is not None
        assert result.binary_path.read_bytes() == b"bin"
