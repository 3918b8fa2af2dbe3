"""Archive and HTTP helpers shared by the tests."""

import io
import tarfile
import zipfile
from collections.abc import Callable

import httpx


def make_targz(files: dict[str, bytes]) -> bytes:
    """Build a tar+gzip archive in memory, entries in the given order."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for name, content in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            info.mode = 0o755
            archive.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def make_zip(files: dict[str, bytes]) -> bytes:
    """Build a zip archive in memory, entries in the given order."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    """HTTP client whose requests are answered by handler."""
    return httpx.Client(transport=httpx.MockTransport(handler))
