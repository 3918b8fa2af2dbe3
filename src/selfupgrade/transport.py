"""HTTP transport for release lookups and archive downloads.

The default client does *not* perform certificate validation. Some hosts
running the application have old or missing CA roots, and it does not matter
that the upgrade is loaded insecurely: the binary contents are checked
against an ECDSA signature before the upgrade is accepted.
"""

import io
from collections.abc import Iterator

import httpx

from selfupgrade.config import UpgradeConfig


def build_client(config: UpgradeConfig | None = None) -> httpx.Client:
    """Create the default HTTP client for the given configuration."""
    config = config or UpgradeConfig()
    return httpx.Client(
        verify=config.verify_tls,
        timeout=config.timeout,
        follow_redirects=True,
        headers={"User-Agent": config.user_agent},
    )


class ResponseStream(io.RawIOBase):
    """Readable file object over an iterator of byte chunks.

    Lets ``tarfile`` consume a streamed response body without buffering
    the whole archive first.
    """

    def __init__(self, chunks: Iterator[bytes]):
        self._chunks = chunks
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size


def open_body(response: httpx.Response) -> io.BufferedReader:
    """Wrap a streamed response body in a buffered binary reader."""
    return io.BufferedReader(ResponseStream(response.iter_bytes()))
