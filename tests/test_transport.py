"""Tests for the HTTP transport helpers."""

import httpx

from selfupgrade.config import UpgradeConfig
from selfupgrade.transport import ResponseStream, build_client


class TestResponseStream:
    """Tests for ResponseStream."""

    def test_reads_across_chunks(self) -> None:
        stream = ResponseStream(iter([b"abc", b"", b"defg", b"h"]))

        assert stream.read(2) == b"ab"
        assert stream.read(4) == b"c"
        assert stream.readall() == b"defgh"
        assert stream.read(1) == b""

    def test_empty(self) -> None:
        assert ResponseStream(iter([])).readall() == b""


class TestBuildClient:
    """Tests for build_client()."""

    def test_applies_config(self) -> None:
        config = UpgradeConfig(user_agent="app-updater/9", timeout=5.0)

        with build_client(config) as client:
            assert client.headers["User-Agent"] == "app-updater/9"
            assert client.timeout == httpx.Timeout(5.0)
            assert client.follow_redirects
