"""Upgrade application: download, extract, verify, swap.

The flow is strictly linear and every failure ends the attempt:
1. Fetch the release archive
2. Extract the binary and its detached signature next to the running binary
3. Verify the signature against the trusted key
4. Rename the running binary to "<binary>.old" and the new one into place

Nothing on disk changes before verification succeeds, and the temporary
binary is removed on every failure. The process is never restarted here;
callers do that once the swap has succeeded.
"""

import contextlib
import logging
import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO, Self

import httpx

from selfupgrade.config import UpgradeConfig
from selfupgrade.domain import PlatformKind
from selfupgrade.errors import FetchError, UpgradeIOError, VerificationError
from selfupgrade.transport import build_client, open_body
from selfupgrade.updater import signature
from selfupgrade.updater.archive import ArtifactNames, ExtractedRelease, extract

Verifier = Callable[[bytes, bytes, BinaryIO], None]


def current_executable() -> Path:
    """Path of the running executable, with symlinks resolved."""
    return Path(sys.executable).resolve()


class UpgradeApplier:
    """Replaces a binary with a verified release downloaded from a URL."""

    def __init__(
        self,
        client: httpx.Client | None = None,
        verifier: Verifier | None = None,
        platform_kind: PlatformKind | None = None,
        config: UpgradeConfig | None = None,
        logger: logging.Logger | None = None,
    ):
        self.config = config or UpgradeConfig()
        self.platform_kind = platform_kind or PlatformKind.current()
        self._verifier = verifier or signature.verify
        self._owns_client = client is None
        self._client = client or build_client(self.config)
        self._logger = logger or logging.getLogger(__name__)

    def close(self) -> None:
        """Close the HTTP client if this applier created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def apply(
        self,
        binary: Path | str,
        url: str,
        key: bytes,
        binary_name: str | None = None,
    ) -> Path:
        """Upgrade binary to the release archive at url.

        Args:
            binary: Path of the binary to replace.
            url: Download URL of the release archive.
            key: PEM encoded public key trusted to sign releases.
            binary_name: Name of the executable inside the archive. Defaults
                to the name of binary without any ".exe" suffix.

        Returns:
            Path of the backup holding the previous binary.

        Raises:
            FetchError: The archive could not be downloaded.
            ArchiveError: The download is not a readable archive.
            UpgradeIOError: A temporary file or rename failed.
            VerificationError: The binary or signature is missing, or the
                signature does not match.
        """
        binary = Path(binary)
        names = ArtifactNames.for_binary(binary_name or binary.name, self.config.signature_suffix)

        release = self.read_release(binary.parent, url, names)
        self.verify_release(release, key)
        return self.swap(binary, release)

    def read_release(self, directory: Path, url: str, names: ArtifactNames) -> ExtractedRelease:
        """Download the archive at url and extract its artifacts into directory."""
        self._logger.debug("Loading %r", url)
        try:
            with self._client.stream(
                "GET", url, headers={"Accept": "application/octet-stream"}
            ) as response:
                if not response.is_success:
                    raise FetchError(
                        url,
                        f"HTTP error: {response.status_code} {response.reason_phrase}",
                        status_code=response.status_code,
                    )
                return extract(
                    directory,
                    self.platform_kind,
                    open_body(response),
                    names,
                    logger=self._logger,
                )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(url, f"{type(e).__name__}: {e}") from e

    def verify_release(self, release: ExtractedRelease, key: bytes) -> None:
        """Check the extracted binary against its signature.

        The temporary binary is removed when verification fails.
        """
        if release.binary_path is None:
            raise VerificationError("no upgrade found")
        if release.signature is None:
            release.discard()
            raise VerificationError("no signature found")

        self._logger.debug("Checking signature\n%s", release.signature.decode(errors="replace"))
        try:
            with release.binary_path.open("rb") as fd:
                self._verifier(key, release.signature, fd)
        except VerificationError:
            release.discard()
            raise
        except Exception as e:
            release.discard()
            raise VerificationError(f"Signature check failed: {e}") from e

    def swap(self, binary: Path, release: ExtractedRelease) -> Path:
        """Move the verified binary into place, keeping the previous one as backup."""
        if release.binary_path is None:
            raise VerificationError("no upgrade found")

        old = binary.with_name(binary.name + self.config.backup_suffix)
        # Ignored if absent
        with contextlib.suppress(OSError):
            old.unlink()

        try:
            os.rename(binary, old)
        except OSError as e:
            release.discard()
            raise UpgradeIOError(binary, f"Cannot move current binary to {old}") from e

        try:
            os.rename(release.binary_path, binary)
        except OSError as e:
            release.discard()
            self._logger.error("Binary %s is missing; the previous version is at %s", binary, old)
            raise UpgradeIOError(binary, f"Cannot move new binary into place (previous binary kept at {old})") from e

        self._logger.info("Upgraded %s; previous binary kept at %s", binary, old)
        return old


def upgrade_to_url(
    url: str,
    key: bytes,
    config: UpgradeConfig | None = None,
    logger: logging.Logger | None = None,
) -> Path:
    """Upgrade the running executable to the release archive at url."""
    with UpgradeApplier(config=config, logger=logger) as applier:
        return applier.apply(current_executable(), url, key)
