"""Exceptions raised by the upgrade pipeline.

Every failure is reported to the caller; nothing is retried internally.
"""

from pathlib import Path


class UpgradeError(Exception):
    """Base class for all upgrade failures."""


class FetchError(UpgradeError):
    """Raised when the transport fails or the server answers with a non-success status."""

    def __init__(self, url: str, reason: str, status_code: int | None = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Fetching {url} failed: {reason}")


class DecodeError(UpgradeError):
    """Raised when a release index response does not match the expected schema."""


class ArchiveError(UpgradeError):
    """Raised when a release archive cannot be read as tar+gzip or zip."""


class UpgradeIOError(UpgradeError):
    """Raised on local filesystem failures (temp files, chmod, rename)."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class VerificationError(UpgradeError):
    """Raised when the binary or its signature is missing, or the signature does not verify."""
