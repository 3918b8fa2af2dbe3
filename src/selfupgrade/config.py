"""Configuration for release lookup and upgrade application."""

from dataclasses import dataclass
from typing import Final

from selfupgrade import __version__

DEFAULT_API_URL: Final = "https://api.github.com"

# Only the first page of the release index is requested
DEFAULT_PAGE_SIZE: Final = 30

# The maximum number of matching releases returned by a release lister
MAX_RELEASES: Final = 5

SIGNATURE_SUFFIX: Final = ".sig"
BACKUP_SUFFIX: Final = ".old"

USER_AGENT: Final = f"selfupgrade/{__version__}"

# Seconds; applied by the default HTTP client only
DEFAULT_TIMEOUT: Final = 30.0


@dataclass
class UpgradeConfig:
    """Tunable settings shared by the catalog and the applier."""

    api_url: str = DEFAULT_API_URL
    page_size: int = DEFAULT_PAGE_SIZE
    max_releases: int = MAX_RELEASES
    signature_suffix: str = SIGNATURE_SUFFIX
    backup_suffix: str = BACKUP_SUFFIX
    user_agent: str = USER_AGENT
    timeout: float | None = DEFAULT_TIMEOUT

    # Certificates are not checked by default: some hosts have old or missing
    # CA roots, and the binary is authenticated by its signature instead.
    verify_tls: bool = False
