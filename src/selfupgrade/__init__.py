"""selfupgrade - signed self-update engine for distributed binaries.

Lists newer releases from a GitHub-style release index, downloads the
platform archive, verifies the detached signature of the binary inside it
and swaps the running executable for the new one, keeping the previous
binary as a ``.old`` backup.
"""

__version__ = "0.1.0"
