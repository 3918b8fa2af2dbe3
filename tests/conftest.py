"""Pytest configuration and fixtures."""

import io
from collections.abc import Callable

import pytest

from selfupgrade.updater.signature import generate_keys, sign


@pytest.fixture(scope="session")
def key_pair() -> tuple[bytes, bytes]:
    """A release signing key pair: (private PEM, public PEM)."""
    return generate_keys()


@pytest.fixture(scope="session")
def public_key(key_pair: tuple[bytes, bytes]) -> bytes:
    return key_pair[1]


@pytest.fixture
def signed(key_pair: tuple[bytes, bytes]) -> Callable[[bytes], bytes]:
    """Sign payload bytes with the session key."""
    private_pem, _ = key_pair

    def _sign(payload: bytes) -> bytes:
        return sign(private_pem, io.BytesIO(payload))

    return _sign
