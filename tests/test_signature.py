"""Tests for release signatures."""

import io

import pytest

from selfupgrade.errors import VerificationError
from selfupgrade.updater.signature import generate_keys, sign, verify


class TestSignAndVerify:
    """Tests for sign() and verify()."""

    def test_signature_is_pem_block(self, key_pair: tuple[bytes, bytes]) -> None:
        private_pem, _ = key_pair

        sig = sign(private_pem, io.BytesIO(b"binary contents"))

        assert sig.startswith(b"-----BEGIN SIGNATURE-----\n")
        assert sig.endswith(b"-----END SIGNATURE-----\n")

    def test_valid_signature(self, key_pair: tuple[bytes, bytes]) -> None:
        private_pem, public_pem = key_pair
        payload = b"\x7fELF" + bytes(200_000)

        sig = sign(private_pem, io.BytesIO(payload))

        verify(public_pem, sig, io.BytesIO(payload))

    def test_tampered_data(self, key_pair: tuple[bytes, bytes]) -> None:
        private_pem, public_pem = key_pair
        sig = sign(private_pem, io.BytesIO(b"original"))

        with pytest.raises(VerificationError):
            verify(public_pem, sig, io.BytesIO(b"modified"))

    def test_other_key(self, key_pair: tuple[bytes, bytes]) -> None:
        private_pem, _ = key_pair
        _, other_public = generate_keys()
        sig = sign(private_pem, io.BytesIO(b"payload"))

        with pytest.raises(VerificationError):
            verify(other_public, sig, io.BytesIO(b"payload"))

    def test_raw_der_signature(self, key_pair: tuple[bytes, bytes]) -> None:
        import base64

        private_pem, public_pem = key_pair
        pem = sign(private_pem, io.BytesIO(b"payload"))
        der = base64.b64decode(b"".join(pem.splitlines()[1:-1]))

        verify(public_pem, der, io.BytesIO(b"payload"))

    @pytest.mark.parametrize(
        "signature",
        [
            b"garbage",
            b"-----BEGIN SIGNATURE-----\n!!!!\n-----END SIGNATURE-----\n",
            b"-----BEGIN CERTIFICATE-----\nAAAA\n-----END CERTIFICATE-----\n",
        ],
    )
    def test_malformed_signature(self, public_key: bytes, signature: bytes) -> None:
        with pytest.raises(VerificationError):
            verify(public_key, signature, io.BytesIO(b"payload"))

    def test_malformed_key(self, signed) -> None:
        with pytest.raises(VerificationError):
            verify(b"not a key", signed(b"payload"), io.BytesIO(b"payload"))
