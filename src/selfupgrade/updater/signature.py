"""ECDSA signatures over release binaries.

A signature is the DER encoded (r, s) pair of an ECDSA signature over the
SHA-256 digest of the whole binary, wrapped in a PEM block of type
"SIGNATURE". Public keys are PEM encoded SubjectPublicKeyInfo structures.
"""

import base64
import binascii
import textwrap
from typing import BinaryIO

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from selfupgrade.errors import VerificationError

PEM_TYPE = "SIGNATURE"

_CHUNK_SIZE = 64 * 1024


def _digest(data: BinaryIO) -> bytes:
    hasher = hashes.Hash(hashes.SHA256())
    while chunk := data.read(_CHUNK_SIZE):
        hasher.update(chunk)
    return hasher.finalize()


def _encode_pem(der: bytes) -> bytes:
    body = "\n".join(textwrap.wrap(base64.b64encode(der).decode("ascii"), 64))
    return f"-----BEGIN {PEM_TYPE}-----\n{body}\n-----END {PEM_TYPE}-----\n".encode("ascii")


def _decode_signature(signature: bytes) -> bytes:
    """Return the DER bytes of a PEM wrapped (or already raw DER) signature."""
    text = signature.strip()
    if not text.startswith(b"-----BEGIN"):
        return signature

    lines = text.splitlines()
    if lines[0].strip() != f"-----BEGIN {PEM_TYPE}-----".encode() or (
        lines[-1].strip() != f"-----END {PEM_TYPE}-----".encode()
    ):
        raise VerificationError("Signature is not a PEM encoded SIGNATURE block")
    try:
        return base64.b64decode(b"".join(line.strip() for line in lines[1:-1]), validate=True)
    except binascii.Error as e:
        raise VerificationError(f"Signature has invalid base64 content: {e}") from e


def _load_public_key(public_key: bytes) -> ec.EllipticCurvePublicKey:
    try:
        key = serialization.load_pem_public_key(public_key)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise VerificationError(f"Invalid public key: {e}") from e
    if not isinstance(key, ec.EllipticCurvePublicKey):
        raise VerificationError("Public key is not an ECDSA key")
    return key


def generate_keys() -> tuple[bytes, bytes]:
    """Create a new P-521 key pair.

    Returns:
        (private key PEM, public key PEM)
    """
    private_key = ec.generate_private_key(ec.SECP521R1())
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem, public_pem


def sign(private_key: bytes, data: BinaryIO) -> bytes:
    """Sign the contents of data and return a PEM encoded signature."""
    key = serialization.load_pem_private_key(private_key, password=None)
    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise ValueError("Private key is not an ECDSA key")
    der = key.sign(_digest(data), ec.ECDSA(Prehashed(hashes.SHA256())))
    return _encode_pem(der)


def verify(public_key: bytes, signature: bytes, data: BinaryIO) -> None:
    """Check that signature is valid for the contents of data.

    Raises:
        VerificationError: The key or signature is malformed, or the
            signature does not match the data.
    """
    key = _load_public_key(public_key)
    der = _decode_signature(signature)
    try:
        key.verify(der, _digest(data), ec.ECDSA(Prehashed(hashes.SHA256())))
    except (InvalidSignature, ValueError) as e:
        raise VerificationError("Signature does not match binary") from e
