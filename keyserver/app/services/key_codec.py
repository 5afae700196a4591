"""
Key material codec.

Converts RSA private keys to and from their stored PEM form, and renders the
public half as a JWK for the discovery document.

Stored format:
- Encoding: PEM
- Format: PKCS#8, unencrypted

Public format (RFC 7518 section 6.3.1):
- n, e as base64url of the big-endian unsigned integer, no padding
"""

import base64

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from keyserver.app.models.keys import PublicKeyDescriptor
from keyserver.app.services.errors import CodecError

SIGNING_ALGORITHM = "RS256"


def b64url_uint(value: int) -> str:
    """Base64url-encode an unsigned integer using its minimal big-endian length."""
    length = max(1, (value.bit_length() + 7) // 8)
    raw = value.to_bytes(length, byteorder="big")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def export_private(private_key: rsa.RSAPrivateKey) -> bytes:
    """Serialize the full keypair for storage."""
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def import_private(data: bytes) -> rsa.RSAPrivateKey:
    """
    Reconstruct a signing key from stored bytes.

    Raises:
        CodecError: If the bytes are not a PEM private key or not an RSA key
    """
    if isinstance(data, str):
        data = data.encode("utf-8")

    try:
        private_key = serialization.load_pem_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CodecError(f"Stored key material is not a PEM private key: {e}", operation="import_private") from e

    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise CodecError(
            f"Stored key material is {type(private_key).__name__}, expected an RSA key",
            operation="import_private",
        )

    return private_key


def to_public_representation(private_key: rsa.RSAPrivateKey, kid: int) -> PublicKeyDescriptor:
    """
    Extract the public components and tag them for publication.

    Only the modulus and exponent leave this function; private numbers are
    never read.
    """
    public_numbers = private_key.public_key().public_numbers()

    return PublicKeyDescriptor(
        kty="RSA",
        use="sig",
        alg=SIGNING_ALGORITHM,
        kid=str(kid),
        n=b64url_uint(public_numbers.n),
        e=b64url_uint(public_numbers.e),
    )
