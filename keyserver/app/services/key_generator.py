"""
RSA signing key generation and startup seeding.
"""

import logging
from typing import Tuple

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import rsa

from keyserver.app.services.errors import KeyGenError
from keyserver.app.services.key_codec import export_private
from keyserver.app.services.key_store import KeyStore

logger = logging.getLogger(__name__)

KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537
SEED_KEY_LIFETIME_SECONDS = 3600


def generate() -> rsa.RSAPrivateKey:
    """
    Generate a fresh RSA keypair for RS256 signing.

    Raises:
        KeyGenError: If the cryptographic backend cannot produce the key
    """
    try:
        return rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=KEY_SIZE)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise KeyGenError(f"RSA key generation failed: {e}", operation="generate_key") from e


def seed_keys(store: KeyStore, now: int) -> Tuple[int, int]:
    """
    Populate the store with one valid and one already-expired key.

    Runs once before the service accepts requests. The expired key exists so
    that expiry filtering is observable right after startup.

    Args:
        store: Key store to write into
        now: Current time, Unix epoch seconds

    Returns:
        (valid_kid, expired_kid)

    Raises:
        KeyGenError: If either keypair cannot be generated
        StorageError: If either record cannot be written
    """
    valid_key = generate()
    expired_key = generate()

    valid_kid = store.insert(export_private(valid_key), now + SEED_KEY_LIFETIME_SECONDS)
    expired_kid = store.insert(export_private(expired_key), now - SEED_KEY_LIFETIME_SECONDS)

    logger.info("Seeded signing keys: valid kid=%s, expired kid=%s", valid_kid, expired_kid)
    return valid_kid, expired_kid
