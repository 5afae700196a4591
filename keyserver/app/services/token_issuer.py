"""
Bearer token issuance.

Builds an RS256 JWT signed by the currently valid key with the latest expiry.

Token format:
- Header: {"typ": "JWT", "alg": "RS256", "kid": "<KeyRecord.id>"}
- Payload: {"sub": "sampleUser", "iat": now, "exp": now + 3600}

The token's own validity window is fixed and independent of the signing key's
expiry. The key only has to be valid at issuance time.
"""

import asyncio
import logging
from typing import Any, Dict

import jwt

from keyserver.app.models.keys import KeyRecord
from keyserver.app.services.errors import NoValidKeyError
from keyserver.app.services.key_codec import SIGNING_ALGORITHM, import_private
from keyserver.app.services.key_selector import select_signing_key
from keyserver.app.services.key_store import KeyStore

logger = logging.getLogger(__name__)

TOKEN_SUBJECT = "sampleUser"
TOKEN_LIFETIME_SECONDS = 3600


def build_claims(now: int) -> Dict[str, Any]:
    return {
        "sub": TOKEN_SUBJECT,
        "iat": now,
        "exp": now + TOKEN_LIFETIME_SECONDS,
    }


def build_header(record: KeyRecord) -> Dict[str, Any]:
    # JOSE requires a string kid; the integer id is rendered in decimal.
    return {
        "typ": "JWT",
        "alg": SIGNING_ALGORITHM,
        "kid": str(record.id),
    }


def sign_token(record: KeyRecord, now: int) -> str:
    """
    Decode the record's key material and sign a fresh token with it.

    Raises:
        CodecError: If the stored material does not decode
    """
    private_key = import_private(record.material)
    return jwt.encode(
        build_claims(now),
        private_key,
        algorithm=SIGNING_ALGORITHM,
        headers=build_header(record),
    )


async def issue_token(store: KeyStore, now: int) -> str:
    """
    Issue a signed bearer token.

    Args:
        store: Key store to select the signing key from
        now: Issuance time, Unix epoch seconds

    Returns:
        Compact-serialized JWT

    Raises:
        NoValidKeyError: If no key satisfies expires_at > now
        CodecError: If the selected key's material does not decode
        StorageError: If the store cannot be read
    """
    record = await asyncio.to_thread(select_signing_key, store, now)
    if record is None:
        raise NoValidKeyError("No valid signing key available", operation="issue_token", at=now)

    token = await asyncio.to_thread(sign_token, record, now)
    logger.debug("Issued token signed with kid=%s", record.id)
    return token
