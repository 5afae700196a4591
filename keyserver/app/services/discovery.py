"""
JWKS discovery document.

Publishes the public half of every key valid at `now`. Expired records are
filtered out by the store query, before any key material is decoded.
"""

import asyncio
from typing import List

from keyserver.app.models.keys import JwksDocument, KeyRecord, PublicKeyDescriptor
from keyserver.app.services.key_codec import import_private, to_public_representation
from keyserver.app.services.key_store import KeyStore


def describe_keys(records: List[KeyRecord]) -> List[PublicKeyDescriptor]:
    return [
        to_public_representation(import_private(record.material), record.id)
        for record in records
    ]


async def publish_jwks(store: KeyStore, now: int) -> JwksDocument:
    """
    Build the discovery document for `now`.

    Raises:
        StorageError: If the store cannot be read
        CodecError: If a valid record's material does not decode
    """
    records = await asyncio.to_thread(store.all_valid_at, now)
    descriptors = await asyncio.to_thread(describe_keys, records)
    return JwksDocument(keys=descriptors)
