"""
JWKS discovery endpoint for token verifiers.
"""

from typing import Callable

from fastapi import APIRouter, Depends

from keyserver.app.models.keys import JwksDocument
from keyserver.app.routes.deps import get_clock, get_key_store
from keyserver.app.services.discovery import publish_jwks
from keyserver.app.services.key_store import KeyStore

router = APIRouter(tags=["keys"])


@router.get("/.well-known/jwks.json", response_model=JwksDocument)
async def jwks(
    store: KeyStore = Depends(get_key_store),
    clock: Callable[[], int] = Depends(get_clock),
) -> JwksDocument:
    """
    List the public keys of every currently valid signing key.

    Returns {"keys": [JWK, ...]}; expired keys are never included.
    """
    return await publish_jwks(store, clock())
