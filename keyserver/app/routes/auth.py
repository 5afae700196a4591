"""
Token issuance endpoint.
"""

from typing import Callable

from fastapi import APIRouter, Depends

from keyserver.app.models.keys import TokenResponse
from keyserver.app.routes.deps import get_clock, get_key_store
from keyserver.app.services.key_store import KeyStore
from keyserver.app.services.token_issuer import issue_token

router = APIRouter(tags=["auth"])


@router.post("/auth", response_model=TokenResponse)
async def issue(
    store: KeyStore = Depends(get_key_store),
    clock: Callable[[], int] = Depends(get_clock),
) -> TokenResponse:
    """
    Issue an RS256 bearer token signed by the currently valid key.

    Any request body is ignored; the token subject is fixed.

    Failures (no valid key, undecodable key material, storage errors) are
    raised as KeyServerError and mapped to a generic 500 by the app.
    """
    token = await issue_token(store, clock())
    return TokenResponse(token=token)
