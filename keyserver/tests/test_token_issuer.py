"""
Tests for signing key selection and token issuance.

Issued tokens are verified with python-jose against the public JWK of the
signing key, the same way a relying party would.
"""

import asyncio

import pytest
from jose import JWTError
from jose import jwt as jose_jwt

from keyserver.app.services.errors import CodecError, NoValidKeyError
from keyserver.app.services.key_codec import import_private, to_public_representation
from keyserver.app.services.key_selector import select_signing_key
from keyserver.app.services.token_issuer import issue_token


def _jwk_for(pem: bytes, kid: int) -> dict:
    return to_public_representation(import_private(pem), kid).model_dump()


def test_selector_returns_latest_valid_key(memory_store, pem_pool, now):
    memory_store.insert(pem_pool[0], now + 60)
    latest = memory_store.insert(pem_pool[1], now + 7200)
    memory_store.insert(pem_pool[2], now - 3600)

    assert select_signing_key(memory_store, now).id == latest


def test_selector_never_falls_back_to_expired(memory_store, pem_pool, now):
    memory_store.insert(pem_pool[0], now - 1)
    assert select_signing_key(memory_store, now) is None


def test_issue_token_header_and_claims(any_store, pem_pool, now):
    kid = any_store.insert(pem_pool[0], now + 3600)

    token = asyncio.run(issue_token(any_store, now))

    header = jose_jwt.get_unverified_header(token)
    assert header == {"typ": "JWT", "alg": "RS256", "kid": str(kid)}

    claims = jose_jwt.decode(token, _jwk_for(pem_pool[0], kid), algorithms=["RS256"])
    assert claims == {"sub": "sampleUser", "iat": now, "exp": now + 3600}


def test_issue_token_uses_key_with_greatest_expiry(memory_store, pem_pool, now):
    memory_store.insert(pem_pool[0], now + 600)
    latest = memory_store.insert(pem_pool[1], now + 9000)
    memory_store.insert(pem_pool[2], now + 1200)
    memory_store.insert(pem_pool[3], now - 600)

    token = asyncio.run(issue_token(memory_store, now))

    assert jose_jwt.get_unverified_header(token)["kid"] == str(latest)
    # Signed by key 1 and by nothing else.
    jose_jwt.decode(token, _jwk_for(pem_pool[1], latest), algorithms=["RS256"])
    with pytest.raises(JWTError):
        jose_jwt.decode(token, _jwk_for(pem_pool[0], latest), algorithms=["RS256"])


def test_token_lifetime_independent_of_key_expiry(memory_store, pem_pool, now):
    """A key expiring in 10 seconds still signs a token valid for an hour."""
    kid = memory_store.insert(pem_pool[0], now + 10)

    token = asyncio.run(issue_token(memory_store, now))

    claims = jose_jwt.decode(token, _jwk_for(pem_pool[0], kid), algorithms=["RS256"])
    assert claims["exp"] == now + 3600


def test_issue_token_fails_when_only_expired_keys(any_store, pem_pool, now):
    any_store.insert(pem_pool[0], now - 3600)
    any_store.insert(pem_pool[1], now - 1)

    with pytest.raises(NoValidKeyError) as excinfo:
        asyncio.run(issue_token(any_store, now))
    assert excinfo.value.operation == "issue_token"
    assert excinfo.value.at == now


def test_issue_token_fails_when_now_forced_past_all_expiries(memory_store, pem_pool, now):
    memory_store.insert(pem_pool[0], now + 3600)

    with pytest.raises(NoValidKeyError):
        asyncio.run(issue_token(memory_store, now + 3600))


def test_issue_token_fails_on_empty_store(memory_store, now):
    with pytest.raises(NoValidKeyError):
        asyncio.run(issue_token(memory_store, now))


def test_issue_token_fails_on_undecodable_material(memory_store, now):
    memory_store.insert(b"sampleKey", now + 3600)

    with pytest.raises(CodecError):
        asyncio.run(issue_token(memory_store, now))
