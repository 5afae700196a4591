"""
Tests for the offline token verifier in tools/verify_token_cli.py.
"""

import asyncio
import json

import pytest

from keyserver.app.services.discovery import publish_jwks
from keyserver.app.services.token_issuer import issue_token, sign_token
from tools.verify_token_cli import find_jwk, main, verify_token


def _issue_and_publish(store, now):
    token = asyncio.run(issue_token(store, now))
    jwks = asyncio.run(publish_jwks(store, now)).model_dump()
    return token, jwks


def test_verify_valid_token(memory_store, pem_pool, now):
    memory_store.insert(pem_pool[0], now + 3600)
    token, jwks = _issue_and_publish(memory_store, now)

    valid, message, claims = verify_token(token, jwks)

    assert valid is True
    assert claims["sub"] == "sampleUser"


def test_token_signed_by_expired_key_is_rejected(memory_store, pem_pool, now):
    """A key missing from the JWKS cannot be used to verify anything."""
    memory_store.insert(pem_pool[0], now + 3600)
    expired_kid = memory_store.insert(pem_pool[1], now - 3600)
    expired_record = {r.id: r for r in memory_store.all_valid_at(now - 7200)}[expired_kid]

    forged = sign_token(expired_record, now)
    _, jwks = _issue_and_publish(memory_store, now)

    valid, message, _ = verify_token(forged, jwks)

    assert valid is False
    assert "not published" in message


def test_tampered_token_is_rejected(memory_store, pem_pool, now):
    memory_store.insert(pem_pool[0], now + 3600)
    token, jwks = _issue_and_publish(memory_store, now)

    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[:-4] + ("AAAA" if signature[-4:] != "AAAA" else "BBBB")])

    valid, _, claims = verify_token(tampered, jwks)

    assert valid is False
    assert claims == {}


def test_malformed_token_is_rejected():
    valid, message, _ = verify_token("not-a-jwt", {"keys": []})
    assert valid is False


def test_find_jwk():
    jwks = {"keys": [{"kid": "1"}, {"kid": "2"}]}
    assert find_jwk(jwks, "2") == {"kid": "2"}
    assert find_jwk(jwks, "3") is None


def test_cli_offline_mode(memory_store, pem_pool, now, tmp_path, capsys):
    memory_store.insert(pem_pool[0], now + 3600)
    token, jwks = _issue_and_publish(memory_store, now)
    jwks_path = tmp_path / "jwks.json"
    jwks_path.write_text(json.dumps(jwks))

    exit_code = main(["--token", token, "--jwks", str(jwks_path)])

    assert exit_code == 0
    assert "PASS" in capsys.readouterr().out


def test_cli_missing_jwks_file(tmp_path):
    exit_code = main(["--token", "x.y.z", "--jwks", str(tmp_path / "missing.json")])
    assert exit_code == 2


def test_cli_rejects_token_without_jwks(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--token", "x.y.z"])

    assert exc_info.value.code == 2
    assert "--token and --jwks must be given together" in capsys.readouterr().err


def test_cli_rejects_jwks_without_token(tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        main(["--jwks", str(tmp_path / "jwks.json")])

    assert exc_info.value.code == 2
