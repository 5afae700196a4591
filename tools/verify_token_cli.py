#!/usr/bin/env python3
"""
Token Verifier - CLI Tool

Requests a token from a running key server, downloads its JWKS discovery
document, and verifies the token the way a third-party relying party would:
select the JWK whose kid matches the token header, then check the RS256
signature and expiry.

Usage:
    python verify_token_cli.py [--base-url http://localhost:8080]
    python verify_token_cli.py --token <jwt> --jwks <jwks.json>

Exit Codes:
    0 - PASS: Signature valid, token unexpired, kid published
    1 - FAIL: Verification failed
    2 - ERROR: Server unreachable or invalid input
"""

import argparse
import json
import sys
from typing import Any, Dict, Optional, Tuple

import requests
from jose import JWTError, jwt

DEFAULT_BASE_URL = "http://localhost:8080"

GREEN = '\033[92m'
RED = '\033[91m'
RESET = '\033[0m'


def find_jwk(jwks: Dict[str, Any], kid: str) -> Optional[Dict[str, Any]]:
    """Return the JWK with the given kid from a JWKS document, or None."""
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key
    return None


def verify_token(token: str, jwks: Dict[str, Any]) -> Tuple[bool, str, Dict[str, Any]]:
    """
    Verify a token against a JWKS document.

    Returns:
        (valid, message, claims). claims is empty when verification fails.
    """
    try:
        header = jwt.get_unverified_header(token)
    except JWTError as e:
        return False, f"Malformed token header: {e}", {}

    kid = header.get("kid")
    if kid is None:
        return False, "Token header has no kid", {}

    jwk = find_jwk(jwks, kid)
    if jwk is None:
        return False, f"kid {kid} is not published in the JWKS", {}

    try:
        claims = jwt.decode(token, jwk, algorithms=[jwk.get("alg", "RS256")])
    except JWTError as e:
        return False, f"Token rejected: {e}", {}

    return True, f"Signature valid (kid {kid})", claims


def fetch_token_and_jwks(base_url: str) -> Tuple[str, Dict[str, Any]]:
    """Fetch a fresh token and the discovery document from a running server."""
    auth_response = requests.post(f"{base_url}/auth", timeout=10)
    auth_response.raise_for_status()
    token = auth_response.json()["token"]

    jwks_response = requests.get(f"{base_url}/.well-known/jwks.json", timeout=10)
    jwks_response.raise_for_status()
    return token, jwks_response.json()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Verify a key server token against its JWKS")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="Key server base URL")
    parser.add_argument("--token", help="Token to verify instead of requesting one")
    parser.add_argument("--jwks", help="Path to a JWKS JSON file instead of fetching it")
    args = parser.parse_args(argv)
    if bool(args.token) != bool(args.jwks):
        parser.error("--token and --jwks must be given together")

    try:
        if args.token and args.jwks:
            token = args.token
            with open(args.jwks, "r") as f:
                jwks = json.load(f)
        else:
            token, jwks = fetch_token_and_jwks(args.base_url)
    except (requests.RequestException, OSError, ValueError, KeyError) as e:
        print(f"{RED}✗ Could not load token or JWKS: {e}{RESET}")
        return 2

    valid, message, claims = verify_token(token, jwks)
    if not valid:
        print(f"{RED}✗ FAIL: {message}{RESET}")
        return 1

    print(f"{GREEN}✓ PASS: {message}{RESET}")
    print(json.dumps(claims, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
