"""
Error taxonomy for the key server core.

Every core failure derives from KeyServerError so the HTTP layer can map the
whole family to a generic 500 without leaking internal detail. The `operation`
and `at` attributes are for server-side logs only.
"""

from typing import Optional


class KeyServerError(Exception):
    """Base exception for key lifecycle and token issuance failures."""

    code = "key_server_error"

    def __init__(self, message: str, operation: Optional[str] = None, at: Optional[int] = None):
        self.message = message
        self.operation = operation
        self.at = at
        super().__init__(message)

    def log_context(self) -> dict:
        return {"code": self.code, "operation": self.operation, "at": self.at}


class StorageError(KeyServerError):
    """Reading or writing the key store failed. Never retried."""

    code = "storage_error"


class NoValidKeyError(KeyServerError):
    """No stored key satisfies expires_at > now at issuance time."""

    code = "no_valid_key"


class CodecError(KeyServerError):
    """Stored key material could not be decoded into an RSA private key."""

    code = "codec_error"


class KeyGenError(KeyServerError):
    """Key generation failed. Fatal during startup seeding."""

    code = "keygen_error"
