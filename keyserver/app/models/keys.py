"""
Key server models.

KeyRecord is the persisted form of a signing key. PublicKeyDescriptor and
JwksDocument define the discovery document served at /.well-known/jwks.json.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class KeyRecord(BaseModel):
    """
    One stored signing key.

    Records are immutable: the store assigns `id` on insert and neither
    `material` nor `expires_at` change afterwards.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Store-assigned key identifier (kid)")
    material: bytes = Field(..., repr=False, description="PEM-encoded PKCS#8 private key")
    expires_at: int = Field(..., description="Expiry instant, Unix epoch seconds")

    def is_valid_at(self, now: int) -> bool:
        """A key is valid while its expiry is strictly in the future."""
        return self.expires_at > now


class PublicKeyDescriptor(BaseModel):
    """Public half of an RSA signing key as a JWK (RFC 7517)."""
    model_config = ConfigDict(frozen=True)

    kty: str = Field(default="RSA", description="Key type")
    use: str = Field(default="sig", description="Intended use: signature verification")
    alg: str = Field(default="RS256", description="Signing algorithm")
    kid: str = Field(..., description="Key identifier, decimal string of KeyRecord.id")
    n: str = Field(..., description="Modulus, base64url without padding")
    e: str = Field(..., description="Public exponent, base64url without padding")


class JwksDocument(BaseModel):
    """Discovery document listing every currently valid public key."""
    keys: List[PublicKeyDescriptor] = Field(default_factory=list)


class TokenResponse(BaseModel):
    """Response body of POST /auth."""
    token: str = Field(..., description="Compact-serialized RS256 JWT")
