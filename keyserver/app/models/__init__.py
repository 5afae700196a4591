"""
Pydantic models for the key server.
"""

from keyserver.app.models.keys import JwksDocument, KeyRecord, PublicKeyDescriptor, TokenResponse

__all__ = ["JwksDocument", "KeyRecord", "PublicKeyDescriptor", "TokenResponse"]
